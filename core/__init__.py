# core/__init__.py
"""
HR Retention — Core Package

```
    core/
    ├── __init__.py          # Lazy exports (this file)
    ├── base_agent.py        # Agent framework
    ├── data_loader.py       # Delimited table loader
    ├── exceptions.py        # Exception hierarchy
    └── utils.py             # Formatting helpers
```

Usage:
```python
    from core import BaseAgent, AgentResult, DataLoader
```
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Any, Dict, List, Tuple

_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    # Agent Framework
    "BaseAgent": ("core.base_agent", "BaseAgent"),
    "AgentResult": ("core.base_agent", "AgentResult"),
    "AgentStatus": ("core.base_agent", "AgentStatus"),

    # Loading
    "DataLoader": ("core.data_loader", "DataLoader"),
    "LoaderAgent": ("core.data_loader", "LoaderAgent"),
    "get_data_loader": ("core.data_loader", "get_data_loader"),
}

__all__ = tuple(_LAZY_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    """
    Lazy attribute resolution.

    Loads modules only when their exports are first accessed and caches the
    resolved objects in module globals.
    """
    if name in _LAZY_EXPORTS:
        module_name, symbol_name = _LAZY_EXPORTS[name]

        try:
            module: ModuleType = import_module(module_name)
            obj = getattr(module, symbol_name)
        except (ImportError, AttributeError) as e:
            raise AttributeError(
                f"Failed to load '{name}' from '{module_name}': {e}"
            ) from e

        globals()[name] = obj
        return obj

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> List[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))
