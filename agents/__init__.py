# agents/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Agents Package                                            ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Import System (PEP 562)                                          ║
║  ✓ LRU-Cached Symbol Resolution                                          ║
║  ✓ One Agent per Pipeline Stage                                          ║
╚════════════════════════════════════════════════════════════════════════════╝

Agent Categories:
    • preprocessing: CategoricalEncoder, MiceImputer, Normalizer
    • eda: MissingDataAnalyzer, VisualizationEngine
    • ml: ModelTrainer, ModelEvaluator

Usage:
```python
    from agents import CategoricalEncoder, MiceImputer

    encoded = CategoricalEncoder().run(data=raw_df).data["data"]
    stacked = MiceImputer().run(data=encoded).data["stacked"]
```
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from types import ModuleType
from typing import Any, Dict, Final, List, Tuple

try:
    __version__ = _pkg_version("hr-retention")
except PackageNotFoundError:
    __version__ = "1.0.0-dev"


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Export Specification
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class _LazySpec:
    module: str
    symbol: str
    category: str = "other"


_LAZY_EXPORTS: Dict[str, _LazySpec] = {
    # preprocessing
    "CategoricalEncoder": _LazySpec("agents.preprocessing.categorical_encoder", "CategoricalEncoder", "preprocessing"),
    "EncoderConfig": _LazySpec("agents.preprocessing.categorical_encoder", "EncoderConfig", "preprocessing"),
    "MiceImputer": _LazySpec("agents.preprocessing.mice_imputer", "MiceImputer", "preprocessing"),
    "ImputerConfig": _LazySpec("agents.preprocessing.mice_imputer", "ImputerConfig", "preprocessing"),
    "Normalizer": _LazySpec("agents.preprocessing.normalizer", "Normalizer", "preprocessing"),
    "NormalizerConfig": _LazySpec("agents.preprocessing.normalizer", "NormalizerConfig", "preprocessing"),

    # eda
    "MissingDataAnalyzer": _LazySpec("agents.eda.missing_data_analyzer", "MissingDataAnalyzer", "eda"),
    "VisualizationEngine": _LazySpec("agents.eda.visualization_engine", "VisualizationEngine", "eda"),

    # ml
    "ModelTrainer": _LazySpec("agents.ml.model_trainer", "ModelTrainer", "ml"),
    "TrainerConfig": _LazySpec("agents.ml.model_trainer", "TrainerConfig", "ml"),
    "ModelEvaluator": _LazySpec("agents.ml.model_evaluator", "ModelEvaluator", "ml"),
}

__all__: Final[Tuple[str, ...]] = tuple(_LAZY_EXPORTS.keys()) + ("list_agents",)


@lru_cache(maxsize=len(_LAZY_EXPORTS) or 128)
def _resolve(name: str) -> Any:
    """Import the module behind `name` on first access."""
    spec = _LAZY_EXPORTS.get(name)
    if spec is None:
        raise AttributeError(
            f"module '{__name__}' has no attribute '{name}'. "
            f"Available: {', '.join(sorted(_LAZY_EXPORTS.keys()))}"
        )

    module: ModuleType = importlib.import_module(spec.module)
    try:
        return getattr(module, spec.symbol)
    except AttributeError as e:
        raise AttributeError(
            f"Module '{spec.module}' does not define '{spec.symbol}' (needed for '{name}')"
        ) from e


def __getattr__(name: str) -> Any:
    obj = _resolve(name)
    globals()[name] = obj
    return obj


def __dir__() -> List[str]:
    return sorted(list(globals().keys()) + list(__all__))


def list_agents(category: str = "") -> List[str]:
    """Names of exported symbols, optionally filtered by category."""
    return sorted(
        name for name, spec in _LAZY_EXPORTS.items()
        if not category or spec.category == category
    )
