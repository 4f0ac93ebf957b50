# agents/preprocessing/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Preprocessing Package                                     ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Lazy exports:                                                            ║
║  • CategoricalEncoder / EncoderConfig / EncodingReport                    ║
║  • MiceImputer / ImputerConfig / ImputationResult                         ║
║  • Normalizer / NormalizerConfig                                          ║
╚════════════════════════════════════════════════════════════════════════════╝

Usage:
```python
    from agents.preprocessing import CategoricalEncoder, MiceImputer, Normalizer

    encoded, report = CategoricalEncoder().encode(raw_df)
    stacked = MiceImputer().impute(encoded).stack()
    normalized, stats = Normalizer().fit_transform(stacked)
```
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    "CategoricalEncoder": ("agents.preprocessing.categorical_encoder", "CategoricalEncoder"),
    "EncoderConfig": ("agents.preprocessing.categorical_encoder", "EncoderConfig"),
    "EncodingReport": ("agents.preprocessing.categorical_encoder", "EncodingReport"),
    "MiceImputer": ("agents.preprocessing.mice_imputer", "MiceImputer"),
    "ImputerConfig": ("agents.preprocessing.mice_imputer", "ImputerConfig"),
    "ImputationResult": ("agents.preprocessing.mice_imputer", "ImputationResult"),
    "validate_method_map": ("agents.preprocessing.mice_imputer", "validate_method_map"),
    "Normalizer": ("agents.preprocessing.normalizer", "Normalizer"),
    "NormalizerConfig": ("agents.preprocessing.normalizer", "NormalizerConfig"),
}

__all__ = tuple(_LAZY_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    """PEP 562 lazy resolution, cached in module globals."""
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, symbol = _LAZY_EXPORTS[name]
    obj = getattr(import_module(module_name), symbol)
    globals()[name] = obj
    return obj


def __dir__():
    return sorted(list(globals().keys()) + list(__all__))
