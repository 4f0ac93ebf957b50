# agents/eda/__init__.py
"""
HR Retention — EDA package (lazy exports)

Eksporty:
- MissingDataAnalyzer   (agents.eda.missing_data_analyzer)
- missing_count, missing_percentage, pairwise_missingness, missing_pattern
- VisualizationEngine   (agents.eda.visualization_engine)

Użycie:
    from agents.eda import MissingDataAnalyzer, pairwise_missingness
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

# ===== Lazy exports =====
_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    "MissingDataAnalyzer": ("agents.eda.missing_data_analyzer", "MissingDataAnalyzer"),
    "MissingConfig": ("agents.eda.missing_data_analyzer", "MissingConfig"),
    "PairwiseMissingness": ("agents.eda.missing_data_analyzer", "PairwiseMissingness"),
    "missing_count": ("agents.eda.missing_data_analyzer", "missing_count"),
    "missing_percentage": ("agents.eda.missing_data_analyzer", "missing_percentage"),
    "pairwise_missingness": ("agents.eda.missing_data_analyzer", "pairwise_missingness"),
    "missing_pattern": ("agents.eda.missing_data_analyzer", "missing_pattern"),
    "VisualizationEngine": ("agents.eda.visualization_engine", "VisualizationEngine"),
}

__all__ = tuple(_LAZY_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    """
    Leniwe rozwiązywanie symboli + cache w module globals().

    Plotly ładuje się dopiero przy pierwszym użyciu VisualizationEngine.
    """
    if name not in _LAZY_EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    mod_name, symbol = _LAZY_EXPORTS[name]
    obj = getattr(import_module(mod_name), symbol)
    globals()[name] = obj
    return obj


def __dir__():
    return sorted(list(globals().keys()) + list(__all__))
