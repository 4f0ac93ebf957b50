# agents/ml/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — ML Package                                                ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║    ✓ PEP 562 lazy imports (statsmodels / sklearn loaded on demand)        ║
╚════════════════════════════════════════════════════════════════════════════╝

Public API:
    • ModelTrainer / TrainerConfig / ModelComparison
    • fit_knn, fit_linear, fit_tree, predict, select_features
    • ModelEvaluator / ConfusionReport
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, List

_TRAINER = "agents.ml.model_trainer"
_EVALUATOR = "agents.ml.model_evaluator"

_LAZY_EXPORTS: Dict[str, str] = {
    "ModelTrainer": _TRAINER,
    "TrainerConfig": _TRAINER,
    "ModelComparison": _TRAINER,
    "LinearFit": _TRAINER,
    "fit_knn": _TRAINER,
    "fit_linear": _TRAINER,
    "fit_tree": _TRAINER,
    "predict": _TRAINER,
    "select_features": _TRAINER,
    "ModelEvaluator": _EVALUATOR,
    "ConfusionReport": _EVALUATOR,
}

__all__ = tuple(_LAZY_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    obj = getattr(import_module(module_name), name)
    globals()[name] = obj
    return obj


def __dir__() -> List[str]:
    return sorted(list(globals().keys()) + list(__all__))
