# agents/ml/model_evaluator.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Model Evaluator                                           ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Binary attrition classification metrics:                                  ║
║    ✓ Confusion matrix with fixed labels [0, 1]                            ║
║    ✓ Accuracy, Precision, Recall, F1 (positive class = 1)                 ║
║    ✓ Stable output contract                                               ║
╚════════════════════════════════════════════════════════════════════════════╝

Output Contract (AgentResult.data):
{
    "report": ConfusionReport,
}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
)

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError

__all__ = ["ConfusionReport", "ModelEvaluator", "CLASS_LABELS"]

CLASS_LABELS = (0, 1)


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Report
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfusionReport:
    """
    Confusion matrix (rows = actual, columns = predicted) and derived metrics.
    """
    matrix: pd.DataFrame
    accuracy: float
    precision: float
    recall: float
    f1: float
    n_samples: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matrix": self.matrix.to_numpy().tolist(),
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
            "n_samples": self.n_samples,
        }


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Evaluator Agent
# ═══════════════════════════════════════════════════════════════════════════

class ModelEvaluator(BaseAgent):
    """Scores predicted attrition labels against true labels."""

    def __init__(self) -> None:
        super().__init__(name="ModelEvaluator", description="Binary classification metrics")
        self._log = logger.bind(agent="ModelEvaluator")

    def validate_input(self, **kwargs) -> bool:
        if "y_true" not in kwargs or "y_pred" not in kwargs:
            raise DataValidationError("Required parameters 'y_true' and 'y_pred' not provided")
        return True

    def execute(self, y_true: Sequence[int], y_pred: Sequence[int], **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        report = self.confusion(y_true, y_pred)
        result.add_data(report=report)
        result.add_metadata(**{k: v for k, v in report.to_dict().items() if k != "matrix"})
        return result

    @staticmethod
    def confusion(y_true: Sequence[int], y_pred: Sequence[int]) -> ConfusionReport:
        """
        Confusion matrix with labels [0, 1] and the usual binary metrics.

        Raises:
            DataValidationError: lengths differ or the input is empty
        """
        y_true = np.asarray(y_true).astype(int)
        y_pred = np.asarray(y_pred).astype(int)

        if y_true.shape != y_pred.shape:
            raise DataValidationError(
                f"y_true and y_pred lengths differ: {len(y_true)} vs {len(y_pred)}"
            )
        if len(y_true) == 0:
            raise DataValidationError("Cannot evaluate an empty prediction set")

        labels = list(CLASS_LABELS)
        cm = confusion_matrix(y_true, y_pred, labels=labels)
        matrix = pd.DataFrame(
            cm,
            index=pd.Index(labels, name="actual"),
            columns=pd.Index(labels, name="predicted"),
        )

        return ConfusionReport(
            matrix=matrix,
            accuracy=float(accuracy_score(y_true, y_pred)),
            precision=float(precision_score(y_true, y_pred, labels=labels, zero_division=0)),
            recall=float(recall_score(y_true, y_pred, labels=labels, zero_division=0)),
            f1=float(f1_score(y_true, y_pred, labels=labels, zero_division=0)),
            n_samples=int(len(y_true)),
        )
