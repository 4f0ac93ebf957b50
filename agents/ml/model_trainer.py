# agents/ml/model_trainer.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Model Trainer                                             ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Three side-by-side attrition models on the same normalized features:     ║
║    ✓ k-Nearest Neighbours (k=2, Euclidean)                                ║
║    ✓ OLS Linear Probability Model (coefficient table, R²)                 ║
║    ✓ Classification Tree (with and without depth limit)                   ║
║    ✓ Explicit Feature List (decoupled from table columns)                 ║
║    ✓ Numerical Failures → ModelFitError                                   ║
╚════════════════════════════════════════════════════════════════════════════╝

Evaluation follows the original analysis, including its known weaknesses:
the linear model treats the binary target as continuous and is judged by
its coefficient table; the trees are judged by a confusion matrix on the
training partition. Test accuracy is reported next to each for comparison.
Every test row is predicted; only rows carrying a label are scored.

Output Contract (AgentResult.data):
{
    "comparison": ModelComparison,
}

Usage:
```python
    trainer = ModelTrainer(TrainerConfig(knn_neighbors=2, tree_max_depth=3))
    comparison = trainer.run(train=train_norm, test=test_norm).data["comparison"]
    print(comparison.summary())
```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from sklearn.neighbors import KNeighborsClassifier
from sklearn.tree import DecisionTreeClassifier

from agents.ml.model_evaluator import ConfusionReport, ModelEvaluator
from config.constants import FEATURE_COLUMNS, TARGET_COLUMN
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import ConfigurationError, DataValidationError, ModelFitError, exception_context
from core.utils import missing_columns

__all__ = [
    "TrainerConfig",
    "LinearFit",
    "ModelComparison",
    "ModelTrainer",
    "select_features",
    "fit_knn",
    "fit_linear",
    "fit_tree",
    "predict",
]

_NUMERICAL_ERRORS = (np.linalg.LinAlgError, ValueError)


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Configuration
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TrainerConfig:
    """
    Attributes:
        feature_columns: Predictors, in order
        target_column: Binary attrition label
        knn_neighbors: k for the kNN classifier
        tree_max_depth: Depth of the constrained tree (an unconstrained
            tree is always fitted too)
        linear_threshold: Fitted value at or above which OLS predicts 1
        random_state: Tree tie-breaking seed
    """
    feature_columns: Tuple[str, ...] = tuple(FEATURE_COLUMNS)
    target_column: str = TARGET_COLUMN
    knn_neighbors: int = 2
    tree_max_depth: Optional[int] = 3
    linear_threshold: float = 0.5
    random_state: int = 500

    def __post_init__(self) -> None:
        if self.knn_neighbors < 1:
            raise ConfigurationError(f"knn_neighbors must be >= 1, got {self.knn_neighbors}")
        if self.tree_max_depth is not None and self.tree_max_depth < 1:
            raise ConfigurationError(f"tree_max_depth must be >= 1 or None, got {self.tree_max_depth}")
        if not self.feature_columns:
            raise ConfigurationError("feature_columns must not be empty")

    @classmethod
    def from_settings(cls, settings: Any) -> "TrainerConfig":
        return cls(
            knn_neighbors=settings.KNN_NEIGHBORS,
            tree_max_depth=settings.TREE_MAX_DEPTH,
            linear_threshold=settings.LINEAR_DECISION_THRESHOLD,
            random_state=settings.RANDOM_STATE,
        )


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Feature Selection
# ═══════════════════════════════════════════════════════════════════════════

def select_features(
    df: pd.DataFrame,
    feature_columns: Sequence[str] = FEATURE_COLUMNS,
    target_column: Optional[str] = TARGET_COLUMN
) -> Tuple[pd.DataFrame, Optional[pd.Series]]:
    """
    Pull the explicit feature columns (and target) out of a table.

    Raises:
        DataValidationError: a feature or the target is absent, or a
            feature still has missing values
    """
    required = list(feature_columns) + ([target_column] if target_column else [])
    absent = missing_columns(df, required)
    if absent:
        raise DataValidationError(
            f"Model input is missing column(s): {absent}",
            details={"column": absent[0], "columns": absent}
        )

    X = df[list(feature_columns)].astype("float64")
    incomplete = X.columns[X.isna().any()].tolist()
    if incomplete:
        raise DataValidationError(
            f"Feature column(s) contain missing values: {incomplete}",
            details={"column": incomplete[0]}
        )

    y = df[target_column] if target_column else None
    return X, y


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Fit / Predict
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class LinearFit:
    """OLS linear probability model."""
    results: Any
    feature_columns: List[str]
    threshold: float = 0.5

    @property
    def r_squared(self) -> float:
        return float(self.results.rsquared)

    @property
    def adj_r_squared(self) -> float:
        return float(self.results.rsquared_adj)

    @property
    def coefficients(self) -> pd.DataFrame:
        """coef, std err, t, p-value per term (const first)."""
        table = pd.DataFrame({
            "coef": self.results.params,
            "std_err": self.results.bse,
            "t": self.results.tvalues,
            "p_value": self.results.pvalues,
        })
        table.index.name = "term"
        return table

    def significant(self, alpha: float = 0.05) -> List[str]:
        table = self.coefficients
        return table.index[table["p_value"] < alpha].tolist()

    def predict(self, features: pd.DataFrame) -> np.ndarray:
        return predict(self, features)

    def fitted_values(self, features: pd.DataFrame) -> np.ndarray:
        exog = sm.add_constant(features[self.feature_columns], has_constant="add")
        return np.asarray(self.results.predict(exog), dtype=float)


def _as_labels(target: pd.Series) -> np.ndarray:
    values = pd.Series(target).to_numpy(dtype=float)
    if np.isnan(values).any():
        raise DataValidationError("Target contains missing values", details={"column": getattr(target, "name", None)})
    return values.astype(int)


def fit_knn(features: pd.DataFrame, target: pd.Series, k: int = 2) -> KNeighborsClassifier:
    """kNN classifier, Euclidean distance, library tie-breaking."""
    with exception_context(to=ModelFitError, message="kNN fit failed", details={"model": "knn"},
                           catch=_NUMERICAL_ERRORS):
        model = KNeighborsClassifier(n_neighbors=k, metric="euclidean")
        model.fit(features.to_numpy(dtype=float), _as_labels(target))
    return model


def fit_linear(features: pd.DataFrame, target: pd.Series, threshold: float = 0.5) -> LinearFit:
    """OLS with an intercept, treating the binary target as continuous."""
    with exception_context(to=ModelFitError, message="OLS fit failed", details={"model": "linear"},
                           catch=_NUMERICAL_ERRORS):
        exog = sm.add_constant(features.astype(float), has_constant="add")
        results = sm.OLS(pd.Series(target).astype(float).to_numpy(), exog).fit()

    if not np.all(np.isfinite(results.params)):
        bad = results.params.index[~np.isfinite(results.params)].tolist()
        raise ModelFitError(
            "OLS produced non-finite coefficients",
            details={"model": "linear", "column": bad[0] if bad else None, "terms": bad}
        )
    return LinearFit(results=results, feature_columns=list(features.columns), threshold=threshold)


def fit_tree(
    features: pd.DataFrame,
    target: pd.Series,
    max_depth: Optional[int] = None,
    random_state: int = 500
) -> DecisionTreeClassifier:
    """Classification tree; `max_depth=None` grows until leaves are pure."""
    with exception_context(to=ModelFitError, message="Tree fit failed",
                           details={"model": "tree", "max_depth": max_depth},
                           catch=_NUMERICAL_ERRORS):
        model = DecisionTreeClassifier(max_depth=max_depth, random_state=random_state)
        model.fit(features.to_numpy(dtype=float), _as_labels(target))
    return model


def predict(model: Any, features: pd.DataFrame) -> np.ndarray:
    """Predicted 0/1 labels for any of the three model kinds."""
    if isinstance(model, LinearFit):
        return (model.fitted_values(features) >= model.threshold).astype(int)
    with exception_context(to=ModelFitError, message="Prediction failed",
                           details={"model": type(model).__name__},
                           catch=_NUMERICAL_ERRORS):
        return np.asarray(model.predict(features.to_numpy(dtype=float))).astype(int)


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Comparison
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ModelComparison:
    """
    Fitted models, their test-partition predictions and their evaluations.

    `predictions` holds one label vector per model over every test row.
    Test scores (`knn_test`, `linear_test`, `tree_test`) cover the labeled
    test rows only and are None when the test partition carries no labels.
    """
    knn: KNeighborsClassifier
    knn_test: Optional[ConfusionReport]
    linear: LinearFit
    linear_test: Optional[ConfusionReport]
    trees: Dict[str, DecisionTreeClassifier] = field(default_factory=dict)
    tree_train: Dict[str, ConfusionReport] = field(default_factory=dict)
    tree_test: Dict[str, Optional[ConfusionReport]] = field(default_factory=dict)
    predictions: Dict[str, np.ndarray] = field(default_factory=dict)
    n_train: int = 0
    n_test: int = 0
    n_scored: int = 0

    @property
    def has_test_scores(self) -> bool:
        return self.n_scored > 0

    def summary(self) -> pd.DataFrame:
        """One row per model: what it was evaluated on and its accuracies."""
        def _test(report: Optional[ConfusionReport]) -> Dict[str, float]:
            if report is None:
                return {"test_accuracy": np.nan, "test_f1": np.nan}
            return {"test_accuracy": report.accuracy, "test_f1": report.f1}

        rows = [
            {"model": "knn", "train_accuracy": np.nan, **_test(self.knn_test)},
            {"model": "linear", "train_accuracy": np.nan, **_test(self.linear_test)},
        ]
        for name in self.trees:
            rows.append({
                "model": name,
                "train_accuracy": self.tree_train[name].accuracy,
                **_test(self.tree_test.get(name)),
            })
        return pd.DataFrame(rows).set_index("model")


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Trainer Agent
# ═══════════════════════════════════════════════════════════════════════════

class ModelTrainer(BaseAgent):
    """Fits kNN, OLS and the two trees on train; predicts and scores on test."""

    def __init__(self, config: Optional[TrainerConfig] = None) -> None:
        super().__init__(name="ModelTrainer", description="kNN / OLS / tree comparison")
        self.config = config or TrainerConfig()
        self.evaluator = ModelEvaluator()
        self._log = logger.bind(agent="ModelTrainer")

    def validate_input(self, **kwargs) -> bool:
        for key in ("train", "test"):
            if not isinstance(kwargs.get(key), pd.DataFrame):
                raise DataValidationError(
                    f"'{key}' must be pd.DataFrame, got {type(kwargs.get(key)).__name__}"
                )
        return True

    def execute(self, train: pd.DataFrame, test: pd.DataFrame, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        cfg = self.config

        if cfg.target_column not in train.columns:
            raise DataValidationError(
                f"Target column '{cfg.target_column}' not found in training data",
                details={"column": cfg.target_column}
            )
        labeled_train = train[cfg.target_column].notna()
        if not labeled_train.all():
            result.add_warning(
                f"Dropped {int((~labeled_train).sum())} train row(s) without a target label"
            )
        X_train, y_train = select_features(train[labeled_train], cfg.feature_columns, cfg.target_column)

        # every test row is predicted; only labeled rows are scored
        X_test, _ = select_features(test, cfg.feature_columns, target_column=None)
        scored = self._labeled_mask(test)
        y_test = test.loc[scored, cfg.target_column] if scored.any() else None
        n_unlabeled = int((~scored).sum())
        if y_test is None:
            result.add_warning(
                f"Test partition has no target labels; {len(X_test)} row(s) predicted, test scores skipped"
            )
        elif n_unlabeled:
            result.add_warning(
                f"{n_unlabeled} test row(s) without a target label are predicted but not scored"
            )

        self._log.info(
            f"Training on {len(X_train)} rows × {X_train.shape[1]} features; "
            f"predicting {len(X_test)} rows, scoring {int(scored.sum())}"
        )

        predictions: Dict[str, np.ndarray] = {}

        # kNN
        knn = fit_knn(X_train, y_train, k=cfg.knn_neighbors)
        predictions["knn"] = predict(knn, X_test)
        knn_test = self._score(y_test, predictions["knn"], scored)
        if knn_test is not None:
            self._log.info(f"kNN (k={cfg.knn_neighbors}) test accuracy: {knn_test.accuracy:.4f}")

        # OLS
        linear = fit_linear(X_train, y_train, threshold=cfg.linear_threshold)
        predictions["linear"] = predict(linear, X_test)
        linear_test = self._score(y_test, predictions["linear"], scored)
        self._log.info(
            f"OLS R²={linear.r_squared:.4f}; significant terms: {linear.significant()}"
        )

        # Trees
        trees: Dict[str, DecisionTreeClassifier] = {}
        tree_train: Dict[str, ConfusionReport] = {}
        tree_test: Dict[str, Optional[ConfusionReport]] = {}
        for name, depth in self._tree_variants():
            tree = fit_tree(X_train, y_train, max_depth=depth, random_state=cfg.random_state)
            trees[name] = tree
            tree_train[name] = self.evaluator.confusion(y_train, predict(tree, X_train))
            predictions[name] = predict(tree, X_test)
            tree_test[name] = self._score(y_test, predictions[name], scored)
            self._log.info(
                f"{name}: depth={tree.get_depth()}, leaves={tree.get_n_leaves()}, "
                f"train accuracy={tree_train[name].accuracy:.4f}"
            )

        comparison = ModelComparison(
            knn=knn,
            knn_test=knn_test,
            linear=linear,
            linear_test=linear_test,
            trees=trees,
            tree_train=tree_train,
            tree_test=tree_test,
            predictions=predictions,
            n_train=int(len(X_train)),
            n_test=int(len(X_test)),
            n_scored=int(scored.sum()),
        )

        result.add_data(comparison=comparison)
        result.add_metadata(
            n_train=comparison.n_train,
            n_test=comparison.n_test,
            n_scored=comparison.n_scored,
            r_squared=linear.r_squared,
        )
        return result

    def _tree_variants(self) -> List[Tuple[str, Optional[int]]]:
        variants: List[Tuple[str, Optional[int]]] = [("tree_full", None)]
        if self.config.tree_max_depth is not None:
            variants.append((f"tree_depth_{self.config.tree_max_depth}", self.config.tree_max_depth))
        return variants

    def _labeled_mask(self, df: pd.DataFrame) -> np.ndarray:
        target = self.config.target_column
        if target not in df.columns:
            return np.zeros(len(df), dtype=bool)
        return df[target].notna().to_numpy()

    def _score(
        self,
        y_true: Optional[pd.Series],
        y_pred: np.ndarray,
        scored: np.ndarray
    ) -> Optional[ConfusionReport]:
        if y_true is None:
            return None
        return self.evaluator.confusion(y_true, y_pred[scored])
