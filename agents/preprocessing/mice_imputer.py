# agents/preprocessing/mice_imputer.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — MICE Imputer                                              ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Multiple Imputation by Chained Equations (m draws × maxit sweeps)     ║
║  ✓ Predictive Mean Matching (Bayesian ridge draw + k nearest donors)     ║
║  ✓ CART Leaf Sampling (tree leaf → observed donor value)                 ║
║  ✓ Validated Column → Method Mapping                                     ║
║  ✓ Reproducible Draws (SeedSequence, one child stream per draw)          ║
║  ✓ Long-Format Stack (.imp / .id) and Chain Diagnostics                  ║
╚════════════════════════════════════════════════════════════════════════════╝

Output Contract (AgentResult.data):
{
    "result": ImputationResult,
    "stacked": pd.DataFrame,     # m completed copies, long format
}

Usage:
```python
    imputer = MiceImputer(ImputerConfig(m=5, maxit=5, seed=500))
    result = imputer.impute(encoded_df)
    first = result.complete(1)
    long_df = result.stack()
```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from config.constants import (
    IMPUTATION_EXCLUDED_COLUMNS,
    IMPUTATION_INDEX_COLUMN,
    IMPUTATION_METHOD_MAP,
    IMPUTATION_METHODS,
    ROW_ID_COLUMN,
)
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import (
    ConfigurationError,
    DataValidationError,
    ImputationError,
    exception_context,
)
from core.utils import missing_columns

__all__ = [
    "ImputerConfig",
    "ImputationResult",
    "MiceImputer",
    "validate_method_map",
    "pmm_fill",
    "cart_fill",
]


# ═══════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ImputerConfig:
    """
    ⚙️ **Imputer Configuration**

    Attributes:
        m: Number of completed copies
        maxit: Chained-equation sweeps per copy
        seed: Root seed for every random draw
        pmm_donors: Candidate donors per missing cell (pmm)
        cart_min_leaf: Minimum observed rows per tree leaf (cart)
        ridge: Ridge penalty relative to diag(X'X) (pmm)
        cart_max_classes: Integer columns with at most this many distinct
            values are fitted with a classification tree
        allow_unmapped: Leave columns with no method untouched instead of
            raising ConfigurationError
    """
    m: int = 5
    maxit: int = 5
    seed: int = 500
    pmm_donors: int = 5
    cart_min_leaf: int = 5
    ridge: float = 1e-5
    cart_max_classes: int = 25
    allow_unmapped: bool = False

    def __post_init__(self) -> None:
        for name in ("m", "maxit", "pmm_donors", "cart_min_leaf", "cart_max_classes"):
            value = getattr(self, name)
            if int(value) < 1:
                raise ConfigurationError(
                    f"{name} must be >= 1, got {value}", details={"parameter": name}
                )
        if self.ridge < 0:
            raise ConfigurationError(
                f"ridge must be >= 0, got {self.ridge}", details={"parameter": "ridge"}
            )

    @classmethod
    def from_settings(cls, settings: Any) -> "ImputerConfig":
        return cls(
            m=settings.N_IMPUTATIONS,
            maxit=settings.MAX_ITERATIONS,
            seed=settings.RANDOM_STATE,
            pmm_donors=settings.PMM_DONORS,
            cart_min_leaf=settings.CART_MIN_LEAF,
            allow_unmapped=settings.ALLOW_UNMAPPED_COLUMNS,
        )


def validate_method_map(
    df: pd.DataFrame,
    method_map: Mapping[str, str],
    excluded: Iterable[str] = IMPUTATION_EXCLUDED_COLUMNS,
    allow_unmapped: bool = False
) -> List[str]:
    """
    Check a column → method mapping against a table.

    Returns:
        Columns that have missing values but no method (only non-empty
        when `allow_unmapped` is True)

    Raises:
        ConfigurationError: unknown column, unknown method, or an
            incomplete column left unmapped
    """
    excluded = set(excluded)

    unknown_cols = missing_columns(df, method_map)
    if unknown_cols:
        raise ConfigurationError(
            f"Method map names columns absent from the table: {unknown_cols}",
            details={"column": unknown_cols[0], "columns": unknown_cols}
        )

    bad_methods = {c: m for c, m in method_map.items() if m not in IMPUTATION_METHODS}
    if bad_methods:
        col = next(iter(bad_methods))
        raise ConfigurationError(
            f"Unknown imputation method(s): {bad_methods}; expected one of {IMPUTATION_METHODS}",
            details={"column": col, "methods": bad_methods}
        )

    mapped_excluded = [c for c in method_map if c in excluded]
    if mapped_excluded:
        raise ConfigurationError(
            f"Excluded columns cannot be imputed: {mapped_excluded}",
            details={"column": mapped_excluded[0]}
        )

    incomplete = [c for c in df.columns if c not in excluded and df[c].isna().any()]
    unmapped = [c for c in incomplete if c not in method_map]
    if unmapped and not allow_unmapped:
        raise ConfigurationError(
            f"Columns with missing values have no imputation method: {unmapped}",
            details={"column": unmapped[0], "columns": unmapped}
        )
    return unmapped


# ═══════════════════════════════════════════════════════════════════════════
# Result
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ImputationResult:
    """
    📦 **m completed copies plus diagnostics**

    `chain_means` has one row per (draw, iteration) with the mean of the
    imputed cells of each mapped column; flat traces across iterations
    indicate the chains have mixed.
    """
    data: pd.DataFrame
    draws: List[pd.DataFrame]
    method_map: Dict[str, str]
    chain_means: pd.DataFrame
    missing_masks: Dict[str, np.ndarray] = field(default_factory=dict)
    unmapped_columns: List[str] = field(default_factory=list)
    seed: int = 0

    @property
    def m(self) -> int:
        return len(self.draws)

    def complete(self, i: int) -> pd.DataFrame:
        """Completed copy `i` (1..m); 0 returns the incomplete input."""
        if i == 0:
            return self.data.copy()
        if not 1 <= i <= self.m:
            raise IndexError(f"Imputation index must be in 0..{self.m}, got {i}")
        return self.draws[i - 1].copy()

    def stack(self) -> pd.DataFrame:
        """All draws concatenated row-wise with `.imp` and `.id` prepended."""
        frames = []
        for i, draw in enumerate(self.draws, start=1):
            frame = draw.reset_index(drop=True)
            frame.insert(0, ROW_ID_COLUMN, np.arange(1, len(frame) + 1))
            frame.insert(0, IMPUTATION_INDEX_COLUMN, i)
            frames.append(frame)
        return pd.concat(frames, ignore_index=True)

    def imputed_values(self, column: str) -> pd.DataFrame:
        """Long table of the values filled into `column`: `.imp`, `.id`, value."""
        mask = self.missing_masks.get(column)
        if mask is None:
            return pd.DataFrame(columns=[IMPUTATION_INDEX_COLUMN, ROW_ID_COLUMN, column])
        rows = np.flatnonzero(mask)
        frames = [
            pd.DataFrame({
                IMPUTATION_INDEX_COLUMN: i,
                ROW_ID_COLUMN: rows + 1,
                column: draw[column].to_numpy()[rows],
            })
            for i, draw in enumerate(self.draws, start=1)
        ]
        return pd.concat(frames, ignore_index=True)

    def summary(self) -> pd.DataFrame:
        """Per mapped column: method, number of filled cells, observed and imputed means."""
        records = []
        for col, method in self.method_map.items():
            mask = self.missing_masks.get(col, np.zeros(len(self.data), dtype=bool))
            observed = self.data.loc[~mask, col]
            imputed = self.imputed_values(col)[col] if mask.any() else pd.Series(dtype=float)
            records.append({
                "column": col,
                "method": method,
                "n_imputed": int(mask.sum()),
                "observed_mean": float(observed.mean()) if len(observed) else np.nan,
                "imputed_mean": float(imputed.mean()) if len(imputed) else np.nan,
            })
        return pd.DataFrame(records).set_index("column")


# ═══════════════════════════════════════════════════════════════════════════
# Fill models
# ═══════════════════════════════════════════════════════════════════════════

def _with_intercept(x: np.ndarray) -> np.ndarray:
    return np.column_stack([np.ones(len(x)), x])


def pmm_fill(
    x_obs: np.ndarray,
    y_obs: np.ndarray,
    x_mis: np.ndarray,
    rng: np.random.Generator,
    donors: int = 5,
    ridge: float = 1e-5
) -> np.ndarray:
    """
    Predictive mean matching.

    Observed rows are predicted with the ridge-OLS point estimate, missing
    rows with coefficients drawn from the posterior. Each missing cell takes
    the observed value of a donor picked at random among the `donors` rows
    whose prediction is closest.

    Predictors constant over the observed rows are dropped before fitting.
    """
    varying = np.ptp(x_obs, axis=0) > 0
    x_obs, x_mis = x_obs[:, varying], x_mis[:, varying]

    X = _with_intercept(x_obs)
    Xm = _with_intercept(x_mis)
    n, p = X.shape

    xtx = X.T @ X
    penalty = np.diag(np.diag(xtx) * ridge)
    v = np.linalg.inv(xtx + penalty)
    v = (v + v.T) / 2.0
    coef = v @ X.T @ y_obs

    residuals = y_obs - X @ coef
    df = max(n - p, 1)
    sigma_star = np.sqrt(float(residuals @ residuals) / rng.chisquare(df))
    beta_star = coef + np.linalg.cholesky(v) @ rng.standard_normal(p) * sigma_star

    yhat_obs = X @ coef
    yhat_mis = Xm @ beta_star

    # k nearest in sorted order lie within a window of 2k around the insert point
    k = min(donors, n)
    order = np.argsort(yhat_obs, kind="mergesort")
    sorted_hat = yhat_obs[order]
    width = min(2 * k, n)
    pos = np.searchsorted(sorted_hat, yhat_mis)
    start = np.clip(pos - k, 0, n - width)
    window = start[:, None] + np.arange(width)[None, :]

    dist = np.abs(sorted_hat[window] - yhat_mis[:, None])
    nearest = np.argsort(dist, axis=1, kind="mergesort")[:, :k]
    pick = nearest[np.arange(len(yhat_mis)), rng.integers(0, k, size=len(yhat_mis))]
    donor_rows = order[window[np.arange(len(yhat_mis)), pick]]
    return y_obs[donor_rows]


def cart_fill(
    x_obs: np.ndarray,
    y_obs: np.ndarray,
    x_mis: np.ndarray,
    rng: np.random.Generator,
    min_leaf: int = 5,
    classify: bool = True
) -> np.ndarray:
    """
    Tree leaf sampling.

    A tree is grown on the observed rows; every missing row is dropped down
    the tree and receives the value of a random observed row from its leaf.
    """
    if x_obs.shape[1] == 0:
        return rng.choice(y_obs, size=len(x_mis), replace=True)

    estimator_cls = DecisionTreeClassifier if classify else DecisionTreeRegressor
    tree = estimator_cls(
        min_samples_leaf=min(min_leaf, len(y_obs)),
        random_state=int(rng.integers(0, 2**31 - 1)),
    )
    tree.fit(x_obs, y_obs)

    leaf_obs = tree.apply(x_obs)
    leaf_mis = tree.apply(x_mis)

    order = np.argsort(leaf_obs, kind="mergesort")
    sorted_leaves = leaf_obs[order]
    lo = np.searchsorted(sorted_leaves, leaf_mis, side="left")
    hi = np.searchsorted(sorted_leaves, leaf_mis, side="right")
    picks = lo + np.floor(rng.random(len(leaf_mis)) * (hi - lo)).astype(int)
    return y_obs[order[picks]]


# ═══════════════════════════════════════════════════════════════════════════
# Agent
# ═══════════════════════════════════════════════════════════════════════════

class MiceImputer(BaseAgent):
    """
    🧩 **Chained-Equations Multiple Imputer**

    Columns are visited in the order of the table; predictors for each
    column are the other non-excluded columns that are either complete or
    imputed themselves.
    """

    def __init__(
        self,
        config: Optional[ImputerConfig] = None,
        method_map: Optional[Mapping[str, str]] = None,
        excluded: Sequence[str] = IMPUTATION_EXCLUDED_COLUMNS
    ) -> None:
        super().__init__(name="MiceImputer", description="Multiple imputation by chained equations")
        self.config = config or ImputerConfig()
        self.method_map: Dict[str, str] = dict(
            IMPUTATION_METHOD_MAP if method_map is None else method_map
        )
        self.excluded = tuple(excluded)
        self._log = logger.bind(agent="MiceImputer")

    def validate_input(self, **kwargs) -> bool:
        data = kwargs.get("data")
        if not isinstance(data, pd.DataFrame):
            raise DataValidationError(
                f"'data' must be pd.DataFrame, got {type(data).__name__}"
            )
        return True

    def execute(self, data: pd.DataFrame, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        imputation = self.impute(data)

        result.add_data(result=imputation, stacked=imputation.stack())
        result.add_metadata(
            m=imputation.m,
            maxit=self.config.maxit,
            seed=self.config.seed,
            n_imputed_cells=int(sum(mask.sum() for mask in imputation.missing_masks.values())),
        )
        if imputation.unmapped_columns:
            result.add_warning(
                f"Columns left with missing values (no method): {imputation.unmapped_columns}"
            )
        return result

    # ───────────────────────────────────────────────────────────────────
    # Core
    # ───────────────────────────────────────────────────────────────────

    def impute(self, df: pd.DataFrame) -> ImputationResult:
        """
        Produce `m` completed copies of `df`.

        Raises:
            ConfigurationError: method map does not fit the table
            ImputationError: a mapped column has no observed values, or its
                fill model cannot be fitted
        """
        cfg = self.config
        unmapped = validate_method_map(
            df, self.method_map, self.excluded, allow_unmapped=cfg.allow_unmapped
        )
        if unmapped:
            self._log.warning(f"Leaving unmapped columns with missing values: {unmapped}")

        # schema order, not method-map order
        visit = [c for c in df.columns if c in self.method_map]
        masks = {c: df[c].isna().to_numpy() for c in visit}
        targets = [c for c in visit if masks[c].any()]

        for col in targets:
            if masks[col].all():
                raise ImputationError(
                    f"Column '{col}' has no observed values to learn a fill model from",
                    details={"column": col, "method": self.method_map[col]}
                )
            if not pd.api.types.is_numeric_dtype(df[col]):
                raise ImputationError(
                    f"Column '{col}' is not numeric (dtype={df[col].dtype}); encode it first",
                    details={"column": col, "method": self.method_map[col]}
                )

        predictors = self._predictor_map(df, visit)
        classify = {c: self._is_categorical(df[c]) for c in targets}

        self._log.info(
            f"Imputing {len(targets)} column(s) "
            f"({sum(int(masks[c].sum()) for c in targets)} cells): "
            f"m={cfg.m}, maxit={cfg.maxit}, seed={cfg.seed}"
        )

        streams = np.random.SeedSequence(cfg.seed).spawn(cfg.m)
        draws: List[pd.DataFrame] = []
        trace: List[Dict[str, Any]] = []

        for i, stream in enumerate(streams, start=1):
            rng = np.random.default_rng(stream)
            completed, means = self._run_chain(df, targets, masks, predictors, classify, rng)
            draws.append(completed)
            for it, row in enumerate(means, start=1):
                trace.append({IMPUTATION_INDEX_COLUMN: i, "iteration": it, **row})
            self._log.debug(f"Draw {i}/{cfg.m} complete")

        chain_means = pd.DataFrame(
            trace, columns=[IMPUTATION_INDEX_COLUMN, "iteration", *targets]
        )

        self._log.success(f"Imputation complete: {cfg.m} draw(s) of {len(df)} rows")

        return ImputationResult(
            data=df.copy(),
            draws=draws,
            method_map={c: self.method_map[c] for c in visit},
            chain_means=chain_means,
            missing_masks={c: masks[c] for c in targets},
            unmapped_columns=list(unmapped),
            seed=cfg.seed,
        )

    def _run_chain(
        self,
        df: pd.DataFrame,
        targets: List[str],
        masks: Dict[str, np.ndarray],
        predictors: Dict[str, List[str]],
        classify: Dict[str, bool],
        rng: np.random.Generator
    ) -> Tuple[pd.DataFrame, List[Dict[str, float]]]:
        """One draw: random start, then `maxit` sweeps over `targets`."""
        cfg = self.config
        work = df.copy()

        for col in targets:
            mask = masks[col]
            observed = df.loc[~mask, col].to_numpy(dtype=float)
            work.loc[mask, col] = rng.choice(observed, size=int(mask.sum()), replace=True)

        means: List[Dict[str, float]] = []
        for _ in range(cfg.maxit):
            for col in targets:
                mask = masks[col]
                x = work[predictors[col]].to_numpy(dtype=float)
                y_obs = df.loc[~mask, col].to_numpy(dtype=float)

                with exception_context(
                    to=ImputationError,
                    message=f"Fill model for '{col}' could not be fitted",
                    details={"column": col, "method": self.method_map[col]},
                    catch=(ValueError, np.linalg.LinAlgError),
                ):
                    if self.method_map[col] == "pmm":
                        filled = pmm_fill(
                            x[~mask], y_obs, x[mask], rng,
                            donors=cfg.pmm_donors, ridge=cfg.ridge,
                        )
                    else:
                        filled = cart_fill(
                            x[~mask], y_obs, x[mask], rng,
                            min_leaf=cfg.cart_min_leaf, classify=classify[col],
                        )

                work.loc[mask, col] = filled
            means.append({col: float(work.loc[masks[col], col].mean()) for col in targets})

        return work, means

    def _predictor_map(self, df: pd.DataFrame, visit: List[str]) -> Dict[str, List[str]]:
        """Predictor columns per mapped column, computed once."""
        usable = []
        for col in df.columns:
            if col in self.excluded or not pd.api.types.is_numeric_dtype(df[col]):
                continue
            if col in visit or not df[col].isna().any():
                usable.append(col)
        return {col: [c for c in usable if c != col] for col in visit}

    def _is_categorical(self, series: pd.Series) -> bool:
        observed = series.dropna()
        if observed.nunique() > self.config.cart_max_classes:
            return False
        return bool(np.all(np.mod(observed.to_numpy(dtype=float), 1) == 0))
