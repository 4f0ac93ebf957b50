# agents/preprocessing/normalizer.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Normalizer                                                ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Center & Scale: (x - mean) / std, sample std (ddof=1)                 ║
║  ✓ Bookkeeping Columns Untouched (.imp, .id, enrollee_id, target)        ║
║  ✓ Constant Column Policy (raise | passthrough)                          ║
║  ✓ Completed Data Only (missing cells raise)                             ║
╚════════════════════════════════════════════════════════════════════════════╝

Train and test are normalized independently, each with its own statistics.
The returned stats table is for inspection only and is never applied to
another dataset.

Output Contract (AgentResult.data):
{
    "data": pd.DataFrame,
    "stats": pd.DataFrame,       # index=column; mean, std, scaled
}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from config.constants import (
    ID_COLUMN,
    IMPUTATION_INDEX_COLUMN,
    ROW_ID_COLUMN,
    TARGET_COLUMN,
)
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import ConfigurationError, DataValidationError, NormalizationError

__all__ = ["NormalizerConfig", "Normalizer", "ConstantPolicy"]


ConstantPolicy = Literal["raise", "passthrough"]

PROTECTED_COLUMNS: Tuple[str, ...] = (
    IMPUTATION_INDEX_COLUMN,
    ROW_ID_COLUMN,
    ID_COLUMN,
    TARGET_COLUMN,
)


@dataclass(frozen=True)
class NormalizerConfig:
    on_constant: ConstantPolicy = "raise"
    ddof: int = 1
    protected: Tuple[str, ...] = PROTECTED_COLUMNS

    def __post_init__(self) -> None:
        if self.on_constant not in ("raise", "passthrough"):
            raise ConfigurationError(
                f"on_constant must be 'raise' or 'passthrough', got {self.on_constant!r}"
            )


class Normalizer(BaseAgent):
    """📏 Column-wise standardization of a completed (stacked) table."""

    def __init__(self, config: Optional[NormalizerConfig] = None) -> None:
        super().__init__(name="Normalizer", description="Center and scale numeric columns")
        self.config = config or NormalizerConfig()
        self._log = logger.bind(agent="Normalizer")

    def validate_input(self, **kwargs) -> bool:
        data = kwargs.get("data")
        if not isinstance(data, pd.DataFrame):
            raise DataValidationError(
                f"'data' must be pd.DataFrame, got {type(data).__name__}"
            )
        return True

    def execute(
        self,
        data: pd.DataFrame,
        columns: Optional[Sequence[str]] = None,
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        normalized, stats = self.fit_transform(data, columns=columns)
        result.add_data(data=normalized, stats=stats)

        skipped = stats.index[~stats["scaled"]].tolist()
        result.add_metadata(
            n_scaled=int(stats["scaled"].sum()),
            passthrough_columns=skipped,
        )
        if skipped:
            result.add_warning(f"Constant column(s) left unscaled: {skipped}")
        return result

    def fit_transform(
        self,
        df: pd.DataFrame,
        columns: Optional[Sequence[str]] = None
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Standardize `columns` (default: every numeric non-protected column).

        Returns:
            (normalized copy, stats table)

        Raises:
            NormalizationError: column has missing values, or is constant
                under the 'raise' policy
            DataValidationError: requested column absent or non-numeric
        """
        targets = self._resolve_columns(df, columns)
        out = df.copy()
        records: List[dict] = []

        for col in targets:
            values = out[col].astype("float64")

            n_missing = int(values.isna().sum())
            if n_missing:
                first = int(np.flatnonzero(values.isna().to_numpy())[0])
                raise NormalizationError(
                    f"Column '{col}' has {n_missing} missing value(s); normalize completed data only",
                    details={"column": col, "row_index": first, "n_missing": n_missing}
                )

            mean = float(values.mean())
            std = float(values.std(ddof=self.config.ddof)) if len(values) > self.config.ddof else np.nan

            if not np.isfinite(std) or std == 0.0:
                if self.config.on_constant == "raise":
                    raise NormalizationError(
                        f"Column '{col}' has zero variance and cannot be scaled",
                        details={"column": col, "mean": mean}
                    )
                self._log.warning(f"Column '{col}' is constant; left unchanged")
                records.append({"column": col, "mean": mean, "std": std, "scaled": False})
                continue

            out[col] = (values - mean) / std
            records.append({"column": col, "mean": mean, "std": std, "scaled": True})

        stats = pd.DataFrame(records, columns=["column", "mean", "std", "scaled"]).set_index("column")
        stats["scaled"] = stats["scaled"].astype(bool)
        self._log.info(f"Normalized {int(stats['scaled'].sum())}/{len(targets)} column(s) over {len(df)} rows")
        return out, stats

    def _resolve_columns(self, df: pd.DataFrame, columns: Optional[Sequence[str]]) -> List[str]:
        if columns is None:
            return [
                c for c in df.columns
                if c not in self.config.protected and pd.api.types.is_numeric_dtype(df[c])
            ]

        absent = [c for c in columns if c not in df.columns]
        if absent:
            raise DataValidationError(
                f"Columns to normalize not found: {absent}", details={"column": absent[0]}
            )
        non_numeric = [c for c in columns if not pd.api.types.is_numeric_dtype(df[c])]
        if non_numeric:
            raise DataValidationError(
                f"Columns to normalize are not numeric: {non_numeric}",
                details={"column": non_numeric[0]}
            )
        return list(columns)
