# === OPIS MODUŁU ===
"""
HR Retention - Missing Data Analyzer
Missingness reporting at dataset, column, column-pair and row-pattern level.
Purely diagnostic: nothing here mutates the table or feeds later stages.

Contract (AgentResult.data):
{
  "summary": {
      "n_rows": int, "n_columns": int, "total_cells": int, "total_missing": int,
      "missing_percentage": float, "n_columns_with_missing": int,
      "n_rows_with_missing": int, "complete_rows": int
  },
  "columns": pd.DataFrame   # index=column; n_missing, missing_percentage, severity
  "pairs": PairwiseMissingness,
  "patterns": pd.DataFrame  # one row per distinct pattern (1=observed, 0=missing)
}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional

import numpy as np
import pandas as pd
from loguru import logger

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError

__all__ = [
    "MissingConfig",
    "PairwiseMissingness",
    "MissingDataAnalyzer",
    "missing_count",
    "missing_percentage",
    "pairwise_missingness",
    "missing_pattern",
]


# === KONFIG / PROGI ===
@dataclass(frozen=True)
class MissingConfig:
    """Severity thresholds (percent of rows)."""
    low_threshold_pct: float = 5.0        # <5% => low
    medium_threshold_pct: float = 20.0    # <20% => medium
    high_threshold_pct: float = 50.0      # <50% => high, else critical


@dataclass(frozen=True)
class PairwiseMissingness:
    """
    Column × column co-occurrence counts.

    rr: both observed, rm: row observed & column missing,
    mr: row missing & column observed, mm: both missing.
    For every (i, j): rr + rm + mr + mm == n_rows.
    """
    rr: pd.DataFrame
    rm: pd.DataFrame
    mr: pd.DataFrame
    mm: pd.DataFrame

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        return {"rr": self.rr, "rm": self.rm, "mr": self.mr, "mm": self.mm}


# === OPERACJE PODSTAWOWE ===
def _require_column(df: pd.DataFrame, column: Hashable) -> None:
    if column not in df.columns:
        raise DataValidationError(
            f"Column '{column}' not found", details={"column": column}
        )


def missing_count(df: pd.DataFrame, column: Hashable) -> int:
    """Number of missing cells in `column`."""
    _require_column(df, column)
    return int(df[column].isna().sum())


def missing_percentage(df: pd.DataFrame, column: Hashable) -> float:
    """missing_count / row_count * 100; 0.0 for an empty table."""
    n = len(df)
    if n == 0:
        _require_column(df, column)
        return 0.0
    return missing_count(df, column) / n * 100.0


def pairwise_missingness(df: pd.DataFrame) -> PairwiseMissingness:
    """Four co-occurrence matrices over every column pair."""
    observed = df.notna().to_numpy(dtype=np.int64)
    missing = 1 - observed
    cols = df.columns

    def _frame(a: np.ndarray, b: np.ndarray) -> pd.DataFrame:
        return pd.DataFrame(a.T @ b, index=cols, columns=cols)

    return PairwiseMissingness(
        rr=_frame(observed, observed),
        rm=_frame(observed, missing),
        mr=_frame(missing, observed),
        mm=_frame(missing, missing),
    )


def missing_pattern(df: pd.DataFrame) -> pd.DataFrame:
    """
    Distinct row missingness patterns.

    Columns: one 0/1 indicator per data column (1 = observed), then
    `n_rows` (pattern frequency) and `n_missing` (missing cells in the pattern).
    Sorted by frequency desc, then by n_missing asc.
    """
    cols = list(df.columns)
    if len(df) == 0:
        return pd.DataFrame(columns=cols + ["n_rows", "n_missing"])

    observed = df.notna().astype(int)
    patterns = (
        observed.groupby(cols, dropna=False)
        .size()
        .rename("n_rows")
        .reset_index()
    )
    patterns["n_missing"] = len(cols) - patterns[cols].sum(axis=1)
    patterns = patterns.sort_values(
        ["n_rows", "n_missing"], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)
    return patterns


# === KLASA GŁÓWNA ===
class MissingDataAnalyzer(BaseAgent):
    """Analyzes missing data patterns (read-only side channel)."""

    def __init__(self, config: Optional[MissingConfig] = None) -> None:
        super().__init__(name="MissingDataAnalyzer", description="Analyzes missing data patterns")
        self.config = config or MissingConfig()
        self._log = logger.bind(agent="MissingDataAnalyzer")

    def validate_input(self, **kwargs) -> bool:
        data = kwargs.get("data")
        if not isinstance(data, pd.DataFrame):
            raise DataValidationError(
                f"'data' must be pd.DataFrame, got {type(data).__name__}"
            )
        return True

    # === WYKONANIE GŁÓWNE ===
    def execute(self, data: pd.DataFrame, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        summary = self._get_missing_summary(data)
        columns = self._analyze_missing_by_column(data)
        pairs = pairwise_missingness(data)
        patterns = missing_pattern(data)

        result.data = {
            "summary": summary,
            "columns": columns,
            "pairs": pairs,
            "patterns": patterns,
        }
        result.add_metadata(n_patterns=int(len(patterns)))

        if summary["total_missing"] == 0:
            self._log.success("No missing data found!")
        else:
            self._log.info(
                f"Missing data analysis complete: {summary['total_missing']} missing values "
                f"({summary['missing_percentage']:.2f}%) in {summary['n_columns_with_missing']} column(s)"
            )

        return result

    # === PODSUMOWANIE ZBIORU ===
    def _get_missing_summary(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Overall missing data summary (safe for empty tables)."""
        rows, cols = int(df.shape[0]), int(df.shape[1])
        total_cells = rows * cols
        if total_cells == 0:
            return {
                "n_rows": rows,
                "n_columns": cols,
                "total_cells": 0,
                "total_missing": 0,
                "missing_percentage": 0.0,
                "n_columns_with_missing": 0,
                "n_rows_with_missing": 0,
                "complete_rows": rows,
            }

        isna = df.isna()
        total_missing = int(isna.values.sum())
        row_missing_mask = isna.any(axis=1)

        return {
            "n_rows": rows,
            "n_columns": cols,
            "total_cells": total_cells,
            "total_missing": total_missing,
            "missing_percentage": float(total_missing / total_cells * 100.0),
            "n_columns_with_missing": int((isna.sum(axis=0) > 0).sum()),
            "n_rows_with_missing": int(row_missing_mask.sum()),
            "complete_rows": int((~row_missing_mask).sum()),
        }

    # === ANALIZA KOLUMN ===
    def _analyze_missing_by_column(self, df: pd.DataFrame) -> pd.DataFrame:
        """Per-column count, percentage and severity, in table column order."""
        records = []
        for col in df.columns:
            pct = missing_percentage(df, col)
            records.append({
                "column": col,
                "n_missing": missing_count(df, col),
                "missing_percentage": pct,
                "severity": self._get_severity(pct) if pct > 0 else "none",
            })
        return pd.DataFrame(
            records, columns=["column", "n_missing", "missing_percentage", "severity"]
        ).set_index("column")

    def _get_severity(self, missing_pct: float) -> str:
        cfg = self.config
        if missing_pct < cfg.low_threshold_pct:
            return "low"
        elif missing_pct < cfg.medium_threshold_pct:
            return "medium"
        elif missing_pct < cfg.high_threshold_pct:
            return "high"
        else:
            return "critical"
