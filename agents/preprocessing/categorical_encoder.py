# agents/preprocessing/categorical_encoder.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Categorical Encoder                                       ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Fixed Per-Column Ordinal Lookup Tables                                ║
║  ✓ "city_<digits>" Token Parsing                                         ║
║  ✓ Unmapped Values → Missing (EncodingGap, recovered locally)            ║
║  ✓ Encoding Report (gaps per column, known vs unexpected)                ║
║  ✓ Zero Side-Effects on Input DataFrame                                  ║
╚════════════════════════════════════════════════════════════════════════════╝

The encoder is column-specific and exhaustive rather than a generic
categorical encoder: downstream imputation and modeling need fixed,
reproducible integer domains per column. Every value outside a lookup table
becomes NaN, including real categories the tables leave out
(see config.constants.KNOWN_ENCODING_GAPS).

Output Contract (AgentResult.data):
{
    "data": pd.DataFrame,          # encoded copy
    "report": EncodingReport,
}

Usage:
```python
    encoder = CategoricalEncoder()
    encoded, report = encoder.encode(train_df)
    print(report.to_frame())
```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from config.constants import (
    CATEGORICAL_CODES,
    CITY_COLUMN,
    CITY_PATTERN,
    COLUMN_ALIASES,
    KNOWN_ENCODING_GAPS,
)
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError, EncodingGap

__all__ = [
    "EncoderConfig",
    "EncodingReport",
    "CategoricalEncoder",
    "as_token",
    "encode_column",
    "encode_city",
]


@dataclass(frozen=True)
class EncoderConfig:
    """
    strict: raise the first EncodingGap instead of recovering it
    resolve_aliases: rename alternate column spellings (relevant_experience)
    """
    strict: bool = False
    resolve_aliases: bool = True


@dataclass
class EncodingReport:
    """Unmapped values found while encoding, per column."""
    encoded_columns: List[str] = field(default_factory=list)
    gaps: List[EncodingGap] = field(default_factory=list)
    renamed_columns: Dict[str, str] = field(default_factory=dict)

    @property
    def n_gap_cells(self) -> int:
        return int(sum(g.details.get("count", 0) for g in self.gaps))

    def gaps_for(self, column: str) -> Dict[str, int]:
        return {
            g.details["value"]: int(g.details["count"])
            for g in self.gaps
            if g.details.get("column") == column
        }

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "column": g.details["column"],
                "value": g.details["value"],
                "count": int(g.details["count"]),
                "known": bool(g.details["known"]),
            }
            for g in self.gaps
        ]
        return pd.DataFrame(rows, columns=["column", "value", "count", "known"])


# ═══════════════════════════════════════════════════════════════════════════
# Column encoders
# ═══════════════════════════════════════════════════════════════════════════

def as_token(value: Any) -> Any:
    """
    Lookup key for a raw cell: strings as-is, integral numbers as their
    integer text (pandas reads an all-numeric `last_new_job` as 1.0, 2.0, ...).
    """
    if value is None:
        return np.nan
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, np.bool_)):
        return str(value)
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            return np.nan
        return str(int(value)) if float(value).is_integer() else str(value)
    return str(value)


def encode_column(series: pd.Series, table: Mapping[str, int]) -> pd.Series:
    """Map values through `table`; anything not in it becomes NaN."""
    lookup = dict(table)
    encoded = series.map(lambda v: lookup.get(as_token(v), np.nan))
    return encoded.astype("float64")


def encode_city(series: pd.Series) -> pd.Series:
    """'city_103' → 103; malformed tokens become NaN."""
    def _parse(v: Any) -> float:
        if not isinstance(v, str):
            return np.nan
        match = CITY_PATTERN.match(v.strip())
        return float(int(match.group(1))) if match else np.nan

    return series.map(_parse).astype("float64")


# ═══════════════════════════════════════════════════════════════════════════
# Agent
# ═══════════════════════════════════════════════════════════════════════════

class CategoricalEncoder(BaseAgent):
    """Recodes the schema's categorical columns to fixed ordinal codes."""

    def __init__(
        self,
        config: Optional[EncoderConfig] = None,
        codes: Optional[Mapping[str, Mapping[str, int]]] = None
    ) -> None:
        super().__init__(name="CategoricalEncoder", description="Fixed ordinal recoding")
        self.config = config or EncoderConfig()
        self.codes = codes if codes is not None else CATEGORICAL_CODES
        self._log = logger.bind(agent="CategoricalEncoder")

    def validate_input(self, **kwargs) -> bool:
        data = kwargs.get("data")
        if not isinstance(data, pd.DataFrame):
            raise DataValidationError(
                f"'data' must be pd.DataFrame, got {type(data).__name__}"
            )
        return True

    def execute(self, data: pd.DataFrame, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        encoded, report = self.encode(data)

        result.add_data(data=encoded, report=report)
        result.add_metadata(
            encoded_columns=report.encoded_columns,
            n_gap_cells=report.n_gap_cells,
        )
        unexpected = [g for g in report.gaps if not g.details["known"]]
        if unexpected:
            result.add_warning(
                f"{len(unexpected)} unexpected value(s) set to missing: "
                + ", ".join(f"{g.details['column']}={g.details['value']!r}" for g in unexpected[:10])
            )
        return result

    def encode(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, EncodingReport]:
        """
        Encode a copy of `df`.

        Returns:
            (encoded DataFrame, EncodingReport)

        Raises:
            EncodingGap: only in strict mode
        """
        out = df.copy()
        report = EncodingReport()

        if self.config.resolve_aliases:
            renames = {
                alias: canonical
                for alias, canonical in COLUMN_ALIASES.items()
                if alias in out.columns and canonical not in out.columns
            }
            if renames:
                out = out.rename(columns=renames)
                report.renamed_columns = renames
                self._log.info(f"Renamed alias columns: {renames}")

        for col in out.columns:
            if col in self.codes:
                encoded = encode_column(out[col], self.codes[col])
            elif col == CITY_COLUMN:
                encoded = encode_city(out[col])
            else:
                continue

            self._record_gaps(col, out[col], encoded, report)
            out[col] = encoded
            report.encoded_columns.append(col)

        if report.gaps:
            self._log.info(
                f"Encoding gaps: {report.n_gap_cells} cell(s) across "
                f"{len({g.details['column'] for g in report.gaps})} column(s) set to missing"
            )

        return out, report

    def _record_gaps(
        self,
        column: str,
        raw: pd.Series,
        encoded: pd.Series,
        report: EncodingReport
    ) -> None:
        gap_mask = raw.notna() & encoded.isna()
        if not gap_mask.any():
            return

        known = set(KNOWN_ENCODING_GAPS.get(column, ()))
        values = raw[gap_mask].map(as_token).astype(str)
        first_rows = values.reset_index(drop=True)
        positions = np.flatnonzero(gap_mask.to_numpy())

        for value, count in values.value_counts(sort=True).items():
            first_pos = int(positions[int(np.flatnonzero(first_rows.to_numpy() == value)[0])])
            gap = EncodingGap(
                f"Value {value!r} has no code in column '{column}'",
                details={
                    "column": column,
                    "value": value,
                    "count": int(count),
                    "row_index": first_pos,
                    "known": value in known,
                }
            )
            if self.config.strict:
                raise gap

            report.gaps.append(gap)
            if value in known:
                self._log.debug(f"{column}: known gap {value!r} × {count} → missing")
            else:
                self._log.warning(f"{column}: unmapped value {value!r} × {count} → missing")
