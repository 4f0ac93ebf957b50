"""
HR Retention - Utility Functions
Formatting helpers shared by the reporting code.
"""

from __future__ import annotations

from typing import Iterable, List, Union

import pandas as pd


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------
def format_percentage(value: float, decimals: int = 2) -> str:
    """
    Format a value already expressed in percent (0-100).
    """
    return f"{float(value):.{decimals}f}%"


def format_number(value: Union[int, float], decimals: int = 2) -> str:
    """Format number with thousands separator."""
    if isinstance(value, int) or float(value).is_integer():
        return f"{int(value):,}"
    return f"{float(value):,.{decimals}f}"


def format_table(df: pd.DataFrame, float_decimals: int = 3) -> str:
    """Render a DataFrame for console output."""
    with pd.option_context(
        "display.max_columns", None,
        "display.width", 200,
        "display.float_format", lambda v: f"{v:.{float_decimals}f}",
    ):
        return df.to_string()


def section(title: str, width: int = 80) -> str:
    """Console section header."""
    return f"\n{'=' * width}\n{title}\n{'=' * width}"


# ---------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------
def missing_columns(df: pd.DataFrame, required: Iterable[str]) -> List[str]:
    """Required columns absent from df, in the order given."""
    present = set(df.columns)
    return [c for c in required if c not in present]
