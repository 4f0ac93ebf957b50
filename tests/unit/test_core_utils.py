"""
HR Retention - Unit Tests for Core Utils
"""

import pytest
import pandas as pd
import numpy as np
from core.utils import (
    format_number,
    format_percentage,
    format_table,
    missing_columns,
    section,
)


class TestFormatting:
    """Tests for the console formatting helpers"""

    @pytest.mark.parametrize("value,expected", [
        (12.5, "12.50%"),
        (0, "0.00%"),
        (100.0, "100.00%"),
    ])
    def test_format_percentage(self, value, expected):
        assert format_percentage(value) == expected

    def test_format_number_integer(self):
        assert format_number(1234567) == "1,234,567"
        assert format_number(np.int64(42)) == "42"
        assert format_number(3.0) == "3"

    def test_format_number_float(self):
        assert format_number(1234.5678) == "1,234.57"
        assert format_number(0.125, decimals=1) == "0.1"

    def test_format_table_decimals(self):
        df = pd.DataFrame({"a": [0.123456]}, index=["row"])
        text = format_table(df, float_decimals=2)
        assert "0.12" in text
        assert "0.123" not in text

    def test_section(self):
        lines = section("MODELS", width=10).strip("\n").split("\n")
        assert lines == ["=" * 10, "MODELS", "=" * 10]


class TestMissingColumns:
    """Tests for missing_columns"""

    def test_keeps_requested_order(self):
        df = pd.DataFrame(columns=["a", "b"])
        assert missing_columns(df, ["z", "a", "y"]) == ["z", "y"]

    def test_none_missing(self):
        df = pd.DataFrame(columns=["a", "b"])
        assert missing_columns(df, ["b"]) == []
