"""
HR Retention - Unit Tests for Data Loader
"""

import pytest
import pandas as pd
import numpy as np

from core.data_loader import DataLoader, LoaderAgent, get_data_loader
from core.exceptions import DataLoadError, ParseError


class TestLoadTable:
    """Tests for DataLoader.load_table"""

    def test_header_row_names_columns(self, write_text):
        path = write_text("a,b,c\n1,2,3\n4,5,6\n")
        df = DataLoader().load_table(path)
        assert list(df.columns) == ["a", "b", "c"]
        assert len(df) == 2

    def test_empty_string_and_na_are_missing(self, write_text):
        path = write_text("a,b\nNA,x\n,y\n3,NA\n")
        df = DataLoader().load_table(path)
        assert df["a"].isna().tolist() == [True, True, False]
        assert df["b"].isna().tolist() == [False, False, True]

    def test_other_null_spellings_survive(self, write_text):
        """Only "" and "NA" are missing; "None"/"null"/"N/A" are values"""
        path = write_text("a\nNone\nnull\nN/A\n")
        df = DataLoader().load_table(path)
        assert df["a"].tolist() == ["None", "null", "N/A"]

    def test_no_header_names_v1_to_vn(self, write_text):
        path = write_text("1,2,3\n4,5,6\n")
        df = DataLoader().load_table(path, header=False)
        assert list(df.columns) == ["V1", "V2", "V3"]
        assert len(df) == 2

    def test_custom_delimiter(self, write_text):
        path = write_text("a;b\n1;2\n", name="table.txt")
        df = DataLoader().load_table(path, delimiter=";")
        assert df.loc[0, "b"] == 2

    def test_latin1_fallback(self, write_text):
        path = write_text("name\nJosé\n", encoding="latin-1")
        df = DataLoader().load_table(path)
        assert df.loc[0, "name"] == "José"

    def test_custom_na_tokens(self, write_text):
        path = write_text("a\n?\n1\n")
        df = DataLoader(na_tokens=["?"]).load_table(path)
        assert df["a"].isna().sum() == 1


class TestLoadErrors:
    """Tests for loader failure modes"""

    def test_missing_file_raises_data_load_error(self, tmp_path):
        with pytest.raises(DataLoadError) as exc_info:
            DataLoader().load_table(tmp_path / "absent.csv")
        assert exc_info.value.details["path"].endswith("absent.csv")

    def test_data_load_error_is_os_error(self, tmp_path):
        with pytest.raises(OSError):
            DataLoader().load_table(tmp_path / "absent.csv")

    def test_directory_raises_data_load_error(self, tmp_path):
        with pytest.raises(DataLoadError):
            DataLoader().load_table(tmp_path)

    def test_long_row_raises_parse_error_with_line(self, write_text):
        path = write_text("a,b\n1,2\n3,4,5\n")
        with pytest.raises(ParseError) as exc_info:
            DataLoader().load_table(path)
        err = exc_info.value
        assert err.row_index == 3
        assert err.details["expected"] == 2
        assert err.details["found"] == 3

    def test_short_row_raises_parse_error(self, write_text):
        path = write_text("a,b,c\n1,2,3\n4,5\n")
        with pytest.raises(ParseError):
            DataLoader().load_table(path)

    def test_empty_file_raises_parse_error(self, write_text):
        path = write_text("")
        with pytest.raises(ParseError):
            DataLoader().load_table(path)


class TestFactory:
    """Tests for get_data_loader"""

    def test_uses_configured_tokens(self):
        loader = get_data_loader()
        assert set(loader.na_tokens) == {"", "NA"}

    def test_explicit_tokens(self):
        assert get_data_loader(["-"]).na_tokens == ["-"]


def test_round_trip_hr_csv(hr_csv_files, hr_raw_df):
    """Written HR table loads back with the same shape and gaps"""
    train_path, _ = hr_csv_files
    df = DataLoader().load_table(train_path)
    assert df.shape == hr_raw_df.shape
    np.testing.assert_array_equal(df.isna().to_numpy(), hr_raw_df.isna().to_numpy())
    assert pd.api.types.is_numeric_dtype(df["training_hours"])


class TestLoaderAgent:
    """Tests for the pipeline-facing loader agent"""

    def test_run_records_counts(self, write_text):
        path = write_text("a,b\n1,NA\n2,3\n")
        result = LoaderAgent().run(path=path)
        assert result.is_success()
        assert result.data["data"].shape == (2, 2)
        assert result.metadata["n_rows"] == 2
        assert result.metadata["n_columns"] == 2
        assert result.metadata["n_missing"] == 1

    def test_run_reraises_load_errors(self, tmp_path):
        with pytest.raises(DataLoadError):
            LoaderAgent().run(path=tmp_path / "absent.csv")
