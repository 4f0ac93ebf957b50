# core/data_loader.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Data Loader                                               ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Delimited Tables (train / test partitions)                            ║
║  ✓ Explicit Missing Tokens ("" and "NA" only)                            ║
║  ✓ Row-Length Validation Against the Header                              ║
║  ✓ Encoding Fallback (utf-8 → latin-1)                                   ║
║  ✓ LoaderAgent for Pipeline Runs                                         ║
╚════════════════════════════════════════════════════════════════════════════╝

Usage:
```python
    loader = DataLoader()
    train = loader.load_table("data/HRRetention_train.csv")
    raw = loader.load_table("export.tsv", delimiter="\\t", header=False)
```

Raises:
    DataLoadError: path missing or unreadable
    ParseError:    a data row has more or fewer fields than the header

Dependencies:
    • pandas
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import pandas as pd
from loguru import logger

from config.constants import MISSING_TOKENS
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataLoadError, ParseError

__all__ = ["DataLoader", "LoaderAgent", "get_data_loader"]


class DataLoader:
    """
    📦 **Delimited Table Loader**

    Only the configured tokens are treated as missing; pandas' default NA
    list ("N/A", "null", "None", ...) is disabled so that values such as
    "None" survive to the encoder unchanged.
    """

    def __init__(
        self,
        na_tokens: Optional[Iterable[str]] = None,
        encoding: str = "utf-8"
    ):
        self.na_tokens: List[str] = list(MISSING_TOKENS if na_tokens is None else na_tokens)
        self.encoding = encoding
        self.logger = logger.bind(component="DataLoader")

    # ───────────────────────────────────────────────────────────────────
    # Public API
    # ───────────────────────────────────────────────────────────────────

    def load_table(
        self,
        filepath: Union[str, Path],
        delimiter: str = ",",
        header: bool = True
    ) -> pd.DataFrame:
        """
        📂 **Load a delimited table**

        Args:
            filepath: Path to the file
            delimiter: Single-character field delimiter
            header: Whether the first row holds column names. Without a
                header columns are named V1..Vn.

        Returns:
            DataFrame where missing cells are NaN
        """
        path = Path(filepath)

        if not path.exists():
            raise DataLoadError(f"File not found: {path}", details={"path": str(path)})
        if not path.is_file():
            raise DataLoadError(f"Not a regular file: {path}", details={"path": str(path)})

        encoding = self._detect_encoding(path)
        n_fields = self._validate_row_lengths(path, delimiter, encoding)

        self.logger.info(
            f"Loading table from {path} (delimiter={delimiter!r}, header={header}, "
            f"encoding={encoding})"
        )

        read_kwargs = dict(
            sep=delimiter,
            encoding=encoding,
            keep_default_na=False,
            na_values=self.na_tokens,
            skip_blank_lines=True,
            low_memory=False,
        )
        if header:
            read_kwargs["header"] = 0
        else:
            read_kwargs["header"] = None
            read_kwargs["names"] = [f"V{i}" for i in range(1, n_fields + 1)]

        try:
            df = pd.read_csv(path, **read_kwargs)
        except OSError as e:
            raise DataLoadError(
                f"Failed to read {path}", details={"path": str(path)}, cause=e
            ) from e
        except pd.errors.ParserError as e:
            raise ParseError(
                f"Malformed table {path}: {e}", details={"path": str(path)}, cause=e
            ) from e

        self.logger.success(f"Data loaded: {len(df)} rows × {len(df.columns)} columns")
        return df

    # ───────────────────────────────────────────────────────────────────
    # Internals
    # ───────────────────────────────────────────────────────────────────

    def _detect_encoding(self, path: Path) -> str:
        """Return the configured encoding, or latin-1 if the file does not decode."""
        try:
            with open(path, "r", encoding=self.encoding, newline="") as f:
                for _ in f:
                    pass
            return self.encoding
        except UnicodeDecodeError:
            self.logger.warning(f"Failed with {self.encoding}, trying latin-1")
            return "latin-1"
        except OSError as e:
            raise DataLoadError(
                f"Cannot read file: {path}", details={"path": str(path)}, cause=e
            ) from e

    def _validate_row_lengths(self, path: Path, delimiter: str, encoding: str) -> int:
        """
        Check that every non-blank row has as many fields as the first one.

        Returns:
            Number of fields per row
        """
        expected: Optional[int] = None

        try:
            with open(path, "r", encoding=encoding, newline="") as f:
                reader = csv.reader(f, delimiter=delimiter)
                for row in reader:
                    if not row:
                        continue
                    if expected is None:
                        expected = len(row)
                        continue
                    if len(row) != expected:
                        raise ParseError(
                            f"Row has {len(row)} fields, expected {expected}",
                            details={
                                "path": str(path),
                                "row_index": reader.line_num,
                                "expected": expected,
                                "found": len(row),
                            }
                        )
        except csv.Error as e:
            raise ParseError(
                f"Malformed table {path}: {e}", details={"path": str(path)}, cause=e
            ) from e
        except OSError as e:
            raise DataLoadError(
                f"Cannot read file: {path}", details={"path": str(path)}, cause=e
            ) from e

        if expected is None:
            raise ParseError(f"Empty table: {path}", details={"path": str(path)})

        return expected


def get_data_loader(na_tokens: Optional[Iterable[str]] = None) -> DataLoader:
    """Factory honoring the configured missing tokens."""
    if na_tokens is None:
        from config.settings import settings
        na_tokens = settings.NA_TOKENS
    return DataLoader(na_tokens=na_tokens)


class LoaderAgent(BaseAgent):
    """Agent wrapper around `DataLoader.load_table` for the pipeline."""

    def __init__(self, loader: Optional[DataLoader] = None):
        super().__init__(name="LoaderAgent", description="Load a delimited table")
        self.loader = loader or DataLoader()

    def execute(
        self,
        path: Union[str, Path],
        delimiter: str = ",",
        header: bool = True,
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        df = self.loader.load_table(path, delimiter=delimiter, header=header)
        result.add_data(data=df)
        result.add_metadata(
            path=str(path),
            n_rows=len(df),
            n_columns=len(df.columns),
            n_missing=int(df.isna().sum().sum()),
        )
        return result
