# core/exceptions.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Exceptions                                                ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Centralized Exception Hierarchy                                       ║
║  ✓ Error Code & Severity System                                          ║
║  ✓ Context & Details Tracking (column, row index, path)                  ║
║  ✓ Context Manager for Wrapping Library Errors                           ║
╚════════════════════════════════════════════════════════════════════════════╝

Exception System Structure:
```
    HRRetentionException (Base)
    ├── DataLoadError        (unreadable input file; also an OSError)
    ├── ParseError           (row length inconsistent with header)
    ├── EncodingGap          (value absent from a lookup table)
    ├── ImputationError      (no donors for a fill model)
    ├── NormalizationError   (zero-variance / incomplete column)
    ├── ModelFitError        (numerical fit failure)
    ├── ConfigurationError   (method map / settings mismatch)
    └── DataValidationError  (feature columns missing, bad input)
```

Propagation policy:
    EncodingGap is recovered locally by the encoder (the cell becomes missing).
    Everything else aborts the current stage and reaches the caller.

Usage:
```python
    from core.exceptions import ImputationError, exception_context

    raise ImputationError(
        "No observed values to learn from",
        details={"column": "company_type"}
    )

    with exception_context(to=ModelFitError, message="OLS fit failed"):
        model = sm.OLS(y, X).fit()
```

Dependencies:
    • loguru
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Type

from loguru import logger

__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "HRRetentionException",
    "DataLoadError",
    "ParseError",
    "EncodingGap",
    "ImputationError",
    "NormalizationError",
    "ModelFitError",
    "ConfigurationError",
    "DataValidationError",
    "handle_exception",
    "exception_context",
]


# ═══════════════════════════════════════════════════════════════════════════
# Error Taxonomy
# ═══════════════════════════════════════════════════════════════════════════

class ErrorSeverity(str, Enum):
    """🚨 **Error Severity Levels**"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(str, Enum):
    """🏷️ **Error Code Taxonomy**"""
    UNKNOWN = "unknown_error"
    DATA_LOAD = "data_load_error"
    PARSE = "parse_error"
    ENCODING_GAP = "encoding_gap"
    IMPUTATION = "imputation_error"
    NORMALIZATION = "normalization_error"
    MODEL_FIT = "model_fit_error"
    CONFIG = "configuration_error"
    DATA_VALIDATION = "data_validation_error"


# ═══════════════════════════════════════════════════════════════════════════
# Base Exception
# ═══════════════════════════════════════════════════════════════════════════

class HRRetentionException(Exception):
    """
    🎯 **Base Exception**

    Carries an error code, a severity, a details dictionary (column name,
    row index, path...) and an optional original cause.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        error_code: ErrorCode = ErrorCode.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.error_code: ErrorCode = error_code
        self.severity: ErrorSeverity = severity
        self.context: Dict[str, Any] = context or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"{self.error_code.value}: {self.message}"]

        if self.details:
            parts.append(f"Details: {self.details}")

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Cause: {type(self.cause).__name__}: {self.cause}")

        return " | ".join(parts)

    @property
    def column(self) -> Optional[str]:
        """Column the error refers to, if any."""
        return self.details.get("column")

    @property
    def row_index(self) -> Optional[int]:
        """Row (or line) the error refers to, if any."""
        return self.details.get("row_index")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details or {},
                "context": self.context or {},
                "severity": self.severity.value,
                "cause": str(self.cause) if self.cause else None
            }
        }

    @classmethod
    def from_exc(
        cls,
        exc: BaseException,
        *,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> "HRRetentionException":
        """Wrap an arbitrary exception (returned unchanged if already ours)."""
        if isinstance(exc, HRRetentionException):
            return exc

        return cls(
            message or str(exc) or "An unexpected error occurred",
            details=details,
            context=context,
            cause=exc
        )


# ═══════════════════════════════════════════════════════════════════════════
# Specific Exception Classes
# ═══════════════════════════════════════════════════════════════════════════

class DataLoadError(HRRetentionException, OSError):
    """❌ Input file missing or unreadable."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.DATA_LOAD, **kwargs)


class ParseError(HRRetentionException):
    """🧾 Row length inconsistent with the header."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.PARSE, **kwargs)


class EncodingGap(HRRetentionException):
    """🕳️ Value absent from a column's lookup table (recovered as missing)."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.WARNING)
        super().__init__(message, details, error_code=ErrorCode.ENCODING_GAP, **kwargs)


class ImputationError(HRRetentionException):
    """🧩 A fill model could not be learned."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.IMPUTATION, **kwargs)


class NormalizationError(HRRetentionException):
    """📏 Column cannot be centered and scaled."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.NORMALIZATION, **kwargs)


class ModelFitError(HRRetentionException):
    """🏋️ Numerical failure while fitting or predicting."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.MODEL_FIT, **kwargs)


class ConfigurationError(HRRetentionException):
    """⚙️ Configuration error."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.CONFIG, **kwargs)


class DataValidationError(HRRetentionException):
    """⚠️ Input table does not match what a stage expects."""
    def __init__(self, message: str, details: Optional[Dict] = None, **kwargs):
        super().__init__(message, details, error_code=ErrorCode.DATA_VALIDATION, **kwargs)


# ═══════════════════════════════════════════════════════════════════════════
# Helper Functions
# ═══════════════════════════════════════════════════════════════════════════

def handle_exception(e: Exception, context: str = "") -> str:
    """
    📝 **Format Exception for Display**

    Example:
```python
        try:
            executor.run()
        except HRRetentionException as e:
            print(handle_exception(e, "Imputation"))
```
    """
    if isinstance(e, HRRetentionException):
        msg = f"❌ Error [{e.error_code.value}]: {e.message}"

        if context:
            msg += f"\n   Context: {context}"

        if e.details:
            msg += f"\n   Details: {e.details}"

        return msg

    msg = f"❌ Unexpected Error: {type(e).__name__}: {e}"
    if context:
        msg += f"\n   Context: {context}"
    return msg


@contextmanager
def exception_context(
    *,
    to: Type[HRRetentionException] = HRRetentionException,
    message: str = "Operation failed",
    details: Optional[Dict[str, Any]] = None,
    catch: tuple = (Exception,),
    log: bool = True
) -> Iterator[None]:
    """
    🔒 **Exception Context Manager**

    Re-raises anything listed in `catch` as `to`, keeping the original as
    cause. Our own exceptions pass through unchanged.
    """
    try:
        yield
    except HRRetentionException:
        raise
    except catch as e:
        wrapped = to(
            message,
            details={**(details or {}), "original_error": str(e)},
            cause=e
        )

        if log:
            logger.error(str(wrapped))

        raise wrapped from e
