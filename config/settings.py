# config/settings.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Settings                                                  ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Pydantic v2 Settings                                                  ║
║  ✓ Environment Variable / .env Support                                   ║
║  ✓ Imputation & Model Parameters                                         ║
║  ✓ Auto-Creation of Output Directories                                   ║
╚════════════════════════════════════════════════════════════════════════════╝

Configuration Structure:
```
    Settings
    ├── Application (name, version)
    ├── Logging (level, rotation, retention)
    ├── Input (train/test paths, delimiter, header flag, NA tokens)
    ├── Imputation (m, maxit, seed, donors, leaf size)
    ├── Normalization (zero-variance policy)
    ├── Models (kNN neighbours, tree depth)
    └── Reporting (plots, reports directory)
```

Usage:
```python
    from config.settings import settings

    print(settings.N_IMPUTATIONS)      # 5
    print(settings.KNN_NEIGHBORS)      # 2
```

Dependencies:
    • pydantic
    • pydantic-settings
    • python-dotenv
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "settings", "get_settings"]


load_dotenv()

# Project root directory
ROOT_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    🔧 **Central Configuration**

    Every value can be overridden through an environment variable of the same
    name or a `.env` file in the working directory.
    """

    # ───────────────────────────────────────────────────────────────────
    # Application
    # ───────────────────────────────────────────────────────────────────

    APP_NAME: str = "HR Retention"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "30 days"
    LOG_CONSOLE_COMPACT: bool = True

    # ───────────────────────────────────────────────────────────────────
    # Input
    # ───────────────────────────────────────────────────────────────────

    BASE_PATH: Path = ROOT_DIR
    DATA_PATH: Path = ROOT_DIR / "data"
    TRAIN_PATH: Path = ROOT_DIR / "data" / "HRRetention_train.csv"
    TEST_PATH: Path = ROOT_DIR / "data" / "HRRetention_test.csv"
    DELIMITER: str = ","
    HAS_HEADER: bool = True
    NA_TOKENS: List[str] = Field(default_factory=lambda: ["", "NA"])

    # ───────────────────────────────────────────────────────────────────
    # Imputation (chained equations)
    # ───────────────────────────────────────────────────────────────────

    N_IMPUTATIONS: int = 5
    MAX_ITERATIONS: int = 5
    RANDOM_STATE: int = 500
    PMM_DONORS: int = 5
    CART_MIN_LEAF: int = 5
    ALLOW_UNMAPPED_COLUMNS: bool = False

    # ───────────────────────────────────────────────────────────────────
    # Normalization
    # ───────────────────────────────────────────────────────────────────

    NORMALIZE_ON_CONSTANT: Literal["raise", "passthrough"] = "raise"

    # ───────────────────────────────────────────────────────────────────
    # Models
    # ───────────────────────────────────────────────────────────────────

    KNN_NEIGHBORS: int = 2
    TREE_MAX_DEPTH: Optional[int] = 3
    LINEAR_DECISION_THRESHOLD: float = 0.5

    # ───────────────────────────────────────────────────────────────────
    # Reporting
    # ───────────────────────────────────────────────────────────────────

    ENABLE_PLOTS: bool = False
    QUALITY_PLOT_COLUMNS: List[str] = Field(
        default_factory=lambda: ["education_level", "experience", "company_size"]
    )
    REPORTS_PATH: Path = ROOT_DIR / "reports"
    LOGS_PATH: Path = ROOT_DIR / "logs"

    TEST_MODE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ───────────────────────────────────────────────────────────────────
    # Field Validators
    # ───────────────────────────────────────────────────────────────────

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = (v or "").upper()

        if normalized not in allowed:
            raise ValueError(
                f"Invalid LOG_LEVEL '{v}'. "
                f"Allowed: {', '.join(sorted(allowed))}"
            )

        return normalized

    @field_validator(
        "N_IMPUTATIONS",
        "MAX_ITERATIONS",
        "PMM_DONORS",
        "CART_MIN_LEAF",
        "KNN_NEIGHBORS",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Counts must be at least one."""
        if int(v) < 1:
            raise ValueError(f"Value must be >= 1, got {v}")
        return int(v)

    @field_validator("TREE_MAX_DEPTH")
    @classmethod
    def validate_depth(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and int(v) < 1:
            raise ValueError(f"TREE_MAX_DEPTH must be >= 1 or unset, got {v}")
        return v

    @field_validator("DELIMITER")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError(f"DELIMITER must be a single character, got {v!r}")
        return v

    @field_validator("REPORTS_PATH", "LOGS_PATH", mode="before")
    @classmethod
    def ensure_directories(cls, v: Path | str) -> Path:
        """Ensure output directories exist."""
        path = Path(v).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
