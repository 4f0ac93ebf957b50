# config/logging_config.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Logging Configuration                                     ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Multiple Sinks (Console, app.log, errors.log)                         ║
║  ✓ Stdlib Interception (sklearn / statsmodels warnings, logging)         ║
║  ✓ Bound Loggers per Agent                                               ║
║  ✓ Dynamic Log Level Control                                             ║
╚════════════════════════════════════════════════════════════════════════════╝

Logging Flow:
```
    Application Code
         ├─→ loguru.logger
         ├─→ stdlib logging → InterceptHandler → loguru
         └─→ warnings → loguru

    Sinks:
    ├── Console (stderr, colorized)
    ├── app.log (all logs, rotated)
    └── errors.log (ERROR+ only)
```

Usage:
```python
    from config.logging_config import setup_logging, get_logger

    setup_logging(log_level="INFO")
    log = get_logger(__name__, component="pipeline")
    log.info("Imputing train partition")
```

Dependencies:
    • loguru
"""

from __future__ import annotations

import logging
import sys
import warnings
from pathlib import Path
from typing import Any, List, Optional, Union

from loguru import logger

from config.settings import settings

__all__ = [
    "setup_logging",
    "get_logger",
    "InterceptHandler",
]


# ═══════════════════════════════════════════════════════════════════════════
# Stdlib Logging Interception
# ═══════════════════════════════════════════════════════════════════════════

class InterceptHandler(logging.Handler):
    """
    🔌 **Stdlib Logging Interceptor**

    Routes standard library logging records into loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        logger.bind(module=record.module) \
              .opt(depth=depth, exception=record.exc_info) \
              .log(level, record.getMessage())


# ═══════════════════════════════════════════════════════════════════════════
# Log Formats
# ═══════════════════════════════════════════════════════════════════════════

LOG_FORMAT_HUMAN = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

LOG_FORMAT_COMPACT = "{time:HH:mm:ss} | {level: <8} | {message}"


_INITIALIZED_FLAG = False
_SINK_IDS: List[int] = []


def setup_logging(
    log_level: Optional[str] = None,
    *,
    console_compact: Optional[bool] = None,
    logs_path: Optional[Union[str, Path]] = None,
    reset_existing: bool = False
) -> None:
    """
    🔧 **Setup Centralized Logging**

    Idempotent: repeated calls are no-ops unless `reset_existing` is set.

    Args:
        log_level: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        console_compact: Use compact console format
        logs_path: Directory for log files
        reset_existing: Force re-initialization
    """
    global _INITIALIZED_FLAG

    if _INITIALIZED_FLAG and not reset_existing:
        return

    log_level = (log_level or settings.LOG_LEVEL).upper()
    logs_dir = Path(logs_path or settings.LOGS_PATH).resolve()
    console_compact = (
        settings.LOG_CONSOLE_COMPACT if console_compact is None else console_compact
    )

    try:
        logger.remove()
    except ValueError:
        pass
    _SINK_IDS.clear()

    _SINK_IDS.append(
        logger.add(
            sys.stderr,
            format=LOG_FORMAT_COMPACT if console_compact else LOG_FORMAT_HUMAN,
            level=log_level,
            colorize=True,
            backtrace=(log_level == "DEBUG"),
            diagnose=False,
        )
    )

    if not settings.TEST_MODE:
        logs_dir.mkdir(parents=True, exist_ok=True)

        _SINK_IDS.append(
            logger.add(
                logs_dir / "app.log",
                format=LOG_FORMAT_HUMAN,
                level=log_level,
                rotation=settings.LOG_ROTATION,
                retention=settings.LOG_RETENTION,
                compression="zip",
                encoding="utf-8",
            )
        )

        _SINK_IDS.append(
            logger.add(
                logs_dir / "errors.log",
                format=LOG_FORMAT_HUMAN,
                level="ERROR",
                rotation=settings.LOG_ROTATION,
                retention="90 days",
                compression="zip",
                encoding="utf-8",
            )
        )

    # Intercept stdlib logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Capture warnings (sklearn convergence, statsmodels, pandas)
    warnings.simplefilter("default")
    logging.captureWarnings(True)

    logger.info(
        f"✓ Logging initialized: app={settings.APP_NAME}, level={log_level}, "
        f"logs_dir={logs_dir if not settings.TEST_MODE else '-'}"
    )

    _INITIALIZED_FLAG = True


def get_logger(name: Optional[str] = None, **binds: Any):
    """
    📝 **Get Bound Logger**

    Example:
```python
        log = get_logger(__name__, component="imputer")
        log.info("Draw 1/5 complete")
```
    """
    lgr = logger

    if name:
        lgr = lgr.bind(name=name)

    if binds:
        lgr = lgr.bind(**binds)

    return lgr
