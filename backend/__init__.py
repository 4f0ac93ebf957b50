# backend/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Backend Module                                            ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Pipeline orchestration connecting the agents:                            ║
║    - agents.preprocessing → encoding, imputation, normalization           ║
║    - agents.eda → missingness reporting and plots                         ║
║    - agents.ml → model comparison                                         ║
╚════════════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

from backend.pipeline_executor import (
    PipelineConfig,
    PipelineExecutor,
    PipelineReport,
    render_report,
)

__all__ = [
    "PipelineConfig",
    "PipelineExecutor",
    "PipelineReport",
    "render_report",
]
