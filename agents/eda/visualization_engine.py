# agents/eda/visualization_engine.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Visualization Engine                                      ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Interactive side-channel plots (Plotly), written as standalone HTML:      ║
║    ✓ Missing values per column (horizontal bar chart)                     ║
║    ✓ Missingness pattern heatmap (observed / missing per pattern)         ║
║    ✓ Imputation quality strip plot (observed vs imputed per draw)         ║
╚════════════════════════════════════════════════════════════════════════════╝

Nothing produced here is consumed by later pipeline stages.

Output Contract (AgentResult.data):
{
    "figures": Dict[str, go.Figure],   # missing_bar, missing_pattern, quality_<column>
    "files":   Dict[str, Path],        # only when output_dir is given
}
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from loguru import logger

from agents.eda.missing_data_analyzer import missing_pattern
from config.constants import IMPUTATION_INDEX_COLUMN
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import DataValidationError

__all__ = ["VisualizationEngine", "VisualizationEngineConfig", "COLOR_PALETTE_PRIMARY"]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Configuration & Constants
# ═══════════════════════════════════════════════════════════════════════════

COLOR_PALETTE_PRIMARY = [
    "#2563EB", "#7C3AED", "#059669", "#DC2626", "#D97706",
    "#10B981", "#F43F5E", "#0EA5E9", "#9333EA", "#EF4444"
]

OBSERVED_COLOR = COLOR_PALETTE_PRIMARY[0]
IMPUTED_COLOR = COLOR_PALETTE_PRIMARY[3]


@dataclass(frozen=True)
class VisualizationEngineConfig:
    max_patterns: int = 40                 # Rows of the pattern heatmap
    jitter: float = 0.15                   # Horizontal jitter of strip plots
    random_state: int = 42
    include_plotlyjs: str = "cdn"          # write_html(include_plotlyjs=...)


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Utility Functions
# ═══════════════════════════════════════════════════════════════════════════

def _timeit(operation_name: str):
    """Decorator for operation timing."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            t_start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - t_start) * 1000
                logger.debug(f"⏱ {operation_name}: {elapsed_ms:.2f}ms")
        return wrapper
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Main Visualization Engine Agent
# ═══════════════════════════════════════════════════════════════════════════

class VisualizationEngine(BaseAgent):
    """
    **VisualizationEngine**: missingness and imputation diagnostics.

    Inputs:
      data: encoded (pre-imputation) table
      imputation: optional ImputationResult for the quality plots
      quality_columns: columns to draw quality plots for
      output_dir / prefix: where and under which name to write HTML
    """

    def __init__(self, config: Optional[VisualizationEngineConfig] = None) -> None:
        super().__init__(
            name="VisualizationEngine",
            description="Plotly missingness and imputation diagnostics"
        )
        self.config = config or VisualizationEngineConfig()
        self._log = logger.bind(agent="VisualizationEngine")

    def validate_input(self, **kwargs) -> bool:
        if not isinstance(kwargs.get("data"), pd.DataFrame):
            raise DataValidationError(
                f"'data' must be pd.DataFrame, got {type(kwargs.get('data')).__name__}"
            )
        return True

    @_timeit("VisualizationEngine.execute")
    def execute(
        self,
        data: pd.DataFrame,
        imputation: Optional[Any] = None,
        quality_columns: Sequence[str] = (),
        output_dir: Optional[Path] = None,
        prefix: str = "",
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        figures: Dict[str, go.Figure] = {
            "missing_bar": self.missing_bar(data, title_suffix=prefix),
            "missing_pattern": self.missing_pattern_heatmap(data, title_suffix=prefix),
        }

        if imputation is not None:
            for col in quality_columns:
                if col not in imputation.missing_masks:
                    result.add_warning(f"No imputed values for '{col}'; quality plot skipped")
                    continue
                figures[f"quality_{col}"] = self.imputation_quality(imputation, col)

        files: Dict[str, Path] = {}
        if output_dir is not None:
            files = self.write_html(figures, Path(output_dir), prefix=prefix)

        result.add_data(figures=figures, files=files)
        result.add_metadata(n_figures=len(figures), n_files=len(files))
        return result

    # ───────────────────────────────────────────────────────────────────
    # Missing Data
    # ───────────────────────────────────────────────────────────────────

    @_timeit("missing_bar")
    def missing_bar(self, df: pd.DataFrame, title_suffix: str = "") -> go.Figure:
        """Horizontal bar chart of missing percentage per column."""
        missing = df.isna().sum()
        missing = missing[missing > 0].sort_values(ascending=True)
        title = self._title("Missing Values (% per Column)", title_suffix)

        if missing.empty:
            fig = go.Figure()
            fig.add_annotation(
                text="No Missing Data",
                xref="paper",
                yref="paper",
                x=0.5,
                y=0.5,
                showarrow=False,
                font=dict(size=20, color=COLOR_PALETTE_PRIMARY[2]),
            )
            fig.update_layout(title=title, height=280, margin={"l": 20, "r": 20, "t": 40, "b": 20})
            return fig

        pct = (missing / len(df) * 100).round(2)

        fig = go.Figure(
            data=[
                go.Bar(
                    x=pct.values,
                    y=missing.index.astype(str),
                    orientation="h",
                    text=[f"{v:.2f}% ({n})" for v, n in zip(pct.values, missing.values)],
                    textposition="auto",
                    marker_color=COLOR_PALETTE_PRIMARY[0],
                )
            ]
        )
        fig.update_layout(
            title=title,
            xaxis_title="Missing Percentage",
            yaxis_title="Column",
            height=max(320, 26 * len(missing)),
            margin={"l": 180, "r": 30, "t": 60, "b": 40},
        )
        return fig

    @_timeit("missing_pattern_heatmap")
    def missing_pattern_heatmap(self, df: pd.DataFrame, title_suffix: str = "") -> go.Figure:
        """One row per distinct pattern: blue = observed, red = missing."""
        patterns = missing_pattern(df).head(self.config.max_patterns)
        cols = [str(c) for c in df.columns]
        z = patterns[list(df.columns)].to_numpy(dtype=float) if len(patterns) else np.empty((0, len(cols)))
        labels = [
            f"{int(n)} rows / {int(k)} missing"
            for n, k in zip(patterns["n_rows"], patterns["n_missing"])
        ]

        fig = go.Figure(
            data=go.Heatmap(
                z=z,
                x=cols,
                y=labels,
                zmin=0,
                zmax=1,
                colorscale=[[0.0, IMPUTED_COLOR], [1.0, OBSERVED_COLOR]],
                showscale=False,
                xgap=1,
                ygap=1,
            )
        )
        fig.update_layout(
            title=self._title("Missingness Patterns (blue = observed, red = missing)", title_suffix),
            yaxis=dict(autorange="reversed"),
            height=max(320, 22 * len(labels) + 160),
            margin={"l": 200, "r": 30, "t": 60, "b": 120},
        )
        return fig

    # ───────────────────────────────────────────────────────────────────
    # Imputation Quality
    # ───────────────────────────────────────────────────────────────────

    @_timeit("imputation_quality")
    def imputation_quality(self, imputation: Any, column: str) -> go.Figure:
        """
        Strip plot of `column` per draw: observed values (draw 0) and the
        imputed values of each draw 1..m, side by side.
        """
        rng = np.random.default_rng(self.config.random_state)
        mask = imputation.missing_masks[column]
        observed = imputation.data.loc[~mask, column].to_numpy(dtype=float)
        imputed = imputation.imputed_values(column)

        fig = go.Figure()
        fig.add_trace(
            go.Scattergl(
                x=rng.uniform(-self.config.jitter, self.config.jitter, len(observed)),
                y=observed,
                mode="markers",
                name="observed",
                marker=dict(color=OBSERVED_COLOR, size=4, opacity=0.4),
            )
        )

        for i, group in imputed.groupby(IMPUTATION_INDEX_COLUMN):
            values = group[column].to_numpy(dtype=float)
            fig.add_trace(
                go.Scattergl(
                    x=i + rng.uniform(-self.config.jitter, self.config.jitter, len(values)),
                    y=values,
                    mode="markers",
                    name=f"imputed #{i}",
                    showlegend=(i == 1),
                    legendgroup="imputed",
                    marker=dict(color=IMPUTED_COLOR, size=4, opacity=0.6),
                )
            )

        fig.update_layout(
            title=f"Imputation Quality: {column} ({imputation.method_map.get(column, '?')})",
            xaxis=dict(title="Imputation number", tickmode="linear", tick0=0, dtick=1),
            yaxis_title=column,
            height=420,
        )
        return fig

    # ───────────────────────────────────────────────────────────────────
    # Output
    # ───────────────────────────────────────────────────────────────────

    def write_html(self, figures: Dict[str, go.Figure], output_dir: Path, prefix: str = "") -> Dict[str, Path]:
        output_dir.mkdir(parents=True, exist_ok=True)
        files: Dict[str, Path] = {}
        for name, fig in figures.items():
            path = output_dir / (f"{prefix}_{name}.html" if prefix else f"{name}.html")
            fig.write_html(str(path), include_plotlyjs=self.config.include_plotlyjs)
            files[name] = path
        self._log.info(f"Wrote {len(files)} plot(s) to {output_dir}")
        return files

    @staticmethod
    def _title(title: str, suffix: str) -> str:
        return f"{title} [{suffix}]" if suffix else title
