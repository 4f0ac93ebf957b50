# backend/pipeline_executor.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Pipeline Executor                                         ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ End-to-End Run (load → encode → missingness → impute → normalize)     ║
║  ✓ Train and Test Prepared Independently                                 ║
║  ✓ Model Comparison on the Prepared Partitions                           ║
║  ✓ Step Telemetry (duration, warnings) per Stage                         ║
║  ✓ Console Report Rendering                                              ║
╚════════════════════════════════════════════════════════════════════════════╝

Pipeline Stages (per partition):
    1. load        → LoaderAgent (DataLoader.load_table)
    2. encode      → CategoricalEncoder
    3. missing     → MissingDataAnalyzer (side channel)
    4. impute      → MiceImputer (m draws, stacked)
    5. normalize   → Normalizer (own statistics per partition)
    6. plots       → VisualizationEngine (optional, side channel)
Then:
    7. models      → ModelTrainer (train → test)

Execution is sequential; the first failure aborts the run and propagates.

Usage:
```python
    from backend.pipeline_executor import PipelineExecutor, PipelineConfig

    executor = PipelineExecutor(PipelineConfig.from_settings())
    report = executor.run("data/HRRetention_train.csv", "data/HRRetention_test.csv")
    print(render_report(report))
```
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from agents.eda.missing_data_analyzer import MissingDataAnalyzer
from agents.ml.model_trainer import ModelComparison, ModelTrainer, TrainerConfig
from agents.preprocessing.categorical_encoder import (
    CategoricalEncoder,
    EncoderConfig,
    EncodingReport,
)
from agents.preprocessing.mice_imputer import ImputationResult, ImputerConfig, MiceImputer
from agents.preprocessing.normalizer import Normalizer, NormalizerConfig
from config.constants import IMPUTATION_METHOD_MAP
from core.base_agent import AgentResult, BaseAgent
from core.data_loader import DataLoader, LoaderAgent
from core.utils import format_number, format_percentage, format_table, section

__all__ = [
    "PipelineConfig",
    "StepResult",
    "PartitionReport",
    "PipelineReport",
    "PipelineExecutor",
    "render_report",
]

StepName = Literal["load", "encode", "missing", "impute", "normalize", "plots", "models"]
Partition = Literal["train", "test"]


# ═══════════════════════════════════════════════════════════════════════════
# Data Classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class StepResult:
    """
    📊 **Pipeline Step Result**

    Attributes:
        name: Step name
        partition: "train", "test" or "" for cross-partition steps
        duration_sec: Duration in seconds
        warnings: Warning messages raised by the agent
    """
    name: StepName
    partition: str
    started_at: str
    duration_sec: float
    warnings: List[str] = field(default_factory=list)


@dataclass
class PipelineConfig:
    """
    ⚙️ **Pipeline Configuration**
    """
    delimiter: str = ","
    header: bool = True
    na_tokens: Tuple[str, ...] = ("", "NA")
    strict_encoding: bool = False
    imputer: ImputerConfig = field(default_factory=ImputerConfig)
    method_map: Dict[str, str] = field(default_factory=lambda: dict(IMPUTATION_METHOD_MAP))
    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    trainer: TrainerConfig = field(default_factory=TrainerConfig)
    enable_plots: bool = False
    quality_plot_columns: Tuple[str, ...] = ()
    reports_path: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: Any = None, **overrides: Any) -> "PipelineConfig":
        if settings is None:
            from config.settings import get_settings
            settings = get_settings()

        base = dict(
            delimiter=settings.DELIMITER,
            header=settings.HAS_HEADER,
            na_tokens=tuple(settings.NA_TOKENS),
            imputer=ImputerConfig.from_settings(settings),
            normalizer=NormalizerConfig(on_constant=settings.NORMALIZE_ON_CONSTANT),
            trainer=TrainerConfig.from_settings(settings),
            enable_plots=settings.ENABLE_PLOTS,
            quality_plot_columns=tuple(settings.QUALITY_PLOT_COLUMNS),
            reports_path=Path(settings.REPORTS_PATH),
        )
        base.update(overrides)
        return cls(**base)


@dataclass
class PartitionReport:
    """Everything produced while preparing one partition."""
    name: Partition
    path: Optional[Path]
    raw: pd.DataFrame
    encoded: pd.DataFrame
    encoding: EncodingReport
    missingness: Dict[str, Any]
    imputation: ImputationResult
    stacked: pd.DataFrame
    normalized: pd.DataFrame
    normalization_stats: pd.DataFrame
    plot_files: Dict[str, Path] = field(default_factory=dict)


@dataclass
class PipelineReport:
    """
    📦 **Complete Pipeline Result**
    """
    started_at: str
    finished_at: str
    duration_sec: float
    train: PartitionReport
    test: PartitionReport
    comparison: ModelComparison
    steps: List[StepResult] = field(default_factory=list)

    def get_warnings(self) -> List[Tuple[str, List[str]]]:
        return [
            (f"{s.partition}:{s.name}" if s.partition else s.name, s.warnings)
            for s in self.steps if s.warnings
        ]


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


# ═══════════════════════════════════════════════════════════════════════════
# Main Pipeline Executor
# ═══════════════════════════════════════════════════════════════════════════

class PipelineExecutor:
    """
    🎯 **Pipeline Executor**

    Owns one agent per stage and runs them in order for train, then test,
    then fits and compares the models.
    """

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        self.config = config or PipelineConfig()
        self.logger = logger.bind(component="PipelineExecutor")

        cfg = self.config
        self._loader = LoaderAgent(DataLoader(na_tokens=cfg.na_tokens))
        self._encoder = CategoricalEncoder(EncoderConfig(strict=cfg.strict_encoding))
        self._missing = MissingDataAnalyzer()
        self._imputer = MiceImputer(cfg.imputer, method_map=cfg.method_map)
        self._normalizer = Normalizer(cfg.normalizer)
        self._trainer = ModelTrainer(cfg.trainer)
        self._viz = None
        if cfg.enable_plots:
            from agents.eda.visualization_engine import VisualizationEngine
            self._viz = VisualizationEngine()

        self._steps: List[StepResult] = []

    # ───────────────────────────────────────────────────────────────────
    # Main Execution
    # ───────────────────────────────────────────────────────────────────

    def run(
        self,
        train_path: Union[str, Path],
        test_path: Union[str, Path]
    ) -> PipelineReport:
        """Load both partitions from disk and run every stage."""
        self._steps = []
        t0 = time.perf_counter()
        ts_start = _now_iso()

        train_raw = self._load("train", train_path)
        test_raw = self._load("test", test_path)

        return self._run_prepared(
            train_raw, test_raw, Path(train_path), Path(test_path), t0, ts_start
        )

    def run_frames(self, train: pd.DataFrame, test: pd.DataFrame) -> PipelineReport:
        """Run every stage after loading, on tables already in memory."""
        self._steps = []
        return self._run_prepared(
            train.copy(), test.copy(), None, None, time.perf_counter(), _now_iso()
        )

    def _run_prepared(
        self,
        train_raw: pd.DataFrame,
        test_raw: pd.DataFrame,
        train_path: Optional[Path],
        test_path: Optional[Path],
        t0: float,
        ts_start: str
    ) -> PipelineReport:
        self.logger.info(
            f"Pipeline start: train={len(train_raw)} rows, test={len(test_raw)} rows, "
            f"m={self.config.imputer.m}, maxit={self.config.imputer.maxit}, seed={self.config.imputer.seed}"
        )

        train = self.prepare_partition("train", train_raw, train_path)
        test = self.prepare_partition("test", test_raw, test_path)

        models = self._run_agent(
            "models", "", self._trainer, train=train.normalized, test=test.normalized
        )

        duration = time.perf_counter() - t0
        self.logger.success(f"Pipeline finished in {duration:.1f}s")

        return PipelineReport(
            started_at=ts_start,
            finished_at=_now_iso(),
            duration_sec=duration,
            train=train,
            test=test,
            comparison=models.data["comparison"],
            steps=list(self._steps),
        )

    def prepare_partition(
        self,
        name: Partition,
        raw: pd.DataFrame,
        path: Optional[Path] = None
    ) -> PartitionReport:
        """encode → missingness → impute → normalize (→ plots) for one table."""
        encoded = self._run_agent("encode", name, self._encoder, data=raw)
        enc_df = encoded.data["data"]

        missing = self._run_agent("missing", name, self._missing, data=enc_df)
        imputed = self._run_agent("impute", name, self._imputer, data=enc_df)
        normalized = self._run_agent(
            "normalize", name, self._normalizer, data=imputed.data["stacked"]
        )

        plot_files: Dict[str, Path] = {}
        if self._viz is not None:
            plots = self._run_agent(
                "plots", name, self._viz,
                data=enc_df,
                imputation=imputed.data["result"],
                quality_columns=self.config.quality_plot_columns,
                output_dir=self.config.reports_path,
                prefix=name,
            )
            plot_files = plots.data["files"]

        return PartitionReport(
            name=name,
            path=path,
            raw=raw,
            encoded=enc_df,
            encoding=encoded.data["report"],
            missingness=missing.data,
            imputation=imputed.data["result"],
            stacked=imputed.data["stacked"],
            normalized=normalized.data["data"],
            normalization_stats=normalized.data["stats"],
            plot_files=plot_files,
        )

    # ───────────────────────────────────────────────────────────────────
    # Utilities
    # ───────────────────────────────────────────────────────────────────

    def _load(self, partition: Partition, path: Union[str, Path]) -> pd.DataFrame:
        loaded = self._run_agent(
            "load", partition, self._loader,
            path=path, delimiter=self.config.delimiter, header=self.config.header,
        )
        return loaded.data["data"]

    def _run_agent(self, step: StepName, partition: str, agent: BaseAgent, **kwargs: Any) -> AgentResult:
        label = f"{partition}:{step}" if partition else step
        self.logger.info(f"▶ {label}")
        result = agent.run(**kwargs)
        self._steps.append(StepResult(
            name=step,
            partition=partition,
            started_at=result.started_at.isoformat(timespec="seconds") if result.started_at else _now_iso(),
            duration_sec=result.execution_time,
            warnings=list(result.warnings),
        ))
        return result


# ═══════════════════════════════════════════════════════════════════════════
# Console Report
# ═══════════════════════════════════════════════════════════════════════════

def _render_partition(part: PartitionReport) -> List[str]:
    title = part.name.upper()
    lines = [section(f"{title}: data ({format_number(len(part.raw))} rows × {len(part.raw.columns)} columns)")]

    if part.encoding.gaps:
        lines.append("\nEncoding gaps (values set to missing):")
        lines.append(format_table(part.encoding.to_frame()))

    summary = part.missingness["summary"]
    lines.append(section(f"{title}: missingness"))
    lines.append(
        f"Missing cells: {format_number(summary['total_missing'])} "
        f"({format_percentage(summary['missing_percentage'])}); "
        f"complete rows: {format_number(summary['complete_rows'])}/{format_number(summary['n_rows'])}"
    )
    lines.append(format_table(part.missingness["columns"], float_decimals=2))
    lines.append("\nMost frequent missingness patterns (1 = observed):")
    lines.append(format_table(part.missingness["patterns"].head(10)))

    lines.append(section(f"{title}: imputation (m={part.imputation.m})"))
    lines.append(format_table(part.imputation.summary()))
    if part.imputation.unmapped_columns:
        lines.append(f"Left unimputed: {part.imputation.unmapped_columns}")
    lines.append(f"Stacked rows: {format_number(len(part.stacked))}")

    lines.append(section(f"{title}: normalization"))
    lines.append(format_table(part.normalization_stats))
    return lines


def render_report(report: PipelineReport) -> str:
    """Plain-text diagnostics for the console."""
    lines: List[str] = []
    lines += _render_partition(report.train)
    lines += _render_partition(report.test)

    cmp = report.comparison
    lines.append(section("MODELS"))
    lines.append(
        f"Training rows: {format_number(cmp.n_train)}; test rows: {format_number(cmp.n_test)} "
        f"({format_number(cmp.n_scored)} labeled)"
    )

    if cmp.knn_test is not None:
        lines.append(f"\nkNN (k={cmp.knn.n_neighbors}) confusion matrix on test:")
        lines.append(format_table(cmp.knn_test.matrix))
    else:
        lines.append(f"\nkNN (k={cmp.knn.n_neighbors}): test partition has no labels, predictions only")

    lines.append(f"\nOLS linear probability model: R² = {cmp.linear.r_squared:.4f}, "
                 f"adj. R² = {cmp.linear.adj_r_squared:.4f}")
    lines.append(format_table(cmp.linear.coefficients, float_decimals=4))
    lines.append(f"Significant at 5%: {', '.join(cmp.linear.significant()) or '-'}")

    for name in cmp.trees:
        lines.append(f"\n{name} confusion matrix on train:")
        lines.append(format_table(cmp.tree_train[name].matrix))

    lines.append("\nSummary:")
    lines.append(format_table(cmp.summary(), float_decimals=4))
    lines.append("Predicted leavers on test: " + ", ".join(
        f"{name}={int(labels.sum())}/{len(labels)}" for name, labels in cmp.predictions.items()
    ))

    warnings = report.get_warnings()
    if warnings:
        lines.append(section("WARNINGS"))
        for step, msgs in warnings:
            for msg in msgs:
                lines.append(f"[{step}] {msg}")

    lines.append(f"\nCompleted in {report.duration_sec:.1f}s")
    return "\n".join(lines)
