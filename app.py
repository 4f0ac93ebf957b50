# app.py - HR Retention command line entry point
"""
Run the full attrition analysis on a train/test pair:

    hr-retention --train data/HRRetention_train.csv --test data/HRRetention_test.csv
    python app.py --train train.csv --test test.csv --m 10 --plots

Prints missingness, imputation, normalization and model summaries.
Exits with status 1 if any stage fails.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from config.logging_config import setup_logging
from config.settings import get_settings
from core.exceptions import HRRetentionException, handle_exception


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="hr-retention",
        description="HR attrition analysis with multiple imputation"
    )
    parser.add_argument("--train", type=Path, default=settings.TRAIN_PATH,
                        help="Training table (default: %(default)s)")
    parser.add_argument("--test", type=Path, default=settings.TEST_PATH,
                        help="Test table (default: %(default)s)")
    parser.add_argument("--delimiter", default=settings.DELIMITER,
                        help="Field delimiter (default: %(default)r)")
    parser.add_argument("--no-header", action="store_true",
                        help="Input files have no header row")
    parser.add_argument("--m", type=int, default=settings.N_IMPUTATIONS,
                        help="Number of imputation draws (default: %(default)s)")
    parser.add_argument("--maxit", type=int, default=settings.MAX_ITERATIONS,
                        help="Chained-equation iterations per draw (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=settings.RANDOM_STATE,
                        help="Random seed (default: %(default)s)")
    parser.add_argument("--plots", action="store_true", default=settings.ENABLE_PLOTS,
                        help=f"Write Plotly HTML plots to {settings.REPORTS_PATH}")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="Log level (default: %(default)s)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level)

    # imported after logging is configured so agent loggers use our sinks
    from agents.preprocessing.mice_imputer import ImputerConfig
    from backend.pipeline_executor import PipelineConfig, PipelineExecutor, render_report

    settings = get_settings()

    try:
        config = PipelineConfig.from_settings(
            settings,
            delimiter=args.delimiter,
            header=not args.no_header,
            imputer=ImputerConfig(
                m=args.m,
                maxit=args.maxit,
                seed=args.seed,
                pmm_donors=settings.PMM_DONORS,
                cart_min_leaf=settings.CART_MIN_LEAF,
                allow_unmapped=settings.ALLOW_UNMAPPED_COLUMNS,
            ),
            enable_plots=args.plots,
        )
        report = PipelineExecutor(config).run(args.train, args.test)
    except HRRetentionException as e:
        logger.error(f"Pipeline failed: {e}")
        print(handle_exception(e, "HR retention pipeline"), file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Unexpected pipeline failure")
        print(handle_exception(e, "HR retention pipeline"), file=sys.stderr)
        return 1

    print(render_report(report))

    if report.train.plot_files or report.test.plot_files:
        print(f"\nPlots written to {config.reports_path}")

    logger.success("✅ Analysis complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
