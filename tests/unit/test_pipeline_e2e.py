"""
HR Retention - End-to-End Pipeline Tests
"""

import pytest
import numpy as np

import app
from agents.preprocessing.mice_imputer import ImputerConfig
from backend.pipeline_executor import PipelineConfig, PipelineExecutor, render_report
from config.constants import FEATURE_COLUMNS, IMPUTATION_METHOD_MAP

pytestmark = [pytest.mark.e2e, pytest.mark.slow]

FAST_IMPUTER = ImputerConfig(m=2, maxit=2, seed=500)


@pytest.fixture
def executor(test_settings):
    config = PipelineConfig.from_settings(test_settings, imputer=FAST_IMPUTER)
    return PipelineExecutor(config)


class TestPipelineExecutor:
    """Full run on synthetic HR partitions"""

    def test_run_from_files(self, executor, hr_csv_files, hr_raw_df, hr_test_raw_df):
        train_path, test_path = hr_csv_files
        report = executor.run(train_path, test_path)

        assert len(report.train.stacked) == 2 * len(hr_raw_df)
        assert len(report.test.stacked) == 2 * len(hr_test_raw_df)

        mapped = list(IMPUTATION_METHOD_MAP)
        assert report.train.stacked[mapped].isna().sum().sum() == 0
        assert report.test.stacked[mapped].isna().sum().sum() == 0

        normalized = report.train.normalized
        for col in FEATURE_COLUMNS:
            assert normalized[col].mean() == pytest.approx(0.0, abs=1e-8)
            assert normalized[col].std(ddof=1) == pytest.approx(1.0)

        cmp = report.comparison
        assert cmp.n_train == 2 * len(hr_raw_df)
        assert cmp.n_test == 2 * len(hr_test_raw_df)
        assert "tree_full" in cmp.trees

    def test_partitions_normalized_independently(self, executor, hr_raw_df, hr_test_raw_df):
        report = executor.run_frames(hr_raw_df, hr_test_raw_df)
        train_mean = report.train.normalization_stats.loc["training_hours", "mean"]
        test_mean = report.test.normalization_stats.loc["training_hours", "mean"]
        assert train_mean != test_mean

    def test_scenario_row_survives_pipeline(self, executor, scenario_rows, hr_raw_df, hr_test_raw_df):
        import pandas as pd
        train = pd.concat([scenario_rows, hr_raw_df], ignore_index=True)
        report = executor.run_frames(train, hr_test_raw_df)

        encoded = report.train.encoded.iloc[0]
        assert (encoded["gender"], encoded["relevent_experience"]) == (1, 0)
        assert (encoded["company_size"], encoded["city"]) == (2, 103)
        assert np.isnan(encoded["enrolled_university"])

        stacked = report.train.stacked
        first_row = stacked[stacked[".id"] == 1]
        assert len(first_row) == 2
        assert first_row["enrolled_university"].isin([0.0, 1.0]).all()

    @pytest.mark.parametrize("unlabel", ["drop_column", "all_missing"])
    def test_unlabeled_test_partition(self, executor, hr_raw_df, hr_test_raw_df, unlabel):
        test = hr_test_raw_df.copy()
        if unlabel == "drop_column":
            test = test.drop(columns="target")
        else:
            test["target"] = np.nan

        report = executor.run_frames(hr_raw_df, test)
        cmp = report.comparison
        assert cmp.n_test == 2 * len(test)
        assert cmp.n_scored == 0
        assert all(len(labels) == cmp.n_test for labels in cmp.predictions.values())
        assert any("no target labels" in msg for _, msgs in report.get_warnings() for msg in msgs)

        text = render_report(report)
        assert "predictions only" in text
        assert "Predicted leavers on test" in text

    def test_render_report(self, executor, hr_raw_df, hr_test_raw_df):
        text = render_report(executor.run_frames(hr_raw_df, hr_test_raw_df))
        assert "TRAIN: missingness" in text
        assert "OLS linear probability model" in text
        assert "tree_full confusion matrix on train" in text

    def test_plots_written(self, test_settings, hr_raw_df, hr_test_raw_df):
        config = PipelineConfig.from_settings(
            test_settings, imputer=FAST_IMPUTER, enable_plots=True,
            quality_plot_columns=("education_level",),
        )
        report = PipelineExecutor(config).run_frames(hr_raw_df, hr_test_raw_df)
        files = report.train.plot_files
        assert {"missing_bar", "missing_pattern", "quality_education_level"} <= set(files)
        assert all(path.exists() for path in files.values())


class TestCli:
    """Tests for app.main"""

    def test_success_exit_code(self, test_settings, hr_csv_files, capsys):
        train_path, test_path = hr_csv_files
        code = app.main([
            "--train", str(train_path), "--test", str(test_path),
            "--m", "2", "--maxit", "1", "--log-level", "warning",
        ])
        assert code == 0
        assert "MODELS" in capsys.readouterr().out

    def test_missing_file_exit_code(self, test_settings, tmp_path, capsys):
        code = app.main([
            "--train", str(tmp_path / "nope.csv"), "--test", str(tmp_path / "nope2.csv"),
        ])
        assert code == 1
        assert "data_load_error" in capsys.readouterr().err
