"""
HR Retention - Unit Tests for Model Trainer and Evaluator
"""

import pytest
import pandas as pd
import numpy as np
from sklearn.neighbors import KNeighborsClassifier
from sklearn.tree import DecisionTreeClassifier

from agents.ml.model_evaluator import ModelEvaluator
from agents.ml.model_trainer import (
    LinearFit,
    ModelTrainer,
    TrainerConfig,
    fit_knn,
    fit_linear,
    fit_tree,
    predict,
    select_features,
)
from core.exceptions import ConfigurationError, DataValidationError, ModelFitError

FEATURES = ("f1", "f2")


def make_partition(n: int, seed: int) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    f1 = rng.normal(0, 1, n)
    f2 = rng.normal(0, 1, n)
    target = (f1 + 0.3 * rng.normal(0, 1, n) > 0).astype(int)
    return pd.DataFrame({".imp": 1, ".id": np.arange(1, n + 1), "f1": f1, "f2": f2, "target": target})


@pytest.fixture
def train_df():
    return make_partition(120, seed=1)


@pytest.fixture
def test_df():
    return make_partition(60, seed=2)


@pytest.fixture
def config():
    return TrainerConfig(feature_columns=FEATURES, knn_neighbors=2, tree_max_depth=2)


class TestConfusion:
    """Tests for ModelEvaluator.confusion"""

    def test_matrix_and_metrics(self):
        report = ModelEvaluator.confusion([0, 0, 1, 1], [0, 1, 1, 1])
        assert report.matrix.to_numpy().tolist() == [[1, 1], [0, 2]]
        assert report.accuracy == pytest.approx(0.75)
        assert report.precision == pytest.approx(2 / 3)
        assert report.recall == pytest.approx(1.0)
        assert report.f1 == pytest.approx(0.8)

    def test_labels_fixed_even_if_one_class(self):
        report = ModelEvaluator.confusion([0, 0], [0, 0])
        assert report.matrix.shape == (2, 2)
        assert report.precision == 0.0

    def test_length_mismatch(self):
        with pytest.raises(DataValidationError):
            ModelEvaluator.confusion([0, 1], [0])

    def test_agent_run(self):
        result = ModelEvaluator().run(y_true=[0, 1], y_pred=[0, 1])
        assert result.data["report"].accuracy == 1.0
        assert result.metadata["n_samples"] == 2


class TestSelectFeatures:
    """Tests for select_features"""

    def test_explicit_order(self, train_df):
        X, y = select_features(train_df, ["f2", "f1"])
        assert list(X.columns) == ["f2", "f1"]
        assert len(y) == len(train_df)

    def test_missing_feature_raises(self, train_df):
        with pytest.raises(DataValidationError) as exc_info:
            select_features(train_df.drop(columns="f2"), FEATURES)
        assert exc_info.value.column == "f2"

    def test_incomplete_feature_raises(self, train_df):
        df = train_df.copy()
        df.loc[0, "f1"] = np.nan
        with pytest.raises(DataValidationError):
            select_features(df, FEATURES)


class TestFitPredict:
    """Tests for fit_* / predict"""

    def test_knn(self, train_df, test_df):
        X, y = select_features(train_df, FEATURES)
        model = fit_knn(X, y, k=2)
        assert isinstance(model, KNeighborsClassifier)
        assert model.n_neighbors == 2
        labels = predict(model, select_features(test_df, FEATURES)[0])
        assert set(labels) <= {0, 1}

    def test_linear_coefficients(self, train_df):
        X, y = select_features(train_df, FEATURES)
        fit = fit_linear(X, y)
        assert isinstance(fit, LinearFit)
        table = fit.coefficients
        assert list(table.index) == ["const", "f1", "f2"]
        assert list(table.columns) == ["coef", "std_err", "t", "p_value"]
        assert table.loc["f1", "coef"] > 0
        assert "f1" in fit.significant()
        assert 0.0 < fit.r_squared < 1.0

    def test_linear_threshold_labels(self, train_df):
        X, y = select_features(train_df, FEATURES)
        fit = fit_linear(X, y)
        fitted = fit.fitted_values(X)
        np.testing.assert_array_equal(predict(fit, X), (fitted >= 0.5).astype(int))

    def test_tree_depth(self, train_df):
        X, y = select_features(train_df, FEATURES)
        shallow = fit_tree(X, y, max_depth=2)
        full = fit_tree(X, y, max_depth=None)
        assert isinstance(shallow, DecisionTreeClassifier)
        assert shallow.get_depth() <= 2
        assert full.get_depth() >= shallow.get_depth()
        # an unconstrained tree memorizes its training set
        assert (predict(full, X) == y.to_numpy()).all()

    def test_non_finite_features_raise_model_fit_error(self, train_df):
        X, y = select_features(train_df, FEATURES)
        X = X.copy()
        X.iloc[0, 0] = np.inf
        with pytest.raises(ModelFitError):
            fit_tree(X, y)

    def test_single_class_knn_predicts_it(self):
        X = pd.DataFrame({"f1": [0.0, 1.0, 2.0], "f2": [0.0, 1.0, 2.0]})
        model = fit_knn(X, pd.Series([1, 1, 1]), k=2)
        assert predict(model, X).tolist() == [1, 1, 1]


class TestModelTrainer:
    """Tests for the trainer agent"""

    def test_comparison(self, train_df, test_df, config):
        result = ModelTrainer(config).run(train=train_df, test=test_df)
        cmp = result.data["comparison"]
        assert cmp.n_train == 120 and cmp.n_test == 60
        assert set(cmp.trees) == {"tree_full", "tree_depth_2"}
        assert cmp.tree_train["tree_full"].accuracy == 1.0
        assert cmp.knn_test.n_samples == 60
        assert set(cmp.predictions) == {"knn", "linear", "tree_full", "tree_depth_2"}
        assert all(len(labels) == 60 for labels in cmp.predictions.values())
        assert set(np.concatenate(list(cmp.predictions.values()))) <= {0, 1}

        summary = cmp.summary()
        assert list(summary.index) == ["knn", "linear", "tree_full", "tree_depth_2"]
        assert summary["test_accuracy"].between(0, 1).all()

    def test_no_depth_limit_fits_one_tree(self, train_df, test_df):
        cfg = TrainerConfig(feature_columns=FEATURES, tree_max_depth=None)
        cmp = ModelTrainer(cfg).run(train=train_df, test=test_df).data["comparison"]
        assert list(cmp.trees) == ["tree_full"]

    def test_unlabeled_test_rows_predicted_not_scored(self, train_df, test_df, config):
        test = test_df.astype({"target": float})
        test.loc[:4, "target"] = np.nan
        result = ModelTrainer(config).run(train=train_df, test=test)
        cmp = result.data["comparison"]
        assert cmp.n_test == 60 and cmp.n_scored == 55
        assert cmp.knn_test.n_samples == 55
        assert len(cmp.predictions["knn"]) == 60
        assert any("without a target" in w for w in result.warnings)

    def test_test_without_target_column(self, train_df, test_df, config):
        result = ModelTrainer(config).run(train=train_df, test=test_df.drop(columns="target"))
        cmp = result.data["comparison"]
        assert cmp.n_test == 60 and cmp.n_scored == 0
        assert not cmp.has_test_scores
        assert cmp.knn_test is None and cmp.linear_test is None
        assert all(report is None for report in cmp.tree_test.values())
        assert all(len(labels) == 60 for labels in cmp.predictions.values())
        assert cmp.summary()["test_accuracy"].isna().all()
        assert cmp.summary().loc["tree_full", "train_accuracy"] == 1.0
        assert any("no target labels" in w for w in result.warnings)

    def test_test_target_all_missing(self, train_df, test_df, config):
        test = test_df.astype({"target": float})
        test["target"] = np.nan
        cmp = ModelTrainer(config).run(train=train_df, test=test).data["comparison"]
        assert cmp.n_scored == 0
        np.testing.assert_array_equal(
            cmp.predictions["linear"],
            predict(cmp.linear, test[list(FEATURES)]),
        )

    def test_train_without_target_column(self, train_df, test_df, config):
        with pytest.raises(DataValidationError):
            ModelTrainer(config).run(train=train_df.drop(columns="target"), test=test_df)

    def test_missing_feature_column(self, train_df, test_df, config):
        with pytest.raises(DataValidationError):
            ModelTrainer(config).run(train=train_df, test=test_df.drop(columns="f1"))

    def test_config_validation(self):
        with pytest.raises(ConfigurationError):
            TrainerConfig(knn_neighbors=0)
        with pytest.raises(ConfigurationError):
            TrainerConfig(tree_max_depth=0)
