"""
HR Retention - Unit Tests for Settings, Logging and Exceptions
"""

import pytest
import numpy as np
from loguru import logger

from config.settings import Settings, get_settings
from config.logging_config import get_logger, setup_logging
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import (
    DataLoadError,
    EncodingGap,
    ErrorCode,
    ErrorSeverity,
    HRRetentionException,
    ImputationError,
    ModelFitError,
    ParseError,
    exception_context,
    handle_exception,
)


class TestSettings:
    """Tests for Settings validation"""

    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.N_IMPUTATIONS == 5
        assert s.RANDOM_STATE == 500
        assert s.KNN_NEIGHBORS == 2
        assert s.NA_TOKENS == ["", "NA"]
        assert s.NORMALIZE_ON_CONSTANT == "raise"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("N_IMPUTATIONS", "10")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = Settings(_env_file=None)
        assert s.N_IMPUTATIONS == 10
        assert s.LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, LOG_LEVEL="LOUD")

    def test_non_positive_count(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, N_IMPUTATIONS=0)

    def test_bad_delimiter(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, DELIMITER=",,")

    def test_tree_depth(self):
        assert Settings(_env_file=None, TREE_MAX_DEPTH=None).TREE_MAX_DEPTH is None
        with pytest.raises(ValueError):
            Settings(_env_file=None, TREE_MAX_DEPTH=0)

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestLogging:
    """Tests for loguru setup"""

    def test_setup_is_idempotent(self, test_settings):
        setup_logging(log_level="DEBUG", reset_existing=True)
        setup_logging(log_level="INFO")

    def test_bound_logger_carries_extra(self):
        messages = []
        sink_id = logger.add(lambda m: messages.append(m.record["extra"]), level="INFO")
        try:
            get_logger("tests", component="imputer").info("hello")
        finally:
            logger.remove(sink_id)
        assert messages[-1]["component"] == "imputer"
        assert messages[-1]["name"] == "tests"


class TestExceptions:
    """Tests for the exception hierarchy"""

    def test_codes(self):
        assert ParseError("x").error_code == ErrorCode.PARSE
        assert ImputationError("x").error_code == ErrorCode.IMPUTATION
        assert EncodingGap("x").severity == ErrorSeverity.WARNING

    def test_data_load_error_is_os_error(self):
        assert issubclass(DataLoadError, OSError)
        assert issubclass(DataLoadError, HRRetentionException)

    def test_column_and_row(self):
        err = ParseError("bad row", details={"row_index": 7, "column": "city"})
        assert err.row_index == 7
        assert err.column == "city"
        assert "parse_error" in str(err)

    def test_to_dict(self):
        payload = ImputationError("no donors", details={"column": "gender"}).to_dict()
        assert payload["error"]["code"] == "imputation_error"
        assert payload["error"]["details"]["column"] == "gender"

    def test_from_exc_passthrough(self):
        err = ModelFitError("x")
        assert HRRetentionException.from_exc(err) is err

    def test_exception_context_wraps(self):
        with pytest.raises(ModelFitError) as exc_info:
            with exception_context(to=ModelFitError, message="fit failed",
                                   details={"column": "f1"}, catch=(np.linalg.LinAlgError,), log=False):
                raise np.linalg.LinAlgError("singular")
        assert isinstance(exc_info.value.cause, np.linalg.LinAlgError)
        assert exc_info.value.column == "f1"

    def test_exception_context_keeps_own_errors(self):
        with pytest.raises(ImputationError):
            with exception_context(to=ModelFitError, log=False):
                raise ImputationError("inner")

    def test_exception_context_ignores_uncaught(self):
        with pytest.raises(KeyError):
            with exception_context(to=ModelFitError, catch=(ValueError,), log=False):
                raise KeyError("k")

    def test_handle_exception(self):
        msg = handle_exception(ParseError("bad", details={"row_index": 2}), "Loading")
        assert "parse_error" in msg and "Loading" in msg
        assert "Unexpected" in handle_exception(RuntimeError("boom"))


class _EchoAgent(BaseAgent):
    def __init__(self, fail: bool = False, bad_result: bool = False):
        super().__init__(name="Echo")
        self.fail = fail
        self.bad_result = bad_result

    def execute(self, **kwargs):
        if self.fail:
            raise ImputationError("boom", details={"column": "gender"})
        if self.bad_result:
            return {"not": "a result"}
        result = AgentResult(agent_name=self.name)
        result.add_data(**kwargs)
        return result


class TestBaseAgent:
    """Tests for the agent lifecycle"""

    def test_run_sets_timing(self):
        result = _EchoAgent().run(x=1)
        assert result.is_success()
        assert result.data["x"] == 1
        assert result.execution_time >= 0
        assert result.finished_at >= result.started_at

    def test_failure_is_reraised(self):
        with pytest.raises(ImputationError):
            _EchoAgent(fail=True).run()

    def test_wrong_result_type(self):
        with pytest.raises(TypeError):
            _EchoAgent(bad_result=True).run()

    def test_warning_marks_partial(self):
        result = AgentResult(agent_name="x")
        result.add_warning("careful")
        assert result.is_partial()
        result.add_error("broken")
        assert result.is_failed()


class TestPackageExports:
    """Lazy package-level exports resolve to the defining modules"""

    def test_agents_exports(self):
        import agents
        from agents.preprocessing.mice_imputer import MiceImputer

        assert agents.MiceImputer is MiceImputer
        assert "Normalizer" in agents.list_agents("preprocessing")
        assert agents.list_agents("ml") == ["ModelEvaluator", "ModelTrainer", "TrainerConfig"]

    def test_subpackage_exports(self):
        from agents import eda, ml, preprocessing
        from agents.eda.missing_data_analyzer import pairwise_missingness
        from agents.ml.model_trainer import fit_knn

        assert eda.pairwise_missingness is pairwise_missingness
        assert ml.fit_knn is fit_knn
        assert preprocessing.validate_method_map.__name__ == "validate_method_map"

    def test_core_and_config_exports(self):
        import config
        import core

        assert core.BaseAgent is BaseAgent
        assert config.get_settings is get_settings

    def test_unknown_name(self):
        import agents

        with pytest.raises(AttributeError):
            agents.DataProfiler
