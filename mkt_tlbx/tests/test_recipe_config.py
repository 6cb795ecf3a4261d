"""Tests for RecipeConfig."""

import logging

import pytest

from mkt_tlbx.utils import RecipeConfig


class TestRecipeConfig:
    """Test configuration defaults, validation and environment loading."""

    def test_defaults(self) -> None:
        """Defaults match the step defaults."""
        config = RecipeConfig()
        assert config.step_defaults("log_transform") == {"offset": 0.0}
        assert config.step_defaults("dummy_encode") == {"separator": "_", "unseen": "ignore"}
        assert config.step_defaults("normalize") == {}

    def test_invalid_values(self) -> None:
        """Invalid policies and separators are rejected."""
        with pytest.raises(ValueError, match="unseen_levels"):
            RecipeConfig(unseen_levels="drop")  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="dummy_separator"):
            RecipeConfig(dummy_separator="")

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables are read and converted; overrides win."""
        monkeypatch.setenv("MKT_TLBX_LOG_OFFSET", "1")
        monkeypatch.setenv("MKT_TLBX_UNSEEN_LEVELS", "error")
        monkeypatch.setenv("MKT_TLBX_DUMMY_SEPARATOR", ".")
        config = RecipeConfig.from_env(dummy_separator="__")
        assert config.log_offset == 1.0
        assert config.unseen_levels == "error"
        assert config.dummy_separator == "__"

    def test_from_env_without_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without variables the defaults apply."""
        for name in ("LOG_OFFSET", "UNSEEN_LEVELS", "DUMMY_SEPARATOR", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(f"MKT_TLBX_{name}", raising=False)
        assert RecipeConfig.from_env() == RecipeConfig()

    def test_apply_global_configures_logger_once(self) -> None:
        """apply_global sets the level and installs a single handler."""
        logger = logging.getLogger("mkt_tlbx")
        handlers_before = list(logger.handlers)
        level_before = logger.level
        try:
            RecipeConfig(log_level="debug").apply_global()
            configured = RecipeConfig(log_level="info").apply_global()
            assert configured is logger
            assert logger.level == logging.INFO
            assert len(logger.handlers) == len(handlers_before) + 1
        finally:
            logger.handlers = handlers_before
            logger.setLevel(level_before)
