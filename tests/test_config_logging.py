"""
Tests for settings loading and the value-safe logger.
"""
import logging

import pytest
from pydantic import ValidationError

from input_filter.core.config import Settings, get_settings
from input_filter.core.logging import get_safe_logger
from input_filter.services.cleaners import HtmlCleaner


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self):
        settings = Settings()
        assert settings.default_filter_type == "STRING"
        assert settings.html_max_iterations == 25
        assert settings.html_max_decode_iterations == 10
        assert settings.max_batch_items == 100

    def test_filter_type_normalized(self):
        assert Settings(default_filter_type=" int ").default_filter_type == "INT"

    @pytest.mark.parametrize("field,value", [
        ("html_max_iterations", 0),
        ("html_max_decode_iterations", 101),
        ("max_batch_items", 0),
        ("service_env", "qa"),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_env_caps_reach_cleaner(self, monkeypatch, fresh_settings):
        monkeypatch.setenv("HTML_MAX_ITERATIONS", "3")
        monkeypatch.setenv("HTML_MAX_DECODE_ITERATIONS", "2")
        get_settings.cache_clear()

        cleaner = HtmlCleaner()

        assert cleaner.max_iterations == 3
        assert cleaner.max_decode_iterations == 2

    def test_explicit_config_overrides_env(self, monkeypatch, fresh_settings):
        monkeypatch.setenv("HTML_MAX_ITERATIONS", "3")
        get_settings.cache_clear()

        assert HtmlCleaner({"max_iterations": 7}).max_iterations == 7


class TestSafeLogger:
    """Only whitelisted context fields are emitted."""

    def test_unsafe_fields_dropped(self, caplog):
        logger = get_safe_logger("input_filter.tests.safe")
        with caplog.at_level(logging.INFO, logger="input_filter.tests.safe"):
            logger.info("Filtered", filter_type="INT", value="TOP-SECRET")

        assert "Filtered | filter_type=INT" in caplog.text
        assert "TOP-SECRET" not in caplog.text

    def test_error_code_included(self, caplog):
        logger = get_safe_logger("input_filter.tests.safe")
        with caplog.at_level(logging.ERROR, logger="input_filter.tests.safe"):
            logger.error("Failed", error_code="INTERNAL_ERROR", payload="TOP-SECRET")

        assert "error_code=INTERNAL_ERROR" in caplog.text
        assert "TOP-SECRET" not in caplog.text

    def test_disabled_level_skipped(self, caplog):
        logger = get_safe_logger("input_filter.tests.safe")
        with caplog.at_level(logging.WARNING, logger="input_filter.tests.safe"):
            logger.debug("Hidden", filter_type="INT")

        assert "Hidden" not in caplog.text
