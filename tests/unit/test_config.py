"""Tests for settings and logging setup."""

import logging

import pytest
from pydantic import ValidationError
from pythonjsonlogger import jsonlogger

from portfolio_analytics.core.config import Settings
from portfolio_analytics.core.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSettings:
    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.SNAPSHOT_HISTORY_LIMIT == 1000
        assert config.RISK_FREE_RATE == 0.05
        assert config.STABLE_REFERENCE_ASSET == "USDC"
        assert config.MAX_RECOMMENDATIONS == 10
        assert config.MIN_RECOMMENDATION_CONFIDENCE == 0.3

    def test_cors_origins_from_string(self):
        config = Settings(_env_file=None, CORS_ORIGINS="https://a.test, https://b.test")
        assert config.CORS_ORIGINS == ["https://a.test", "https://b.test"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"SNAPSHOT_HISTORY_LIMIT": 0},
            {"HOLDINGS_TIMEOUT_SECONDS": 0},
            {"DEFAULT_CORRELATION": 1.5},
            {"MIN_RECOMMENDATION_CONFIDENCE": -0.1},
            {"LOG_FORMAT": "xml"},
        ],
    )
    def test_rejects_out_of_range(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)

    def test_is_production(self):
        assert Settings(_env_file=None, APP_ENV="production").is_production
        assert not Settings(_env_file=None, APP_ENV="production", DEBUG=True).is_production


class TestLogging:
    def test_json_format(self, restore_root_logger):
        setup_logging(Settings(_env_file=None, LOG_FORMAT="JSON", LOG_LEVEL="debug"))
        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)
        assert root.level == logging.DEBUG

    def test_text_format(self, restore_root_logger):
        setup_logging(Settings(_env_file=None))
        formatter = logging.getLogger().handlers[0].formatter
        assert not isinstance(formatter, jsonlogger.JsonFormatter)
