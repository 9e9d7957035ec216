"""Tests for environment-driven settings and the shared logger."""
import logging

import pytest

from src.config import snapshot_settings
from src.config.snapshot_settings import DEFAULT_API_SERVERS, LOG_LEVEL, get_api_servers
from src.utils.logger import logger

from ..node_pool import NodePool


class TestApiServers:

    def test_defaults_when_unset(self, monkeypatch):
        monkeypatch.delenv("FIO_API_SERVERS", raising=False)
        assert get_api_servers() == DEFAULT_API_SERVERS

    def test_comma_separated_override(self, monkeypatch):
        monkeypatch.setenv("FIO_API_SERVERS", " https://a/ ,https://b,, ")
        assert get_api_servers() == ["https://a/", "https://b"]
        assert NodePool.from_settings().servers == ("https://a", "https://b")

    def test_empty_override_rejected(self, monkeypatch):
        monkeypatch.setenv("FIO_API_SERVERS", " , ")
        with pytest.raises(ValueError):
            get_api_servers()


class TestNumericSettings:

    def test_invalid_integer_names_the_variable(self, monkeypatch):
        monkeypatch.setenv("SNAPSHOT_MAX_RETRIES", "five")
        with pytest.raises(ValueError, match="SNAPSHOT_MAX_RETRIES"):
            snapshot_settings._env_int("SNAPSHOT_MAX_RETRIES", 5)

    def test_blank_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("SNAPSHOT_MAX_BACKOFF", "  ")
        assert snapshot_settings._env_float("SNAPSHOT_MAX_BACKOFF", 5.0) == 5.0


def test_logger_level_follows_settings():
    assert logger.name == "vote-snapshot-logger"
    assert logger.level == logging.getLevelName(LOG_LEVEL)
    assert logger.propagate is False
