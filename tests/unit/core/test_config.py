"""
Unit tests for settings and logging configuration.
"""

import json
import logging

import pytest
import structlog
from pydantic import ValidationError

from perfcore.core.config import PerformanceSettings
from perfcore.core.logging import configure_logging
from perfcore.domain.cache.value_objects import CacheConfiguration, EvictionPolicy


class TestPerformanceSettings:
    """Test PerformanceSettings loading and validation."""

    def test_defaults(self, monkeypatch):
        """Test defaults without environment overrides."""
        monkeypatch.delenv("PERFCORE_CACHE_MAX_ENTRIES", raising=False)
        settings = PerformanceSettings(_env_file=None)

        assert settings.CACHE_MAX_ENTRIES == 10_000
        assert settings.CACHE_EVICTION_POLICY == "lru"
        assert settings.CACHE_PERSISTENCE_ENABLED is False
        assert settings.TASK_PERSISTENCE_ENABLED is False
        assert settings.cache_max_entries == settings.CACHE_MAX_ENTRIES

    def test_prefixed_environment_override(self, monkeypatch):
        """Test PERFCORE_-prefixed variables override defaults."""
        monkeypatch.setenv("PERFCORE_CACHE_MAX_ENTRIES", "25")
        monkeypatch.setenv("PERFCORE_CACHE_EVICTION_POLICY", "LFU")
        monkeypatch.setenv("PERFCORE_TASK_PERSISTENCE_ENABLED", "true")

        settings = PerformanceSettings(_env_file=None)

        assert settings.CACHE_MAX_ENTRIES == 25
        assert settings.cache_eviction_policy == "lfu"
        assert settings.task_persistence_enabled is True

    def test_invalid_policy_rejected(self):
        """Test unknown eviction policies are rejected."""
        with pytest.raises(ValidationError, match="CACHE_EVICTION_POLICY"):
            PerformanceSettings(_env_file=None, CACHE_EVICTION_POLICY="mru")

    def test_log_level_normalized(self):
        """Test log levels are upper-cased and validated."""
        assert PerformanceSettings(_env_file=None, LOG_LEVEL="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            PerformanceSettings(_env_file=None, LOG_LEVEL="chatty")

    def test_cache_configuration_from_settings(self):
        """Test the cache configuration mirrors the settings."""
        settings = PerformanceSettings(
            _env_file=None,
            CACHE_MAX_ENTRIES=7,
            CACHE_EVICTION_POLICY="fifo",
            CACHE_COMPRESSION_ENABLED=False,
        )

        config = CacheConfiguration.from_settings(settings)

        assert config.max_entries == 7
        assert config.eviction_policy == EvictionPolicy.FIFO
        assert config.compression_enabled is False


class TestConfigureLogging:
    """Test structlog configuration."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        """Restore structlog defaults after each test."""
        yield
        structlog.reset_defaults()

    def test_json_rendering(self, caplog):
        """Test JSON logs carry the event name and context."""
        configure_logging(level="INFO", json_logs=True)

        with caplog.at_level(logging.INFO):
            structlog.get_logger("perfcore.tests").info("cache_ready", entries=3)

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "cache_ready"
        assert payload["entries"] == 3
        assert payload["level"] == "info"
        assert payload["logger"] == "perfcore.tests"
