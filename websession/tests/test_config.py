"""
Unit tests for configuration loading and logging setup.
"""

import logging
import logging.config
import os
from unittest.mock import patch

import pytest

from websession.config.provider import DEFAULT_SAVE_PATH, EnvConfigProvider
from websession.logging_config import HealthCheckFilter, SessionIdFilter, get_logging_config
from websession.modules.config import ConfigModule


class TestEnvConfigProvider:
    """Test session and store settings from the environment."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            provider = EnvConfigProvider()
            store = provider.get_store_config()
            session = provider.get_session_config()

        assert store.backend == "file"
        assert store.uses_redis is False
        assert store.save_path == DEFAULT_SAVE_PATH
        assert DEFAULT_SAVE_PATH.endswith("temp")
        assert session.ttl_minutes == 720
        assert session.ttl_seconds == 43200
        assert session.name_prefix == "L0j45"
        assert session.name_salt == "TMWxD"
        assert session.gc_probability == 0.01
        assert session.id_header == "X-Session-Id"

    def test_redis_backend(self):
        env = {
            "SESSION_BACKEND": "Redis",
            "REDIS_URL": "redis://cache:6379/2",
            "SESSION_REDIS_PREFIX": "shop:",
        }
        with patch.dict(os.environ, env, clear=True):
            store = EnvConfigProvider().get_store_config()

        assert store.uses_redis is True
        assert store.redis_url == "redis://cache:6379/2"
        assert store.redis_prefix == "shop:"

    def test_unknown_backend(self):
        with patch.dict(os.environ, {"SESSION_BACKEND": "memcached"}, clear=True):
            with pytest.raises(ValueError):
                EnvConfigProvider().get_store_config()

    @pytest.mark.parametrize(
        "env",
        [
            {"SESSION_TTL_MINUTES": "0"},
            {"SESSION_TTL_MINUTES": "soon"},
            {"SESSION_GC_PROBABILITY": "1.5"},
        ],
    )
    def test_invalid_session_settings(self, env):
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValueError):
                EnvConfigProvider().get_session_config()

    def test_id_header_can_be_disabled(self):
        with patch.dict(os.environ, {"SESSION_ID_HEADER": ""}, clear=True):
            assert EnvConfigProvider().get_session_config().id_header is None


class TestConfigModule:
    """Test server settings."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = ConfigModule()

        assert config.get("host") == "0.0.0.0"
        assert config.get("port") == 8080
        assert config.get("log_level") == "INFO"
        assert config.get("debug") is False
        assert config.get("api_keys") == []

    def test_api_keys_with_service_prefix(self):
        env = {"API_KEYS": "plain-key, admin:secret-key ,,ops:"}
        with patch.dict(os.environ, env, clear=True):
            config = ConfigModule()

        assert config.get("api_keys") == ["plain-key", "secret-key"]

    def test_schema_lists_required_keys(self):
        schema = ConfigModule.get_config_schema()

        assert set(schema["required"]) == {"host", "port", "log_level"}
        assert "api_keys" in schema["optional"]


class TestLogging:
    """Test logging configuration."""

    def _record(self, name, msg, args=None):
        return logging.LogRecord(name, logging.INFO, __file__, 1, msg, args, None)

    def _access(self, method, path):
        return self._record(
            "uvicorn.access",
            '%s - "%s %s HTTP/%s" %d',
            ("203.0.113.7:5050", method, path, "1.1", 200),
        )

    def test_health_checks_filtered_from_access_log(self):
        health_filter = HealthCheckFilter()

        assert health_filter.filter(self._access("GET", "/healthz")) is False
        assert health_filter.filter(self._access("GET", "/health?verbose=1")) is False
        assert health_filter.filter(self._access("GET", "/session")) is True
        assert health_filter.filter(self._access("POST", "/health")) is True
        assert health_filter.filter(self._record("websession.main", "GET /health")) is True

    def test_health_filter_matches_whole_path(self):
        health_filter = HealthCheckFilter()

        assert health_filter.filter(self._access("GET", "/session/healthz")) is True
        assert health_filter.filter(self._access("GET", "/healthcheck")) is True

    def test_health_filter_custom_paths(self):
        health_filter = HealthCheckFilter(paths=["/ready"])

        assert health_filter.filter(self._access("GET", "/ready")) is False
        assert health_filter.filter(self._access("GET", "/healthz")) is True

    def test_health_filter_preformatted_message(self):
        health_filter = HealthCheckFilter()

        assert health_filter.filter(self._record("uvicorn.access", '1.2.3.4 - "GET /healthz HTTP/1.1" 200')) is False
        assert health_filter.filter(self._record("uvicorn.access", "startup")) is True

    def test_session_ids_shortened(self):
        id_filter = SessionIdFilter()
        record = self._record("websession.modules.session.session", "Session %s destroyed", ("0123456789abcdef0123456789abcdef",))

        assert id_filter.filter(record) is True
        assert record.getMessage() == "Session 01234567... destroyed"

    def test_other_messages_untouched(self):
        id_filter = SessionIdFilter()
        record = self._record("websession.main", "Removed %d records", (3,))

        assert id_filter.filter(record) is True
        assert record.args == (3,)
        assert record.getMessage() == "Removed 3 records"

    def test_package_logger_level(self):
        config = get_logging_config("debug")

        assert config["loggers"]["websession"]["level"] == "DEBUG"
        assert config["handlers"]["access"]["filters"] == ["health_check_filter"]
        assert config["handlers"]["default"]["filters"] == ["session_id_filter"]

    def test_config_applies_health_paths(self):
        config = get_logging_config(health_paths=["/ready"])
        logging.config.dictConfig(config)

        access_handler = logging.getLogger("uvicorn.access").handlers[0]
        health_filter = access_handler.filters[0]

        assert isinstance(health_filter, HealthCheckFilter)
        assert health_filter.paths == frozenset({"/ready"})
