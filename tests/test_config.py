"""Tests for AclConfig."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from aclcore import AclConfig, ConfigurationError, LogLevel, load_config_from_env


class TestAclConfig:
    """Tests for AclConfig model."""

    def test_create_default_config(self) -> None:
        """Test creating an AclConfig with defaults."""
        config = AclConfig()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.redis_url is None
        assert config.cache_minutes == 1
        assert config.cache_prefix == "acl"
        assert config.cache_ttl_seconds == 60

    def test_create_custom_config(self) -> None:
        config = AclConfig(
            log_level=LogLevel.DEBUG,
            redis_url="redis://localhost:6379/0",
            cache_minutes=15,
            cache_prefix="tenant-a",
        )
        assert config.log_level == LogLevel.DEBUG
        assert config.redis_url == "redis://localhost:6379/0"
        assert config.cache_ttl_seconds == 900
        assert config.cache_prefix == "tenant-a"

    def test_log_level_from_string(self) -> None:
        config = AclConfig(log_level="debug")
        assert config.log_level == LogLevel.DEBUG

    def test_log_level_invalid(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            AclConfig(log_level="INVALID")

    def test_redis_url_validation_valid(self) -> None:
        for url in ("redis://localhost:6379/0", "rediss://localhost:6379/0", "unix:///tmp/redis.sock"):
            assert AclConfig(redis_url=url).redis_url == url

    def test_redis_url_validation_invalid(self) -> None:
        for url in ("http://localhost:6379", "localhost:6379"):
            with pytest.raises(ValueError, match="Redis URL must start with"):
                AclConfig(redis_url=url)

    def test_negative_cache_minutes_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AclConfig(cache_minutes=-1)

    def test_zero_cache_minutes_allowed(self) -> None:
        assert AclConfig(cache_minutes=0).cache_ttl_seconds == 0

    def test_empty_prefix_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AclConfig(cache_prefix="")

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            AclConfig(unknown_field="value")  # type: ignore[call-arg]


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_load_from_env_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.INFO
        assert config.redis_url is None
        assert config.cache_minutes == 1

    def test_load_from_env_custom(self) -> None:
        env = {
            "LOG_LEVEL": "WARNING",
            "LOG_JSON": "true",
            "REDIS_URL": "redis://cache:6379/2",
            "ACL_CACHE_MINUTES": "10",
            "ACL_CACHE_PREFIX": "myapp",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.WARNING
        assert config.log_json is True
        assert config.redis_url == "redis://cache:6379/2"
        assert config.cache_minutes == 10
        assert config.cache_prefix == "myapp"

    def test_non_integer_minutes(self) -> None:
        with patch.dict(os.environ, {"ACL_CACHE_MINUTES": "ten"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_config_from_env()
        assert exc_info.value.code == "CONFIGURATION_ERROR"
        assert exc_info.value.details["variable"] == "ACL_CACHE_MINUTES"
