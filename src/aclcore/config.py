"""Configuration contract for aclcore.

Pydantic-validated settings shared by the resolver, its cache layer and
logging. Direct os.environ/os.getenv usage is limited to
``load_config_from_env()``; everything else receives an ``AclConfig``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AclConfig(BaseModel):
    """Settings for permission resolution.

    ``cache_minutes`` is the lifetime of a memoized effective permission
    set. Zero disables memoization: every check recomputes from grants.
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Cache
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the shared permission cache. None = in-process cache.",
    )
    cache_minutes: int = Field(
        default=1,
        ge=0,
        description="Effective permission set cache duration in minutes",
    )
    cache_prefix: str = Field(
        default="acl",
        min_length=1,
        description="Key prefix for cached effective permission sets",
    )

    @property
    def cache_ttl_seconds(self) -> int:
        return self.cache_minutes * 60

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Redis URL format."""
        if v is None:
            return v
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss://, or unix://")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    model_config = {
        "extra": "forbid",
    }


def load_config_from_env() -> AclConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - REDIS_URL: Redis connection URL
    - ACL_CACHE_MINUTES: Effective permission cache duration (default: 1)
    - ACL_CACHE_PREFIX: Cache key prefix (default: acl)

    Returns:
        AclConfig instance with values from environment or defaults.

    Raises:
        ConfigurationError: ``ACL_CACHE_MINUTES`` is not an integer.
    """
    import os

    raw_minutes = os.getenv("ACL_CACHE_MINUTES", "1")
    try:
        cache_minutes = int(raw_minutes)
    except ValueError:
        raise ConfigurationError(
            f"ACL_CACHE_MINUTES must be an integer, got {raw_minutes!r}",
            variable="ACL_CACHE_MINUTES",
        )

    return AclConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes"),
        redis_url=os.getenv("REDIS_URL"),
        cache_minutes=cache_minutes,
        cache_prefix=os.getenv("ACL_CACHE_PREFIX", "acl"),
    )


__all__ = [
    "AclConfig",
    "LogLevel",
    "load_config_from_env",
]
