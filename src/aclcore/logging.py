"""Logging utilities for aclcore.

This module provides:
- Logging configuration from AclConfig
- Safe preview utility for permission expressions and grant payloads
- Structured logging with principal context
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import AclConfig, LogLevel

_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "principal",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a length-bounded, single-line preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    # Normalize whitespace
    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


class AclFormatter(logging.Formatter):
    """Formatter that includes the principal being resolved.

    Outputs JSON lines by default; plain text when ``json_format`` is False.
    """

    def __init__(
        self,
        include_principal: bool = True,
        json_format: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.include_principal = include_principal
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        principal = getattr(record, "principal", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_principal and principal:
            log_data["principal"] = str(principal)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if "principal" in log_data:
            parts.append(f"principal={log_data['principal']}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class PrincipalLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds the principal key to every record.

    Usage:
        logger = get_acl_logger(__name__, principal="role:1")
        logger.debug("Resolved %s", expression)
        logger.debug("Resolved %s", expression, principal="user:7")
    """

    def __init__(self, logger: logging.Logger, principal: Optional[str] = None):
        super().__init__(logger, {})
        self.principal = principal

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        principal = kwargs.pop("principal", self.principal)
        extra = kwargs.get("extra", {})
        if principal:
            extra["principal"] = principal
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    config: Optional[AclConfig] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the root logger from AclConfig.

    Args:
        config: AclConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        AclFormatter(json_format=config.log_json if json_format is None else json_format)
    )
    root_logger.addHandler(console_handler)


def get_acl_logger(name: str, principal: Optional[str] = None) -> PrincipalLoggerAdapter:
    """Get a logger adapter carrying principal context.

    Args:
        name: Logger name (typically __name__)
        principal: Optional principal key to include in all logs

    Returns:
        PrincipalLoggerAdapter instance
    """
    return PrincipalLoggerAdapter(logging.getLogger(name), principal=principal)


__all__ = [
    "safe_preview",
    "AclFormatter",
    "PrincipalLoggerAdapter",
    "setup_logging",
    "get_acl_logger",
]
