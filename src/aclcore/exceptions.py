"""Exception hierarchy for aclcore.

Every error raised by the resolver inherits from AclError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry mapping stable codes back to exception classes

Usage:
    from aclcore.exceptions import AclError, InvalidOperator

    try:
        role.can(["edit", "publish"], "xor")
    except InvalidOperator as e:
        print(e.code)  # "INVALID_OPERATOR"
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "AclError",
    "ConfigurationError",
    "InvalidOperator",
    "MalformedRecord",
    "CacheError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class AclError(Exception):
    """Base exception for aclcore.

    Attributes:
        code: Stable error code string for protocol mapping (e.g. "INVALID_OPERATOR").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(AclError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class InvalidOperator(AclError, ValueError):
    """Compound permission expression with an operator other than "and"/"or"."""

    code: str = "INVALID_OPERATOR"
    message: str = 'Invalid operator, available operators are "and", "or".'


class MalformedRecord(AclError, ValueError):
    """Permission record whose value is neither a bool nor an action -> bool mapping."""

    code: str = "MALFORMED_RECORD"
    message: str = "Malformed permission record"


class CacheError(AclError):
    """Cache store failure."""

    code: str = "CACHE_ERROR"


# ---- Error Registry for Protocol Mapping ------------------------------------

_E = TypeVar("_E", bound=type[AclError])


class ErrorRegistry:
    """Registry for mapping internal errors to external protocol codes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[AclError]] = {}

    def register(self, code: str, error_cls: type[AclError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[AclError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[AclError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("ROLE_NOT_FOUND")
        class RoleNotFound(AclError):
            code = "ROLE_NOT_FOUND"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", AclError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("INVALID_OPERATOR", InvalidOperator)
error_registry.register("MALFORMED_RECORD", MalformedRecord)
error_registry.register("CACHE_ERROR", CacheError)
