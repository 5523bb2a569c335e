"""Permission resolution for roles and users.

``PermissionResolver`` answers ``can`` (global grants only) and ``able``
(global or instance-scoped grants) for any principal exposing a cache key
and its grant sources. The effective permission set is aggregated,
normalized and memoized once per principal, then reused for every
expression checked within the cache lifetime.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Protocol, Union

from ..config import AclConfig
from ..logging import get_acl_logger, safe_preview
from .cache import CacheStore, EffectivePermissionCache, EffectiveSet
from .expression import Expression, Operator, evaluate, parse_expression
from .inheritance import aggregate_records
from .normalize import normalize
from .records import Grant, PermissionRecord
from .scope import match_key

logger = get_acl_logger(__name__)


class Principal(Protocol):
    """Anything whose access can be resolved."""

    @property
    def cache_key(self) -> str: ...

    def grant_sources(self) -> Iterable[Iterable[Union[Grant, PermissionRecord]]]: ...


class PermissionResolver:
    """Resolve permission expressions against a principal's grants.

    Args:
        cache: Memoization layer. None recomputes the effective set on
            every call.

    Extra permissions passed to ``can`` / ``able`` are normalized and merged
    under the persisted grants: on a key conflict the persisted value wins.

    Example::

        resolver = PermissionResolver.from_config(load_config_from_env())
        resolver.can(role, "post.create&post.view")
        resolver.able(user, "post.edit", "article", 42)
    """

    __slots__ = ("cache", "__weakref__")

    def __init__(self, cache: EffectivePermissionCache | None = None) -> None:
        self.cache = cache

    @classmethod
    def from_config(cls, config: AclConfig, store: CacheStore | None = None) -> PermissionResolver:
        return cls(EffectivePermissionCache.from_config(config, store=store))

    def compute(self, principal: Principal) -> dict[str, bool]:
        """Aggregate and normalize a principal's grants, bypassing the cache."""
        return normalize(aggregate_records(principal.grant_sources()))

    def effective_permissions(self, principal: Principal) -> EffectiveSet:
        """Read-only effective permission set, memoized when a cache is set.

        Principals exposing ``watch(resolver)`` are told which resolvers hold
        their set, so their mutations can invalidate it.
        """
        if self.cache is None:
            return MappingProxyType(self.compute(principal))
        watch = getattr(principal, "watch", None)
        if watch is not None:
            watch(self)
        return self.cache.get_or_compute(principal.cache_key, lambda: self.compute(principal))

    def invalidate(self, principal: Principal) -> None:
        if self.cache is not None:
            self.cache.invalidate(principal.cache_key)

    def _with_extra(self, principal: Principal, extra: Optional[Mapping[str, Any]]) -> Mapping[str, bool]:
        effective = self.effective_permissions(principal)
        if not extra:
            return effective
        return {**normalize(extra), **effective}

    def can(
        self,
        principal: Principal,
        expression: Expression,
        operator: str | Operator | None = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Check global grants only.

        Raises:
            InvalidOperator: Compound expression with an operator outside {and, or}.
        """
        parsed = parse_expression(expression, operator)
        permissions = self._with_extra(principal, extra)
        granted = evaluate(parsed.atoms, parsed.operator, lambda atom: match_key(atom, permissions))
        logger.debug(
            "can(%s, %s) -> %s",
            safe_preview(expression),
            parsed.operator.value,
            granted,
            principal=principal.cache_key,
        )
        return granted

    def able(
        self,
        principal: Principal,
        expression: Expression,
        model: str | None = None,
        reference_id: int | str | None = None,
        operator: str | Operator | None = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Check global grants, then grants scoped to ``(model, reference_id)``.

        Raises:
            InvalidOperator: Compound expression with an operator outside {and, or}.
        """
        parsed = parse_expression(expression, operator)
        permissions = self._with_extra(principal, extra)
        granted = evaluate(
            parsed.atoms,
            parsed.operator,
            lambda atom: match_key(atom, permissions, model, reference_id),
        )
        logger.debug(
            "able(%s, %s, %s:%s) -> %s",
            safe_preview(expression),
            parsed.operator.value,
            model,
            reference_id,
            granted,
            principal=principal.cache_key,
        )
        return granted

    def __repr__(self) -> str:
        return f"PermissionResolver(cache={self.cache!r})"


__all__ = ["PermissionResolver", "Principal"]
