"""Roles and users.

``Role`` holds grants directly. ``User`` holds its own grants plus role
assignments; a role assigned to a model instance has every unscoped grant
narrowed to that instance. Mutations made through these methods invalidate
the memoized effective sets they affect, in the bound resolver and in any
other resolver that cached them; edits made any other way become
visible once the cache entry expires.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterable
from typing import Any, Optional, Union

from .expression import Expression, Operator
from .inheritance import aggregate_records, merge_values
from .records import Grant, PermissionRecord, RecordValue, Target
from .resolver import PermissionResolver

GrantLike = Union[Grant, PermissionRecord]


def _target(model: str | None, reference_id: int | str | None) -> Target | None:
    if model is None and reference_id is None:
        return None
    if not model or reference_id is None:
        raise ValueError("model and reference_id must be given together")
    return Target(model, reference_id)


class _Principal:
    kind = "principal"

    def __init__(
        self,
        id: Any,
        *,
        grants: Iterable[GrantLike] = (),
        resolver: PermissionResolver | None = None,
    ) -> None:
        self.id = id
        self.resolver = resolver
        self._grants: list[Grant] = [g if isinstance(g, Grant) else Grant(g) for g in grants]
        self._watchers: weakref.WeakSet[PermissionResolver] = weakref.WeakSet()

    @property
    def cache_key(self) -> str:
        return f"{self.kind}:{self.id}"

    @property
    def grants(self) -> tuple[Grant, ...]:
        return tuple(self._grants)

    def grant_sources(self) -> list[list[Grant]]:
        return [self._grants]

    def _resolver(self) -> PermissionResolver:
        return self.resolver if self.resolver is not None else PermissionResolver()

    def _affected(self) -> list[_Principal]:
        return [self]

    def watch(self, resolver: PermissionResolver) -> None:
        """Record that ``resolver`` memoizes this principal's effective set."""
        self._watchers.add(resolver)

    def invalidate(self) -> None:
        """Drop the memoized effective set of this principal and its dependents.

        Reaches the bound resolver and every resolver that cached a set for
        them, bound or not.
        """
        for principal in self._affected():
            resolvers = set(principal._watchers)
            if principal.resolver is not None:
                resolvers.add(principal.resolver)
            for resolver in resolvers:
                resolver.invalidate(principal)

    def grant(
        self,
        permission: GrantLike,
        model: str | None = None,
        reference_id: int | str | None = None,
    ) -> Grant:
        """Add a grant, optionally scoped to one model instance."""
        grant = permission if isinstance(permission, Grant) else Grant(permission, _target(model, reference_id))
        self._grants.append(grant)
        self.invalidate()
        return grant

    def revoke(self, name: str, model: str | None = None, reference_id: int | str | None = None) -> int:
        """Remove every grant of ``name`` with the given scope. Returns the number removed."""
        target = _target(model, reference_id)
        kept = [g for g in self._grants if not (g.name == name and g.target == target)]
        removed = len(self._grants) - len(kept)
        if removed:
            self._grants = kept
            self.invalidate()
        return removed

    def get_permissions(self) -> dict[str, RecordValue]:
        """Aggregated ``name -> bool | {action: bool}`` view, ignoring scope."""
        merged: dict[str, RecordValue] = {}
        for grant in aggregate_records(self.grant_sources()):
            merged[grant.name] = merge_values(merged[grant.name], grant.value) if grant.name in merged else grant.value
        return merged

    def can(
        self,
        permission: Expression,
        operator: str | Operator | None = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> bool:
        return self._resolver().can(self, permission, operator, extra)

    def able(
        self,
        permission: Expression,
        model: str | None = None,
        reference_id: int | str | None = None,
        operator: str | Operator | None = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> bool:
        return self._resolver().able(self, permission, model, reference_id, operator, extra)


class Role(_Principal):
    """A named set of grants.

    Args:
        id: Stable identity; part of the cache key.
        name: Display name.
        slug: Identifier returned by ``User.get_roles()``. Defaults to ``name``.
        grants: Initial grants.
        resolver: Resolver used by ``can`` / ``able``.
    """

    kind = "role"

    def __init__(
        self,
        id: Any,
        name: str,
        *,
        slug: str | None = None,
        description: str = "",
        grants: Iterable[GrantLike] = (),
        resolver: PermissionResolver | None = None,
    ) -> None:
        super().__init__(id, grants=grants, resolver=resolver)
        self.name = name
        self.slug = slug or name
        self.description = description
        self._users: list[User] = []

    @property
    def users(self) -> tuple[User, ...]:
        return tuple(self._users)

    def _affected(self) -> list[_Principal]:
        return [self, *self._users]

    def __repr__(self) -> str:
        return f"Role(id={self.id!r}, slug={self.slug!r})"


class User(_Principal):
    """A principal aggregating its own grants and its roles' grants."""

    kind = "user"

    def __init__(
        self,
        id: Any,
        name: str = "",
        *,
        grants: Iterable[GrantLike] = (),
        roles: Iterable[Role] = (),
        resolver: PermissionResolver | None = None,
    ) -> None:
        super().__init__(id, grants=grants, resolver=resolver)
        self.name = name
        self._assignments: list[tuple[Role, Target | None]] = []
        for role in roles:
            self.assign_role(role)

    @property
    def roles(self) -> tuple[Role, ...]:
        seen: dict[int, Role] = {}
        for role, _ in self._assignments:
            seen.setdefault(id(role), role)
        return tuple(seen.values())

    def grant_sources(self) -> list[list[Grant]]:
        sources = [self._grants]
        for role, target in self._assignments:
            sources.append([g.scoped_to(target) for g in role.grants])
        return sources

    def get_roles(self) -> dict[Any, str]:
        return {role.id: role.slug for role in self.roles}

    def has_role(self, slug: str) -> bool:
        return any(role.slug == slug for role in self.roles)

    def assign_role(
        self,
        role: Role,
        model: str | None = None,
        reference_id: int | str | None = None,
    ) -> None:
        """Assign ``role`` globally or to one model instance."""
        assignment = (role, _target(model, reference_id))
        if assignment in self._assignments:
            return
        self._assignments.append(assignment)
        if self not in role._users:
            role._users.append(self)
        self.invalidate()

    def remove_role(
        self,
        role: Role,
        model: str | None = None,
        reference_id: int | str | None = None,
    ) -> bool:
        assignment = (role, _target(model, reference_id))
        if assignment not in self._assignments:
            return False
        self._assignments.remove(assignment)
        if all(r is not role for r, _ in self._assignments) and self in role._users:
            role._users.remove(self)
        self.invalidate()
        return True

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, roles={[r.slug for r in self.roles]!r})"


__all__ = ["GrantLike", "Role", "User"]
