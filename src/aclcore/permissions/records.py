"""Permission records, targets and grants.

Provides:
- ``Target`` — a ``(model, reference_id)`` pair narrowing a grant to one instance.
- ``PermissionRecord`` — a name plus either a bool ("all actions") or an
  ``action -> bool`` mapping, optionally inheriting a parent record.
- ``Grant`` — a record held by a principal, optionally scoped to a target.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ..exceptions import MalformedRecord

RecordValue = Union[bool, Mapping[str, bool]]


def validate_value(name: str, value: Any) -> RecordValue:
    """Check that ``value`` is a strict bool or a mapping of action -> strict bool.

    Returns the value with action mappings copied into a plain dict.

    Raises:
        MalformedRecord: Any other shape, including truthy strings and ints.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, Mapping):
        actions: dict[str, bool] = {}
        for action, enabled in value.items():
            if not isinstance(action, str) or not action:
                raise MalformedRecord(
                    f"Permission {name!r} has an invalid action name: {action!r}",
                    record=name,
                )
            if not isinstance(enabled, bool):
                raise MalformedRecord(
                    f"Permission {name!r} action {action!r} must be a bool, got {type(enabled).__name__}",
                    record=name,
                    action=action,
                )
            actions[action] = enabled
        return actions
    raise MalformedRecord(
        f"Permission {name!r} must be a bool or an action mapping, got {type(value).__name__}",
        record=name,
    )


@dataclass(frozen=True)
class Target:
    """Model instance a grant is scoped to."""

    model: str
    reference_id: int | str

    @property
    def suffix(self) -> str:
        return f":{self.model}:{self.reference_id}"


@dataclass(frozen=True)
class PermissionRecord:
    """Named permission with per-action flags or a single flag.

    ``inherits`` names a parent record: the resolved record carries the
    parent's name and the parent's actions overlaid by this record's actions
    (see :func:`~aclcore.permissions.inheritance.resolve_record`).

    Example::

        post = PermissionRecord("post", {"create": True, "view": True})
        post_editor = PermissionRecord("post.editor", {"update": True}, inherits=post)
    """

    name: str
    value: RecordValue = True
    description: str = ""
    inherits: PermissionRecord | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise MalformedRecord(f"Permission name must be a non-empty string, got {self.name!r}")
        object.__setattr__(self, "value", validate_value(self.name, self.value))

    @property
    def is_flag(self) -> bool:
        return isinstance(self.value, bool)

    def __hash__(self) -> int:
        return hash((self.name, self.description, self.inherits))


@dataclass(frozen=True)
class Grant:
    """A permission record held by a principal.

    Unscoped grants apply globally; scoped grants apply only to ``target``.
    """

    record: PermissionRecord
    target: Target | None = field(default=None)

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def value(self) -> RecordValue:
        return self.record.value

    def scoped_to(self, target: Target | None) -> Grant:
        """Return this grant scoped to ``target`` unless it already has a scope."""
        if target is None or self.target is not None:
            return self
        return Grant(self.record, target)


__all__ = [
    "Grant",
    "PermissionRecord",
    "RecordValue",
    "Target",
    "validate_value",
]
