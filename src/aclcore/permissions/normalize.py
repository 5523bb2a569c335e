"""Flatten permission records into canonical dotted keys.

``{"post": {"create": True, "view": False}, "admin": True}`` becomes
``{"post.create": True, "post.view": False, "admin": True}``. Scoped grants
get the ``:model:reference_id`` suffix appended to every key they produce.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Union

from .records import Grant, PermissionRecord, validate_value

PermissionSource = Union[Mapping[str, Any], Iterable[Union[Grant, PermissionRecord]]]


def _flatten(name: str, value: Any, suffix: str, out: dict[str, bool]) -> None:
    value = validate_value(name, value)
    if isinstance(value, bool):
        out[name + suffix] = value
        return
    for action, enabled in value.items():
        out[f"{name}.{action}{suffix}"] = enabled


def normalize(records: PermissionSource) -> dict[str, bool]:
    """Convert records into a flat ``canonical key -> bool`` mapping.

    Accepts grants, bare records, or a raw mapping of
    ``name -> bool | {action: bool}``. An already-normalized mapping comes
    back unchanged, so caller-supplied extras may be passed in either form.

    Later entries overwrite earlier ones on key conflict. Use
    :func:`~aclcore.permissions.inheritance.aggregate_records` first when
    duplicates should be OR-merged instead.

    Raises:
        MalformedRecord: A value is neither a bool nor an action mapping.
    """
    out: dict[str, bool] = {}
    if isinstance(records, Mapping):
        for name, value in records.items():
            _flatten(name, value, "", out)
        return out

    for item in records:
        if isinstance(item, Grant):
            suffix = item.target.suffix if item.target is not None else ""
            _flatten(item.name, item.value, suffix, out)
        else:
            _flatten(item.name, item.value, "", out)
    return out


__all__ = ["PermissionSource", "normalize"]
