"""Permission inheritance and multi-role aggregation.

Provides:
- ``resolve_record()`` — apply a record's ``inherits`` chain.
- ``merge_values()`` — OR-merge two record values.
- ``aggregate_records()`` — union the grants of several roles into one list.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Union

from .records import Grant, PermissionRecord, RecordValue, Target


def resolve_record(record: PermissionRecord) -> PermissionRecord:
    """Resolve the ``inherits`` chain of a record.

    The result carries the root parent's name. Action mappings are overlaid
    child over parent; a bool on the child replaces the parent value; a
    parent granted outright (``True``) stays granted.

    Example::

        >>> post = PermissionRecord("post", {"view": True, "delete": False})
        >>> resolve_record(PermissionRecord("post.editor", {"delete": True}, inherits=post)).value
        {'view': True, 'delete': True}
    """
    if record.inherits is None:
        return record

    parent = resolve_record(record.inherits)
    child_value = record.value
    parent_value = parent.value

    if isinstance(child_value, bool):
        value: RecordValue = child_value
    elif isinstance(parent_value, bool):
        value = True if parent_value else dict(child_value)
    else:
        value = {**parent_value, **child_value}

    return PermissionRecord(parent.name, value, description=record.description)


def merge_values(left: RecordValue, right: RecordValue) -> RecordValue:
    """OR-merge two record values.

    ``True`` dominates, ``False`` contributes nothing, and action mappings
    merge per action. Commutative and associative.
    """
    if left is True or right is True:
        return True
    if left is False:
        return right if isinstance(right, bool) else dict(right)
    if right is False:
        return dict(left)  # type: ignore[arg-type]

    merged = dict(left)  # type: ignore[arg-type]
    for action, enabled in right.items():  # type: ignore[union-attr]
        merged[action] = merged.get(action, False) or enabled
    return merged


def _sort_key(key: tuple[str, Target | None]) -> tuple[str, int, str, str]:
    name, target = key
    if target is None:
        return (name, 0, "", "")
    return (name, 1, target.model, str(target.reference_id))


def aggregate_records(
    sources: Iterable[Iterable[Union[Grant, PermissionRecord]]],
) -> list[Grant]:
    """Union grants from several sources (typically one per role).

    Grants are resolved through :func:`resolve_record` and merged by
    ``(name, target)``, so duplicate names inside one source OR-merge the
    same way as across sources. The outright flag and the action mapping of
    a name are tracked apart: when ``True`` meets an action mapping both
    survive, with every mapped action enabled, so adding a source never
    removes a key. A ``False`` flag is kept only when no source maps
    actions for that name. The output is sorted, making the result
    independent of source order.
    """
    flags: dict[tuple[str, Target | None], bool] = {}
    actions: dict[tuple[str, Target | None], dict[str, bool]] = {}

    for source in sources:
        for item in source:
            grant = item if isinstance(item, Grant) else Grant(item)
            record = resolve_record(grant.record)
            key = (record.name, grant.target)
            if isinstance(record.value, bool):
                flags[key] = flags.get(key, False) or record.value
            else:
                actions[key] = merge_values(actions.get(key, False), record.value)  # type: ignore[assignment]

    result: list[Grant] = []
    for key in sorted(flags.keys() | actions.keys(), key=_sort_key):
        name, target = key
        flag = flags.get(key)
        mapped = actions.get(key)
        if flag is True or (flag is False and mapped is None):
            result.append(Grant(PermissionRecord(name, flag), target))
        if mapped is not None:
            if flag is True:
                mapped = {action: True for action in mapped}
            result.append(Grant(PermissionRecord(name, mapped), target))
    return result


__all__ = [
    "aggregate_records",
    "merge_values",
    "resolve_record",
]
