"""Global and instance-scoped key matching.

A global grant dominates: ``post.edit`` granted outright satisfies
``post.edit`` for every ``(model, reference_id)``. Otherwise only the exact
scoped key ``post.edit:article:42`` matches. Absent keys deny.
"""

from __future__ import annotations

from collections.abc import Mapping


def scoped_key(atom: str, model: str, reference_id: int | str) -> str:
    """Build the lookup key for ``atom`` narrowed to one model instance."""
    return f"{atom}:{model}:{reference_id}"


def has_scope(model: str | None, reference_id: int | str | None) -> bool:
    return bool(model) and reference_id is not None


def match_key(
    atom: str,
    permissions: Mapping[str, bool],
    model: str | None = None,
    reference_id: int | str | None = None,
) -> bool:
    """Check one atom against a normalized permission set.

    Only the value ``True`` grants; any other value (or no entry) denies.
    """
    if permissions.get(atom) is True:
        return True
    if not has_scope(model, reference_id):
        return False
    return permissions.get(scoped_key(atom, model, reference_id)) is True  # type: ignore[arg-type]


__all__ = ["has_scope", "match_key", "scoped_key"]
