"""Permission expression parsing and boolean evaluation.

Provides:
- ``Operator`` — how atoms of an expression combine (and / or / single).
- ``parse_expression()`` — split ``"a|b"`` / ``"a&b"`` into atoms.
- ``evaluate()`` — reduce atom matches with the parsed operator.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import NamedTuple, Union

from ..exceptions import InvalidOperator

Expression = Union[str, Sequence[str]]

OR_DELIMITER = "|"
AND_DELIMITER = "&"

_SPLIT_RE = re.compile(r"[|&]")


class Operator(str, Enum):
    """Boolean combinator for a permission expression."""

    AND = "and"
    OR = "or"
    SINGLE = "single"

    @classmethod
    def from_value(cls, value: str | Operator) -> Operator:
        """Coerce a caller-supplied operator to AND or OR.

        Raises:
            InvalidOperator: Anything other than "and" / "or" (case-insensitive).
        """
        if isinstance(value, Operator):
            if value is Operator.SINGLE:
                raise InvalidOperator(
                    f'Invalid operator {value.value!r}, available operators are "and", "or".',
                    operator=value.value,
                )
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == cls.AND.value:
                return cls.AND
            if lowered == cls.OR.value:
                return cls.OR
        raise InvalidOperator(
            f'Invalid operator {value!r}, available operators are "and", "or".',
            operator=value,
        )


class ParsedExpression(NamedTuple):
    atoms: tuple[str, ...]
    operator: Operator


def infer_operator(expression: str) -> Operator:
    """Infer the operator from delimiters; ``|`` takes precedence over ``&``."""
    if OR_DELIMITER in expression:
        return Operator.OR
    if AND_DELIMITER in expression:
        return Operator.AND
    return Operator.SINGLE


def parse_expression(expression: Expression, operator: str | Operator | None = None) -> ParsedExpression:
    """Split a permission expression into atoms and an operator.

    A sequence is taken verbatim. A string is split on ``|`` (or) and ``&``
    (and); without a delimiter it is a single atom. An explicit ``operator``
    overrides the inferred one; it is validated only when the expression
    has more than one atom, or is a sequence. A sequence without an
    explicit operator is combined with AND.

    Example::

        >>> parse_expression("post.view|post.delete")
        ParsedExpression(atoms=('post.view', 'post.delete'), operator=<Operator.OR: 'or'>)

    Raises:
        InvalidOperator: Compound expression with an operator outside {and, or}.
    """
    if isinstance(expression, str):
        inferred = infer_operator(expression)
        if inferred is Operator.SINGLE:
            return ParsedExpression((expression.strip(),), Operator.SINGLE)
        atoms = tuple(atom.strip() for atom in _SPLIT_RE.split(expression) if atom.strip())
        resolved = inferred if operator is None else Operator.from_value(operator)
        return ParsedExpression(atoms, resolved)

    atoms = tuple(expression)
    resolved = Operator.AND if operator is None else Operator.from_value(operator)
    return ParsedExpression(atoms, resolved)


def _all(atoms: Iterable[str], match: Callable[[str], bool]) -> bool:
    for atom in atoms:
        if not match(atom):
            return False
    return True


def _any(atoms: Iterable[str], match: Callable[[str], bool]) -> bool:
    for atom in atoms:
        if match(atom):
            return True
    return False


def _single(atoms: Iterable[str], match: Callable[[str], bool]) -> bool:
    for atom in atoms:
        return match(atom)
    return False


_STRATEGIES: dict[Operator, Callable[[Iterable[str], Callable[[str], bool]], bool]] = {
    Operator.AND: _all,
    Operator.OR: _any,
    Operator.SINGLE: _single,
}


def evaluate(atoms: Sequence[str], operator: Operator, match: Callable[[str], bool]) -> bool:
    """Reduce per-atom matches left to right, short-circuiting.

    An expression without atoms never grants, whatever the operator.
    """
    if not atoms:
        return False
    return _STRATEGIES[operator](atoms, match)


__all__ = [
    "AND_DELIMITER",
    "Expression",
    "OR_DELIMITER",
    "Operator",
    "ParsedExpression",
    "evaluate",
    "infer_operator",
    "parse_expression",
]
