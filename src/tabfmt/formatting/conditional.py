"""Conditional evaluator.

A conditional format is an ordered list of ``(predicate, action)`` cases.
Cases are tried top to bottom and the first satisfied predicate wins; the
remaining predicates are never evaluated. The last case must be the
always-matching ``TRUE`` predicate so every value has an outcome.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from tabfmt.errors import SpecificationError
from tabfmt.formatting.formatter import is_missing, to_decimal

__all__ = ["ALWAYS", "Action", "Predicate", "evaluate", "select_case", "validate_cases"]

_COMPARISON = re.compile(r"^\s*(<=|>=|==|!=|<|>)\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*$")

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}


class Action(Protocol):
    """Anything that renders a value to text (e.g. ``SimpleFormat``)."""

    def render(self, value: Any, *, missing_marker: str = "") -> str: ...


@dataclass(frozen=True)
class Predicate:
    """Parsed predicate: a comparison against a number, or always-true."""

    source: str
    op: str | None = None
    operand: Decimal | None = None

    @property
    def always(self) -> bool:
        """True for the unconditional ``TRUE`` predicate."""
        return self.op is None

    @classmethod
    def parse(cls, text: str) -> Predicate:
        """Parse predicate text such as ``">=10"`` or ``"TRUE"``.

        Raises:
            SpecificationError: If the text is not a supported predicate

        """
        if not isinstance(text, str):
            raise SpecificationError("predicate must be a string", predicate=text)
        stripped = text.strip()
        if stripped.upper() == "TRUE":
            return cls(source="TRUE")
        match = _COMPARISON.match(stripped)
        if match is None:
            raise SpecificationError("unsupported predicate", predicate=text)
        return cls(source=stripped, op=match.group(1), operand=Decimal(match.group(2)))

    def matches(self, value: Any) -> bool:
        """Test the predicate; missing and non-numeric values fail comparisons."""
        if self.op is None:
            return True
        if is_missing(value):
            return False
        number = to_decimal(value)
        if number is None:
            return False
        return _OPERATORS[self.op](number, self.operand)

    def __str__(self) -> str:
        return self.source


ALWAYS = Predicate(source="TRUE")


def validate_cases(cases: Sequence[tuple[Predicate, Any]]) -> None:
    """Check that a case list is usable.

    Raises:
        SpecificationError: If the list is empty or does not end in ``TRUE``

    """
    if not cases:
        raise SpecificationError("conditional format needs at least one case")
    if not cases[-1][0].always:
        raise SpecificationError(
            "conditional format must end with a TRUE fallback",
            predicates=[str(p) for p, _ in cases],
        )


def select_case(value: Any, cases: Sequence[tuple[Predicate, Any]]) -> Any:
    """Return the action of the first case whose predicate matches."""
    for predicate, action in cases:
        if predicate.matches(value):
            return action
    # validate_cases guarantees a TRUE fallback, so this is unreachable for
    # cases built through ConditionalFormat.
    raise SpecificationError("no conditional case matched", value=value)


def evaluate(
    value: Any,
    cases: Sequence[tuple[Predicate, str | Action]],
    *,
    missing_marker: str = "",
) -> str:
    """Evaluate a conditional format against one value.

    Args:
        value: Value to test and render
        cases: Ordered ``(predicate, action)`` pairs; actions are literal strings
            or objects with a ``render`` method
        missing_marker: Fallback text for missing values

    Returns:
        Display text produced by the first matching action

    """
    action = select_case(value, cases)
    if isinstance(action, str):
        return action
    return action.render(value, missing_marker=missing_marker)
