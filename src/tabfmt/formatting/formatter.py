"""Value formatter.

Turns one value into display text according to a pattern such as
``"xx.x"``, ``"(xx.x%)"`` or ``"xx.xx\\n**"``:

- the first run of ``x`` characters, optionally followed by ``.`` and more
  ``x`` characters, is the numeric placeholder; an ``x`` touching a letter
  belongs to a word and is copied as text
- ``x`` characters after the dot give the number of decimals
- ``x`` characters before the dot give the minimum width of the integer part,
  which is left-padded with spaces; wider integers are never truncated
- everything around the placeholder is copied verbatim
- a pattern without a placeholder is a literal and is returned as-is

Rounding is half-up on the shortest decimal representation of the value, so
``0.005`` formatted with ``"x.xx"`` renders as ``"0.01"``.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, Overflow, localcontext
from functools import lru_cache
from typing import Any

from tabfmt.errors import FormatError, SpecificationError

logger = logging.getLogger(__name__)

__all__ = [
    "NumberPattern",
    "ScientificPattern",
    "format_value",
    "is_missing",
    "parse_pattern",
    "parse_scientific",
    "to_decimal",
]

# An x inside a word ("Excluded", "exact") is literal text, not a placeholder.
_PLACEHOLDER = re.compile(r"(?<![A-Za-z])x+(?:\.x+)?(?![A-Za-z])")
_EXPONENT = re.compile(r"x+")


@dataclass(frozen=True)
class NumberPattern:
    """Parsed numeric pattern.

    Attributes:
        prefix: Literal text before the placeholder.
        suffix: Literal text after the placeholder.
        width: Minimum width of the integer part (count of leading ``x``).
        decimals: Number of decimal places.
        literal: True when the pattern has no placeholder at all.

    """

    prefix: str
    suffix: str
    width: int = 0
    decimals: int = 0
    literal: bool = False


@dataclass(frozen=True)
class ScientificPattern:
    """Parsed exponent decoration (e.g. ``"x10^xx"``)."""

    prefix: str
    suffix: str
    width: int


@lru_cache(maxsize=512)
def parse_pattern(pattern: str) -> NumberPattern:
    """Parse a numeric pattern.

    Args:
        pattern: Pattern text

    Returns:
        Parsed pattern

    Raises:
        SpecificationError: If the pattern is empty

    """
    if not pattern:
        raise SpecificationError("format pattern must not be empty")

    match = _PLACEHOLDER.search(pattern)
    if match is None:
        return NumberPattern(prefix=pattern, suffix="", literal=True)

    placeholder = match.group(0)
    whole, _, fraction = placeholder.partition(".")
    return NumberPattern(
        prefix=pattern[: match.start()],
        suffix=pattern[match.end() :],
        width=len(whole),
        decimals=len(fraction),
    )


@lru_cache(maxsize=128)
def parse_scientific(pattern: str) -> ScientificPattern:
    """Parse an exponent decoration; the last run of ``x`` is the exponent.

    Raises:
        SpecificationError: If the pattern has no exponent placeholder

    """
    matches = list(_EXPONENT.finditer(pattern))
    if not matches:
        raise SpecificationError(
            "scientific pattern needs an exponent placeholder", pattern=pattern
        )
    last = matches[-1]
    return ScientificPattern(
        prefix=pattern[: last.start()],
        suffix=pattern[last.end() :],
        width=len(last.group(0)),
    )


def is_missing(value: Any) -> bool:
    """Return True for None and NaN."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def to_decimal(value: Any) -> Decimal | None:
    """Convert a value to Decimal, or None when it is not numeric.

    Floats go through ``repr`` so that the shortest round-tripping decimal
    text is used for rounding.

    Raises:
        FormatError: If the value is infinite

    """
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if math.isinf(value):
            raise FormatError("cannot format an infinite value", value=value)
        return Decimal(repr(value))
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        try:
            return to_decimal(float(value))
        except (TypeError, ValueError):
            return None
    if result.is_infinite():
        raise FormatError("cannot format an infinite value", value=value)
    if result.is_nan():
        return None
    return result


def _quantize(number: Decimal, decimals: int) -> Decimal:
    # Precision grows with the magnitude so large values keep every digit.
    with localcontext() as ctx:
        ctx.prec = max(28, number.adjusted() + decimals + 2)
        rounded = number.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return rounded


def _body(number: Decimal, pattern: NumberPattern) -> str:
    text = f"{_quantize(number, pattern.decimals):f}"
    whole, dot, fraction = text.partition(".")
    return whole.rjust(pattern.width) + dot + fraction


def _scientific_body(
    number: Decimal, pattern: NumberPattern, scientific: ScientificPattern
) -> str:
    exponent = 0 if number.is_zero() else number.adjusted()
    mantissa = _quantize(number.scaleb(-exponent), pattern.decimals)
    if abs(mantissa) >= 10:
        exponent += 1
        mantissa = _quantize(number.scaleb(-exponent), pattern.decimals)

    whole, dot, fraction = f"{mantissa:f}".partition(".")
    sign = "-" if exponent < 0 else ""
    exponent_text = sign + str(abs(exponent)).zfill(scientific.width)
    return (
        whole.rjust(pattern.width)
        + dot
        + fraction
        + scientific.prefix
        + exponent_text
        + scientific.suffix
    )


def format_value(
    value: Any,
    pattern: str,
    *,
    scientific: str | None = None,
    missing: str | None = None,
    missing_marker: str = "",
) -> str:
    """Format a single value.

    Args:
        value: Number, numeric text, free text, None or NaN
        pattern: Numeric pattern or literal
        scientific: Optional exponent decoration; switches to scientific notation
        missing: Text for missing values (overrides ``missing_marker``)
        missing_marker: Fallback text for missing values

    Returns:
        Display text

    Raises:
        FormatError: If the value is infinite or too large to format

    Examples:
        >>> format_value(3.14159, "xx.xx")
        ' 3.14'
        >>> format_value(12, "(xx.x%)")
        '(12.0%)'
        >>> format_value(None, "xx.x", missing="NE")
        'NE'

    """
    parsed = parse_pattern(pattern)
    if parsed.literal:
        return parsed.prefix

    if is_missing(value):
        return missing if missing is not None else missing_marker

    number = to_decimal(value)
    if number is None:
        if isinstance(value, str):
            logger.debug("Passing non-numeric text through unchanged: %r", value)
            return value
        return missing if missing is not None else missing_marker

    try:
        if scientific is not None:
            body = _scientific_body(number, parsed, parse_scientific(scientific))
        else:
            body = _body(number, parsed)
    except (InvalidOperation, Overflow) as e:
        raise FormatError("value out of formattable range", value=value) from e
    return parsed.prefix + body + parsed.suffix
