"""Value formatting: numeric patterns and conditional formats."""

from tabfmt.formatting.conditional import ALWAYS, Predicate, evaluate, select_case, validate_cases
from tabfmt.formatting.formatter import (
    NumberPattern,
    ScientificPattern,
    format_value,
    is_missing,
    parse_pattern,
    parse_scientific,
)

__all__ = [
    "ALWAYS",
    "NumberPattern",
    "Predicate",
    "ScientificPattern",
    "evaluate",
    "format_value",
    "is_missing",
    "parse_pattern",
    "parse_scientific",
    "select_case",
    "validate_cases",
]
