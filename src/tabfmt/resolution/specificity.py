"""Rule index and specificity resolution.

Each format rule falls into one of eight specificity tiers depending on
which of (group, label, parameter) it pins to exact values. The applicable
rule for a data point is the matching rule in the highest tier; among rules
of equal tier the one declared last wins, so later layers override earlier
ones.

Tier order, most specific first::

    GROUP_LABEL_PARAMETER   exact group, exact label, exact parameter
    GROUP_LABEL             exact group, exact label, any parameter
    GROUP_PARAMETER         exact group, any label,   exact parameter
    GROUP                   exact group, any label,   any parameter
    LABEL_PARAMETER         any group,   exact label, exact parameter
    LABEL                   any group,   exact label, any parameter
    PARAMETER               any group,   any label,   exact parameter
    CATCH_ALL               any group,   any label,   any parameter
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import IntEnum
from typing import Any

from tabfmt.errors import ResolutionError
from tabfmt.spec.models import FormatRule
from tabfmt.spec.selectors import DEFAULT, GroupKey, group_is_exact, match_group, match_value

logger = logging.getLogger(__name__)

__all__ = ["RuleIndex", "RuleKey", "SpecificityTier", "tier_of"]

# (group_key, label, parameter)
RuleKey = tuple[GroupKey, str, str]


class SpecificityTier(IntEnum):
    """Match-specificity tiers; a higher value is more specific."""

    CATCH_ALL = 0
    PARAMETER = 1
    LABEL = 2
    LABEL_PARAMETER = 3
    GROUP = 4
    GROUP_PARAMETER = 5
    GROUP_LABEL = 6
    GROUP_LABEL_PARAMETER = 7

    @classmethod
    def from_flags(cls, group: bool, label: bool, parameter: bool) -> SpecificityTier:
        """Tier for the given exactness flags."""
        return cls(4 * int(group) + 2 * int(label) + int(parameter))


def tier_of(rule: FormatRule) -> SpecificityTier:
    """Specificity tier of a rule."""
    return SpecificityTier.from_flags(
        group_is_exact(rule.group),
        rule.label is not DEFAULT,
        bool(rule.parameters),
    )


def _matches(rule: FormatRule, group_key: GroupKey, label: str, parameter: str) -> bool:
    if not match_group(rule.group, group_key):
        return False
    if not match_value(rule.label, label):
        return False
    params = rule.parameters
    if params:
        return parameter in params
    return True


class RuleIndex:
    """Resolve data points to their applicable format rule.

    Rules are ranked once by (tier, declaration position); a lookup scans the
    ranking and returns the first match. Results are memoized per distinct
    (group, label, parameter) key.

    Example:
        index = RuleIndex(spec.body_plan)
        rule = index.resolve_key(group_key, "Mean", "mean")

    """

    def __init__(self, rules: Sequence[FormatRule]) -> None:
        """Build the ranking.

        Args:
            rules: Body-plan rules in declaration order

        """
        self._rules = tuple(rules)
        ranked = sorted(
            enumerate(self._rules),
            key=lambda item: (tier_of(item[1]), item[0]),
            reverse=True,
        )
        self._ranked: tuple[FormatRule, ...] = tuple(rule for _, rule in ranked)
        self._position = {id(rule): i for i, rule in enumerate(self._rules)}
        self._cache: dict[RuleKey, FormatRule | None] = {}

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> tuple[FormatRule, ...]:
        """Rules in declaration order."""
        return self._rules

    def precedence(self, rule: FormatRule) -> tuple[SpecificityTier, int]:
        """Ranking key of a rule: (tier, declaration position); higher wins."""
        return (tier_of(rule), self._position[id(rule)])

    def _lookup(self, key: RuleKey) -> FormatRule | None:
        group_key, label, parameter = key
        for rule in self._ranked:
            if _matches(rule, group_key, label, parameter):
                return rule
        return None

    def find(self, group_key: GroupKey, label: str, parameter: str) -> FormatRule | None:
        """Return the applicable rule, or None when nothing matches."""
        key: RuleKey = (group_key, label, parameter)
        if key not in self._cache:
            rule = self._lookup(key)
            self._cache[key] = rule
            if rule is not None:
                logger.debug(
                    "Resolved label=%r parameter=%r to %s [%s]",
                    label,
                    parameter,
                    rule.describe(),
                    tier_of(rule).name,
                )
        return self._cache[key]

    def resolve_key(self, group_key: GroupKey, label: str, parameter: str) -> FormatRule:
        """Return the applicable rule.

        Raises:
            ResolutionError: If no rule matches

        """
        rule = self.find(group_key, label, parameter)
        if rule is None:
            raise ResolutionError(
                "no format rule applies", group=group_key, label=label, parameter=parameter
            )
        return rule

    def resolve(self, point: Any) -> FormatRule:
        """Return the applicable rule for a data point."""
        return self.resolve_key(point.group_key, point.label, point.parameter)

    def prime(self, keys: Iterable[RuleKey]) -> None:
        """Resolve a batch of keys up front so later lookups only read the cache."""
        for group_key, label, parameter in keys:
            self.find(group_key, label, parameter)
