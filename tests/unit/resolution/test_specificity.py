"""Tests for specificity tiers and the rule index."""

import itertools

import pytest

from tabfmt.errors import ResolutionError
from tabfmt.resolution.specificity import RuleIndex, SpecificityTier, tier_of
from tabfmt.spec.layering import merge
from tabfmt.spec.models import CombineFormat, FormatRule, SimpleFormat, Specification
from tabfmt.spec.selectors import DEFAULT


def _rule(pattern: str, **selector: object) -> FormatRule:
    return FormatRule(format=SimpleFormat(pattern=pattern), **selector)


GROUP = (("soc", "Cardiac"),)


class TestSpecificityTier:
    """Tests for tier computation."""

    @pytest.mark.parametrize(
        "selector,tier",
        [
            ({}, SpecificityTier.CATCH_ALL),
            ({"parameter": "n"}, SpecificityTier.PARAMETER),
            ({"label": "F"}, SpecificityTier.LABEL),
            ({"label": "F", "parameter": "n"}, SpecificityTier.LABEL_PARAMETER),
            ({"group": "Cardiac"}, SpecificityTier.GROUP),
            ({"group": "Cardiac", "parameter": "n"}, SpecificityTier.GROUP_PARAMETER),
            ({"group": "Cardiac", "label": "F"}, SpecificityTier.GROUP_LABEL),
            (
                {"group": "Cardiac", "label": "F", "parameter": "n"},
                SpecificityTier.GROUP_LABEL_PARAMETER,
            ),
        ],
    )
    def test_tier_of(self, selector: dict, tier: SpecificityTier) -> None:
        assert tier_of(_rule("x", **selector)) is tier

    def test_group_pairs_with_only_wildcards_are_not_exact(self) -> None:
        assert tier_of(_rule("x", group={"soc": DEFAULT})) is SpecificityTier.CATCH_ALL

    def test_combine_counts_as_exact_parameter(self) -> None:
        rule = FormatRule(
            label="F",
            format=CombineFormat(template="{n} ({pct}%)", formats={"n": "xx", "pct": "xx.x"}),
        )
        assert tier_of(rule) is SpecificityTier.LABEL_PARAMETER


class TestRuleIndex:
    """Tests for RuleIndex resolution."""

    def test_totality_falls_back_to_default(self) -> None:
        """A point matching no explicit rule gets the catch-all rule."""
        catch_all = _rule("xx.x")
        index = RuleIndex([catch_all, _rule("xx", parameter="n")])
        assert index.resolve_key(GROUP, "Median", "median") is catch_all

    def test_most_specific_wins_regardless_of_order(self) -> None:
        """An exact (group, label, parameter) rule beats every wildcard rule."""
        exact = _rule("x.xxx", group="Cardiac", label="F", parameter="pct")
        others = [
            _rule("xx"),
            _rule("xx.x", parameter="pct"),
            _rule("xx.xx", label="F"),
            _rule("x", group="Cardiac"),
        ]
        for position in range(len(others) + 1):
            rules = others[:position] + [exact] + others[position:]
            assert RuleIndex(rules).resolve_key(GROUP, "F", "pct") is exact

    def test_tie_goes_to_later_declaration(self) -> None:
        first = _rule("xx", parameter="n", layer=0)
        second = _rule("xxx", parameter="n", layer=1)
        index = RuleIndex([first, second])
        assert index.resolve_key((), "F", "n") is second

    def test_overlay_rule_beats_base_rule(self) -> None:
        base = Specification(body_plan=(_rule("xx"), _rule("xx.x", parameter="pct")))
        overlay = Specification(body_plan=(_rule("xx.xx", parameter="pct"),))
        index = RuleIndex(merge(base, overlay).body_plan)
        assert index.resolve_key((), "F", "pct").format.pattern == "xx.xx"

    def test_group_beats_label(self) -> None:
        """Group exactness ranks above label exactness."""
        by_group = _rule("x", group="Cardiac")
        by_label = _rule("xx", label="F", parameter="n")
        index = RuleIndex([by_group, by_label])
        assert index.resolve_key(GROUP, "F", "n") is by_group
        assert index.resolve_key((("soc", "Renal"),), "F", "n") is by_label

    def test_no_match_raises(self) -> None:
        index = RuleIndex([_rule("xx", parameter="n")])
        with pytest.raises(ResolutionError, match="no format rule applies"):
            index.resolve_key((), "F", "pct")
        assert index.find((), "F", "pct") is None

    def test_lookup_is_cached(self) -> None:
        index = RuleIndex([_rule("xx")])
        index.prime([((), "F", "n")])
        assert ((), "F", "n") in index._cache

    def test_resolution_independent_of_rule_permutation(self) -> None:
        """Distinct tiers give the same answer for every declaration order."""
        rules = [
            _rule("a"),
            _rule("b", parameter="n"),
            _rule("c", label="F"),
            _rule("d", group="Cardiac", parameter="n"),
        ]
        answers = {
            RuleIndex(list(order)).resolve_key(GROUP, "F", "n").format.pattern
            for order in itertools.permutations(rules)
        }
        assert answers == {"d"}
