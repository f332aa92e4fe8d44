"""Row layout.

One data row is produced per (group, label) pair. Rows are ordered by their
sort keys, then by first observation, while every group (and every group
prefix of a nested group key) stays contiguous.

Two label placements are supported:

- ``indented``: a group header row is emitted whenever a group level
  changes, and labels are indented one step per group level
- ``separate-column``: group text goes into its own label column, shown on
  the first row of each block

A row-group rule matching a block marks the block's last data row as a
boundary and may add a blank or separator spacer row after it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from tabfmt.config.settings import LabelPlacement
from tabfmt.core.data import DataPoint
from tabfmt.core.grid import RowDescriptor
from tabfmt.spec.models import RowGroupPlan, RowGroupRule
from tabfmt.spec.selectors import DEFAULT, GroupKey, match_group

logger = logging.getLogger(__name__)

__all__ = ["RowLayout", "group_text", "layout_rows", "order_rows"]

RowKey = tuple[GroupKey, str]


@dataclass(frozen=True)
class RowLayout:
    """Resolved rows and the index of each data row."""

    rows: tuple[RowDescriptor, ...]
    label_headers: tuple[str, ...] = ("",)
    index: dict[RowKey, int] = field(default_factory=dict)


def _sortable(value: Any) -> tuple[int, Any]:
    # None sorts last; numbers before text so mixed columns still compare.
    if value is None:
        return (2, "")
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, str(value))


def group_text(group_key: GroupKey) -> str:
    """Display text of a full group key."""
    return " / ".join("" if v is None else str(v) for _, v in group_key)


def order_rows(points: Sequence[DataPoint]) -> list[RowKey]:
    """Distinct (group, label) pairs in display order.

    Args:
        points: Body data points

    Returns:
        Row keys sorted by sort keys and first observation, groups contiguous

    """
    first_seen: dict[RowKey, tuple[int, tuple[Any, ...]]] = {}
    for position, point in enumerate(points):
        key = (point.group_key, point.label)
        if key not in first_seen:
            first_seen[key] = (position, point.sort_keys)

    flat = sorted(
        first_seen,
        key=lambda k: (tuple(_sortable(v) for v in first_seen[k][1]), first_seen[k][0]),
    )

    # Rank every group prefix by its first appearance in the flat order.
    prefix_rank: dict[GroupKey, int] = {}
    for group_key, _ in flat:
        for depth in range(1, len(group_key) + 1):
            prefix_rank.setdefault(group_key[:depth], len(prefix_rank))

    position_of = {key: i for i, key in enumerate(flat)}
    return sorted(
        flat,
        key=lambda k: (
            tuple(prefix_rank[k[0][:depth]] for depth in range(1, len(k[0]) + 1)),
            position_of[k],
        ),
    )


def _rule_for(rules: Sequence[RowGroupRule], group_key: GroupKey) -> RowGroupRule | None:
    matched = None
    for rule in rules:
        if match_group(rule.group, group_key):
            matched = rule
    return matched


def _decorated_depth(rule: RowGroupRule, group_key: GroupKey) -> int:
    """Length of the group prefix whose end the rule decorates."""
    selector = rule.group
    if selector is DEFAULT:
        return len(group_key)
    if isinstance(selector, tuple):
        pinned = {d for d, v in selector if v is not DEFAULT}
        depths = [i + 1 for i, (d, _) in enumerate(group_key) if d in pinned]
        return max(depths, default=len(group_key))
    return 1


def layout_rows(
    points: Sequence[DataPoint],
    plan: RowGroupPlan | None,
    *,
    indent: str = "  ",
    default_placement: LabelPlacement = "indented",
) -> RowLayout:
    """Build row descriptors.

    Args:
        points: Body data points
        plan: Row-group plan, or None for ungrouped decoration
        indent: Prefix applied once per group level in indented placement
        default_placement: Placement used when neither the plan nor a rule sets one

    Returns:
        Row layout with descriptors and a (group, label) -> row index map

    """
    rules: Sequence[RowGroupRule] = plan.rules if plan is not None else ()
    placement: LabelPlacement = (
        plan.label_placement if plan is not None and plan.label_placement else default_placement
    )
    ordered = order_rows(points)

    blocks: list[tuple[GroupKey, list[str]]] = []
    for group_key, label in ordered:
        if blocks and blocks[-1][0] == group_key:
            blocks[-1][1].append(label)
        else:
            blocks.append((group_key, [label]))

    rows: list[RowDescriptor] = []
    index: dict[RowKey, int] = {}
    two_columns = False
    previous: GroupKey = ()

    for block_number, (group_key, labels) in enumerate(blocks):
        rule = _rule_for(rules, group_key)
        block_placement = rule.label_placement if rule and rule.label_placement else placement
        start = len(rows)

        if block_placement == "separate-column" and group_key:
            two_columns = True
            for position, label in enumerate(labels):
                index[(group_key, label)] = len(rows)
                rows.append(
                    RowDescriptor(
                        kind="data",
                        group_key=group_key,
                        label=label,
                        label_cells=(group_text(group_key) if position == 0 else "", label),
                        depth=0,
                    )
                )
            previous = group_key
        else:
            shared = 0
            while (
                shared < min(len(previous), len(group_key))
                and previous[shared] == group_key[shared]
            ):
                shared += 1
            for depth in range(shared, len(group_key)):
                value = group_key[depth][1]
                rows.append(
                    RowDescriptor(
                        kind="group",
                        group_key=group_key[: depth + 1],
                        label_cells=(indent * depth + ("" if value is None else str(value)),),
                        depth=depth,
                    )
                )
            depth = len(group_key)
            for label in labels:
                index[(group_key, label)] = len(rows)
                rows.append(
                    RowDescriptor(
                        kind="data",
                        group_key=group_key,
                        label=label,
                        label_cells=(indent * depth + label,),
                        depth=depth,
                    )
                )
            previous = group_key

        if rule is None:
            continue
        # A rule pinning an outer level decorates once, after that level's last block.
        depth = _decorated_depth(rule, group_key)
        is_last = block_number == len(blocks) - 1
        if not is_last and blocks[block_number + 1][0][:depth] == group_key[:depth]:
            continue
        last = len(rows) - 1
        if last >= start:
            rows[last] = replace(rows[last], block_boundary=True)
        if rule.spacing != "none" and not is_last:
            rows.append(
                RowDescriptor(
                    kind="spacer",
                    group_key=group_key,
                    fill=rule.glyph if rule.spacing == "separator" else "",
                )
            )

    logger.debug(
        "Row layout: %d rows, %d blocks, %s placement",
        len(rows),
        len(blocks),
        "separate-column" if two_columns else placement,
    )
    return RowLayout(
        rows=tuple(rows),
        label_headers=("", "") if two_columns else ("",),
        index=index,
    )
