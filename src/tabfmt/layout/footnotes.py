"""Footnote placement.

The number of dimension categories a footnote names decides where it goes:

- none: a table-level note without a mark
- one: the matching label, meaning a group label, a row label, or a column
  or spanning header (a value of a span dimension marks the span)
- two or more: every body cell at the intersection

Marks are handed out during one sequential scan of the finished grid:
spanning headers top-down, column headers left to right, then rows top-down
with the label before the cells. Identical footnote text reuses its mark.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import replace
from typing import Any

from tabfmt.core.grid import Cell, RenderedGrid
from tabfmt.errors import LayoutWarning
from tabfmt.spec.models import FootnoteRule, group_selector_text
from tabfmt.spec.selectors import DEFAULT, GroupSelector, match_group

logger = logging.getLogger(__name__)

__all__ = ["mark_for", "place_footnotes"]

Target = tuple[Any, ...]


def mark_for(position: int, style: str = "numeric", symbols: Sequence[str] = ("*",)) -> str:
    """Mark text for the ``position``-th (0-based) distinct footnote.

    >>> mark_for(0)
    '1'
    >>> mark_for(5, "symbols", ("*", "+"))
    '+++'
    """
    if style == "symbols" and symbols:
        return symbols[position % len(symbols)] * (position // len(symbols) + 1)
    return str(position + 1)


def _pinned_dimensions(selector: GroupSelector, group_key: tuple) -> set[str]:
    if isinstance(selector, tuple):
        return {d for d, v in selector if v is not DEFAULT}
    return {group_key[0][0]} if group_key else set()


def _column_matches(key: tuple, columns: tuple[tuple[str, tuple[str, ...]], ...]) -> bool:
    values = dict(key)
    for dimension, wanted in columns:
        if dimension not in values:
            return False
        raw = "" if values[dimension] is None else str(values[dimension])
        if raw not in wanted:
            return False
    return True


def _column_alias(grid: RenderedGrid, rule_columns: tuple) -> tuple:
    # Footnotes may name renamed headers; map display text back to raw values.
    displayed: dict[tuple[str, str], set[str]] = {}
    for column in grid.columns:
        if column.column_key:
            dimension, value = column.column_key[-1]
            displayed.setdefault((dimension, column.header), set()).add(str(value))
    for span in grid.spans:
        displayed.setdefault((span.dimension, span.text), set()).add(str(span.value))
    aliased = []
    for dimension, wanted in rule_columns:
        raw = set(wanted)
        for text in wanted:
            raw |= displayed.get((dimension, text), set())
        aliased.append((dimension, tuple(sorted(raw))))
    return tuple(aliased)


def _label_targets(rule: FootnoteRule, grid: RenderedGrid) -> Iterator[Target]:
    category = rule.categories[0]
    if category == "label":
        for r, row in grid.data_rows():
            if row.label == rule.label:
                yield ("label", r)
    elif category == "group":
        for r, row in enumerate(grid.rows):
            if not row.group_key or not match_group(rule.group, row.group_key):
                continue
            if row.kind == "group":
                pinned = _pinned_dimensions(rule.group, row.group_key)
                present = {d for d, _ in row.group_key}
                if row.group_key[-1][0] in pinned and pinned <= present:
                    yield ("label", r)
            elif row.kind == "data" and len(row.label_cells) == 2 and row.label_cells[0]:
                yield ("group", r)
    else:
        columns = _column_alias(grid, rule.columns or ())
        named = {d for d, _ in columns}
        for i, span in enumerate(grid.spans):
            prefix = grid.columns[span.start].column_key[: span.level + 1]
            if span.dimension in named and _column_matches(prefix, columns):
                yield ("span", i)
        for c, column in enumerate(grid.columns):
            key = column.column_key
            if key and key[-1][0] in named and _column_matches(key, columns):
                yield ("column", c)


def _cell_targets(rule: FootnoteRule, grid: RenderedGrid) -> Iterator[Target]:
    columns = _column_alias(grid, rule.columns) if rule.columns else None
    for (r, c), _ in sorted(grid.cells.items()):
        row = grid.rows[r]
        if row.kind != "data":
            continue
        if "group" in rule.categories and not match_group(rule.group, row.group_key):
            continue
        if rule.label is not None and row.label != rule.label:
            continue
        if columns is not None and not _column_matches(grid.columns[c].column_key, columns):
            continue
        yield ("cell", r, c)


def _targets(rule: FootnoteRule, grid: RenderedGrid) -> list[Target]:
    if len(rule.categories) == 1:
        return list(_label_targets(rule, grid))
    return list(_cell_targets(rule, grid))


def _scan_order(grid: RenderedGrid) -> list[Target]:
    order: list[Target] = []
    for level in range(grid.span_levels):
        order.extend(("span", i) for i, s in enumerate(grid.spans) if s.level == level)
    order.extend(("column", c) for c in range(len(grid.columns)))
    for r in range(len(grid.rows)):
        order.append(("group", r))
        order.append(("label", r))
        order.extend(("cell", r, c) for c in range(len(grid.columns)))
    return order


def _describe(rule: FootnoteRule) -> dict[str, Any]:
    ctx: dict[str, Any] = {"text": rule.text}
    if rule.group is not None:
        ctx["group"] = group_selector_text(rule.group)
    if rule.label is not None:
        ctx["label"] = rule.label
    if rule.columns:
        ctx["columns"] = dict(rule.columns)
    return ctx


def place_footnotes(
    rules: Sequence[FootnoteRule],
    grid: RenderedGrid,
    *,
    mark_style: str = "numeric",
    symbols: Sequence[str] = ("*",),
) -> RenderedGrid:
    """Attach footnote marks to a finished grid.

    Args:
        rules: Footnote rules in declaration order
        grid: Grid with all cells resolved
        mark_style: ``"numeric"`` or ``"symbols"``
        symbols: Symbol sequence for the ``"symbols"`` style

    Returns:
        New grid with marks on targets, ``footnotes`` as (mark, text) pairs in
        mark order, ``notes`` for untargeted footnotes, and a warning for every
        footnote whose target is empty

    """
    notes: list[str] = []
    warnings: list[LayoutWarning] = []
    attached: dict[Target, list[str]] = {}

    for rule in rules:
        if not rule.categories:
            if rule.text not in notes:
                notes.append(rule.text)
            continue
        targets = _targets(rule, grid)
        if not targets:
            warning = LayoutWarning(
                code="footnote_unmatched",
                message=f"footnote {rule.text!r} matches no target",
                ctx=_describe(rule),
            )
            logger.warning(str(warning))
            warnings.append(warning)
            continue
        for target in targets:
            texts = attached.setdefault(target, [])
            if rule.text not in texts:
                texts.append(rule.text)

    marks: dict[str, str] = {}
    target_marks: dict[Target, tuple[str, ...]] = {}
    for target in _scan_order(grid):
        texts = attached.get(target)
        if not texts:
            continue
        for text in texts:
            if text not in marks:
                marks[text] = mark_for(len(marks), mark_style, symbols)
        target_marks[target] = tuple(dict.fromkeys(marks[t] for t in texts))

    rows = list(grid.rows)
    columns = list(grid.columns)
    spans = list(grid.spans)
    cells: dict[tuple[int, int], Cell] = dict(grid.cells)
    for target, assigned in target_marks.items():
        kind = target[0]
        if kind == "span":
            spans[target[1]] = replace(spans[target[1]], marks=assigned)
        elif kind == "column":
            columns[target[1]] = replace(columns[target[1]], marks=assigned)
        elif kind == "group":
            rows[target[1]] = replace(rows[target[1]], group_marks=assigned)
        elif kind == "label":
            rows[target[1]] = replace(rows[target[1]], marks=assigned)
        else:
            position = (target[1], target[2])
            cells[position] = replace(cells[position], marks=assigned)

    logger.debug("Placed %d footnote marks, %d notes", len(marks), len(notes))
    return replace(
        grid,
        rows=tuple(rows),
        columns=tuple(columns),
        spans=tuple(spans),
        cells=cells,
        footnotes=tuple((mark, text) for text, mark in marks.items()),
        notes=tuple(notes),
        warnings=grid.warnings + tuple(warnings),
    )
