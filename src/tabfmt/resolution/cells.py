"""Cell resolution.

Data points are grouped by cell (group, label, column). Each cell is then
rendered by the rule its parameters resolve to:

- a combine rule reads all of its parameters into one templated cell
- otherwise the cell holds exactly one parameter rendered by its simple or
  conditional rule

A ``ResolutionError`` in one cell degrades only that cell: it gets the error
marker, the message is kept on the cell, and rendering continues.
Resolving one cell never depends on another, so cells may be fanned out over
a thread pool.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from tabfmt.config.settings import RenderOptions
from tabfmt.core.data import CellKey, DataPoint
from tabfmt.core.grid import Cell
from tabfmt.errors import LayoutWarning, ResolutionError
from tabfmt.resolution.specificity import RuleIndex
from tabfmt.spec.models import CombineFormat, ConditionalFormat, FormatRule, SimpleFormat

logger = logging.getLogger(__name__)

__all__ = ["CellInput", "group_cells", "resolve_cell", "resolve_cells"]


@dataclass(frozen=True)
class CellInput:
    """All data points of one cell, in input order."""

    key: CellKey
    points: tuple[DataPoint, ...]

    @property
    def values(self) -> dict[str, object]:
        """Parameter -> value."""
        return {p.parameter: p.value for p in self.points}


def group_cells(points: Sequence[DataPoint]) -> list[CellInput]:
    """Group points by cell key, keeping first-seen order."""
    grouped: dict[CellKey, list[DataPoint]] = {}
    for point in points:
        grouped.setdefault(point.cell_key, []).append(point)
    return [CellInput(key=key, points=tuple(members)) for key, members in grouped.items()]


def _render_combine(
    cell: CellInput, rule: FormatRule, combine: CombineFormat, options: RenderOptions
) -> str:
    values = cell.values
    absent = [name for name in combine.parameters if name not in values]
    if absent:
        policy = combine.missing or options.combine_missing
        if policy == "error":
            raise ResolutionError(
                "combine cell missing parameters",
                label=cell.key[1],
                missing=absent,
                rule=rule.describe(),
            )
        if policy == "omit":
            logger.debug("Omitting combine cell %r: missing %s", cell.key[1], absent)
            return ""
    extra = [name for name in values if name not in combine.parameters]
    if extra:
        logger.debug(
            "Parameters %s in cell %r are not part of combine %r",
            extra,
            cell.key[1],
            combine.template,
        )
    return combine.render(
        {name: values[name] for name in combine.parameters if name in values},
        missing_marker=options.missing_marker,
    )


def resolve_cell(cell: CellInput, index: RuleIndex, options: RenderOptions) -> str:
    """Render one cell to text.

    Raises:
        ResolutionError: If the cell cannot be rendered

    """
    group_key, label, _ = cell.key
    resolved = [
        (point, index.resolve_key(group_key, label, point.parameter)) for point in cell.points
    ]

    combines: list[tuple[FormatRule, CombineFormat]] = []
    singles: list[tuple[DataPoint, SimpleFormat | ConditionalFormat]] = []
    for point, rule in resolved:
        fmt = rule.format
        if isinstance(fmt, CombineFormat):
            combines.append((rule, fmt))
        else:
            singles.append((point, fmt))

    if combines:
        # Parameters reaching different combines: the most specific, latest rule wins.
        rule, combine = max(combines, key=lambda item: index.precedence(item[0]))
        return _render_combine(cell, rule, combine, options)

    if len(singles) > 1:
        raise ResolutionError(
            "several parameters share one cell without a combine rule",
            label=label,
            parameters=[p.parameter for p, _ in singles],
        )

    point, fmt = singles[0]
    return fmt.render(point.value, missing_marker=options.missing_marker)


def _resolve_safely(
    cell: CellInput, index: RuleIndex, options: RenderOptions
) -> tuple[Cell, LayoutWarning | None]:
    try:
        return Cell(text=resolve_cell(cell, index, options)), None
    except ResolutionError as e:
        warning = LayoutWarning(
            code="cell_error",
            message=f"cell {cell.key[1]!r} rendered as error marker: {e}",
            ctx={"cell": cell.key},
        )
        logger.warning(str(warning))
        return Cell(text=options.error_marker, error=str(e)), warning


def resolve_cells(
    points: Sequence[DataPoint], index: RuleIndex, options: RenderOptions
) -> tuple[dict[CellKey, Cell], list[LayoutWarning]]:
    """Resolve every cell.

    Args:
        points: Body data points (big-N points removed, duplicates handled)
        index: Rule index over the effective body plan
        options: Render options

    Returns:
        Tuple of (cell key -> Cell in first-seen order, warnings)

    """
    cells = group_cells(points)
    index.prime((p.group_key, p.label, p.parameter) for p in points)

    if options.max_workers > 1 and len(cells) > 1:
        logger.debug("Resolving %d cells on %d workers", len(cells), options.max_workers)
        with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
            results = list(executor.map(lambda c: _resolve_safely(c, index, options), cells))
    else:
        results = [_resolve_safely(c, index, options) for c in cells]

    resolved: dict[CellKey, Cell] = {}
    warnings: list[LayoutWarning] = []
    for cell, (rendered, warning) in zip(cells, results, strict=True):
        resolved[cell.key] = rendered
        if warning is not None:
            warnings.append(warning)
    return resolved, warnings
