"""Render pipeline.

``render`` turns data points and an effective specification into a
``RenderedGrid``:

1. the specification is checked for a catch-all rule
2. big-N points are split off
3. the column layout is resolved and column keys are projected onto it
4. duplicates are handled
5. every cell is resolved (optionally on a thread pool)
6. rows are laid out and cells are placed on the grid
7. footnote marks are assigned by one sequential scan
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from tabfmt.config.settings import RenderOptions
from tabfmt.core.data import DataPoint, deduplicate, points_from_frame
from tabfmt.core.grid import Cell, RenderedGrid
from tabfmt.errors import SpecificationError
from tabfmt.layout.big_n import annotate_big_n, split_big_n
from tabfmt.layout.columns import layout_columns
from tabfmt.layout.footnotes import place_footnotes
from tabfmt.layout.rows import layout_rows
from tabfmt.resolution.cells import resolve_cells
from tabfmt.resolution.specificity import RuleIndex
from tabfmt.spec.models import Specification

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)

__all__ = ["render", "render_frame"]


def render(
    points: Sequence[DataPoint],
    spec: Specification,
    options: RenderOptions | None = None,
) -> RenderedGrid:
    """Render data points with an effective specification.

    Args:
        points: Data points in input order
        spec: Effective (already layered) specification
        options: Render options; defaults come from the packaged configuration

    Returns:
        The rendered grid

    Raises:
        SpecificationError: If the specification cannot render every point
        DuplicateDataPointError: On duplicate points under the ``"error"`` policy

    """
    options = options or RenderOptions()
    if options.require_default_rule and not spec.has_catch_all():
        raise SpecificationError(
            "body plan has no catch-all rule (group, label and parameter all DEFAULT)",
            rules=len(spec.body_plan),
        )

    body, big_n_points = split_big_n(points, spec.big_n)
    column_layout = layout_columns([p.column_key for p in body], spec.column_plan)

    projected: list[DataPoint] = []
    for point in body:
        key = column_layout.project(point.column_key)
        if key is None:
            continue
        projected.append(replace(point, column_key=key))
    dropped = len(body) - len(projected)
    if dropped:
        logger.debug("Dropped %d points with the columns they belong to", dropped)

    unique, duplicate_warnings = deduplicate(projected, options.duplicates)

    index = RuleIndex(spec.body_plan)
    resolved, cell_warnings = resolve_cells(unique, index, options)

    row_layout = layout_rows(
        unique,
        spec.row_group_plan,
        indent=options.indent,
        default_placement=options.label_placement,
    )
    columns, spans, big_n_warnings = annotate_big_n(
        column_layout, big_n_points, spec.big_n, missing_marker=options.missing_marker
    )

    column_index = {c.column_key: i for i, c in enumerate(columns)}
    cells: dict[tuple[int, int], Cell] = {}
    for (group_key, label, column_key), cell in resolved.items():
        cells[(row_layout.index[(group_key, label)], column_index[column_key])] = cell

    grid = RenderedGrid(
        rows=row_layout.rows,
        columns=columns,
        spans=spans,
        cells=dict(sorted(cells.items())),
        label_headers=row_layout.label_headers,
        warnings=(
            *column_layout.warnings,
            *duplicate_warnings,
            *cell_warnings,
            *big_n_warnings,
        ),
    )
    grid = place_footnotes(
        spec.footnote_plan,
        grid,
        mark_style=options.mark_style,
        symbols=options.mark_symbols,
    )

    logger.info(
        "Rendered %d rows x %d columns (%d cells, %d footnotes, %d warnings)",
        len(grid.rows),
        len(grid.columns),
        len(grid.cells),
        len(grid.footnotes),
        len(grid.warnings),
    )
    return grid


def render_frame(
    frame: pd.DataFrame, spec: Specification, options: RenderOptions | None = None
) -> RenderedGrid:
    """Render a long-format DataFrame using the specification's bindings."""
    return render(points_from_frame(frame, spec.bindings), spec, options)
