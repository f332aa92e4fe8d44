"""Big-N header annotations.

Points whose parameter names the big-N parameter carry sample sizes. They are
taken out of the body and rendered into the header of the column (exact
column key) or spanning header (column key equal to the span's key prefix)
they belong to.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from tabfmt.core.data import DataPoint
from tabfmt.core.grid import ColumnDescriptor, SpanDescriptor
from tabfmt.errors import LayoutWarning
from tabfmt.layout.columns import ColumnLayout
from tabfmt.spec.models import BigNRule

logger = logging.getLogger(__name__)

__all__ = ["annotate_big_n", "split_big_n"]


def split_big_n(
    points: Sequence[DataPoint], rule: BigNRule | None
) -> tuple[list[DataPoint], list[DataPoint]]:
    """Partition points into (body points, big-N points)."""
    if rule is None:
        return list(points), []
    body = [p for p in points if p.parameter != rule.parameter]
    big_n = [p for p in points if p.parameter == rule.parameter]
    return body, big_n


def annotate_big_n(
    layout: ColumnLayout,
    points: Sequence[DataPoint],
    rule: BigNRule | None,
    *,
    missing_marker: str = "",
) -> tuple[tuple[ColumnDescriptor, ...], tuple[SpanDescriptor, ...], list[LayoutWarning]]:
    """Render big-N points into column and span headers.

    Args:
        layout: Resolved column layout
        points: Big-N points from ``split_big_n``
        rule: Big-N rule supplying the format
        missing_marker: Text for missing big-N values

    Returns:
        Tuple of (annotated columns, annotated spans, warnings)

    """
    columns = list(layout.columns)
    spans = list(layout.spans)
    warnings: list[LayoutWarning] = []
    if rule is None or not points:
        return tuple(columns), tuple(spans), warnings

    column_index = {c.column_key: i for i, c in enumerate(columns)}
    span_index = {columns[s.start].column_key[: s.level + 1]: i for i, s in enumerate(spans)}

    for point in points:
        key = layout.project(point.column_key)
        if key is None:
            logger.debug("Big-N point for dropped column %s ignored", point.column_key)
            continue
        text = rule.format.render(point.value, missing_marker=missing_marker)
        if key in column_index:
            i = column_index[key]
            columns[i] = replace(columns[i], big_n=text)
        elif key in span_index:
            i = span_index[key]
            spans[i] = replace(spans[i], big_n=text)
        else:
            warning = LayoutWarning(
                code="big_n_unmatched",
                message=f"big-N value for {key} matches no column or span",
                ctx={"column_key": key},
            )
            logger.warning(str(warning))
            warnings.append(warning)
    return tuple(columns), tuple(spans), warnings
