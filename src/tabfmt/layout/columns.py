"""Column layout resolution.

Without a plan, columns keep the first-observed order of their column-key
combinations. With a plan, entries are applied in order:

- ``DropColumns`` removes whole dimensions (pattern on dimension names) or
  individual columns (pattern on one dimension's values); dropped
  dimensions disappear from column keys and span computation
- ``ColumnOrder`` / ``SpanGroup`` rank a dimension's values and may rename
  them; ``SpanGroup`` also moves the dimension to the outer span levels
- ``RenameColumn`` renames one value

"Last identified" wins: when several entries place or rename the same
value, the last entry's placement and name are the ones used. Values not
listed keep their first-observed order after the listed ones.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from tabfmt.core.grid import ColumnDescriptor, SpanDescriptor
from tabfmt.errors import LayoutWarning
from tabfmt.spec.models import ColumnPlan, DropColumns, RenameColumn, SpanGroup

logger = logging.getLogger(__name__)

__all__ = ["ColumnLayout", "build_spans", "display_value", "layout_columns"]

Key = tuple[tuple[str, Any], ...]


def display_value(value: Any) -> str:
    """Default display text of a dimension value."""
    return "" if value is None else str(value)


@dataclass
class _DimensionPlan:
    rank: dict[str, tuple[int, int]] = field(default_factory=dict)
    display: dict[str, str | None] = field(default_factory=dict)
    dropped_values: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ColumnLayout:
    """Resolved column layout.

    Attributes:
        columns: Column descriptors in display order.
        spans: Spanning headers.
        dimensions: Final dimension order (outermost first), dropped ones excluded.
        dropped_dimensions: Dimensions removed by drop directives.
        warnings: Layout warnings (e.g. plan names a dimension absent from data).

    """

    columns: tuple[ColumnDescriptor, ...]
    spans: tuple[SpanDescriptor, ...]
    dimensions: tuple[str, ...]
    dropped_dimensions: tuple[str, ...] = ()
    dropped_values: dict[str, tuple[str, ...]] = field(default_factory=dict)
    displays: dict[str, dict[str, str]] = field(default_factory=dict)
    warnings: tuple[LayoutWarning, ...] = ()

    def project(self, key: Key) -> Key | None:
        """Map a raw column key onto the layout.

        Returns None when the column was dropped by a value pattern; otherwise
        the key with dropped dimensions removed and pairs in layout order.
        """
        for dimension, value in key:
            patterns = self.dropped_values.get(dimension, ())
            if any(fnmatch.fnmatchcase(display_value(value), p) for p in patterns):
                return None
        values = {d: v for d, v in key if d not in self.dropped_dimensions}
        return tuple((d, values[d]) for d in self.dimensions if d in values)

    def display(self, dimension: str, value: Any) -> str:
        """Display text for a dimension value after renames."""
        return self.displays.get(dimension, {}).get(display_value(value), display_value(value))

    def index_of(self, key: Key) -> int:
        """Position of the column with ``key``."""
        for index, column in enumerate(self.columns):
            if column.column_key == key:
                return index
        raise KeyError(key)


def _observed_dimensions(keys: Sequence[Key]) -> list[str]:
    dims: list[str] = []
    for key in keys:
        for dimension, _ in key:
            if dimension not in dims:
                dims.append(dimension)
    return dims


def build_spans(
    columns: Sequence[ColumnDescriptor], displays: dict[str, dict[str, str]] | None = None
) -> tuple[SpanDescriptor, ...]:
    """Derive spanning headers from contiguous columns sharing a key prefix."""
    displays = displays or {}
    depth = max((len(c.column_key) - 1 for c in columns), default=0)
    spans: list[SpanDescriptor] = []
    for level in range(depth):
        start = 0
        while start < len(columns):
            key = columns[start].column_key
            if len(key) <= level + 1:
                start += 1
                continue
            prefix = key[: level + 1]
            stop = start + 1
            while stop < len(columns) and columns[stop].column_key[: level + 1] == prefix:
                stop += 1
            dimension, value = prefix[-1]
            text = displays.get(dimension, {}).get(display_value(value), display_value(value))
            spans.append(
                SpanDescriptor(
                    level=level,
                    path=columns[start].span_path[: level + 1],
                    dimension=dimension,
                    value=value,
                    text=text,
                    start=start,
                    stop=stop,
                )
            )
            start = stop
    return tuple(spans)


def _default_layout(keys: Sequence[Key]) -> ColumnLayout:
    unique = list(dict.fromkeys(keys))
    columns = tuple(
        ColumnDescriptor(
            column_key=key,
            span_path=tuple(display_value(v) for _, v in key[:-1]),
            header=display_value(key[-1][1]) if key else "",
        )
        for key in unique
    )
    return ColumnLayout(
        columns=columns,
        spans=build_spans(columns),
        dimensions=tuple(_observed_dimensions(unique)),
    )


def layout_columns(observed: Sequence[Key], plan: ColumnPlan | None) -> ColumnLayout:
    """Compute column order, names, spans and drops.

    Args:
        observed: Column keys in first-observed order (duplicates allowed)
        plan: Column plan, or None for the default layout

    Returns:
        Resolved column layout

    """
    if plan is None or not plan.entries:
        return _default_layout(observed)

    dims = _observed_dimensions(observed)
    warnings: list[LayoutWarning] = []
    plans: dict[str, _DimensionPlan] = {}
    dropped_dims: list[str] = []
    span_order: dict[str, int] = {}

    def warn_unknown(dimension: str, entry_index: int) -> None:
        warning = LayoutWarning(
            code="unknown_dimension",
            message=f"column plan entry {entry_index} names dimension {dimension!r} "
            "absent from the data",
            ctx={"dimension": dimension, "entry": entry_index},
        )
        logger.warning(str(warning))
        warnings.append(warning)

    for entry_index, entry in enumerate(plan.entries):
        if isinstance(entry, DropColumns):
            if entry.dimension is None:
                matched = [d for d in dims if fnmatch.fnmatchcase(d, entry.pattern)]
                if not matched:
                    warnings.append(
                        LayoutWarning(
                            code="drop_unmatched",
                            message=f"drop pattern {entry.pattern!r} matches no dimension",
                            ctx={"entry": entry_index},
                        )
                    )
                    logger.warning("Drop pattern %r matches no dimension", entry.pattern)
                dropped_dims.extend(d for d in matched if d not in dropped_dims)
            elif entry.dimension not in dims:
                warn_unknown(entry.dimension, entry_index)
            else:
                plans.setdefault(entry.dimension, _DimensionPlan()).dropped_values.append(
                    entry.pattern
                )
            continue

        if entry.dimension not in dims:
            warn_unknown(entry.dimension, entry_index)
            continue

        dim_plan = plans.setdefault(entry.dimension, _DimensionPlan())
        if isinstance(entry, RenameColumn):
            dim_plan.display[entry.old] = entry.new
            continue

        for position, column_value in enumerate(entry.values):
            dim_plan.rank[column_value.value] = (entry_index, position)
            dim_plan.display[column_value.value] = column_value.display
        if isinstance(entry, SpanGroup):
            span_order[entry.dimension] = entry_index

    kept_dims = [d for d in dims if d not in dropped_dims]
    span_dims = sorted((d for d in span_order if d in kept_dims), key=lambda d: span_order[d])
    final_dims = tuple(span_dims + [d for d in kept_dims if d not in span_dims])

    displays = {
        dimension: {value: text for value, text in dim_plan.display.items() if text is not None}
        for dimension, dim_plan in plans.items()
    }
    layout = ColumnLayout(
        columns=(),
        spans=(),
        dimensions=final_dims,
        dropped_dimensions=tuple(dropped_dims),
        dropped_values={d: tuple(p.dropped_values) for d, p in plans.items() if p.dropped_values},
        displays=displays,
    )

    projected: list[Key] = []
    for key in observed:
        mapped = layout.project(key)
        if mapped is not None and mapped not in projected:
            projected.append(mapped)

    first_seen: dict[str, dict[str, int]] = {d: {} for d in final_dims}
    for key in projected:
        for dimension, value in key:
            first_seen[dimension].setdefault(display_value(value), len(first_seen[dimension]))

    def sort_key(key: Key) -> tuple[Any, ...]:
        values = dict(key)
        parts: list[tuple[int, int, int]] = []
        for dimension in final_dims:
            if dimension not in values:
                parts.append((2, 0, 0))
                continue
            text = display_value(values[dimension])
            ranked = plans.get(dimension, _DimensionPlan()).rank.get(text)
            if ranked is not None:
                parts.append((0, *ranked))
            else:
                parts.append((1, first_seen[dimension][text], 0))
        return tuple(parts)

    ordered = sorted(projected, key=sort_key)
    columns = tuple(
        ColumnDescriptor(
            column_key=key,
            span_path=tuple(layout.display(d, v) for d, v in key[:-1]),
            header=layout.display(*key[-1]) if key else "",
        )
        for key in ordered
    )
    logger.debug(
        "Column layout: %d columns over dimensions %s (dropped %s)",
        len(columns),
        final_dims,
        dropped_dims,
    )
    return ColumnLayout(
        columns=columns,
        spans=build_spans(columns, displays),
        dimensions=final_dims,
        dropped_dimensions=layout.dropped_dimensions,
        dropped_values=layout.dropped_values,
        displays=displays,
        warnings=tuple(warnings),
    )
