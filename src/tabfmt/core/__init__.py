"""Core data structures: input data points and the rendered grid."""

from tabfmt.core.data import (
    CellKey,
    DataPoint,
    deduplicate,
    points_from_frame,
    points_from_records,
)
from tabfmt.core.grid import (
    Cell,
    ColumnDescriptor,
    HeaderCell,
    RenderedGrid,
    RowDescriptor,
    SpanDescriptor,
)

__all__ = [
    "Cell",
    "CellKey",
    "ColumnDescriptor",
    "DataPoint",
    "HeaderCell",
    "RenderedGrid",
    "RowDescriptor",
    "SpanDescriptor",
    "deduplicate",
    "points_from_frame",
    "points_from_records",
]
