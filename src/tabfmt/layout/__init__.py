"""Grid shape: columns, spans, big-N headers, rows and footnotes."""

from tabfmt.layout.big_n import annotate_big_n, split_big_n
from tabfmt.layout.columns import ColumnLayout, build_spans, layout_columns
from tabfmt.layout.footnotes import mark_for, place_footnotes
from tabfmt.layout.rows import RowLayout, layout_rows, order_rows

__all__ = [
    "ColumnLayout",
    "RowLayout",
    "annotate_big_n",
    "build_spans",
    "layout_columns",
    "layout_rows",
    "mark_for",
    "order_rows",
    "place_footnotes",
    "split_big_n",
]
