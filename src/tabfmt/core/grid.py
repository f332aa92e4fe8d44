"""Rendered grid: the neutral output handed to presentation layers.

The grid carries no styling. Presentation code reads ``header_rows`` for the
column header block, ``rows``/``cells`` for the body, and ``footnotes`` /
``notes`` for the table foot.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

import pandas as pd

from tabfmt.errors import LayoutWarning

__all__ = [
    "Cell",
    "ColumnDescriptor",
    "HeaderCell",
    "RenderedGrid",
    "RowDescriptor",
    "SpanDescriptor",
]

RowKind = Literal["data", "group", "spacer"]
Key = tuple[tuple[str, Any], ...]


@dataclass(frozen=True)
class Cell:
    """Body cell text plus footnote marks and, for degraded cells, the error."""

    text: str
    marks: tuple[str, ...] = ()
    error: str | None = None

    @property
    def display(self) -> str:
        """Text with marks appended."""
        return self.text + _marks_suffix(self.marks)


@dataclass(frozen=True)
class RowDescriptor:
    """One grid row.

    Attributes:
        kind: ``"data"`` for a (group, label) row, ``"group"`` for an indented
            group header, ``"spacer"`` for block decoration.
        group_key: Group the row belongs to.
        label: Row label (empty for group and spacer rows).
        label_cells: Label text per label column (one column when indented,
            two in separate-column placement).
        block_boundary: True on the last data row of a decorated group block.
        marks: Footnote marks attached to the row label.
        group_marks: Footnote marks attached to the group label cell
            (separate-column placement).
        fill: Text repeated across the body for spacer rows.
        depth: Indentation depth of the label (group nesting level).

    """

    kind: RowKind
    group_key: Key
    label: str = ""
    label_cells: tuple[str, ...] = ()
    block_boundary: bool = False
    marks: tuple[str, ...] = ()
    group_marks: tuple[str, ...] = ()
    fill: str = ""
    depth: int = 0


@dataclass(frozen=True)
class ColumnDescriptor:
    """One body column.

    Attributes:
        column_key: Column key after drops, outermost dimension first.
        span_path: Display text of every dimension above the innermost one.
        header: Display text of the innermost dimension.
        big_n: Big-N annotation text, if any.
        marks: Footnote marks on the column header.

    """

    column_key: Key
    span_path: tuple[str, ...]
    header: str
    big_n: str = ""
    marks: tuple[str, ...] = ()

    @property
    def header_text(self) -> str:
        """Header with big-N annotation and marks."""
        return self.header + self.big_n + _marks_suffix(self.marks)


@dataclass(frozen=True)
class SpanDescriptor:
    """A spanning header covering columns ``start`` to ``stop`` (exclusive)."""

    level: int
    path: tuple[str, ...]
    dimension: str
    value: Any
    text: str
    start: int
    stop: int
    big_n: str = ""
    marks: tuple[str, ...] = ()

    @property
    def width(self) -> int:
        """Number of columns covered."""
        return self.stop - self.start

    @property
    def header_text(self) -> str:
        """Span text with big-N annotation and marks."""
        return self.text + self.big_n + _marks_suffix(self.marks)


@dataclass(frozen=True)
class HeaderCell:
    """One cell of the column header block."""

    text: str
    start: int
    width: int


@dataclass(frozen=True)
class RenderedGrid:
    """Complete rendered table."""

    rows: tuple[RowDescriptor, ...]
    columns: tuple[ColumnDescriptor, ...]
    spans: tuple[SpanDescriptor, ...] = ()
    cells: dict[tuple[int, int], Cell] = field(default_factory=dict)
    label_headers: tuple[str, ...] = ("",)
    footnotes: tuple[tuple[str, str], ...] = ()
    notes: tuple[str, ...] = ()
    warnings: tuple[LayoutWarning, ...] = ()

    @property
    def span_levels(self) -> int:
        """Number of spanning header levels."""
        return max((s.level + 1 for s in self.spans), default=0)

    def cell(self, row: int, column: int) -> Cell | None:
        """Return the cell at (row, column), or None for an empty position."""
        return self.cells.get((row, column))

    def text(self, row: int, column: int) -> str:
        """Display text at (row, column) including marks."""
        descriptor = self.rows[row]
        if descriptor.kind == "spacer":
            return descriptor.fill
        found = self.cells.get((row, column))
        return found.display if found is not None else ""

    def data_rows(self) -> Iterator[tuple[int, RowDescriptor]]:
        """Iterate over (index, descriptor) of data rows."""
        for index, row in enumerate(self.rows):
            if row.kind == "data":
                yield index, row

    def find_row(self, label: str, group_key: Key | None = None) -> int:
        """Index of the first data row with ``label`` (and ``group_key`` when given)."""
        for index, row in self.data_rows():
            if row.label == label and (group_key is None or row.group_key == group_key):
                return index
        raise KeyError(label)

    def find_column(self, header: str) -> int:
        """Index of the first column whose innermost header is ``header``."""
        for index, column in enumerate(self.columns):
            if column.header == header:
                return index
        raise KeyError(header)

    def header_rows(self) -> list[list[HeaderCell]]:
        """Header block, top to bottom: one row per span level, then column headers."""
        rows: list[list[HeaderCell]] = []
        for level in range(self.span_levels):
            rows.append(
                [
                    HeaderCell(text=s.header_text, start=s.start, width=s.width)
                    for s in self.spans
                    if s.level == level
                ]
            )
        rows.append(
            [HeaderCell(text=c.header_text, start=i, width=1) for i, c in enumerate(self.columns)]
        )
        return rows

    def body_rows(self) -> list[list[str]]:
        """Body as text rows: label cells followed by one entry per column."""
        width = len(self.label_headers)
        body: list[list[str]] = []
        for index, row in enumerate(self.rows):
            labels = list(row.label_cells)
            if row.marks and labels:
                labels[-1] = labels[-1] + _marks_suffix(row.marks)
            if row.group_marks and labels:
                labels[0] = labels[0] + _marks_suffix(row.group_marks)
            labels = (labels + [""] * width)[:width]
            body.append(labels + [self.text(index, c) for c in range(len(self.columns))])
        return body

    def to_frame(self) -> pd.DataFrame:
        """Export the grid as a DataFrame of strings.

        Columns form a MultiIndex (span levels then column header) when spans
        exist. Label columns come first.
        """
        levels = self.span_levels
        tuples = []
        for label in self.label_headers:
            tuples.append(("",) * levels + (label,))
        for position, column in enumerate(self.columns):
            span_texts = []
            for level in range(levels):
                span = next(
                    (s for s in self.spans if s.level == level and s.start <= position < s.stop),
                    None,
                )
                span_texts.append(span.header_text if span is not None else "")
            tuples.append(tuple(span_texts) + (column.header_text,))

        if levels:
            index = pd.MultiIndex.from_tuples(tuples)
        else:
            index = pd.Index([t[-1] for t in tuples])
        return pd.DataFrame(self.body_rows(), columns=index)


def _marks_suffix(marks: tuple[str, ...]) -> str:
    if not marks:
        return ""
    return "^" + ",".join(marks)
