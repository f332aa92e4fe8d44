"""Error types for the table formatting engine.

Three kinds of failure exist, each with its own handling policy:

- ``SpecificationError``: the specification itself is invalid (missing
  conditional fallback, duplicate selector within one layer, bad pattern).
  Raised while building, layering or loading a specification and always
  aborts the render before any data is touched.
- ``ResolutionError``: a single cell cannot be produced. The render pipeline
  catches it, writes the configured error marker into that cell and keeps
  going.
- ``LayoutWarning``: a layout ambiguity (plan names a dimension missing from
  the data, footnote target matches nothing). Never raised; collected on the
  rendered grid.

None of the exceptions derive from ``ValueError`` so that they propagate
unchanged through pydantic validators instead of being folded into a
``ValidationError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class TableFormatError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, **ctx: Any) -> None:
        """Initialize with a message and optional structured context."""
        super().__init__(message)
        self.message = message
        self.ctx = ctx

    def __str__(self) -> str:
        if not self.ctx:
            return self.message
        parts = ", ".join(f"{k}={v!r}" for k, v in self.ctx.items())
        return f"{self.message} ({parts})"


class SpecificationError(TableFormatError):
    """Raised when a specification is invalid."""


class ResolutionError(TableFormatError):
    """Raised when a single cell cannot be resolved."""


class FormatError(ResolutionError):
    """Raised when a value cannot be rendered by a format directive."""


class DuplicateDataPointError(ResolutionError):
    """Raised when two data points share the same cell coordinates."""


@dataclass(frozen=True)
class LayoutWarning:
    """A non-fatal layout problem recorded on the rendered grid.

    Attributes:
        code: Short machine-readable identifier (e.g. ``"footnote_unmatched"``).
        message: Human-readable description.
        ctx: Extra structured context.

    """

    code: str
    message: str
    ctx: dict[str, Any] = field(default_factory=dict, compare=False)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"
