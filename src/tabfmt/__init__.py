"""tabfmt - declarative table formatting.

Resolve long-format statistics into a neutral rendered grid from a layered
specification of format rules, column layout, row grouping and footnotes.

Example:
    from tabfmt import load_layers, points_from_frame, render

    spec = load_layers(["base.yaml", "study.yaml"])
    grid = render(points_from_frame(frame, spec.bindings), spec)
    print(grid.to_frame())

"""

from tabfmt.config import RenderOptions
from tabfmt.core import DataPoint, RenderedGrid, points_from_frame, points_from_records
from tabfmt.engine import render, render_frame
from tabfmt.errors import (
    DuplicateDataPointError,
    FormatError,
    LayoutWarning,
    ResolutionError,
    SpecificationError,
    TableFormatError,
)
from tabfmt.spec import (
    DEFAULT,
    Specification,
    layer,
    load_layers,
    load_specification,
    merge,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT",
    "DataPoint",
    "DuplicateDataPointError",
    "FormatError",
    "LayoutWarning",
    "RenderOptions",
    "RenderedGrid",
    "ResolutionError",
    "Specification",
    "SpecificationError",
    "TableFormatError",
    "__version__",
    "layer",
    "load_layers",
    "load_specification",
    "merge",
    "points_from_frame",
    "points_from_records",
    "render",
    "render_frame",
]
