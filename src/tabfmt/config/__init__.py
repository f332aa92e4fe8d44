"""Runtime configuration for tabfmt.

Example:
    from tabfmt.config import RenderOptions, config

    options = RenderOptions(missing_marker="--", max_workers=4)
    config.get("render", "error_marker")

"""

from .settings import (
    CombineMissing,
    DuplicatePolicy,
    LabelPlacement,
    MarkStyle,
    RenderOptions,
    TableConfig,
    config,
)

__all__ = [
    "CombineMissing",
    "DuplicatePolicy",
    "LabelPlacement",
    "MarkStyle",
    "RenderOptions",
    "TableConfig",
    "config",
]
