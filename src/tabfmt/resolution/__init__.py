"""Rule resolution: specificity ranking and cell rendering."""

from tabfmt.resolution.cells import CellInput, group_cells, resolve_cell, resolve_cells
from tabfmt.resolution.specificity import RuleIndex, SpecificityTier, tier_of

__all__ = [
    "CellInput",
    "RuleIndex",
    "SpecificityTier",
    "group_cells",
    "resolve_cell",
    "resolve_cells",
    "tier_of",
]
