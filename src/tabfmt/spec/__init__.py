"""Table specifications: models, selectors, layering and files.

Example:
    from tabfmt.spec import DEFAULT, FormatRule, SimpleFormat, Specification, merge

    base = Specification(body_plan=(FormatRule(format=SimpleFormat(pattern="xx.x")),))
    overlay = Specification(
        body_plan=(FormatRule(label="n", format=SimpleFormat(pattern="xx")),)
    )
    effective = merge(base, overlay)

"""

from tabfmt.spec.layering import layer, merge, merge_bindings
from tabfmt.spec.loader import (
    dump_specification,
    load_layers,
    load_specification,
    parse_specification,
)
from tabfmt.spec.models import (
    BigNRule,
    ColumnOrder,
    ColumnPlan,
    ColumnValue,
    CombineFormat,
    ConditionalFormat,
    DimensionBindings,
    DropColumns,
    FootnoteRule,
    FormatRule,
    RenameColumn,
    RowGroupPlan,
    RowGroupRule,
    SimpleFormat,
    SpanGroup,
    Specification,
)
from tabfmt.spec.selectors import DEFAULT, Wildcard

__all__ = [
    "DEFAULT",
    "BigNRule",
    "ColumnOrder",
    "ColumnPlan",
    "ColumnValue",
    "CombineFormat",
    "ConditionalFormat",
    "DimensionBindings",
    "DropColumns",
    "FootnoteRule",
    "FormatRule",
    "RenameColumn",
    "RowGroupPlan",
    "RowGroupRule",
    "SimpleFormat",
    "SpanGroup",
    "Specification",
    "Wildcard",
    "dump_specification",
    "layer",
    "load_layers",
    "load_specification",
    "merge",
    "merge_bindings",
    "parse_specification",
]
