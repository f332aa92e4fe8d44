"""Input data points and adapters from tabular records."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tabfmt.errors import DuplicateDataPointError, LayoutWarning, SpecificationError
from tabfmt.spec.models import DimensionBindings

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)

__all__ = [
    "CellKey",
    "DataPoint",
    "deduplicate",
    "points_from_frame",
    "points_from_records",
]

Key = tuple[tuple[str, Any], ...]
# (group_key, label, column_key)
CellKey = tuple[Key, str, Key]


@dataclass(frozen=True)
class DataPoint:
    """One tagged value.

    Attributes:
        group_key: Ordered ``((dimension, value), ...)``, outermost group first.
        label: Row label.
        column_key: Ordered ``((dimension, value), ...)``, outermost column first.
        parameter: Parameter name (e.g. ``"mean"``, ``"n"``).
        value: Number, text, or None/NaN for missing.
        sort_keys: Comparable keys ordering rows.

    """

    group_key: Key
    label: str
    column_key: Key
    parameter: str
    value: Any = None
    sort_keys: tuple[Any, ...] = ()

    @property
    def cell_key(self) -> CellKey:
        """Coordinates of the body cell this point belongs to."""
        return (self.group_key, self.label, self.column_key)

    @property
    def identity(self) -> tuple[Key, str, Key, str]:
        """Uniqueness key: (group, label, column, parameter)."""
        return (self.group_key, self.label, self.column_key, self.parameter)


def _clean(value: Any) -> Any:
    # pandas NA / NaT and float NaN all become None.
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    try:
        if value != value:
            return None
    except (TypeError, ValueError):
        return None
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalars
        return value.item()
    return value


def _text(value: Any) -> str:
    cleaned = _clean(value)
    return "" if cleaned is None else str(cleaned)


def _required(bindings: DimensionBindings, name: str) -> Any:
    value = getattr(bindings, name)
    if value is None:
        raise SpecificationError("dimension binding missing", binding=name)
    return value


def points_from_records(
    records: Iterable[Mapping[str, Any]], bindings: DimensionBindings
) -> list[DataPoint]:
    """Build data points from mapping records using dimension bindings.

    Args:
        records: Rows, e.g. dictionaries read from a CSV file
        bindings: Field names for each role; ``label``, ``parameter`` and
            ``value`` are required, ``group``, ``column`` and ``sort`` optional

    Returns:
        Data points in record order

    Raises:
        SpecificationError: If a required binding is unset or a record lacks a field

    """
    label_field = _required(bindings, "label")
    parameter_field = _required(bindings, "parameter")
    value_field = _required(bindings, "value")
    group_fields: Sequence[str] = bindings.group or ()
    column_fields: Sequence[str] = bindings.column or ()
    sort_fields: Sequence[str] = bindings.sort or ()

    points = []
    for index, record in enumerate(records):
        try:
            points.append(
                DataPoint(
                    group_key=tuple((f, _clean(record[f])) for f in group_fields),
                    label=_text(record[label_field]),
                    column_key=tuple((f, _clean(record[f])) for f in column_fields),
                    parameter=str(record[parameter_field]),
                    value=_clean(record[value_field]),
                    sort_keys=tuple(_clean(record[f]) for f in sort_fields),
                )
            )
        except KeyError as e:
            raise SpecificationError(
                "record missing bound field", record=index, field=e.args[0]
            ) from e
    return points


def points_from_frame(frame: pd.DataFrame, bindings: DimensionBindings) -> list[DataPoint]:
    """Build data points from a pandas DataFrame (one row per data point)."""
    missing = [
        name
        for name in (
            *(bindings.group or ()),
            *(bindings.column or ()),
            *(bindings.sort or ()),
            bindings.label,
            bindings.parameter,
            bindings.value,
        )
        if name is not None and name not in frame.columns
    ]
    if missing:
        raise SpecificationError("frame missing bound columns", columns=missing)
    return points_from_records(frame.to_dict(orient="records"), bindings)


def deduplicate(
    points: Sequence[DataPoint], policy: str
) -> tuple[list[DataPoint], list[LayoutWarning]]:
    """Apply the duplicate policy.

    Args:
        points: Data points
        policy: ``"error"`` raises on the first duplicate, ``"last"`` keeps the
            last point for each (group, label, column, parameter)

    Returns:
        Tuple of (unique points in first-seen order, warnings)

    Raises:
        DuplicateDataPointError: On a duplicate under the ``"error"`` policy

    """
    positions: dict[tuple[Key, str, Key, str], int] = {}
    unique: list[DataPoint] = []
    warnings: list[LayoutWarning] = []
    for point in points:
        identity = point.identity
        if identity not in positions:
            positions[identity] = len(unique)
            unique.append(point)
            continue
        if policy == "error":
            raise DuplicateDataPointError(
                "duplicate data point",
                group=point.group_key,
                label=point.label,
                column=point.column_key,
                parameter=point.parameter,
            )
        unique[positions[identity]] = point
        warning = LayoutWarning(
            code="duplicate_point",
            message=(
                f"duplicate data point for label {point.label!r}, "
                f"parameter {point.parameter!r}; last value kept"
            ),
            ctx={"identity": identity},
        )
        logger.warning(str(warning))
        warnings.append(warning)
    return unique, warnings
