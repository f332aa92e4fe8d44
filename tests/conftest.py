"""Shared fixtures for tabfmt tests."""

from collections.abc import Callable
from typing import Any

import pytest

from tabfmt.core.data import DataPoint
from tabfmt.spec.models import (
    BigNRule,
    ColumnPlan,
    CombineFormat,
    ConditionalFormat,
    DimensionBindings,
    FormatRule,
    SimpleFormat,
    SpanGroup,
    Specification,
)

PointFactory = Callable[..., DataPoint]


def _point(
    label: str,
    parameter: str,
    value: Any,
    *,
    group: tuple = (),
    column: tuple = (("arm", "Placebo"),),
    sort: tuple = (),
) -> DataPoint:
    return DataPoint(
        group_key=group,
        label=label,
        column_key=column,
        parameter=parameter,
        value=value,
        sort_keys=sort,
    )


@pytest.fixture
def make_point() -> PointFactory:
    """Factory for data points with a single ``arm`` column by default."""
    return _point


@pytest.fixture
def demographics_points() -> list[DataPoint]:
    """Two-arm demographics summary.

    Rows: Age (mean/sd combined, median) and Sex (n/pct per level) in
    first-observed order; big-N points per arm.
    """
    points = []
    for arm, n, mean, sd, median, female, pct in [
        ("Placebo", 86, 75.2093, 8.59017, 76.0, 53, 61.6279),
        ("Xanomeline", 84, 75.6667, 7.88614, 77.5, 40, 47.619),
    ]:
        column = (("arm", arm),)
        points += [
            _point("", "bigN", n, column=column),
            _point("Mean (SD)", "mean", mean, group=(("var", "Age"),), column=column, sort=(1, 1)),
            _point("Mean (SD)", "sd", sd, group=(("var", "Age"),), column=column, sort=(1, 1)),
            _point("Median", "median", median, group=(("var", "Age"),), column=column, sort=(1, 2)),
            _point("F", "n", female, group=(("var", "Sex"),), column=column, sort=(2, 1)),
            _point("F", "pct", pct, group=(("var", "Sex"),), column=column, sort=(2, 1)),
        ]
    return points


@pytest.fixture
def demographics_spec() -> Specification:
    """Specification matching ``demographics_points``."""
    return Specification(
        bindings=DimensionBindings(
            group="var", label="label", column="arm", parameter="param", value="value"
        ),
        body_plan=(
            FormatRule(format=SimpleFormat(pattern="xx.x")),
            FormatRule(
                label="Mean (SD)",
                format=CombineFormat(
                    template="{mean} ({sd})",
                    formats={"mean": "xx.x", "sd": "x.xx"},
                ),
            ),
            FormatRule(parameter="median", format=SimpleFormat(pattern="xx.x")),
            FormatRule(
                group="Sex",
                format=CombineFormat(
                    template="{n} ({pct}%)",
                    formats={"n": "xx", "pct": "xx.x"},
                ),
            ),
        ),
        big_n=BigNRule(parameter="bigN", format=" (N=xx)"),
    )


@pytest.fixture
def pvalue_format() -> ConditionalFormat:
    """Conditional p-value format."""
    return ConditionalFormat(cases=[("<0.001", "<0.001"), (">0.999", ">0.999"), ("TRUE", "x.xxx")])


@pytest.fixture
def span_plan() -> ColumnPlan:
    """Span ``arm`` above ``visit``."""
    return ColumnPlan(entries=(SpanGroup(dimension="arm", values=("Placebo", "Active")),))
