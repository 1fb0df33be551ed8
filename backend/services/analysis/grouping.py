"""Grouped aggregation and pivot tables.

Groups are keyed by the text of the group cell, ordered by first occurrence;
Null group cells share the reserved empty key ``""``.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union

import pandas as pd
from pandas.core.groupby import SeriesGroupBy

from errors import InvalidRequestError, NonNumericColumnError, UnsupportedAggregateFuncError
from models.dataset import Dataset, to_text
from models.results import GroupByResult, PivotResult
from services.analysis.statistics import sample_std

NULL_GROUP_KEY = ""

# pandas reducers skip NaN; std is the sample one, 0 for a single value
NUMERIC_AGGREGATES: Dict[str, Union[str, Callable[[pd.Series], float]]] = {
    "sum": "sum",
    "mean": "mean",
    "min": "min",
    "max": "max",
    "median": "median",
    "std": lambda values: sample_std(values.dropna()),
}

AGGREGATE_FUNCTIONS = ["count"] + list(NUMERIC_AGGREGATES)


def _check_func(func: str) -> str:
    name = str(func).strip().lower()
    if name not in AGGREGATE_FUNCTIONS:
        raise UnsupportedAggregateFuncError(
            f"Unsupported aggregate function '{func}'. Supported: {', '.join(AGGREGATE_FUNCTIONS)}"
        )
    return name


def group_keys(series: pd.Series) -> pd.Series:
    return series.map(to_text)


def _aggregate(grouped: SeriesGroupBy, func: str) -> pd.Series:
    """Aggregate each group's non-null values; groups without any become NaN."""
    usable = grouped.count()
    if func == "count":
        return usable
    return grouped.agg(NUMERIC_AGGREGATES[func]).astype("float64").where(usable > 0)


def group_by(
    dataset: Dataset,
    group_column: str,
    aggregate_column: Optional[str],
    func: str = "count",
) -> GroupByResult:
    """Aggregate one column per distinct value of another.

    ``count`` counts each group's rows. The numeric functions skip Null and
    non-numeric cells; a group left with no usable value fails the call.
    """
    func = _check_func(func)
    group_name = dataset.resolve_column(group_column)
    aggregate_name = dataset.resolve_column(aggregate_column) if aggregate_column else None
    if aggregate_name is None and func != "count":
        raise InvalidRequestError(f"aggregateColumn is required for '{func}'")

    keys = group_keys(dataset.values(group_name))
    if func == "count":
        sizes = keys.groupby(keys, sort=False).size()
        groups: Dict[str, float] = {key: int(size) for key, size in sizes.items()}
    else:
        numbers = dataset.numeric_values(aggregate_name).reindex(keys.index)
        grouped = numbers.groupby(keys, sort=False)
        usable = grouped.count()
        empty = usable[usable == 0]
        if len(empty) > 0:
            key = empty.index[0]
            label = key if key != NULL_GROUP_KEY else "(null)"
            raise NonNumericColumnError(
                f"Group '{label}' has no numeric values in column '{aggregate_name}'"
            )
        groups = {key: float(value) for key, value in _aggregate(grouped, func).items()}

    return GroupByResult(
        group_column=group_name,
        aggregate_column=aggregate_name,
        func=func,
        groups=groups,
    )


def pivot(
    dataset: Dataset,
    row_column: str,
    value_column: str,
    column_column: Optional[str] = None,
    func: str = "sum",
) -> PivotResult:
    """Cross-tabulate ``value_column`` by row keys and (optionally) column keys.

    Cells aggregate numeric non-null values; a cell without any stays None.
    """
    func = _check_func(func)
    row_name = dataset.resolve_column(row_column)
    value_name = dataset.resolve_column(value_column)
    column_name = dataset.resolve_column(column_column) if column_column else None

    numbers = dataset.numeric_values(value_name)
    if len(numbers) == 0 and func != "count":
        raise NonNumericColumnError(f"Column '{value_name}' has no numeric values")

    row_keys = group_keys(dataset.values(row_name))
    if column_name:
        col_keys = group_keys(dataset.values(column_name))
    else:
        col_keys = pd.Series("value", index=row_keys.index)

    frame = pd.DataFrame({"row": row_keys, "col": col_keys, "value": numbers.reindex(row_keys.index)})
    row_order: List[str] = list(dict.fromkeys(row_keys))
    column_order: List[str] = list(dict.fromkeys(col_keys))

    if len(frame) == 0:
        grid = pd.DataFrame(index=row_order, columns=column_order, dtype="float64")
    else:
        cells = _aggregate(frame.groupby(["row", "col"], sort=False)["value"], func)
        # unstack sorts its labels, so restore first-occurrence order
        grid = cells.unstack("col").reindex(index=row_order, columns=column_order)

    table: Dict[str, Dict[str, Optional[float]]] = {
        row_key: {
            col_key: None if pd.isna(value) else float(value)
            for col_key, value in grid.loc[row_key].items()
        }
        for row_key in row_order
    }

    return PivotResult(
        row_column=row_name,
        column_column=column_name,
        value_column=value_name,
        func=func,
        column_keys=column_order,
        table=table,
    )
