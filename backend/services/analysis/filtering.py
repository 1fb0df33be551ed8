"""Row filtering and stable sorting."""
from __future__ import annotations

import operator
from typing import Any, Callable, Dict

import pandas as pd

from errors import InvalidRequestError, UnsupportedOperatorError
from models.dataset import ColumnType, Dataset, is_null, parse_bool, parse_number, to_text

COMPARISON_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

TEXT_OPERATORS: Dict[str, Callable[[str, str], bool]] = {
    "contains": lambda cell, needle: needle in cell,
    "startswith": lambda cell, needle: cell.startswith(needle),
    "endswith": lambda cell, needle: cell.endswith(needle),
}

FILTER_OPERATORS = list(COMPARISON_OPERATORS) + list(TEXT_OPERATORS)

_OPERATOR_ALIASES = {
    "==": "eq",
    "=": "eq",
    "!=": "ne",
    ">": "gt",
    ">=": "gte",
    "<": "lt",
    "<=": "lte",
}

SORT_ORDERS = ("asc", "desc")


def normalize_operator(name: str) -> str:
    """Map an operator name or symbol to its canonical form.

    Raises:
        UnsupportedOperatorError: If the operator is unknown.
    """
    key = str(name).strip()
    canonical = _OPERATOR_ALIASES.get(key, key.lower())
    if canonical not in COMPARISON_OPERATORS and canonical not in TEXT_OPERATORS:
        raise UnsupportedOperatorError(
            f"Unsupported filter operator '{name}'. Supported: {', '.join(FILTER_OPERATORS)}"
        )
    return canonical


def _null_query_mask(series: pd.Series, op: str) -> pd.Series:
    if op == "eq":
        return series.isna()
    if op == "ne":
        return series.notna()
    return pd.Series(False, index=series.index)


def _cell_mask(series: pd.Series, predicate: Callable[[Any], bool]) -> pd.Series:
    return series.map(lambda v: (not is_null(v)) and predicate(v)).astype(bool)


def filter_rows(dataset: Dataset, column: str, op: str, value: Any) -> Dataset:
    """Keep the rows whose cell in ``column`` satisfies ``op value``.

    Numeric columns compare numerically when the value is a number; boolean
    columns compare booleans when the value is a boolean token; everything
    else compares the cells' text lexicographically. Null cells only match
    ``eq``/``ne`` against a null value. Row order is preserved.
    """
    name = dataset.resolve_column(column)
    op = normalize_operator(op)
    column_type = dataset.column(name).type
    series = dataset.values(name)

    if op in TEXT_OPERATORS and column_type is not ColumnType.TEXT:
        raise UnsupportedOperatorError(
            f"Operator '{op}' is only supported on text columns; '{name}' is {column_type.value}"
        )

    if is_null(value):
        return dataset.take(_null_query_mask(series, op))

    if op in TEXT_OPERATORS:
        needle = to_text(value)
        match = TEXT_OPERATORS[op]
        return dataset.take(_cell_mask(series, lambda cell: match(cell, needle)))

    compare = COMPARISON_OPERATORS[op]
    number = parse_number(value)
    if column_type is ColumnType.NUMERIC and number is not None:
        mask = series.notna() & compare(series, number)
        return dataset.take(mask)

    flag = parse_bool(value)
    if column_type is ColumnType.BOOLEAN and flag is not None:
        return dataset.take(_cell_mask(series, lambda cell: compare(bool(cell), flag)))

    target = to_text(value)
    return dataset.take(_cell_mask(series, lambda cell: compare(to_text(cell), target)))


def sort_rows(dataset: Dataset, column: str, order: str = "asc") -> Dataset:
    """Stable sort on one column; Null cells always go last.

    Numeric columns compare numerically, others by their case-sensitive
    text. Rows with equal keys keep their relative order in both directions.
    """
    name = dataset.resolve_column(column)
    order = str(order).strip().lower()
    if order not in SORT_ORDERS:
        raise InvalidRequestError(f"Invalid sort order '{order}'. Use 'asc' or 'desc'")

    ordered = dataset.frame.sort_values(
        by=name,
        ascending=order == "asc",
        kind="stable",
        na_position="last",
    )
    return dataset.take(ordered.index)
