"""Descriptive statistics over Dataset columns.

Quantiles use linear interpolation over the sorted non-null values
(position ``p * (n - 1)``), and the standard deviation is the sample one.
"""
from __future__ import annotations

from collections import Counter
from typing import List, Sequence, Union

import numpy as np
import pandas as pd

from errors import NonNumericColumnError
from models.dataset import ColumnType, Dataset, to_text
from models.results import CategoricalSummary, ColumnSummary, DescribeResult, NumericSummary

Numbers = Union[Sequence[float], np.ndarray, pd.Series]

REPORTED_PERCENTILES = (90, 95, 99)


def quantile(values: Numbers, p: float) -> float:
    """Linearly interpolated quantile of non-empty values."""
    return float(np.quantile(np.asarray(values, dtype="float64"), p, method="linear"))


def sample_variance(values: Numbers) -> float:
    """Sample variance; 0 when there are fewer than two values or all are equal."""
    array = np.asarray(values, dtype="float64")
    if len(array) < 2 or array.max() == array.min():
        return 0.0
    return float(np.var(array, ddof=1))


def sample_std(values: Numbers) -> float:
    return float(np.sqrt(sample_variance(values)))


def numeric_summary(dataset: Dataset, column: str) -> NumericSummary:
    """Summarise the numeric non-null cells of a column.

    Raises:
        NonNumericColumnError: If the column has no numeric values.
    """
    name = dataset.resolve_column(column)
    values = dataset.numeric_values(name)
    if len(values) == 0:
        raise NonNumericColumnError(f"Column '{name}' has no numeric values")

    array = values.to_numpy(dtype="float64")
    variance = sample_variance(array)
    low, high = float(array.min()), float(array.max())
    # Rounding in the sum can push the mean just past an extreme
    mean = min(max(float(array.mean()), low), high)
    return NumericSummary(
        column=name,
        count=len(array),
        null_count=dataset.row_count - len(array),
        sum=float(array.sum()),
        mean=mean,
        variance=variance,
        std=float(np.sqrt(variance)),
        min=low,
        max=high,
        q1=quantile(array, 0.25),
        median=quantile(array, 0.5),
        q3=quantile(array, 0.75),
        percentiles={p: quantile(array, p / 100) for p in REPORTED_PERCENTILES},
    )


def categorical_summary(dataset: Dataset, column: str) -> CategoricalSummary:
    name = dataset.resolve_column(column)
    present = dataset.values(name).dropna()
    # Counter keeps first-seen order, so ties go to the earliest value
    counts = Counter(to_text(v) for v in present)
    most_frequent = counts.most_common(1)[0] if counts else None
    return CategoricalSummary(
        column=name,
        type=dataset.column(name).type,
        count=len(present),
        null_count=dataset.row_count - len(present),
        unique_count=len(counts),
        most_frequent=most_frequent,
    )


def describe(dataset: Dataset) -> DescribeResult:
    """Summarise every column in header order."""
    summaries: List[ColumnSummary] = []
    for column in dataset.columns:
        if column.type is ColumnType.NUMERIC:
            summaries.append(numeric_summary(dataset, column.name))
        else:
            summaries.append(categorical_summary(dataset, column.name))
    return DescribeResult(
        row_count=dataset.row_count,
        column_count=len(dataset.columns),
        summaries=summaries,
    )


def column_statistics(dataset: Dataset, column: str) -> NumericSummary:
    return numeric_summary(dataset, column)
