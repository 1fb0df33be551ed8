"""Outlier detection on a numeric column.

Supports multiple methods:
- IQR (default): values outside Q1 - k*IQR to Q3 + k*IQR, k = 1.5
- z-score: values more than k sample standard deviations from the mean, k = 3

A value is flagged only when it lies strictly outside the bounds. Columns
with too few numeric values produce an empty result rather than an error.
"""
from __future__ import annotations

from typing import Optional, Tuple

import pandas as pd

from config import settings
from errors import InvalidRequestError, NonNumericColumnError
from models.dataset import Dataset
from models.results import Outlier, OutlierResult
from services.analysis.statistics import quantile, sample_std

OUTLIER_METHODS = ("iqr", "zscore")

_METHOD_ALIASES = {"z-score": "zscore", "z_score": "zscore"}


def _iqr_bounds(values: pd.Series, threshold: float) -> Tuple[float, float]:
    q1 = quantile(values, 0.25)
    q3 = quantile(values, 0.75)
    iqr = q3 - q1
    return q1 - threshold * iqr, q3 + threshold * iqr


def _zscore_bounds(values: pd.Series, threshold: float) -> Tuple[float, float]:
    std = sample_std(values)
    if std == 0:
        return float(values.min()), float(values.max())
    mean = float(values.mean())
    return mean - threshold * std, mean + threshold * std


def default_threshold(method: str) -> float:
    if method == "zscore":
        return settings.analysis.zscore_threshold
    return settings.analysis.iqr_multiplier


def detect_outliers(
    dataset: Dataset,
    column: str,
    method: str = "iqr",
    threshold: Optional[float] = None,
) -> OutlierResult:
    """Flag the rows whose value in ``column`` lies outside the method's bounds.

    Raises:
        InvalidRequestError: If the method is unknown.
        NonNumericColumnError: If the column has no numeric values.
    """
    key = str(method).strip().lower()
    key = _METHOD_ALIASES.get(key, key)
    if key not in OUTLIER_METHODS:
        raise InvalidRequestError(
            f"Unknown outlier method '{method}'. Supported: {', '.join(OUTLIER_METHODS)}"
        )
    threshold = threshold if threshold is not None else default_threshold(key)

    name = dataset.resolve_column(column)
    values = dataset.numeric_values(name)
    if len(values) == 0:
        raise NonNumericColumnError(f"Column '{name}' has no numeric values")

    result = OutlierResult(
        column=name,
        method=key,
        threshold=threshold,
        total_values=len(values),
        lower_bound=None,
        upper_bound=None,
        outliers=[],
    )
    if len(values) < settings.analysis.min_outlier_values:
        return result

    bounds = _zscore_bounds if key == "zscore" else _iqr_bounds
    lower, upper = bounds(values, threshold)
    flagged = values[(values < lower) | (values > upper)]

    result.lower_bound = lower
    result.upper_bound = upper
    result.outliers = [Outlier(int(position), float(value)) for position, value in flagged.items()]
    return result
