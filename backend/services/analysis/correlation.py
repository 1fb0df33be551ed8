"""Pairwise Pearson correlation over numeric columns."""
from __future__ import annotations

from itertools import combinations
from typing import List, Optional, Sequence, Tuple

import numpy as np

from errors import InvalidRequestError, NonNumericColumnError
from models.dataset import Dataset
from models.results import CorrelationPair, CorrelationResult


def pearson(x: np.ndarray, y: np.ndarray) -> Optional[float]:
    """Pearson's r with sample normalisation.

    Returns None for fewer than two observations or when either side is
    constant, where the coefficient is undefined.
    """
    n = len(x)
    if n < 2 or np.ptp(x) == 0 or np.ptp(y) == 0:
        return None
    dx = x - x.mean()
    dy = y - y.mean()
    covariance = float((dx * dy).sum()) / (n - 1)
    std_x = np.sqrt(float((dx * dx).sum()) / (n - 1))
    std_y = np.sqrt(float((dy * dy).sum()) / (n - 1))
    r = covariance / (std_x * std_y)
    return float(min(1.0, max(-1.0, r)))


def _complete_pairs(dataset: Dataset, left: str, right: str) -> Tuple[np.ndarray, np.ndarray]:
    """Values of both columns on rows where both are numeric and non-null."""
    x = dataset.values(left)
    y = dataset.values(right)
    complete = x.notna() & y.notna()
    return x[complete].to_numpy(dtype="float64"), y[complete].to_numpy(dtype="float64")


def correlation(dataset: Dataset, columns: Optional[Sequence[str]]) -> CorrelationResult:
    """Correlate every unordered pair of the requested columns.

    Raises:
        InvalidRequestError: If fewer than two columns are requested.
        NonNumericColumnError: If a column has no numeric values at all.
    """
    if not columns or len(columns) < 2:
        raise InvalidRequestError("At least 2 columns are required for correlation")

    names: List[str] = []
    for column in columns:
        name = dataset.resolve_column(column)
        if len(dataset.numeric_values(name)) == 0:
            raise NonNumericColumnError(f"Column '{name}' has no numeric values")
        names.append(name)

    pairs = []
    for left, right in combinations(names, 2):
        x, y = _complete_pairs(dataset, left, right)
        pairs.append(CorrelationPair(left, right, pearson(x, y), len(x)))

    return CorrelationResult(columns=names, pairs=pairs)
