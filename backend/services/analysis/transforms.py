"""Derived numeric columns."""
from __future__ import annotations

from typing import Callable, Dict, Optional

import numpy as np
import pandas as pd

from errors import DuplicateColumnError, NonNumericColumnError, UnknownTransformError
from models.dataset import Column, ColumnType, Dataset
from services.analysis.statistics import sample_std


def _normalize(series: pd.Series) -> pd.Series:
    low, high = series.min(), series.max()
    if high == low:
        return series.where(series.isna(), 0.0)
    return (series - low) / (high - low)


def _standardize(series: pd.Series) -> pd.Series:
    std = sample_std(series.dropna())
    if std == 0:
        return series.where(series.isna(), 0.0)
    return (series - series.mean()) / std


def _log(series: pd.Series) -> pd.Series:
    return np.log(series.where(series > 0))


def _round(series: pd.Series) -> pd.Series:
    # Half away from zero, so 2.5 -> 3 and -2.5 -> -3
    return np.sign(series) * np.floor(series.abs() + 0.5)


TRANSFORMS: Dict[str, Callable[[pd.Series], pd.Series]] = {
    "normalize": _normalize,
    "standardize": _standardize,
    "log": _log,
    "round": _round,
    "abs": lambda series: series.abs(),
}


def default_column_name(transform_type: str, column: str) -> str:
    return f"{transform_type}_{column}"


def transform(
    dataset: Dataset,
    column: str,
    transform_type: str,
    new_name: Optional[str] = None,
) -> Dataset:
    """Append one derived numeric column; existing cells are untouched.

    Null and non-numeric source cells map to Null, as do ``log`` inputs that
    are not positive.

    Raises:
        UnknownTransformError: If ``transform_type`` is not supported.
        NonNumericColumnError: If the column has no numeric values.
        DuplicateColumnError: If the new column name already exists, ignoring
            case.
    """
    kind = str(transform_type).strip().lower()
    if kind not in TRANSFORMS:
        raise UnknownTransformError(
            f"Unknown transform '{transform_type}'. Supported: {', '.join(TRANSFORMS)}"
        )

    name = dataset.resolve_column(column)
    if len(dataset.numeric_values(name)) == 0:
        raise NonNumericColumnError(f"Column '{name}' has no numeric values")

    target = new_name or default_column_name(kind, name)
    # Lookup falls back to case-insensitive matching, so names must differ by more than case
    clash = next((c for c in dataset.column_names if c.lower() == target.lower()), None)
    if clash is not None:
        raise DuplicateColumnError(f"Column '{clash}' already exists")

    source = dataset.values(name).astype("float64")
    derived = TRANSFORMS[kind](source).astype("float64")
    return dataset.with_column(Column(target, ColumnType.NUMERIC), derived)
