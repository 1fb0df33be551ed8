"""In-memory typed table produced by the loader.

A Dataset keeps one pandas Series per column. The column type is decided once
at load time and determines how a missing cell (Null) is stored:

- numeric: float64 Series, Null is NaN
- boolean: object Series of True/False, Null is None
- text: object Series of str, Null is None
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from errors import ColumnNotFoundError

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_BOOLEAN_TOKENS = {"true": True, "false": False}


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    TEXT = "text"


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType


def is_null(value: Any) -> bool:
    """Return True for a missing cell in any column type."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def parse_number(value: Any) -> Optional[float]:
    """Parse a numeric literal, returning None when it is not one.

    Booleans are never numbers, so ``True`` does not become 1.0. Literals that
    overflow to infinity (``1e400``) are not numbers either.
    """
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str) and _NUMBER_PATTERN.match(value.strip()):
        number = float(value.strip())
        return number if math.isfinite(number) else None
    return None


def parse_bool(value: Any) -> Optional[bool]:
    """Parse a boolean or a case-insensitive true/false token."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, str):
        return _BOOLEAN_TOKENS.get(value.strip().lower())
    return None


def to_text(value: Any) -> str:
    """Textual representation of a cell, used for comparison and grouping."""
    if is_null(value):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        if number.is_integer() and abs(number) < 1e15:
            return str(int(number))
        return f"{number:.15g}"
    return str(value)


class Dataset:
    """Ordered typed columns over ordered rows.

    Row positions are 0-based and follow file order until an operation
    reorders them; derived datasets are always re-indexed from 0.
    """

    def __init__(self, columns: Sequence[Column], frame: pd.DataFrame):
        self.columns: List[Column] = list(columns)
        self.frame = frame.reset_index(drop=True)
        self._by_name: Dict[str, Column] = {c.name: c for c in self.columns}

    def __len__(self) -> int:
        return len(self.frame)

    def __repr__(self) -> str:
        return f"Dataset(rows={len(self)}, columns={self.column_names})"

    @property
    def row_count(self) -> int:
        return len(self.frame)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def resolve_column(self, name: Optional[str]) -> str:
        """Find a column by exact name, then by a unique case-insensitive match.

        Raises:
            ColumnNotFoundError: If nothing (or more than one column) matches.
        """
        if name is None:
            raise ColumnNotFoundError("", self.column_names)
        if name in self._by_name:
            return name
        matches = [c for c in self.column_names if c.lower() == name.lower()]
        if len(matches) == 1:
            return matches[0]
        raise ColumnNotFoundError(name, self.column_names)

    def column(self, name: str) -> Column:
        return self._by_name[self.resolve_column(name)]

    def values(self, name: str) -> pd.Series:
        return self.frame[self.resolve_column(name)]

    def numeric_values(self, name: str) -> pd.Series:
        """Non-null numeric cells of a column, indexed by row position.

        Non-numeric columns yield an empty Series.
        """
        column = self.column(name)
        if column.type is not ColumnType.NUMERIC:
            return pd.Series([], dtype="float64")
        return self.frame[column.name].dropna()

    def cell(self, row: int, name: str) -> Any:
        value = self.frame.at[row, self.resolve_column(name)]
        if isinstance(value, np.bool_):
            return bool(value)
        return None if is_null(value) else value

    def take(self, positions: Any) -> "Dataset":
        """New dataset from a boolean mask or a sequence of row positions."""
        if isinstance(positions, pd.Series) and positions.dtype == bool:
            return Dataset(self.columns, self.frame[positions.to_numpy()])
        return Dataset(self.columns, self.frame.iloc[list(positions)])

    def select(self, names: Sequence[str]) -> "Dataset":
        resolved = list(dict.fromkeys(self.resolve_column(n) for n in names))
        return Dataset([self._by_name[n] for n in resolved], self.frame[resolved])

    def with_column(self, column: Column, series: pd.Series) -> "Dataset":
        frame = self.frame.copy()
        frame[column.name] = series.to_numpy()
        return Dataset(self.columns + [column], frame)

    def to_text_frame(self, null: str = "") -> pd.DataFrame:
        """All cells as strings; Null cells become the ``null`` placeholder."""
        return pd.DataFrame(
            {
                c.name: [null if is_null(v) else to_text(v) for v in self.frame[c.name]]
                for c in self.columns
            },
            columns=self.column_names,
        )

    def to_csv(self) -> str:
        return self.to_text_frame().to_csv(index=False)
