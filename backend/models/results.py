"""Structured results of analysis operations.

Results never leave the engine as-is; services.rendering turns each of them
into the text report returned to callers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from models.dataset import ColumnType, Dataset


@dataclass
class PreviewResult:
    dataset: Dataset
    source: str


@dataclass
class NumericSummary:
    column: str
    count: int
    null_count: int
    sum: float
    mean: float
    variance: float
    std: float
    min: float
    max: float
    q1: float
    median: float
    q3: float
    percentiles: Dict[int, float] = field(default_factory=dict)

    @property
    def range(self) -> float:
        return self.max - self.min


@dataclass
class CategoricalSummary:
    column: str
    type: ColumnType
    count: int
    null_count: int
    unique_count: int
    most_frequent: Optional[Tuple[str, int]] = None


ColumnSummary = Union[NumericSummary, CategoricalSummary]


@dataclass
class DescribeResult:
    row_count: int
    column_count: int
    summaries: List[ColumnSummary]


@dataclass
class StatisticsResult:
    summary: NumericSummary


@dataclass
class TableResult:
    """A filtered, sorted or otherwise derived dataset."""
    dataset: Dataset
    description: str
    original_count: int
    saved_to: Optional[str] = None


@dataclass
class GroupByResult:
    group_column: str
    aggregate_column: Optional[str]
    func: str
    groups: Dict[str, float]


@dataclass
class PivotResult:
    row_column: str
    column_column: Optional[str]
    value_column: str
    func: str
    column_keys: List[str]
    table: Dict[str, Dict[str, Optional[float]]]


@dataclass
class CorrelationPair:
    left: str
    right: str
    coefficient: Optional[float]
    observations: int


@dataclass
class CorrelationResult:
    columns: List[str]
    pairs: List[CorrelationPair]


@dataclass
class TransformResult(TableResult):
    source_column: str = ""
    new_column: str = ""
    transform_type: str = ""
    null_count: int = 0


@dataclass
class MergeResult(TableResult):
    """Rows of a join; ``original_count`` is the left side's row count."""
    right_count: int = 0


@dataclass
class Outlier:
    row_index: int
    value: float


@dataclass
class OutlierResult:
    column: str
    method: str
    threshold: float
    total_values: int
    lower_bound: Optional[float]
    upper_bound: Optional[float]
    outliers: List[Outlier]


AnalysisResult = Union[
    PreviewResult,
    DescribeResult,
    StatisticsResult,
    TableResult,
    GroupByResult,
    PivotResult,
    CorrelationResult,
    TransformResult,
    MergeResult,
    OutlierResult,
]
