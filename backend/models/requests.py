from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Operation = Literal[
    "read_csv",
    "describe",
    "statistics",
    "filter",
    "sort",
    "group_by",
    "pivot",
    "correlation",
    "transform",
    "outliers",
    "merge_datasets",
]


class AnalysisRequest(BaseModel):
    """One data analysis call.

    Fields accept both snake_case names and the camelCase aliases used by
    tool-calling clients (``filePath``, ``groupByColumn``, ...).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    operation: Operation
    file_path: str = Field(alias="filePath", min_length=1)

    # Parsing
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    has_header: bool = Field(default=True, alias="hasHeader")

    # Column selection
    column: Optional[str] = None
    columns: Optional[List[str]] = None

    # Filter
    filter_column: Optional[str] = Field(default=None, alias="filterColumn")
    filter_operator: Optional[str] = Field(default=None, alias="filterOperator")
    filter_value: Any = Field(default=None, alias="filterValue")

    # Sort
    sort_column: Optional[str] = Field(default=None, alias="sortColumn")
    sort_order: str = Field(default="asc", alias="sortOrder")

    # Group by
    group_by_column: Optional[str] = Field(default=None, alias="groupByColumn")
    aggregate_column: Optional[str] = Field(default=None, alias="aggregateColumn")
    aggregate_func: str = Field(default="count", alias="aggregateFunc")

    # Pivot
    pivot_rows: Optional[str] = Field(default=None, alias="pivotRows")
    pivot_cols: Optional[str] = Field(default=None, alias="pivotCols")
    pivot_values: Optional[str] = Field(default=None, alias="pivotValues")
    pivot_agg_func: str = Field(default="sum", alias="pivotAggFunc")

    # Transform
    transform_column: Optional[str] = Field(default=None, alias="transformColumn")
    transform_type: Optional[str] = Field(default=None, alias="transformType")
    new_column_name: Optional[str] = Field(default=None, alias="newColumnName")

    # Outliers
    outlier_method: str = Field(default="iqr", alias="outlierMethod")
    outlier_threshold: Optional[float] = Field(default=None, alias="outlierThreshold", gt=0)

    # Merge
    merge_file: Optional[str] = Field(default=None, alias="mergeFile")
    merge_on: Optional[str] = Field(default=None, alias="mergeOn")
    merge_how: str = Field(default="inner", alias="mergeHow")

    # Output
    output_path: Optional[str] = Field(default=None, alias="outputPath")
    limit: Optional[int] = Field(default=None, ge=1)
