"""Concrete operation handler implementations.

This module maps each request operation onto the analysis functions in
services.analysis, pulling the parameters it needs out of the request.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional

from errors import InvalidRequestError
from models.dataset import Dataset
from models.requests import AnalysisRequest
from models.results import (
    CorrelationResult,
    DescribeResult,
    GroupByResult,
    MergeResult,
    OutlierResult,
    PivotResult,
    PreviewResult,
    StatisticsResult,
    TableResult,
    TransformResult,
)
from services.analysis import (
    column_statistics,
    correlation,
    describe,
    detect_outliers,
    filter_rows,
    group_by,
    merge_datasets,
    pivot,
    sort_rows,
    transform,
)
from services.analysis.filtering import normalize_operator
from services.operations.base import BaseOperationHandler

Related = Mapping[str, Dataset]


class ReadCSVHandler(BaseOperationHandler):
    """Handler for loading and previewing a file."""

    @property
    def operation(self) -> str:
        return "read_csv"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> PreviewResult:
        if request.columns:
            dataset = dataset.select(request.columns)
        return PreviewResult(dataset=dataset, source=request.file_path)


class DescribeHandler(BaseOperationHandler):
    """Handler for whole-dataset summaries."""

    @property
    def operation(self) -> str:
        return "describe"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> DescribeResult:
        return describe(dataset)


class StatisticsHandler(BaseOperationHandler):
    """Handler for single-column numeric statistics."""

    @property
    def operation(self) -> str:
        return "statistics"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> StatisticsResult:
        column = self._require(request.column, "column")
        return StatisticsResult(summary=column_statistics(dataset, column))


class FilterHandler(BaseOperationHandler):
    """Handler for predicate row filtering."""

    @property
    def operation(self) -> str:
        return "filter"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> TableResult:
        column = self._require(request.filter_column or request.column, "filterColumn")
        op = normalize_operator(self._require(request.filter_operator, "filterOperator"))
        # An omitted value is not a null query; null must be passed explicitly
        if "filter_value" not in request.model_fields_set:
            raise InvalidRequestError(f"filterValue is required for {self.operation}")
        filtered = filter_rows(dataset, column, op, request.filter_value)
        value = "null" if request.filter_value is None else repr(request.filter_value)
        return TableResult(
            dataset=filtered,
            description=f"Filter {dataset.resolve_column(column)} {op} {value}",
            original_count=dataset.row_count,
        )


class SortHandler(BaseOperationHandler):
    """Handler for stable single-column sorting."""

    @property
    def operation(self) -> str:
        return "sort"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> TableResult:
        column = self._require(request.sort_column or request.column, "sortColumn")
        ordered = sort_rows(dataset, column, request.sort_order)
        return TableResult(
            dataset=ordered,
            description=f"Sorted by '{dataset.resolve_column(column)}' ({request.sort_order.lower()})",
            original_count=dataset.row_count,
        )


class GroupByHandler(BaseOperationHandler):
    """Handler for group-by aggregation queries."""

    @property
    def operation(self) -> str:
        return "group_by"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> GroupByResult:
        column = self._require(request.group_by_column or request.column, "groupByColumn")
        return group_by(dataset, column, request.aggregate_column, request.aggregate_func)


class PivotHandler(BaseOperationHandler):
    """Handler for pivot tables."""

    @property
    def operation(self) -> str:
        return "pivot"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> PivotResult:
        rows = self._require(request.pivot_rows, "pivotRows")
        values = self._require(request.pivot_values, "pivotValues")
        return pivot(dataset, rows, values, request.pivot_cols, request.pivot_agg_func)


class CorrelationHandler(BaseOperationHandler):
    """Handler for pairwise correlation."""

    @property
    def operation(self) -> str:
        return "correlation"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> CorrelationResult:
        return correlation(dataset, request.columns)


class TransformHandler(BaseOperationHandler):
    """Handler for derived numeric columns."""

    @property
    def operation(self) -> str:
        return "transform"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> TransformResult:
        column = self._require(request.transform_column or request.column, "transformColumn")
        kind = self._require(request.transform_type, "transformType")
        derived = transform(dataset, column, kind, request.new_column_name)
        source = dataset.resolve_column(column)
        new_column = derived.column_names[-1]
        return TransformResult(
            dataset=derived,
            description=f"Added column '{new_column}' ({kind.lower()} of '{source}')",
            original_count=dataset.row_count,
            source_column=source,
            new_column=new_column,
            transform_type=kind.lower(),
            null_count=int(derived.values(new_column).isna().sum()),
        )


class OutliersHandler(BaseOperationHandler):
    """Handler for outlier detection."""

    @property
    def operation(self) -> str:
        return "outliers"

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> OutlierResult:
        column = self._require(request.column, "column")
        return detect_outliers(dataset, column, request.outlier_method, request.outlier_threshold)



class MergeHandler(BaseOperationHandler):
    """Handler for joining a second workspace file onto the first."""

    @property
    def operation(self) -> str:
        return "merge_datasets"

    def related_files(self, request: AnalysisRequest) -> Dict[str, str]:
        return {"right": self._require(request.merge_file, "mergeFile")}

    def execute(self, dataset: Dataset, request: AnalysisRequest, related: Optional[Related] = None) -> MergeResult:
        on = self._require(request.merge_on, "mergeOn")
        right = (related or {}).get("right")
        if right is None:
            raise InvalidRequestError(f"mergeFile was not loaded for {self.operation}")
        merged = merge_datasets(dataset, right, on, request.merge_how)
        return MergeResult(
            dataset=merged,
            description=(
                f"Merged {request.merge_file} ({request.merge_how.strip().lower()} join "
                f"on '{dataset.resolve_column(on)}')"
            ),
            original_count=dataset.row_count,
            right_count=right.row_count,
        )
