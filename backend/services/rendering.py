"""Text reports for analysis results.

Every successful result is formatted into a fixed, human-readable string and
every failure into exactly ``Error: <message>``. This is the only place where
results become text.
"""
from __future__ import annotations

import math
from typing import Any, Callable, List, Optional, Tuple

from config import settings
from models.dataset import Dataset
from models.results import (
    AnalysisResult,
    CategoricalSummary,
    ColumnSummary,
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

ERROR_PREFIX = "Error: "
NULL_LABEL = "null"
UNDEFINED_LABEL = "undefined"


def format_number(value: Optional[float], precision: Optional[int] = None) -> str:
    """Round to ``precision`` decimals and drop trailing zeros.

    None and NaN render as ``undefined``.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return UNDEFINED_LABEL
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    precision = settings.analysis.float_precision if precision is None else precision
    text = f"{float(value):.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _group_label(key: str) -> str:
    return key if key != "" else f"({NULL_LABEL})"


class ReportRenderer:
    """Formats analysis results and errors into report strings."""

    def __init__(self, preview_rows: Optional[int] = None, precision: Optional[int] = None):
        self.preview_rows = preview_rows or settings.analysis.preview_rows
        self.precision = settings.analysis.float_precision if precision is None else precision
        # Subclasses of TableResult must come before it
        self._renderers: List[Tuple[type, Callable[..., str]]] = [
            (PreviewResult, self._render_preview_result),
            (DescribeResult, self._render_describe),
            (StatisticsResult, self._render_statistics),
            (TransformResult, self._render_transform),
            (MergeResult, self._render_merge),
            (TableResult, self._render_table),
            (GroupByResult, self._render_group_by),
            (PivotResult, self._render_pivot),
            (CorrelationResult, self._render_correlation),
            (OutlierResult, self._render_outliers),
        ]

    def render(self, result: AnalysisResult, limit: Optional[int] = None) -> str:
        """Format a result.

        Args:
            result: Structured operation result.
            limit: Maximum preview rows for dataset-producing results.

        Raises:
            TypeError: If the result type has no renderer.
        """
        for result_type, renderer in self._renderers:
            if isinstance(result, result_type):
                return renderer(result, limit or self.preview_rows)
        raise TypeError(f"No renderer for {type(result).__name__}")

    def render_error(self, error: BaseException) -> str:
        message = str(error).strip() or type(error).__name__
        return f"{ERROR_PREFIX}{message}"

    # ---- Helpers -----------------------------------------------------------

    def _num(self, value: Optional[float]) -> str:
        return format_number(value, self.precision)

    def _preview(self, dataset: Dataset, limit: int) -> str:
        if dataset.row_count == 0:
            return "(no rows)"
        frame = dataset.to_text_frame(null=NULL_LABEL).head(limit)
        lines = [frame.to_string(index=False)]
        remaining = dataset.row_count - len(frame)
        if remaining > 0:
            lines.append(f"... {remaining} more rows")
        return "\n".join(lines)

    def _summary_lines(self, summary: ColumnSummary, detailed: bool = False) -> List[str]:
        if isinstance(summary, CategoricalSummary):
            lines = [
                f"{summary.column} ({summary.type.value})",
                f"  count: {summary.count}",
                f"  nulls: {summary.null_count}",
                f"  unique: {summary.unique_count}",
            ]
            if summary.most_frequent:
                value, frequency = summary.most_frequent
                lines.append(f"  most frequent: {value} ({frequency})")
            return lines

        fields: List[Tuple[str, Any]] = [("count", summary.count), ("nulls", summary.null_count)]
        if detailed:
            fields.append(("sum", summary.sum))
        fields += [("mean", summary.mean), ("std", summary.std)]
        if detailed:
            fields.append(("variance", summary.variance))
        fields += [
            ("min", summary.min),
            ("q1", summary.q1),
            ("median", summary.median),
            ("q3", summary.q3),
            ("max", summary.max),
        ]
        if detailed:
            fields.append(("range", summary.range))
            fields += [(f"p{p}", v) for p, v in summary.percentiles.items()]
        lines = [f"{summary.column} (numeric)"]
        lines += [f"  {label}: {self._num(value)}" for label, value in fields]
        return lines

    # ---- Renderers ---------------------------------------------------------

    def _render_preview_result(self, result: PreviewResult, limit: int) -> str:
        dataset = result.dataset
        columns = ", ".join(f"{c.name} ({c.type.value})" for c in dataset.columns)
        return "\n".join([
            f"Loaded {dataset.row_count} rows x {len(dataset.columns)} columns from {result.source}",
            f"Columns: {columns}",
            "",
            self._preview(dataset, limit),
        ])

    def _render_describe(self, result: DescribeResult, limit: int) -> str:
        lines = [f"Dataset: {result.row_count} rows x {result.column_count} columns"]
        for summary in result.summaries:
            lines.append("")
            lines += self._summary_lines(summary)
        return "\n".join(lines)

    def _render_statistics(self, result: StatisticsResult, limit: int) -> str:
        lines = self._summary_lines(result.summary, detailed=True)
        lines[0] = f"Statistics for '{result.summary.column}' (numeric)"
        return "\n".join(lines)

    def _render_table(self, result: TableResult, limit: int) -> str:
        lines = [
            f"{result.description}: {result.dataset.row_count} of {result.original_count} rows",
        ]
        if result.saved_to:
            lines.append(f"Saved to {result.saved_to}")
        lines += ["", self._preview(result.dataset, limit)]
        return "\n".join(lines)

    def _render_transform(self, result: TransformResult, limit: int) -> str:
        lines = [
            f"{result.description}: {result.dataset.row_count} rows, "
            f"{result.null_count} null values in '{result.new_column}'",
        ]
        if result.saved_to:
            lines.append(f"Saved to {result.saved_to}")
        lines += ["", self._preview(result.dataset, limit)]
        return "\n".join(lines)

    def _render_merge(self, result: MergeResult, limit: int) -> str:
        lines = [
            f"{result.description}: {result.dataset.row_count} rows "
            f"(left {result.original_count}, right {result.right_count})",
        ]
        if result.saved_to:
            lines.append(f"Saved to {result.saved_to}")
        lines += ["", self._preview(result.dataset, limit)]
        return "\n".join(lines)

    def _render_group_by(self, result: GroupByResult, limit: int) -> str:
        if result.aggregate_column:
            title = f"{result.func}({result.aggregate_column}) by '{result.group_column}'"
        else:
            title = f"count by '{result.group_column}'"
        lines = [f"Group {title}: {len(result.groups)} groups"]
        lines += [f"{_group_label(key)}: {self._num(value)}" for key, value in result.groups.items()]
        return "\n".join(lines)

    def _render_pivot(self, result: PivotResult, limit: int) -> str:
        header = [result.row_column] + [_group_label(k) for k in result.column_keys]
        rows = [
            [_group_label(row_key)] + [
                "" if cells[k] is None else self._num(cells[k]) for k in result.column_keys
            ]
            for row_key, cells in result.table.items()
        ]
        widths = [max(len(r[i]) for r in [header] + rows) for i in range(len(header))]
        table = [
            "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(r)).rstrip()
            for r in [header] + rows
        ]
        by = f" x '{result.column_column}'" if result.column_column else ""
        title = (
            f"Pivot {result.func}({result.value_column}) by '{result.row_column}'{by}: "
            f"{len(result.table)} rows"
        )
        return "\n".join([title, ""] + table)

    def _render_correlation(self, result: CorrelationResult, limit: int) -> str:
        lines = [f"Pearson correlation for {len(result.columns)} columns"]
        lines += [
            f"{pair.left} ~ {pair.right}: {self._num(pair.coefficient)} (n={pair.observations})"
            for pair in result.pairs
        ]
        return "\n".join(lines)

    def _render_outliers(self, result: OutlierResult, limit: int) -> str:
        lines = [
            f"Outliers in '{result.column}' ({result.method}, threshold {self._num(result.threshold)}): "
            f"{len(result.outliers)} of {result.total_values} values",
        ]
        if result.lower_bound is None:
            lines.append(
                f"Not enough numeric values for outlier detection "
                f"(need at least {settings.analysis.min_outlier_values})"
            )
            return "\n".join(lines)
        lines.append(f"Bounds: [{self._num(result.lower_bound)}, {self._num(result.upper_bound)}]")
        lines += [f"row {o.row_index}: {self._num(o.value)}" for o in result.outliers]
        return "\n".join(lines)

