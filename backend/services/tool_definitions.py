"""Tool definition for LLM function calling.

The data analysis tool is exposed to tool-calling models with a single
function whose ``operation`` argument selects what to run:
- Inspection: read_csv, describe, statistics
- Row operations: filter, sort
- Aggregation: group_by, pivot, correlation
- Derivation and diagnostics: transform, outliers
- Combination: merge_datasets
"""
from __future__ import annotations

from typing import Any, Dict

from services.analysis.filtering import FILTER_OPERATORS, SORT_ORDERS
from services.analysis.grouping import AGGREGATE_FUNCTIONS
from services.analysis.merging import MERGE_HOWS
from services.analysis.outliers import OUTLIER_METHODS
from services.analysis.transforms import TRANSFORMS

# =============================================================================
# LLM Function Calling Tool (Read-only unless outputPath is given)
# =============================================================================

DATA_ANALYSIS_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "data_analysis",
        "description": "Analyze a CSV file in the workspace. Pick ONE operation per call. Use describe first to see column names and types, then statistics, filter, sort, group_by, pivot, correlation, transform, outliers or merge_datasets. Returns a plain-text report, or a string starting with 'Error:' on failure.",
        "parameters": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": [
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
                    ],
                    "description": "Analysis to run",
                },
                "filePath": {"type": "string", "description": "CSV path relative to the workspace root"},
                "delimiter": {"type": "string", "description": "Single-character field separator (default ','), e.g. ';' or a tab"},
                "hasHeader": {"type": "boolean", "description": "Whether the first line holds column names (default true); without one, columns are named column_1, column_2, ..."},
                "column": {"type": "string", "description": "Target column for statistics and outliers (also the default for filter, sort and group_by)"},
                "columns": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Columns for correlation (at least 2), or the columns to keep for read_csv",
                },
                "filterColumn": {"type": "string", "description": "Column to filter on"},
                "filterOperator": {
                    "type": "string",
                    "enum": FILTER_OPERATORS,
                    "description": "Comparison to apply (contains/startswith/endswith only work on text columns)",
                },
                "filterValue": {
                    "type": ["string", "number", "boolean", "null"],
                    "description": "Value to compare against; null selects empty cells with eq",
                },
                "sortColumn": {"type": "string", "description": "Column to sort by"},
                "sortOrder": {"type": "string", "enum": list(SORT_ORDERS), "description": "Sort direction (default asc); empty cells always sort last"},
                "groupByColumn": {"type": "string", "description": "Column whose values form the groups"},
                "aggregateColumn": {"type": "string", "description": "Numeric column to aggregate (not needed for count)"},
                "aggregateFunc": {"type": "string", "enum": AGGREGATE_FUNCTIONS, "description": "Aggregate function (default count)"},
                "pivotRows": {"type": "string", "description": "Column whose values become pivot rows"},
                "pivotCols": {"type": "string", "description": "Optional column whose values become pivot columns"},
                "pivotValues": {"type": "string", "description": "Numeric column aggregated in each pivot cell"},
                "pivotAggFunc": {"type": "string", "enum": AGGREGATE_FUNCTIONS, "description": "Pivot aggregate function (default sum)"},
                "transformColumn": {"type": "string", "description": "Numeric column to derive from"},
                "transformType": {"type": "string", "enum": list(TRANSFORMS), "description": "Derivation to apply"},
                "newColumnName": {"type": "string", "description": "Name for the derived column (default <transformType>_<column>)"},
                "outlierMethod": {"type": "string", "enum": list(OUTLIER_METHODS), "description": "Outlier rule (default iqr)"},
                "outlierThreshold": {"type": "number", "description": "IQR multiplier or z-score cutoff (defaults 1.5 and 3)"},
                "mergeFile": {"type": "string", "description": "Second CSV (workspace-relative) to join onto filePath for merge_datasets"},
                "mergeOn": {"type": "string", "description": "Key column present in both files"},
                "mergeHow": {"type": "string", "enum": list(MERGE_HOWS), "description": "Join type (default inner)"},
                "outputPath": {"type": "string", "description": "Save the resulting rows of filter, sort, transform or merge_datasets as CSV at this workspace path"},
                "limit": {"type": "integer", "description": "Max preview rows in the report (default 20)"},
            },
            "required": ["operation", "filePath"],
        },
    },
}
