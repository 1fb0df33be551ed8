"""Analysis computations over a loaded Dataset.

Each module is a set of plain functions that take a Dataset and return a
structured result (or a derived Dataset), raising errors.AnalysisError
subclasses on failure:
- statistics: describe, per-column summaries, quantiles
- filtering: predicate filter and stable sort
- grouping: group-by aggregation and pivot tables
- correlation: pairwise Pearson coefficients
- transforms: derived numeric columns
- merging: key joins between two datasets
- outliers: IQR and z-score detection
"""
from services.analysis.correlation import correlation
from services.analysis.filtering import filter_rows, sort_rows
from services.analysis.grouping import group_by, pivot
from services.analysis.merging import merge_datasets
from services.analysis.outliers import detect_outliers
from services.analysis.statistics import column_statistics, describe
from services.analysis.transforms import transform

__all__ = [
    "column_statistics",
    "correlation",
    "describe",
    "detect_outliers",
    "filter_rows",
    "group_by",
    "merge_datasets",
    "pivot",
    "sort_rows",
    "transform",
]
