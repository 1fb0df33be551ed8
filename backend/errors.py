"""Typed failures raised by the analysis engine.

Computation modules raise these; the tool façade is the only place that turns
them into the ``Error: <message>`` string returned to callers.
"""
from __future__ import annotations

from typing import Iterable


class AnalysisError(Exception):
    """Base class for every handled analysis failure."""

    kind = "AnalysisError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(AnalysisError):
    kind = "NotFound"


class ParseError(AnalysisError):
    kind = "ParseError"


class ColumnNotFoundError(AnalysisError):
    kind = "ColumnNotFound"

    def __init__(self, column: str, available: Iterable[str] = ()):
        available = list(available)
        message = f"Column '{column}' not found"
        if available:
            message += f". Available: {', '.join(available[:10])}"
        super().__init__(message)
        self.column = column


class NonNumericColumnError(AnalysisError):
    kind = "NonNumericColumn"


class UnsupportedOperatorError(AnalysisError):
    kind = "UnsupportedOperator"


class UnsupportedAggregateFuncError(AnalysisError):
    kind = "UnsupportedAggregateFunc"


class UnknownTransformError(AnalysisError):
    kind = "UnknownTransform"


class DuplicateColumnError(AnalysisError):
    kind = "DuplicateColumn"


class InvalidRequestError(AnalysisError):
    kind = "InvalidRequest"


class PathTraversalError(AnalysisError):
    kind = "PathTraversal"


class InternalError(AnalysisError):
    kind = "InternalError"
