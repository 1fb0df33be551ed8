"""Operation handler registry.

This module provides a registry for operation handlers, implementing the
Strategy pattern with centralized handler lookup.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Mapping, Optional

from errors import InvalidRequestError
from models.dataset import Dataset
from models.requests import AnalysisRequest
from models.results import AnalysisResult
from protocols import OperationHandler
from services.operations.handlers import (
    CorrelationHandler,
    DescribeHandler,
    FilterHandler,
    GroupByHandler,
    MergeHandler,
    OutliersHandler,
    PivotHandler,
    ReadCSVHandler,
    SortHandler,
    StatisticsHandler,
    TransformHandler,
)


class OperationRegistry:
    """Registry for operation handlers.

    Maintains a collection of handlers and routes each request to the
    handler for its operation.

    Attributes:
        _handlers: List of registered handlers.
    """

    def __init__(self):
        """Initialize the registry with default handlers."""
        self._handlers: List[OperationHandler] = []
        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        """Register the default set of operation handlers."""
        handlers = [
            ReadCSVHandler(),
            DescribeHandler(),
            StatisticsHandler(),
            FilterHandler(),
            SortHandler(),
            GroupByHandler(),
            PivotHandler(),
            CorrelationHandler(),
            TransformHandler(),
            OutliersHandler(),
            MergeHandler(),
        ]
        for handler in handlers:
            self.register(handler)

    def register(self, handler: OperationHandler) -> None:
        """Register an operation handler.

        Args:
            handler: Handler instance to register.
        """
        self._handlers.append(handler)

    def get_handler(self, operation: str) -> Optional[OperationHandler]:
        """Get a handler for the given operation name.

        Args:
            operation: Name of the operation to handle.

        Returns:
            Handler instance or None if not found.
        """
        for handler in self._handlers:
            if handler.can_handle(operation):
                return handler
        return None

    def related_files(self, request: AnalysisRequest) -> Dict[str, str]:
        """Other files the request's operation reads, keyed by role.

        Args:
            request: Validated request.

        Returns:
            Mapping of role to workspace path; empty for unknown operations.
        """
        handler = self.get_handler(request.operation)
        return handler.related_files(request) if handler else {}

    def execute(
        self,
        dataset: Dataset,
        request: AnalysisRequest,
        related: Optional[Mapping[str, Dataset]] = None,
    ) -> AnalysisResult:
        """Execute a request using the appropriate handler.

        Args:
            dataset: Dataset loaded for this call.
            request: Validated request.
            related: Datasets loaded for related_files(), by role.

        Returns:
            Operation result.

        Raises:
            InvalidRequestError: If no handler supports the operation.
            AnalysisError: Whatever the handler raises.
        """
        handler = self.get_handler(request.operation)
        if handler is None:
            raise InvalidRequestError(f"Unknown operation: {request.operation}")
        return handler.execute(dataset, request, related)

    @property
    def supported_operations(self) -> List[str]:
        """Get list of all supported operation names.

        Returns:
            List of operation name strings.
        """
        operations = []
        for handler in self._handlers:
            operations.extend(handler.supported_operations)
        return operations


@lru_cache(maxsize=1)
def get_operation_registry() -> OperationRegistry:
    """Get the singleton operation registry.

    Returns:
        Configured OperationRegistry instance.
    """
    return OperationRegistry()
