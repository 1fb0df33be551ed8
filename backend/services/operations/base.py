"""Base operation handler.

This module provides the abstract base class for operation handlers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from errors import InvalidRequestError
from models.dataset import Dataset
from models.requests import AnalysisRequest
from models.results import AnalysisResult


class BaseOperationHandler(ABC):
    """Abstract base class for operation handlers.

    Each handler is responsible for executing one kind of analysis on a
    Dataset. Subclasses must implement operation and execute(); those that
    read more than one file also override related_files().
    """

    @property
    @abstractmethod
    def operation(self) -> str:
        """The operation name this handler supports."""
        ...

    @property
    def supported_operations(self) -> List[str]:
        """List of operation names this handler can process."""
        return [self.operation]

    def can_handle(self, operation: str) -> bool:
        """Check if this handler can process the given operation.

        Args:
            operation: Name of the operation to handle.

        Returns:
            True if this handler supports the operation.
        """
        return operation in self.supported_operations

    def related_files(self, request: AnalysisRequest) -> Dict[str, str]:
        """Other workspace files this operation reads, keyed by role."""
        return {}

    @abstractmethod
    def execute(
        self,
        dataset: Dataset,
        request: AnalysisRequest,
        related: Optional[Mapping[str, Dataset]] = None,
    ) -> AnalysisResult:
        """Execute the operation on the Dataset.

        Args:
            dataset: Dataset loaded for this call.
            request: Validated request parameters.
            related: Datasets loaded from related_files(), by role.

        Returns:
            Operation-specific result.

        Raises:
            AnalysisError: On any handled failure.
        """
        ...

    def _require(self, value: Optional[Any], field: str) -> Any:
        """Return a required request field or fail with InvalidRequestError."""
        if value is None or value == "" or value == []:
            raise InvalidRequestError(f"{field} is required for {self.operation}")
        return value
