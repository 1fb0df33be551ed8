"""Abstract protocols (interfaces) for dependency inversion.

This module defines abstract interfaces that decouple components from their
concrete implementations, enabling:
- Easy testing with recording or mock implementations
- Registering new operations without touching the registry
- Clear contracts between the engine and the code that embeds it

Note: We use typing.Protocol for structural subtyping (duck typing).
"""
from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol

if TYPE_CHECKING:
    from models.dataset import Dataset
    from models.requests import AnalysisRequest
    from models.results import AnalysisResult


# Type aliases
StatusEvent = Dict[str, Any]


class StatusEmitter(Protocol):
    """Callback receiving tool lifecycle events.

    Each event is a dict with ``stage`` (``tool_start`` or ``tool_end``),
    ``tool``, ``requestId`` and ``detail`` keys.
    """

    def __call__(self, event: StatusEvent) -> None:
        ...


class OperationHandler(Protocol):
    """Protocol for analysis operation handlers.

    Each implementation handles one kind of operation (statistics, filter,
    group_by, ...) following the Strategy pattern.
    """

    @property
    @abstractmethod
    def supported_operations(self) -> List[str]:
        """Operation names this handler processes."""
        ...

    @abstractmethod
    def can_handle(self, operation: str) -> bool:
        """Check if this handler can process the given operation.

        Args:
            operation: Name of the operation to handle.

        Returns:
            True if this handler supports the operation.
        """
        ...

    @abstractmethod
    def related_files(self, request: "AnalysisRequest") -> Dict[str, str]:
        """Other workspace files the operation reads, keyed by role.

        The caller loads each one and hands them to execute() as ``related``.
        """
        ...

    @abstractmethod
    def execute(
        self,
        dataset: "Dataset",
        request: "AnalysisRequest",
        related: Optional[Mapping[str, "Dataset"]] = None,
    ) -> "AnalysisResult":
        """Execute the operation on the Dataset.

        Args:
            dataset: Dataset loaded for this call.
            request: Validated request parameters.
            related: Datasets loaded for related_files(), by role.

        Returns:
            Operation-specific structured result.
        """
        ...
