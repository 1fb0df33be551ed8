"""Data analysis tool façade.

This is the single entry point callers use. It validates the request,
resolves the file inside the workspace, loads it, dispatches to the
operation registry and renders the result. It never raises: every outcome,
including unexpected internal faults, comes back as a string, and every
call emits exactly one ``tool_start`` and one ``tool_end`` status event.

Usage:
    tool = DataAnalysisTool(workspace_root="workspace", emit_status=print)
    report = await tool.invoke({"operation": "describe", "filePath": "data.csv"})
"""
from __future__ import annotations

import asyncio
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from pydantic import ValidationError

from config import settings
from data_loader import load_dataset
from errors import AnalysisError, InternalError, InvalidRequestError
from models.requests import AnalysisRequest
from models.results import TableResult
from protocols import StatusEmitter
from services.operations import OperationRegistry, get_operation_registry
from services.rendering import ReportRenderer
from services.storage import LocalStorage, get_storage

TOOL_NAME = "data_analysis"

RequestParams = Union[AnalysisRequest, Mapping[str, Any]]


def parse_request(params: RequestParams) -> AnalysisRequest:
    """Validate raw parameters into an AnalysisRequest.

    Raises:
        InvalidRequestError: Naming every invalid or missing field.
    """
    if isinstance(params, AnalysisRequest):
        return params
    if not isinstance(params, Mapping):
        raise InvalidRequestError("Request must be an object of named parameters")
    try:
        return AnalysisRequest.model_validate(dict(params))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidRequestError(f"Invalid request: {problems}") from e


def _operation_name(params: RequestParams) -> str:
    if isinstance(params, AnalysisRequest):
        return params.operation
    if isinstance(params, Mapping):
        return str(params.get("operation") or "unknown")
    return "unknown"


class DataAnalysisTool:
    """Stateless analysis façade; each invocation is independent."""

    name = TOOL_NAME

    def __init__(
        self,
        workspace_root: Optional[Union[str, Path]] = None,
        emit_status: Optional[StatusEmitter] = None,
        request_id: Optional[str] = None,
        timeout: Optional[float] = None,
        registry: Optional[OperationRegistry] = None,
        renderer: Optional[ReportRenderer] = None,
    ):
        self.storage: LocalStorage = LocalStorage(workspace_root) if workspace_root else get_storage()
        self.emit_status = emit_status
        self.request_id = request_id
        self.timeout = timeout if timeout is not None else settings.analysis.timeout_seconds
        self.registry = registry or get_operation_registry()
        self.renderer = renderer or ReportRenderer()

    def _notify(self, stage: str, request_id: str, detail: Dict[str, Any]) -> None:
        if self.emit_status is None:
            return
        event = {"stage": stage, "tool": TOOL_NAME, "requestId": request_id, "detail": detail}
        try:
            self.emit_status(event)
        except Exception as e:
            print(f"[DataAnalysis] Status callback failed on {stage}: {e}")

    @contextmanager
    def lifecycle(self, operation: str, request_id: str) -> Iterator[Dict[str, Any]]:
        """Emit ``tool_start`` now and ``tool_end`` on every way out.

        Yields the ``tool_end`` detail dict so the caller can record the
        outcome before it is sent.
        """
        self._notify("tool_start", request_id, {"operation": operation})
        outcome: Dict[str, Any] = {"operation": operation, "status": "error"}
        try:
            yield outcome
        finally:
            self._notify("tool_end", request_id, outcome)

    async def invoke(self, params: RequestParams) -> str:
        """Run one analysis request and return its report or ``Error: ...``."""
        operation = _operation_name(params)
        request_id = self.request_id or uuid.uuid4().hex

        with self.lifecycle(operation, request_id) as outcome:
            try:
                if self.timeout and self.timeout > 0:
                    report = await asyncio.wait_for(self._run(params), timeout=self.timeout)
                else:
                    report = await self._run(params)
                outcome["status"] = "success"
            except AnalysisError as e:
                report = self._fail(outcome, e)
            except asyncio.TimeoutError:
                report = self._fail(
                    outcome, InternalError(f"Operation '{operation}' timed out after {self.timeout}s")
                )
            except Exception as e:
                print(f"[DataAnalysis] Unexpected error in {operation}: {type(e).__name__}: {e}")
                report = self._fail(outcome, InternalError(f"Internal error during {operation}: {e}"))
            return report

    def _fail(self, outcome: Dict[str, Any], error: AnalysisError) -> str:
        outcome["error"] = error.message
        outcome["errorKind"] = error.kind
        return self.renderer.render_error(error)

    async def _run(self, params: RequestParams) -> str:
        request = parse_request(params)
        if request.output_path:
            # Fail closed before any read
            self.storage.resolve_path(request.output_path)
        related_paths = self.registry.related_files(request)
        options = {"delimiter": request.delimiter, "has_header": request.has_header}
        dataset = await load_dataset(request.file_path, self.storage, **options)
        related = {
            role: await load_dataset(path, self.storage, **options)
            for role, path in related_paths.items()
        }
        result = self.registry.execute(dataset, request, related)

        if request.output_path:
            if not isinstance(result, TableResult):
                raise InvalidRequestError(f"outputPath is not supported for {request.operation}")
            await self.storage.write_file(request.output_path, result.dataset.to_csv().encode(settings.analysis.encoding))
            result.saved_to = request.output_path

        return self.renderer.render(result, limit=request.limit)
