"""API routes for the data analysis tool.

This module exposes the tool over HTTP:
- Tool schema for function-calling clients
- Tool invocation with the collected lifecycle events
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Body

from services.tool import DataAnalysisTool
from services.tool_definitions import DATA_ANALYSIS_TOOL

router = APIRouter()


@router.get("/tools/data-analysis/schema")
async def get_tool_schema() -> Dict[str, Any]:
    """Return the function-calling definition of the tool."""
    return DATA_ANALYSIS_TOOL


@router.post("/tools/data-analysis")
async def invoke_data_analysis(params: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Run one analysis request.

    Failures are part of the tool's contract, so they come back in ``result``
    as ``Error: ...`` with a 200 status rather than as HTTP errors.

    Returns:
        Dictionary with request_id, the report string and the emitted events.
    """
    request_id = uuid.uuid4().hex
    events: List[Dict[str, Any]] = []
    tool = DataAnalysisTool(emit_status=events.append, request_id=request_id)
    result = await tool.invoke(params)
    print(f"[API] data_analysis {params.get('operation')} -> {events[-1]['detail'].get('status')}")
    return {"request_id": request_id, "result": result, "events": events}
