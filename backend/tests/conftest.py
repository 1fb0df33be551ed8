"""Pytest configuration and fixtures.

This module provides fixtures for:
- A temporary workspace root with a CSV writer
- Parsed sample datasets
- The analysis tool with a recording status callback
- FastAPI test client bound to the temporary workspace
"""
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
from fastapi.testclient import TestClient

# Keep the default workspace out of the working directory before config loads
os.environ.setdefault("WORKSPACE_ROOT", tempfile.mkdtemp(prefix="analysis-workspace-"))

from data_loader import parse_csv
from main import app
from models.dataset import Dataset
from services import storage as storage_module
from services.storage import LocalStorage
from services.tool import DataAnalysisTool


SALES_CSV = (
    "region,product,units,price,active\n"
    "North,Widget,10,2.5,true\n"
    "South,Gadget,20,4.0,false\n"
    "North,Gadget,30,,true\n"
    "East,Widget,,3.5,\n"
    "South,Widget,50,1.0,true\n"
)


@pytest.fixture()
def workspace(tmp_path) -> Path:
    """Workspace root for one test."""
    return tmp_path


@pytest.fixture()
def write_csv(workspace) -> Callable[[str, str], str]:
    """Write a CSV file into the workspace and return its relative path."""
    def _write(name: str, content: str) -> str:
        path = workspace / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return name
    return _write


@pytest.fixture()
def sales_csv(write_csv) -> str:
    """Path of the sample sales file inside the workspace."""
    return write_csv("sales.csv", SALES_CSV)


@pytest.fixture()
def sales() -> Dataset:
    """Sample sales data parsed in memory."""
    return parse_csv(SALES_CSV, source="sales.csv")


@pytest.fixture()
def events() -> List[Dict[str, Any]]:
    """Status events recorded by the tool fixture."""
    return []


@pytest.fixture()
def tool(workspace, events) -> DataAnalysisTool:
    """Analysis tool rooted at the workspace that records its events."""
    return DataAnalysisTool(workspace_root=workspace, emit_status=events.append, request_id="req-1")


@pytest.fixture()
def client(workspace, monkeypatch):
    """Provide a FastAPI test client serving files from the workspace."""
    monkeypatch.setattr(storage_module, "_storage_instance", LocalStorage(workspace))
    return TestClient(app)
