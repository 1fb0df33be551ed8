"""Centralized application configuration.

This module provides a single source of truth for all configurable values,
loaded from environment variables with sensible defaults.

Usage:
    from config import settings
    print(settings.workspace.root)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable with default."""
    return int(os.getenv(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable with default."""
    return float(os.getenv(key, str(default)))


def _get_env_list(key: str, default: str, separator: str = ",") -> List[str]:
    """Get list environment variable with default."""
    value = os.getenv(key, default)
    return [item.strip() for item in value.split(separator) if item.strip()]


@dataclass(frozen=True)
class WorkspaceSettings:
    """Sandbox root that every requested path is resolved against."""
    root: Path = field(default_factory=lambda: Path(_get_env("WORKSPACE_ROOT", "workspace")))


@dataclass(frozen=True)
class AnalysisSettings:
    """Analysis engine configuration."""
    preview_rows: int = field(default_factory=lambda: _get_env_int("ANALYSIS_PREVIEW_ROWS", 20))
    float_precision: int = field(default_factory=lambda: _get_env_int("ANALYSIS_FLOAT_PRECISION", 6))
    encoding: str = field(default_factory=lambda: _get_env("ANALYSIS_ENCODING", "utf-8"))
    # 0 disables the timeout
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("ANALYSIS_TIMEOUT_SECONDS", 0.0))
    iqr_multiplier: float = 1.5
    zscore_threshold: float = 3.0
    min_outlier_values: int = 4


@dataclass(frozen=True)
class CORSSettings:
    """CORS configuration."""
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_env_list("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )


@dataclass(frozen=True)
class Settings:
    """Application settings container."""
    workspace: WorkspaceSettings = field(default_factory=WorkspaceSettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    cors: CORSSettings = field(default_factory=CORSSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()


# Convenience alias for direct import
settings = get_settings()
