"""Workspace storage for file operations.

Every path handed to the engine is relative to a workspace root. Paths are
canonicalised (symlinks and ``..`` resolved) and rejected if they escape the
root, before any file access happens.

Usage:
    from services.storage import get_storage
    storage = get_storage()
    content = await storage.read_file("data/sales.csv")
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import aiofiles

from config import settings
from errors import InvalidRequestError, NotFoundError, PathTraversalError


class LocalStorage:
    """Local filesystem storage sandboxed to a workspace root."""

    def __init__(self, base_path: Union[str, Path]):
        """Initialize local storage with base path."""
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.root = self.base_path.resolve()

    def resolve_path(self, path: str) -> Path:
        """Resolve a requested path inside the workspace root.

        Raises:
            PathTraversalError: If the canonical path lies outside the root.
            InvalidRequestError: If the path cannot be resolved at all.
        """
        cleaned = str(path).replace("\\", "/")
        if "\x00" in cleaned:
            raise InvalidRequestError(f"Invalid path {path!r}: embedded null byte")
        candidate = Path(cleaned)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            resolved = candidate.resolve()
        except (OSError, ValueError) as e:
            raise InvalidRequestError(f"Invalid path {path!r}: {e}") from e
        if resolved != self.root and self.root not in resolved.parents:
            raise PathTraversalError(f"Path escapes workspace root: {path}")
        return resolved

    async def read_file(self, path: str) -> bytes:
        """Read file content as bytes (non-blocking)."""
        file_path = self.resolve_path(path)
        if not file_path.is_file():
            raise NotFoundError(f"File not found: {path}")
        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise NotFoundError(f"Could not read file {path}: {e.strerror or e}") from e

    async def write_file(self, path: str, content: bytes) -> Path:
        """Write content to a file inside the workspace, creating parents."""
        file_path = self.resolve_path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(content)
        return file_path

    async def exists(self, path: str) -> bool:
        """Check if file exists."""
        return self.resolve_path(path).is_file()


# Storage singleton
_storage_instance: Optional[LocalStorage] = None


def get_storage() -> LocalStorage:
    """Get the storage singleton rooted at the configured workspace.

    Returns:
        LocalStorage instance.
    """
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = LocalStorage(settings.workspace.root)

    return _storage_instance


def reset_storage() -> None:
    """Reset storage singleton (useful for testing)."""
    global _storage_instance
    _storage_instance = None
