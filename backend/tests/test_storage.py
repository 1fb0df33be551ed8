"""Tests for the workspace storage sandbox."""
import os

import pytest

from errors import InvalidRequestError, NotFoundError, PathTraversalError
from services.storage import LocalStorage, get_storage, reset_storage


class TestLocalStorage:
    """Tests for LocalStorage."""

    @pytest.fixture
    def storage(self, tmp_path):
        """Create a LocalStorage instance rooted in a temp directory."""
        return LocalStorage(tmp_path / "root")

    @pytest.fixture
    def sample_csv_content(self):
        """Sample CSV content for testing."""
        return b"name,age,city\nAlice,30,NYC\nBob,25,LA\n"

    @pytest.mark.asyncio
    async def test_write_and_read_file(self, storage, sample_csv_content):
        """Test writing and reading a file."""
        path = "test/data.csv"

        await storage.write_file(path, sample_csv_content)
        content = await storage.read_file(path)

        assert content == sample_csv_content

    @pytest.mark.asyncio
    async def test_exists(self, storage, sample_csv_content):
        """Test file existence check."""
        path = "test/data.csv"

        assert not await storage.exists(path)
        await storage.write_file(path, sample_csv_content)
        assert await storage.exists(path)

    @pytest.mark.asyncio
    async def test_read_missing_file(self, storage):
        with pytest.raises(NotFoundError, match="missing.csv"):
            await storage.read_file("missing.csv")

    @pytest.mark.asyncio
    async def test_directory_is_not_a_file(self, storage):
        (storage.root / "folder").mkdir()
        with pytest.raises(NotFoundError):
            await storage.read_file("folder")

    def test_resolve_relative_path(self, storage):
        assert storage.resolve_path("a/b.csv") == storage.root / "a" / "b.csv"

    def test_resolve_backslash_path(self, storage):
        assert storage.resolve_path("a\\b.csv") == storage.root / "a" / "b.csv"

    def test_inner_dot_dot_stays_inside(self, storage):
        assert storage.resolve_path("a/../b.csv") == storage.root / "b.csv"

    @pytest.mark.parametrize("path", [
        "../escape.csv",
        "a/../../escape.csv",
        "..\\escape.csv",
    ])
    def test_traversal_is_rejected(self, storage, path):
        with pytest.raises(PathTraversalError):
            storage.resolve_path(path)

    def test_absolute_path_outside_root(self, storage, tmp_path):
        with pytest.raises(PathTraversalError):
            storage.resolve_path(str(tmp_path / "other.csv"))

    def test_absolute_path_inside_root(self, storage):
        inside = storage.root / "data.csv"
        assert storage.resolve_path(str(inside)) == inside

    def test_symlink_escape_is_rejected(self, storage, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.csv").write_text("a\n1\n")
        os.symlink(outside, storage.root / "link")

        with pytest.raises(PathTraversalError):
            storage.resolve_path("link/secret.csv")

    def test_nul_byte_is_invalid(self, storage):
        with pytest.raises(InvalidRequestError, match="null byte"):
            storage.resolve_path("data\x00.csv")

    @pytest.mark.asyncio
    async def test_traversal_checked_before_read(self, storage, tmp_path):
        (tmp_path / "escape.csv").write_text("a\n1\n")
        with pytest.raises(PathTraversalError):
            await storage.read_file("../escape.csv")


class TestStorageFactory:
    """Tests for the storage singleton."""

    def test_get_storage_returns_singleton(self):
        reset_storage()
        try:
            assert get_storage() is get_storage()
        finally:
            reset_storage()

    def test_reset_storage(self):
        reset_storage()
        try:
            first = get_storage()
            reset_storage()
            assert get_storage() is not first
        finally:
            reset_storage()
