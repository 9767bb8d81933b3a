"""Tests for the storage backends and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from api.config import Settings
from storage.base import is_safe_id
from storage.factory import get_storage
from storage.local import LocalStorage
from storage.memory import MemoryStorage

if TYPE_CHECKING:
    from pathlib import Path


class TestSafeIds:
    """Tests for the storage key check."""

    def test_accepts_uuid_like_ids(self) -> None:
        """UUIDs and simple slugs are valid keys."""
        assert is_safe_id("3f2b8c1e-8a0d-4f51-9a57-4f1d2f0d8c11")
        assert is_safe_id("node_1.v2")

    def test_rejects_traversal_and_hidden_names(self) -> None:
        """Path separators, parent references and leading dots are rejected."""
        for bad in ("", "../etc", "a/b", ".hidden", "a\\b", "x" * 129):
            assert not is_safe_id(bad), bad

    def test_rejects_trailing_newline(self, tmp_path: Path) -> None:
        """A trailing newline is not part of a safe ID and is never written as a file name."""
        assert not is_safe_id("abc\n")

        storage = LocalStorage(base_path=str(tmp_path))
        with pytest.raises(ValueError, match="Invalid document ID"):
            storage.put("components", "abc\n", {"id": "abc\n"})
        assert list(tmp_path.rglob("*")) == []


class TestLocalStorage:
    """Tests for the LocalStorage backend."""

    def test_put_and_get(self, tmp_path: Path) -> None:
        """Storing a document and retrieving it should return the same content."""
        storage = LocalStorage(base_path=str(tmp_path))
        location = storage.put("components", "abc-123", {"id": "abc-123", "name": "Orders DB"})

        assert location.endswith("abc-123.json")
        assert (tmp_path / "components" / "abc-123.json").exists()
        assert storage.get("components", "abc-123") == {"id": "abc-123", "name": "Orders DB"}

    def test_get_missing_document(self, tmp_path: Path) -> None:
        """Getting a non-existent document should return None."""
        storage = LocalStorage(base_path=str(tmp_path))
        assert storage.get("components", "does-not-exist") is None

    def test_put_replaces_document(self, tmp_path: Path) -> None:
        """A second put under the same ID overwrites the first."""
        storage = LocalStorage(base_path=str(tmp_path))
        storage.put("links", "l1", {"v": 1})
        storage.put("links", "l1", {"v": 2})

        assert storage.get("links", "l1") == {"v": 2}
        assert storage.count("links") == 1
        assert not list((tmp_path / "links").glob("*.tmp"))

    def test_list_skips_corrupt_files(self, tmp_path: Path) -> None:
        """Undecodable files are skipped instead of failing the whole listing."""
        storage = LocalStorage(base_path=str(tmp_path))
        storage.put("users", "u1", {"id": "u1"})
        (tmp_path / "users" / "broken.json").write_text("{not json")

        assert storage.list("users") == [{"id": "u1"}]

    def test_list_missing_collection(self, tmp_path: Path) -> None:
        """Listing a collection that was never written returns an empty list."""
        storage = LocalStorage(base_path=str(tmp_path))
        assert storage.list("questions") == []

    def test_delete(self, tmp_path: Path) -> None:
        """delete should report whether a document was removed."""
        storage = LocalStorage(base_path=str(tmp_path))
        storage.put("architectures", "a1", {"id": "a1"})

        assert storage.delete("architectures", "a1") is True
        assert storage.delete("architectures", "a1") is False
        assert storage.exists("architectures", "a1") is False

    def test_unsafe_ids(self, tmp_path: Path) -> None:
        """Unsafe IDs are rejected on write and treated as missing on read."""
        storage = LocalStorage(base_path=str(tmp_path))
        with pytest.raises(ValueError, match="Invalid document ID"):
            storage.put("users", "../escape", {})

        assert storage.get("users", "../escape") is None
        assert storage.exists("users", "../escape") is False
        assert storage.delete("users", "../escape") is False

    def test_find(self, tmp_path: Path) -> None:
        """find matches documents on every given top-level field."""
        storage = LocalStorage(base_path=str(tmp_path))
        storage.put("architectures", "a1", {"id": "a1", "userId": "u1", "submitted": True})
        storage.put("architectures", "a2", {"id": "a2", "userId": "u1", "submitted": False})
        storage.put("architectures", "a3", {"id": "a3", "userId": "u2", "submitted": True})

        found = storage.find("architectures", userId="u1", submitted=True)
        assert [doc["id"] for doc in found] == ["a1"]


class TestMemoryStorage:
    """Tests for the MemoryStorage backend."""

    def test_put_and_get(self) -> None:
        """Stored documents can be read back."""
        storage = MemoryStorage()
        assert storage.put("components", "c1", {"id": "c1"}) == "memory://components/c1"
        assert storage.get("components", "c1") == {"id": "c1"}

    def test_documents_are_copied(self) -> None:
        """Mutating a document after put or get must not change the stored copy."""
        storage = MemoryStorage()
        document = {"id": "c1", "properties": {"subtype": "REDIS"}}
        storage.put("components", "c1", document)
        document["properties"]["subtype"] = "CDN"

        fetched = storage.get("components", "c1")
        assert fetched is not None
        fetched["properties"]["subtype"] = "MEMCACHED"

        assert storage.get("components", "c1") == {"id": "c1", "properties": {"subtype": "REDIS"}}

    def test_collections_are_isolated(self) -> None:
        """The same ID in two collections refers to two documents."""
        storage = MemoryStorage()
        storage.put("components", "x", {"kind": "component"})
        storage.put("links", "x", {"kind": "link"})

        assert storage.get("components", "x") == {"kind": "component"}
        assert storage.count("links") == 1
        assert storage.delete("components", "x") is True
        assert storage.exists("links", "x") is True

    def test_rejects_unsafe_ids(self) -> None:
        """Memory storage enforces the same key rules as the file backend."""
        with pytest.raises(ValueError, match="Invalid document ID"):
            MemoryStorage().put("users", "a/b", {})


class TestGetStorage:
    """Tests for the storage factory."""

    def test_returns_local_storage(self, tmp_path: Path) -> None:
        """get_storage should return LocalStorage when use_local_storage is True."""
        settings = Settings(use_local_storage=True, local_storage_path=str(tmp_path))
        get_storage.cache_clear()
        try:
            with patch("api.config.get_settings", return_value=settings):
                storage = get_storage()
        finally:
            get_storage.cache_clear()

        assert isinstance(storage, LocalStorage)
        assert storage.base_path == tmp_path

    def test_returns_memory_storage(self) -> None:
        """get_storage should return MemoryStorage when use_local_storage is False."""
        settings = Settings(use_local_storage=False)
        get_storage.cache_clear()
        try:
            with patch("api.config.get_settings", return_value=settings):
                storage = get_storage()
        finally:
            get_storage.cache_clear()

        assert isinstance(storage, MemoryStorage)
