"""Local filesystem storage implementation for documents."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from storage.base import DocumentStorage, is_safe_id

logger = logging.getLogger(__name__)


class LocalStorage(DocumentStorage):
    """Local filesystem storage backend.

    Stores each document as ``{base_path}/{collection}/{doc_id}.json``.
    Writes go through a temporary file and an atomic rename so a crash never
    leaves a half-written document behind.

    Parameters
    ----------
    base_path : str
        The base directory path for storing documents.

    """

    def __init__(self, base_path: str) -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _collection_dir(self, collection: str) -> Path:
        """Return the directory path for a collection.

        Parameters
        ----------
        collection : str
            Name of the collection.

        Returns
        -------
        Path
            The directory holding the collection's documents.

        Raises
        ------
        ValueError
            If the collection name is not a safe storage key.

        """
        if not is_safe_id(collection):
            msg = f"Invalid collection name: {collection!r}"
            raise ValueError(msg)
        return self.base_path / collection

    def _document_file(self, collection: str, doc_id: str) -> Path:
        """Return the file path for a document.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document.

        Returns
        -------
        Path
            The JSON file path of the document.

        Raises
        ------
        ValueError
            If ``doc_id`` is not a safe storage key.

        """
        if not is_safe_id(doc_id):
            msg = f"Invalid document ID: {doc_id!r}"
            raise ValueError(msg)
        return self._collection_dir(collection) / f"{doc_id}.json"

    def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> str:
        """Write a document to the local filesystem.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document.
        document : dict[str, Any]
            The JSON-serialisable document.

        Returns
        -------
        str
            The file path of the stored document.

        """
        target = self._document_file(collection, doc_id)
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document, default=str)

        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                Path(tmp_name).replace(target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        logger.debug("Stored %s/%s at %s", collection, doc_id, target)
        return str(target)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Read a document from the local filesystem.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document.

        Returns
        -------
        dict[str, Any] | None
            The document, or ``None`` if not found or the ID is unsafe.

        """
        if not is_safe_id(doc_id):
            return None
        document_file = self._document_file(collection, doc_id)
        if not document_file.exists():
            return None
        return json.loads(document_file.read_text(encoding="utf-8"))

    def list(self, collection: str) -> list[dict[str, Any]]:
        """Read every document of a collection."""
        collection_dir = self._collection_dir(collection)
        if not collection_dir.is_dir():
            return []
        documents = []
        for path in sorted(collection_dir.glob("*.json")):
            try:
                documents.append(json.loads(path.read_text(encoding="utf-8")))
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable document %s", path)
        return documents

    def delete(self, collection: str, doc_id: str) -> bool:
        """Remove a document file if it exists."""
        if not is_safe_id(doc_id):
            return False
        document_file = self._document_file(collection, doc_id)
        with self._lock:
            if not document_file.exists():
                return False
            document_file.unlink()
        logger.debug("Deleted %s/%s", collection, doc_id)
        return True

    def exists(self, collection: str, doc_id: str) -> bool:
        """Check if a document exists on the local filesystem.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document.

        Returns
        -------
        bool
            ``True`` if the document exists, ``False`` otherwise.

        """
        if not is_safe_id(doc_id):
            return False
        return self._document_file(collection, doc_id).exists()
