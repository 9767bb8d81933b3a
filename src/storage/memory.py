"""In-memory storage backend, used for tests and ephemeral deployments."""

from __future__ import annotations

import copy
import threading
from typing import Any

from storage.base import DocumentStorage, is_safe_id


class MemoryStorage(DocumentStorage):
    """Keep every collection in a process-local dictionary.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state by accident.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> str:
        if not is_safe_id(doc_id):
            msg = f"Invalid document ID: {doc_id!r}"
            raise ValueError(msg)
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(document)
        return f"memory://{collection}/{doc_id}"

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            document = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def list(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._collections.get(collection, {}).values()]

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._collections.get(collection, {}).pop(doc_id, None) is not None

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, {}))
