"""Abstract base class for document storage backends."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

_SAFE_ID = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9_.-]*")


def is_safe_id(doc_id: str) -> bool:
    """Return ``True`` if ``doc_id`` can be used as a storage key.

    Keys end up as file names for the local backend, so path separators and
    leading dots are rejected for every backend.
    """
    return bool(doc_id) and len(doc_id) <= 128 and _SAFE_ID.fullmatch(doc_id) is not None


class DocumentStorage(ABC):
    """Abstract base class for document storage backends.

    Documents are JSON-serialisable dictionaries grouped into named
    collections (``"users"``, ``"questions"``, ``"components"``, ``"links"``,
    ``"architectures"``) and addressed by a string ID.
    """

    @abstractmethod
    def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> str:
        """Insert or replace a document and return its storage location.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document within the collection.
        document : dict[str, Any]
            The JSON-serialisable document.

        Returns
        -------
        str
            The storage location of the stored document.

        Raises
        ------
        ValueError
            If ``doc_id`` is not a safe storage key.

        """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document by its ID.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document.

        Returns
        -------
        dict[str, Any] | None
            A copy of the document, or ``None`` if not found.

        """

    @abstractmethod
    def list(self, collection: str) -> list[dict[str, Any]]:
        """Return copies of every document in a collection.

        Parameters
        ----------
        collection : str
            Name of the collection.

        Returns
        -------
        list[dict[str, Any]]
            The documents, in no guaranteed order.

        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document.

        Parameters
        ----------
        collection : str
            Name of the collection.
        doc_id : str
            Unique identifier of the document.

        Returns
        -------
        bool
            ``True`` if a document was deleted, ``False`` if it did not exist.

        """

    def exists(self, collection: str, doc_id: str) -> bool:
        """Check if a document exists in storage."""
        return self.get(collection, doc_id) is not None

    def count(self, collection: str) -> int:
        """Return the number of documents in a collection."""
        return len(self.list(collection))

    def find(self, collection: str, **criteria: Any) -> list[dict[str, Any]]:
        """Return documents whose top-level fields equal every given value.

        Parameters
        ----------
        collection : str
            Name of the collection.
        **criteria : Any
            Field/value pairs that must all match.

        Returns
        -------
        list[dict[str, Any]]
            The matching documents.

        """
        return [doc for doc in self.list(collection) if all(doc.get(k) == v for k, v in criteria.items())]
