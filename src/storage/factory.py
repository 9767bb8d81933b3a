"""Storage backend factory for the design board.

Returns the configured storage backend based on application settings.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storage.base import DocumentStorage


@lru_cache
def get_storage() -> DocumentStorage:
    """Return the configured storage backend instance (cached).

    Uses ``settings.use_local_storage`` to decide which backend to use:

    - ``True``  → :class:`~storage.local.LocalStorage` (filesystem)
    - ``False`` → :class:`~storage.memory.MemoryStorage` (process memory)

    The instance is cached so every request shares the same backend; the
    in-memory backend would otherwise lose its state between requests.

    Returns
    -------
    DocumentStorage
        The storage backend instance.

    """
    from api.config import get_settings  # noqa: PLC0415

    settings = get_settings()

    if settings.use_local_storage:
        from storage.local import LocalStorage  # noqa: PLC0415

        return LocalStorage(base_path=settings.local_storage_path)

    from storage.memory import MemoryStorage  # noqa: PLC0415

    return MemoryStorage()
