"""Storage module for design board document persistence."""

from storage.base import DocumentStorage
from storage.local import LocalStorage
from storage.memory import MemoryStorage

__all__ = ["DocumentStorage", "LocalStorage", "MemoryStorage"]
