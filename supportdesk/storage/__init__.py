"""Record store collaborator and its implementations."""

from .base import RecordKind, RecordStore
from .memory import MemoryStore
from .sql import SQLStore

__all__ = ["MemoryStore", "RecordKind", "RecordStore", "SQLStore"]
