"""Progress persistence backends."""

from .adapters import ProgressBackend
from .adapters.memory_adapter import InMemoryAdapter
from .adapters.sqlite_adapter import SQLiteAdapter

__all__ = ["ProgressBackend", "InMemoryAdapter", "SQLiteAdapter"]
