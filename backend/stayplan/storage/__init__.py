"""Persisted planning slots."""

from stayplan.storage.backends import MemoryStorage, SqlStorage, StorageBackend
from stayplan.storage.store import Binding, PersistedStore

__all__ = ["Binding", "MemoryStorage", "PersistedStore", "SqlStorage", "StorageBackend"]
