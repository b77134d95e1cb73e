"""Database model exports."""

from .store import LocalEntry, RemoteSnapshot

__all__ = [
    "LocalEntry",
    "RemoteSnapshot",
]
