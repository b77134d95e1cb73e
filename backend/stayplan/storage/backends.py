"""Storage backends behind the persisted planning slots.

A backend behaves like browser local storage: string keys mapped to JSON
text, plus a change signal. The signal carries the ``origin`` of each write so
that a store attached to the backend can ignore its own writes and react only
to writes made by other stores sharing it (another tab, another worker).
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from sqlalchemy import create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from stayplan.models import LocalEntry

logger = logging.getLogger(__name__)

StorageListener = Callable[[str | None, object], None]
"""Called with ``(key, origin)``; ``key`` is ``None`` when everything was cleared."""


class StorageBackend(Protocol):
    """Minimal key-value contract used by :class:`PersistedStore`."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str, *, origin: object | None = None) -> None:
        ...

    def remove_item(self, key: str, *, origin: object | None = None) -> None:
        ...

    def keys(self) -> list[str]:
        ...

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        ...


class _ListenerRegistry:
    def __init__(self) -> None:
        self._listeners: list[StorageListener] = []

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _emit(self, key: str | None, origin: object | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(key, origin)
            except Exception:
                logger.exception("Storage listener failed for key %s", key)


class MemoryStorage(_ListenerRegistry):
    """Process-local storage, shared by every store attached to it."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str, *, origin: object | None = None) -> None:
        self._items[key] = value
        self._emit(key, origin)

    def remove_item(self, key: str, *, origin: object | None = None) -> None:
        if self._items.pop(key, None) is not None:
            self._emit(key, origin)

    def clear(self, *, origin: object | None = None) -> None:
        self._items.clear()
        self._emit(None, origin)

    def keys(self) -> list[str]:
        return list(self._items)


class SqlStorage(_ListenerRegistry):
    """Durable storage in a SQL table, one row per key.

    Other processes may write to the same table. Those writes carry no
    signal; :meth:`poll` compares the table with the last values this
    instance wrote or observed and emits a change for every key that moved.
    """

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        super().__init__()
        if engine is None:
            if not url:
                raise ValueError("SqlStorage needs either a database URL or an engine")
            engine = create_engine(url, future=True)
        self._engine = engine
        LocalEntry.__table__.create(self._engine, checkfirst=True)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False, class_=Session)
        self._known: dict[str, str] = self._rows()

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_item(self, key: str) -> str | None:
        with self._session_factory() as session:
            entry = session.get(LocalEntry, key)
            return entry.value if entry is not None else None

    def set_item(self, key: str, value: str, *, origin: object | None = None) -> None:
        with self._session_factory.begin() as session:
            entry = session.get(LocalEntry, key)
            if entry is None:
                session.add(LocalEntry(key=key, value=value))
            else:
                entry.value = value
        self._known[key] = value
        self._emit(key, origin)

    def remove_item(self, key: str, *, origin: object | None = None) -> None:
        with self._session_factory.begin() as session:
            result = session.execute(delete(LocalEntry).where(LocalEntry.key == key))
        self._known.pop(key, None)
        if result.rowcount:
            self._emit(key, origin)

    def clear(self, *, origin: object | None = None) -> None:
        with self._session_factory.begin() as session:
            session.execute(delete(LocalEntry))
        self._known.clear()
        self._emit(None, origin)

    def keys(self) -> list[str]:
        with self._session_factory() as session:
            return list(session.scalars(select(LocalEntry.key).order_by(LocalEntry.key)))

    def poll(self) -> list[str]:
        """Emit a change for every key written or removed by another connection."""

        current = self._rows()
        changed = sorted(
            key
            for key in current.keys() | self._known.keys()
            if current.get(key) != self._known.get(key)
        )
        self._known = current
        for key in changed:
            self._emit(key, None)
        if changed:
            logger.debug("Picked up %d slots changed by another writer", len(changed))
        return changed

    def dispose(self) -> None:
        self._engine.dispose()

    def _rows(self) -> dict[str, str]:
        with self._session_factory() as session:
            return {key: value for key, value in session.execute(select(LocalEntry.key, LocalEntry.value))}


__all__ = ["MemoryStorage", "SqlStorage", "StorageBackend", "StorageListener"]
