"""Reactive persisted slots on top of a :class:`StorageBackend`.

``PersistedStore`` keeps the parsed value of every key it has read, persists
writes as JSON text and notifies subscribers synchronously. A cached value is
reused only while the backend still holds the text it was parsed from, so a
write made through another connection to the same database is seen by the
next read. Writes made by another store sharing the backend arrive as storage
events and are re-read before subscribers are told.
"""

from __future__ import annotations

import copy
import json
import logging
from functools import lru_cache
from typing import Any, Callable, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from stayplan.config.settings import DEFAULT_NAMESPACE
from stayplan.storage.backends import StorageBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

SlotCallback = Callable[[str, Any], None]
ChangeListener = Callable[[str], None]

_UNSET: Any = object()


@lru_cache(maxsize=128)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def _resolve_default(default: Any) -> Any:
    return default() if callable(default) else default


class PersistedStore:
    """Key-value service with change notification scoped per key."""

    def __init__(self, backend: StorageBackend, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._backend = backend
        self._namespace = namespace
        # key -> (stored text, parsed value)
        self._cache: dict[str, tuple[str, Any]] = {}
        self._subscribers: dict[str, list[SlotCallback]] = {}
        self._change_listeners: list[ChangeListener] = []
        self._detach = backend.add_listener(self._on_storage_event)
        self._closed = False

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # ------------------------------------------------------------------
    # Reading and writing
    # ------------------------------------------------------------------
    def read(self, key: str, default: Any = None, *, schema: Any = None) -> Any:
        """Return the stored value for ``key`` or the default.

        ``default`` may be a factory; it is invoked on a miss and never
        persisted. With ``schema`` the stored value is validated and a
        mismatch is treated like corrupt data.
        """

        found, raw = self._load(key)
        if not found:
            return _resolve_default(default)
        if schema is None:
            return copy.deepcopy(raw)
        try:
            return _adapter(schema).validate_python(raw)
        except ValidationError as exc:
            logger.warning("Stored value for %s does not match its schema: %s", key, exc.errors()[:3])
            return _resolve_default(default)

    def write(self, key: str, value: Any, *, default: Any = None, schema: Any = None) -> Any:
        """Persist ``value`` (or ``value(previous)`` if callable) under ``key``.

        Returns the committed value. A value that cannot be serialised is
        logged and the previous value stays in place.
        """

        previous = _UNSET
        if callable(value):
            previous = self.read(key, default, schema=schema)
            value = value(previous)
        try:
            jsonable = self._to_jsonable(value, schema)
            text = json.dumps(jsonable)
        except (TypeError, ValueError, PydanticSerializationError):
            logger.exception("Unable to serialise value for %s; write abandoned", key)
            return self.read(key, default, schema=schema) if previous is _UNSET else previous

        self._cache[key] = (text, json.loads(text))
        self._backend.set_item(key, text, origin=self)
        self._notify(key)
        for listener in list(self._change_listeners):
            try:
                listener(key)
            except Exception:
                logger.exception("Change listener failed for %s", key)
        return value

    def adopt(self, key: str, value: Any) -> None:
        """Replace ``key`` with a value coming from outside (remote sync, import).

        Subscribers are notified; change listeners are not, so an adopted
        value is not uploaded straight back.
        """

        text = json.dumps(to_jsonable_python(value, by_alias=True))
        self._cache[key] = (text, json.loads(text))
        self._backend.set_item(key, text, origin=self)
        self._notify(key)

    def refresh(self, key: str) -> None:
        """Drop the cached value of ``key`` and re-notify its subscribers."""

        self._cache.pop(key, None)
        self._notify(key)

    def keys(self, prefix: str | None = None) -> list[str]:
        prefix = self._namespace if prefix is None else prefix
        return [key for key in self._backend.keys() if key.startswith(prefix)]

    def snapshot(self) -> dict[str, Any]:
        """Return every namespaced key with its parsed value; corrupt values are skipped."""

        data: dict[str, Any] = {}
        for key in self.keys():
            found, value = self._load(key)
            if found:
                data[key] = copy.deepcopy(value)
        return data

    def raw(self, key: str) -> str | None:
        return self._backend.get_item(key)

    def wipe(self, prefix: str | None = None) -> list[str]:
        """Remove every key starting with ``prefix`` (the namespace by default)."""

        removed = self.keys(prefix)
        for key in removed:
            self._backend.remove_item(key, origin=self)
            self._cache.pop(key, None)
        for key in removed:
            self._notify(key)
        if removed:
            logger.info("Wiped %d persisted slots", len(removed))
        return removed

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, key: str, callback: SlotCallback) -> Callable[[], None]:
        """Call ``callback(key, value)`` after every change of ``key``."""

        self._subscribers.setdefault(key, []).append(callback)

        def _unsubscribe() -> None:
            callbacks = self._subscribers.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscribers[key]

        return _unsubscribe

    def add_change_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener(key)`` after every local write, whatever the key."""

        self._change_listeners.append(listener)

        def _remove() -> None:
            if listener in self._change_listeners:
                self._change_listeners.remove(listener)

        return _remove

    def bind(self, key: str, default: Any = None, *, schema: Any = None) -> "Binding":
        return Binding(self, key, default, schema=schema)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._detach()
        self._subscribers.clear()
        self._change_listeners.clear()
        self._cache.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _load(self, key: str) -> tuple[bool, Any]:
        text = self._backend.get_item(key)
        if text is None:
            self._cache.pop(key, None)
            return False, None
        cached = self._cache.get(key)
        if cached is not None and cached[0] == text:
            return True, cached[1]
        try:
            value = json.loads(text)
        except ValueError:
            self._cache.pop(key, None)
            logger.warning("Ignoring corrupt stored value for %s", key)
            return False, None
        self._cache[key] = (text, value)
        return True, value

    @staticmethod
    def _to_jsonable(value: Any, schema: Any) -> Any:
        if schema is not None:
            return _adapter(schema).dump_python(value, mode="json", by_alias=True)
        return to_jsonable_python(value, by_alias=True)

    def _notify(self, key: str) -> None:
        callbacks = list(self._subscribers.get(key, ()))
        if not callbacks:
            return
        found, value = self._load(key)
        payload = copy.deepcopy(value) if found else None
        for callback in callbacks:
            try:
                callback(key, payload)
            except Exception:
                logger.exception("Subscriber for %s failed", key)

    def _on_storage_event(self, key: str | None, origin: object) -> None:
        if origin is self or self._closed:
            return
        if key is None:
            stale = list(self._cache) + [k for k in self._subscribers if k not in self._cache]
            self._cache.clear()
            for stale_key in stale:
                self._notify(stale_key)
            return
        self._cache.pop(key, None)
        self._notify(key)


class Binding(Generic[T]):
    """A live view of one key, re-resolved on every change notification."""

    def __init__(self, store: PersistedStore, key: str, default: Any = None, *, schema: Any = None) -> None:
        self._store = store
        self._key = key
        self._default = default
        self._schema = schema
        self._watchers: list[Callable[[T], None]] = []
        self._value: T = store.read(key, default, schema=schema)
        self._unsubscribe: Callable[[], None] | None = store.subscribe(key, self._on_change)

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: Any) -> T:
        return self._store.write(self._key, value, default=self._default, schema=self._schema)

    def rebind(self, key: str, default: Any = _UNSET) -> T:
        """Point the binding at ``key``; the previous value is discarded first."""

        if self._unsubscribe is not None:
            self._unsubscribe()
        self._value = None  # type: ignore[assignment]
        self._key = key
        if default is not _UNSET:
            self._default = default
        self._value = self._store.read(key, self._default, schema=self._schema)
        self._unsubscribe = self._store.subscribe(key, self._on_change)
        self._emit()
        return self._value

    def watch(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._watchers.append(callback)

        def _remove() -> None:
            if callback in self._watchers:
                self._watchers.remove(callback)

        return _remove

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._watchers.clear()

    def _on_change(self, key: str, _value: Any) -> None:
        if key != self._key:
            return
        self._value = self._store.read(key, self._default, schema=self._schema)
        self._emit()

    def _emit(self) -> None:
        for watcher in list(self._watchers):
            try:
                watcher(self._value)
            except Exception:
                logger.exception("Watcher for %s failed", self._key)


__all__ = ["Binding", "PersistedStore"]
