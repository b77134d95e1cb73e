"""Best-effort mirroring of the local slots to the remote store.

On start the remote snapshot is pulled and every differing key is adopted
locally. After that each local write restarts a debounce timer; when it runs
out, all namespaced slots are uploaded as one snapshot that replaces the
remote copy. Failures only change :attr:`SyncCoordinator.status`.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx

from stayplan.config import get_settings
from stayplan.storage.backup import export_snapshot
from stayplan.storage.store import PersistedStore
from stayplan.sync.client import RemoteStoreClient, StoreServiceError

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], "bool | Awaitable[bool]"]

FIRST_RESET_PROMPT = (
    "WARNING: this deletes ALL saved data, locally and in the cloud (if connected). "
    "This cannot be undone. Are you sure?"
)
FINAL_RESET_PROMPT = "Final confirmation: do you really want to delete everything?"


class SyncStatus(str, enum.Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SAVED = "saved"
    ERROR = "error"
    OFFLINE = "offline"


class SyncCoordinator:
    def __init__(
        self,
        store: PersistedStore,
        client: RemoteStoreClient,
        *,
        debounce_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._debounce = (
            debounce_seconds if debounce_seconds is not None else get_settings().sync_debounce_seconds
        )
        self._status = SyncStatus.IDLE
        self._last_synced: datetime | None = None
        self._last_error: str | None = None
        self._timer: asyncio.Task | None = None
        self._uploads: set[asyncio.Future] = set()
        self._upload_lock = asyncio.Lock()
        self._status_listeners: list[Callable[[SyncStatus], None]] = []
        self._remove_listener: Callable[[], None] | None = None
        self._online = True

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def last_synced(self) -> datetime | None:
        return self._last_synced

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def add_status_listener(self, listener: Callable[[SyncStatus], None]) -> Callable[[], None]:
        self._status_listeners.append(listener)

        def _remove() -> None:
            if listener in self._status_listeners:
                self._status_listeners.remove(listener)

        return _remove

    async def start(self) -> int:
        """Pull the remote snapshot, then start mirroring local writes."""

        updated = await self.load_remote()
        if self._remove_listener is None:
            self._remove_listener = self._store.add_change_listener(self._on_local_change)
        return updated

    async def load_remote(self) -> int:
        """Adopt every remote key whose value differs locally; returns the count."""

        self._set_status(SyncStatus.SYNCING)
        data = await self._client.load()
        if data is None:
            self._set_status(SyncStatus.IDLE)
            return 0

        updated = 0
        for key, value in data.items():
            if not key.startswith(self._store.namespace):
                continue
            if self._store.raw(key) != json.dumps(value):
                self._store.adopt(key, value)
                updated += 1
        logger.info("Remote sync: updated %d keys from server", updated)
        self._last_synced = datetime.now(timezone.utc)
        self._set_status(SyncStatus.SAVED)
        return updated

    def schedule_upload(self) -> None:
        """(Re)start the debounce timer; a pending unfired upload is replaced."""

        if not self._online:
            self._set_status(SyncStatus.OFFLINE)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; upload deferred until the next write")
            return
        self._set_status(SyncStatus.SYNCING)
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = loop.create_task(self._debounced_upload())

    async def upload_now(self) -> bool:
        async with self._upload_lock:
            snapshot = export_snapshot(self._store)
            try:
                await self._client.save(snapshot)
            except (StoreServiceError, httpx.HTTPError) as exc:
                logger.warning("Remote sync upload failed: %s", exc)
                self._last_error = str(exc)
                self._set_status(SyncStatus.ERROR)
                return False
            self._last_error = None
            self._last_synced = datetime.now(timezone.utc)
            self._set_status(SyncStatus.SAVED)
            return True

    async def flush(self) -> None:
        """Wait for the pending timer (if any) and every in-flight upload."""

        while self._timer is not None and not self._timer.done():
            await asyncio.wait({self._timer})
        if self._uploads:
            await asyncio.gather(*list(self._uploads))

    def set_online(self, online: bool) -> None:
        was_online = self._online
        self._online = online
        if not online:
            self._cancel_timer()
            self._set_status(SyncStatus.OFFLINE)
        elif not was_online:
            self.schedule_upload()

    async def clear_all(self, confirm: ConfirmCallback) -> bool:
        """Wipe remote then local data after two confirmations.

        A failing remote delete is logged and the local wipe still happens.
        """

        if not await _ask(confirm, FIRST_RESET_PROMPT) or not await _ask(confirm, FINAL_RESET_PROMPT):
            return False
        self._cancel_timer()
        if self._uploads:
            await asyncio.gather(*list(self._uploads), return_exceptions=True)
        # no upload may start between the remote delete and the local wipe
        async with self._upload_lock:
            try:
                await self._client.clear()
            except (StoreServiceError, httpx.HTTPError) as exc:
                logger.warning("Remote clear failed, wiping local data only: %s", exc)
            self._store.wipe()
        self._set_status(SyncStatus.IDLE)
        return True

    async def close(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self._cancel_timer()
        if self._uploads:
            await asyncio.gather(*list(self._uploads), return_exceptions=True)

    def _on_local_change(self, _key: str) -> None:
        self.schedule_upload()

    async def _debounced_upload(self) -> None:
        await asyncio.sleep(self._debounce)
        upload = asyncio.ensure_future(self.upload_now())
        self._uploads.add(upload)
        upload.add_done_callback(self._uploads.discard)
        # a later write cancels this waiter, never the upload itself
        await asyncio.shield(upload)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _set_status(self, status: SyncStatus) -> None:
        if status is self._status:
            return
        self._status = status
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Sync status listener failed")


async def _ask(confirm: ConfirmCallback, message: str) -> bool:
    answer = confirm(message)
    if asyncio.iscoroutine(answer) or isinstance(answer, asyncio.Future):
        answer = await answer
    return bool(answer)


__all__ = ["FINAL_RESET_PROMPT", "FIRST_RESET_PROMPT", "SyncCoordinator", "SyncStatus"]
