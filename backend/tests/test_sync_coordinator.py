"""Sync coordinator tests."""

from __future__ import annotations

import asyncio
from typing import Any

from stayplan.storage import MemoryStorage, PersistedStore
from stayplan.sync.client import StoreServiceError
from stayplan.sync.coordinator import FINAL_RESET_PROMPT, FIRST_RESET_PROMPT, SyncCoordinator, SyncStatus


class FakeStoreClient:
    def __init__(self, remote: dict[str, Any] | None = None, *, fail_saves: bool = False) -> None:
        self.remote = remote
        self.fail_saves = fail_saves
        self.saved: list[dict[str, Any]] = []
        self.cleared = 0

    async def load(self) -> dict[str, Any] | None:
        return self.remote

    async def save(self, data: dict[str, Any]) -> dict[str, Any]:
        if self.fail_saves:
            raise StoreServiceError("Database configuration missing")
        self.saved.append(data)
        return {"success": True}

    async def clear(self) -> dict[str, Any]:
        self.cleared += 1
        self.remote = None
        return {"success": True}


async def test_initial_load_adopts_remote_without_echo() -> None:
    store = PersistedStore(MemoryStorage())
    binding = store.bind("budget-app-cluster-current-year", 2024)
    client = FakeStoreClient({"budget-app-cluster-current-year": 2026, "foreign-key": 1})
    coordinator = SyncCoordinator(store, client, debounce_seconds=0.01)

    updated = await coordinator.start()
    await coordinator.flush()

    assert updated == 1
    assert binding.value == 2026
    assert store.raw("foreign-key") is None
    assert coordinator.status is SyncStatus.SAVED
    assert client.saved == []
    await coordinator.close()


async def test_writes_within_the_window_upload_once() -> None:
    store = PersistedStore(MemoryStorage())
    client = FakeStoreClient()
    coordinator = SyncCoordinator(store, client, debounce_seconds=0.05)
    statuses: list[SyncStatus] = []
    coordinator.add_status_listener(statuses.append)
    await coordinator.start()

    for year in (2024, 2025, 2026):
        store.write("budget-app-cluster-current-year", year)
        await asyncio.sleep(0.01)
    await coordinator.flush()

    assert client.saved == [{"budget-app-cluster-current-year": 2026}]
    assert coordinator.status is SyncStatus.SAVED
    assert SyncStatus.SYNCING in statuses
    assert coordinator.last_synced is not None
    await coordinator.close()


async def test_failed_upload_sets_error_status() -> None:
    store = PersistedStore(MemoryStorage())
    coordinator = SyncCoordinator(store, FakeStoreClient(fail_saves=True), debounce_seconds=0)
    await coordinator.start()

    store.write("budget-app-cluster-current-year", 2025)
    await coordinator.flush()

    assert coordinator.status is SyncStatus.ERROR
    assert coordinator.last_error == "Database configuration missing"
    assert store.read("budget-app-cluster-current-year") == 2025
    await coordinator.close()


async def test_offline_defers_until_back_online() -> None:
    store = PersistedStore(MemoryStorage())
    client = FakeStoreClient()
    coordinator = SyncCoordinator(store, client, debounce_seconds=0)
    await coordinator.start()

    coordinator.set_online(False)
    store.write("budget-app-cluster-current-year", 2025)
    await coordinator.flush()
    assert coordinator.status is SyncStatus.OFFLINE
    assert client.saved == []

    coordinator.set_online(True)
    await coordinator.flush()
    assert client.saved == [{"budget-app-cluster-current-year": 2025}]
    await coordinator.close()


async def test_clear_all_needs_two_confirmations() -> None:
    store = PersistedStore(MemoryStorage())
    store.write("budget-app-cluster-current-year", 2025)
    client = FakeStoreClient({"budget-app-cluster-current-year": 2025})
    coordinator = SyncCoordinator(store, client, debounce_seconds=0)
    prompts: list[str] = []

    def decline_second(message: str) -> bool:
        prompts.append(message)
        return message == FIRST_RESET_PROMPT

    assert not await coordinator.clear_all(decline_second)
    assert prompts == [FIRST_RESET_PROMPT, FINAL_RESET_PROMPT]
    assert client.cleared == 0

    async def accept(message: str) -> bool:
        return True

    assert await coordinator.clear_all(accept)
    assert client.cleared == 1
    assert store.raw("budget-app-cluster-current-year") is None
    assert coordinator.status is SyncStatus.IDLE


class SlowStoreClient(FakeStoreClient):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    async def save(self, data: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(0.05)
        self.calls.append("save")
        return await super().save(data)

    async def clear(self) -> dict[str, Any]:
        self.calls.append("clear")
        return await super().clear()


async def test_clear_all_waits_for_the_upload_in_flight() -> None:
    store = PersistedStore(MemoryStorage())
    client = SlowStoreClient()
    coordinator = SyncCoordinator(store, client, debounce_seconds=0)
    await coordinator.start()

    store.write("budget-app-cluster-current-year", 2025)
    await asyncio.sleep(0.01)

    async def accept(message: str) -> bool:
        return True

    assert await coordinator.clear_all(accept)
    await coordinator.flush()

    assert client.calls == ["save", "clear"]
    assert client.remote is None
    assert store.raw("budget-app-cluster-current-year") is None
    await coordinator.close()
