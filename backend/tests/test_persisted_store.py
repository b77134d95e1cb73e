"""Persisted slot behaviour: defaults, notifications and key switching."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from stayplan.schemas.costs import AbsoluteCost, PercentageCost, VariableCost
from stayplan.storage import MemoryStorage, PersistedStore


class _Plan(BaseModel):
    name: str
    nights: int


def test_read_returns_default_without_persisting(store, memory_storage):
    calls = []

    def factory():
        calls.append(1)
        return [0] * 12

    assert store.read("budget-app-units", factory) == [0] * 12
    assert calls == [1]
    assert memory_storage.get_item("budget-app-units") is None


def test_read_after_write_ignores_default(store):
    store.write("budget-app-plan", {"occupancy": [1, 2, 3]})

    assert store.read("budget-app-plan", {"occupancy": []}) == {"occupancy": [1, 2, 3]}
    assert store.read("budget-app-plan", None) == {"occupancy": [1, 2, 3]}


def test_read_returns_a_copy(store):
    store.write("budget-app-list", [1, 2])
    value = store.read("budget-app-list", [])
    value.append(3)

    assert store.read("budget-app-list", []) == [1, 2]


def test_updater_receives_previous_value(store):
    store.write("budget-app-count", 1)
    store.write("budget-app-count", lambda previous: previous + 1)
    store.write("budget-app-missing", lambda previous: previous + [1], default=list)

    assert store.read("budget-app-count", 0) == 2
    assert store.read("budget-app-missing", list) == [1]


def test_corrupt_value_falls_back_to_default(memory_storage, caplog):
    memory_storage.set_item("budget-app-broken", "{not json")
    store = PersistedStore(memory_storage)

    with caplog.at_level(logging.WARNING):
        assert store.read("budget-app-broken", "fallback") == "fallback"
    assert "corrupt" in caplog.text

    store.write("budget-app-broken", {"ok": True})
    assert store.read("budget-app-broken", None) == {"ok": True}


def test_schema_mismatch_is_treated_as_absent(store):
    store.write("budget-app-plan", {"name": "x", "nights": "many"})

    assert store.read("budget-app-plan", None, schema=_Plan) is None

    store.write("budget-app-plan", _Plan(name="x", nights=3), schema=_Plan)
    assert store.read("budget-app-plan", None, schema=_Plan) == _Plan(name="x", nights=3)


def test_legacy_variable_costs_are_upgraded_on_read(store):
    store.write(
        "budget-app-costi-variable",
        [
            {"id": 200, "name": "Commissioni OTA", "type": "percentuale", "values": [15] + [0] * 12},
            {"id": 201, "name": "Utenze", "type": "variabile", "values": [24] + [2] * 12},
        ],
    )

    items = store.read("budget-app-costi-variable", list, schema=list[VariableCost])

    assert isinstance(items[0], PercentageCost) and items[0].rate == 15
    assert isinstance(items[1], AbsoluteCost) and items[1].annual_total == 24


def test_unserialisable_write_keeps_previous_value(store):
    store.write("budget-app-slot", [1])

    result = store.write("budget-app-slot", object())

    assert result == [1]
    assert store.read("budget-app-slot", None) == [1]


def test_subscribers_receive_new_value_synchronously(store):
    seen = []
    unsubscribe = store.subscribe("budget-app-year", lambda key, value: seen.append((key, value)))

    store.write("budget-app-year", 2025)
    store.write("budget-app-other", 1)
    unsubscribe()
    store.write("budget-app-year", 2026)

    assert seen == [("budget-app-year", 2025)]


def test_failing_subscriber_does_not_block_others(store):
    seen = []

    def broken(key, value):
        raise RuntimeError("boom")

    store.subscribe("budget-app-year", broken)
    store.subscribe("budget-app-year", lambda key, value: seen.append(value))

    store.write("budget-app-year", 2025)

    assert seen == [2025]


def test_bindings_to_same_key_converge(store):
    first = store.bind("budget-app-units", lambda: [0] * 12)
    second = store.bind("budget-app-units", lambda: [0] * 12)

    first.set([16] * 12)

    assert first.value == [16] * 12
    assert second.value == [16] * 12


def test_bindings_converge_across_stores_sharing_storage():
    storage = MemoryStorage()
    tab_one = PersistedStore(storage)
    tab_two = PersistedStore(storage)
    other_tab_binding = tab_two.bind("budget-app-locked", False)
    tab_two.read("budget-app-locked", False)
    watched = []
    other_tab_binding.watch(watched.append)

    tab_one.write("budget-app-locked", True)

    assert other_tab_binding.value is True
    assert tab_two.read("budget-app-locked", False) is True
    assert watched == [True]


def test_rebind_never_shows_previous_key(store):
    store.write("budget-app-a-units", [1] * 12)
    binding = store.bind("budget-app-a-units", lambda: [0] * 12)
    assert binding.value == [1] * 12

    assert binding.rebind("budget-app-b-units") == [0] * 12
    assert binding.value == [0] * 12

    store.write("budget-app-a-units", [5] * 12)
    assert binding.value == [0] * 12

    store.write("budget-app-b-units", [2] * 12)
    assert binding.value == [2] * 12


def test_change_listener_sees_writes_but_not_adopted_values(store):
    changes = []
    store.add_change_listener(changes.append)
    binding = store.bind("budget-app-year", 2024)

    store.write("budget-app-year", 2025)
    store.adopt("budget-app-year", 2030)

    assert changes == ["budget-app-year"]
    assert binding.value == 2030


def test_wipe_removes_prefixed_keys_and_notifies(store, memory_storage):
    store.write("budget-app-one", 1)
    store.write("budget-app-two", 2)
    memory_storage.set_item("unrelated", "1")
    binding = store.bind("budget-app-one", 0)

    removed = store.wipe()

    assert sorted(removed) == ["budget-app-one", "budget-app-two"]
    assert memory_storage.keys() == ["unrelated"]
    assert binding.value == 0


def test_snapshot_contains_namespaced_values_only(store, memory_storage):
    store.write("budget-app-one", {"a": 1})
    memory_storage.set_item("budget-app-bad", "oops{")
    memory_storage.set_item("elsewhere", "2")

    assert store.snapshot() == {"budget-app-one": {"a": 1}}


def test_refresh_renotifies_after_external_change(store, memory_storage):
    binding = store.bind("budget-app-year", 2024)
    store.read("budget-app-year", 2024)
    memory_storage._items["budget-app-year"] = "2031"

    store.refresh("budget-app-year")

    assert binding.value == 2031
