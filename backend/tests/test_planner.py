"""Booking planner and plan editor tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stayplan.schemas.planning import Apartment, Booking, BookingImport, MonthlyTarget
from stayplan.services.planner import (
    PlanEditor,
    channel_tag,
    import_bookings,
    parse_decimal,
    parse_units,
    summarise_month,
)
from stayplan.services.workspace import WorkspaceKeys

APARTMENTS = [Apartment(id=1, name="Pamar 2"), Apartment(id=2, name="Alba marina")]
FIXED_NOW = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


def test_parse_decimal_accepts_comma_and_defaults_junk_to_zero():
    assert parse_decimal("12,5") == 12.5
    assert parse_decimal(" 80 ") == 80
    assert parse_decimal("abc") == 0
    assert parse_decimal("nan") == 0
    assert parse_decimal(None) == 0


def test_parse_units():
    assert parse_units("") == 0
    assert parse_units("12") == 12
    assert parse_units("-1") is None
    assert parse_units("1.5") is None


def test_channel_tag_falls_back_for_unknown_channels():
    assert channel_tag("booking") == "BOOKING"
    assert channel_tag("Vrbo") == "ALTRO"
    assert channel_tag(None) == ""


def test_month_summary_against_target():
    cells = {
        "1-1": {"color": "BOOKING", "price": 100},
        "1-2": {"color": "BOOKING", "price": 100},
        "2-1": {"color": "AIRBNB", "price": 50},
        "2-2": {"color": "AIRBNB", "price": -1},
    }

    summary = summarise_month(cells, APARTMENTS, 2025, 1, MonthlyTarget(budget=500))

    assert summary.days == 28
    assert summary.business_on_the_books == 250
    assert summary.sold_nights == 3
    assert summary.occupancy_pct == pytest.approx(3 / 56 * 100)
    assert summary.variance_to_budget == -250
    assert summary.apartments[1].adr == 100
    assert summary.apartments[2].sold_nights == 1
    assert summary.daily[0].sold_nights == 2
    assert summary.daily[0].revpar == 75
    assert summary.daily[1].adr == 100


def test_import_bookings_skips_unknown_apartments(caplog):
    imports = [
        BookingImport(apartmentName="Pamar 2", bookings=[Booking(day=3, price=90, channel="airbnb")]),
        BookingImport(apartment_name="Nowhere", bookings=[Booking(day=3, price=90)]),
        BookingImport(apartment_name="Alba marina", bookings=[Booking(day=40, price=90)]),
    ]

    merged = import_bookings({"2-1": {"color": "BOOKING", "price": 70}}, APARTMENTS, imports, 31)

    assert set(merged) == {"1-3", "2-1"}
    assert merged["1-3"].color == "AIRBNB"
    assert merged["1-3"].price == 90
    assert "Nowhere" in caplog.text


def test_budget_edit_is_logged_and_persisted(store):
    editor = PlanEditor.budget(store, WorkspaceKeys("cluster"), clock=lambda: FIXED_NOW)

    outcome = editor.edit_value("adr", 0, "70")

    assert outcome.applied
    assert outcome.entry.description == "Modified ADR for January from € 60,00 to € 70,00"
    assert editor.assumptions.adr[0] == 70
    assert editor.log[0].timestamp == FIXED_NOW
    assert editor.edit_value("adr", 0, "70").reason == "unchanged"


def test_locked_budget_rejects_edits(store):
    editor = PlanEditor.budget(store, WorkspaceKeys("cluster"), clock=lambda: FIXED_NOW)
    editor.set_locked(True)

    assert editor.edit_units(0, "4").reason == "locked"
    assert store.read(WorkspaceKeys("cluster").budget_locked, False) is True
    assert [entry.description for entry in editor.log] == ["Plan locked."]

    editor.set_locked(False)
    assert editor.edit_units(0, "4").applied
    assert editor.log[0].description == "Modified units for January from 0 to 4"
    assert editor.log[-1].description == "Plan locked."


def test_rolling_forecast_requires_a_comment(store):
    editor = PlanEditor.rolling_forecast(store, WorkspaceKeys("cluster"), clock=lambda: FIXED_NOW)

    rejected = editor.edit_value("occupancy_pct", 5, "75", comment="  ")
    accepted = editor.edit_value("occupancy_pct", 5, "75", comment="Event in town")

    assert rejected.reason == "comment required"
    assert accepted.applied
    assert editor.assumptions.occupancy_pct[5] == 75
    assert editor.log[0].comment == "Event in town"
    assert store.read(WorkspaceKeys("cluster").budget_logs, list) == []


def test_units_are_seeded_once(store):
    editor = PlanEditor.rolling_forecast(store, WorkspaceKeys("cluster"))

    assert editor.seed_units(16)
    assert editor.units == [16] * 12
    assert not editor.seed_units(10)
    assert editor.edit_units(2, "x", comment="typo").reason == "invalid"
