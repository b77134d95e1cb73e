"""Monthly booking planner summaries and the plan editing rules."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Sequence

from stayplan.core.calendar import MONTH_NAMES, MONTHS_IN_YEAR, days_in_month
from stayplan.core.formatting import format_currency, format_percentage
from stayplan.schemas.planning import (
    Apartment,
    AssumptionSet,
    BookingCell,
    BookingImport,
    ChangeLogEntry,
    MonthlyTarget,
    cell_key,
)
from stayplan.services.actuals import as_cell
from stayplan.services.metrics import safe_div
from stayplan.services.workspace import WorkspaceKeys
from stayplan.storage.store import PersistedStore

logger = logging.getLogger(__name__)

CHANNELS = ("BOOKING", "AIRBNB", "HOMEAWAY", "DIRETTE", "EXPEDIA", "ALTRO")
FALLBACK_CHANNEL = "ALTRO"


# ----------------------------------------------------------------------
# Input coercion
# ----------------------------------------------------------------------
def parse_decimal(raw: str | float | int | None) -> float:
    """Parse an operator-entered number; a comma is a decimal separator, junk is 0."""

    if isinstance(raw, (int, float)):
        return float(raw)
    if raw is None:
        return 0.0
    try:
        value = float(raw.strip().replace(",", "."))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_units(raw: str | int | None) -> int | None:
    """Parse a unit count; empty means 0 and anything invalid is ``None`` (ignored)."""

    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if raw is None or not raw.strip():
        return 0
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value >= 0 else None


# ----------------------------------------------------------------------
# Month summary
# ----------------------------------------------------------------------
@dataclass
class ApartmentMonth:
    sold_nights: int
    revenue: float
    occupancy_pct: float
    adr: float
    revpar: float


@dataclass
class DayTotals:
    day: int
    sold_nights: int = 0
    revenue: float = 0.0
    adr: float = 0.0
    revpar: float = 0.0


@dataclass
class MonthSummary:
    days: int
    business_on_the_books: float
    sold_nights: int
    occupancy_pct: float
    adr: float
    revpar: float
    budget_target: float
    variance_to_budget: float
    apartments: dict[int, ApartmentMonth] = field(default_factory=dict)
    daily: list[DayTotals] = field(default_factory=list)


def summarise_month(
    cells: Mapping[str, BookingCell | Mapping[str, Any]],
    apartments: Sequence[Apartment],
    year: int,
    month_index: int,
    target: MonthlyTarget | None = None,
) -> MonthSummary:
    days = days_in_month(month_index, year)
    daily = [DayTotals(day=day) for day in range(1, days + 1)]
    per_apartment: dict[int, ApartmentMonth] = {}

    for apartment in apartments:
        sold = 0
        revenue = 0.0
        for totals in daily:
            cell = as_cell(cells.get(cell_key(apartment.id, totals.day)))
            if cell is None or not cell.is_sold:
                continue
            sold += 1
            revenue += cell.price or 0.0
            totals.sold_nights += 1
            totals.revenue += cell.price or 0.0
        per_apartment[apartment.id] = ApartmentMonth(
            sold_nights=sold,
            revenue=revenue,
            occupancy_pct=safe_div(sold, days) * 100,
            adr=safe_div(revenue, sold),
            revpar=safe_div(revenue, days),
        )

    apartment_count = len(apartments) or 1
    for totals in daily:
        totals.adr = safe_div(totals.revenue, totals.sold_nights)
        totals.revpar = totals.revenue / apartment_count

    revenue_total = sum(a.revenue for a in per_apartment.values())
    sold_total = sum(a.sold_nights for a in per_apartment.values())
    available = len(apartments) * days
    budget = target.budget if target is not None else 0.0
    return MonthSummary(
        days=days,
        business_on_the_books=revenue_total,
        sold_nights=sold_total,
        occupancy_pct=safe_div(sold_total, available) * 100,
        adr=safe_div(revenue_total, sold_total),
        revpar=safe_div(revenue_total, available),
        budget_target=budget,
        variance_to_budget=revenue_total - budget,
        apartments=per_apartment,
        daily=daily,
    )


def channel_tag(channel: str | None) -> str:
    if not channel:
        return ""
    upper = channel.strip().upper()
    return upper if upper in CHANNELS else FALLBACK_CHANNEL


def import_bookings(
    cells: Mapping[str, BookingCell | Mapping[str, Any]],
    apartments: Sequence[Apartment],
    imports: Iterable[BookingImport],
    days: int,
) -> dict[str, BookingCell]:
    """Merge imported bookings into a copy of ``cells``."""

    merged = {key: cell for key, cell in ((k, as_cell(v)) for k, v in cells.items()) if cell is not None}
    ids_by_name = {apartment.name: apartment.id for apartment in apartments}
    for entry in imports:
        apartment_id = ids_by_name.get(entry.apartment_name)
        if apartment_id is None:
            logger.warning("Skipping bookings for unknown apartment %s", entry.apartment_name)
            continue
        for booking in entry.bookings:
            if not 1 <= booking.day <= days:
                continue
            tag = channel_tag(booking.channel) if booking.price > 0 else ""
            merged[cell_key(apartment_id, booking.day)] = BookingCell(color=tag, price=booking.price)
    return merged


# ----------------------------------------------------------------------
# Plan editing
# ----------------------------------------------------------------------
_FIELD_LABELS: dict[str, tuple[str, Callable[[float], str]]] = {
    "occupancy_pct": ("expected occupancy", format_percentage),
    "adr": ("ADR", format_currency),
    "prior_year_revenue": ("prior-year revenue", format_currency),
}


@dataclass
class EditOutcome:
    applied: bool
    entry: ChangeLogEntry | None = None
    reason: str | None = None


class PlanEditor:
    """Applies operator edits to an assumption set and its unit counts.

    The budget editor persists its lock flag and change log; the rolling
    forecast keeps them for the session only and insists on a comment for
    every change.
    """

    def __init__(
        self,
        store: PersistedStore,
        *,
        data_key: str,
        units_key: str,
        lock_key: str | None = None,
        log_key: str | None = None,
        require_comment: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._data_key = data_key
        self._units_key = units_key
        self._lock_key = lock_key
        self._log_key = log_key
        self._require_comment = require_comment
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._session_locked = False
        self._session_log: list[ChangeLogEntry] = []

    @classmethod
    def budget(cls, store: PersistedStore, keys: WorkspaceKeys, **kwargs: Any) -> "PlanEditor":
        return cls(
            store,
            data_key=keys.budget_data,
            units_key=keys.budget_units,
            lock_key=keys.budget_locked,
            log_key=keys.budget_logs,
            **kwargs,
        )

    @classmethod
    def rolling_forecast(cls, store: PersistedStore, keys: WorkspaceKeys, **kwargs: Any) -> "PlanEditor":
        return cls(
            store,
            data_key=keys.forecast_inputs,
            units_key=keys.forecast_units,
            require_comment=True,
            **kwargs,
        )

    @property
    def assumptions(self) -> AssumptionSet:
        return self._store.read(self._data_key, AssumptionSet, schema=AssumptionSet)

    @property
    def units(self) -> list[int]:
        return self._store.read(self._units_key, lambda: [0] * MONTHS_IN_YEAR, schema=list[int])

    @property
    def locked(self) -> bool:
        if self._lock_key is None:
            return self._session_locked
        return self._store.read(self._lock_key, False, schema=bool)

    @property
    def log(self) -> list[ChangeLogEntry]:
        if self._log_key is None:
            return list(self._session_log)
        return self._store.read(self._log_key, list, schema=list[ChangeLogEntry])

    def set_locked(self, locked: bool) -> None:
        if self._lock_key is None:
            self._session_locked = locked
        else:
            self._store.write(self._lock_key, locked, schema=bool)
        self._append(ChangeLogEntry(timestamp=self._clock(), description="Plan locked." if locked else "Plan unlocked."))

    def edit_value(self, field_name: str, month_index: int, raw: str | float, comment: str | None = None) -> EditOutcome:
        if field_name not in _FIELD_LABELS:
            raise KeyError(f"Unknown assumption field: {field_name}")
        if not 0 <= month_index < MONTHS_IN_YEAR:
            raise ValueError(f"month_index must be between 0 and 11, got {month_index}")
        if self.locked:
            return EditOutcome(applied=False, reason="locked")

        new_value = parse_decimal(raw)
        assumptions = self.assumptions
        series = list(getattr(assumptions, field_name))
        old_value = series[month_index]
        if old_value == new_value:
            return EditOutcome(applied=False, reason="unchanged")

        label, formatter = _FIELD_LABELS[field_name]
        description = (
            f"Modified {label} for {MONTH_NAMES[month_index]} "
            f"from {formatter(old_value)} to {formatter(new_value)}"
        )
        return self._commit(
            description,
            comment,
            lambda: self._store.write(
                self._data_key,
                assumptions.model_copy(update={field_name: _replace(series, month_index, new_value)}),
                schema=AssumptionSet,
            ),
        )

    def edit_units(self, month_index: int, raw: str | int, comment: str | None = None) -> EditOutcome:
        if not 0 <= month_index < MONTHS_IN_YEAR:
            raise ValueError(f"month_index must be between 0 and 11, got {month_index}")
        if self.locked:
            return EditOutcome(applied=False, reason="locked")
        new_value = parse_units(raw)
        if new_value is None:
            return EditOutcome(applied=False, reason="invalid")
        units = self.units
        old_value = units[month_index]
        if old_value == new_value:
            return EditOutcome(applied=False, reason="unchanged")

        description = f"Modified units for {MONTH_NAMES[month_index]} from {old_value} to {new_value}"
        return self._commit(
            description,
            comment,
            lambda: self._store.write(self._units_key, _replace(units, month_index, new_value), schema=list[int]),
        )

    def seed_units(self, apartment_count: int) -> bool:
        """Fill an all-zero unit series with ``apartment_count``."""

        if apartment_count <= 0 or any(self.units):
            return False
        self._store.write(self._units_key, [apartment_count] * MONTHS_IN_YEAR, schema=list[int])
        return True

    def _commit(self, description: str, comment: str | None, apply: Callable[[], Any]) -> EditOutcome:
        if self._require_comment and not (comment and comment.strip()):
            logger.info("Rolled back change without comment: %s", description)
            return EditOutcome(applied=False, reason="comment required")
        apply()
        entry = ChangeLogEntry(timestamp=self._clock(), description=description, comment=comment)
        self._append(entry)
        return EditOutcome(applied=True, entry=entry)

    def _append(self, entry: ChangeLogEntry) -> None:
        if self._log_key is None:
            self._session_log.insert(0, entry)
            return
        self._store.write(
            self._log_key,
            lambda previous: [entry, *previous],
            default=list,
            schema=list[ChangeLogEntry],
        )


def _replace(values: Sequence[Any], index: int, value: Any) -> list[Any]:
    updated = list(values)
    updated[index] = value
    return updated


__all__ = [
    "CHANNELS",
    "ApartmentMonth",
    "DayTotals",
    "EditOutcome",
    "MonthSummary",
    "PlanEditor",
    "channel_tag",
    "import_bookings",
    "parse_decimal",
    "parse_units",
    "summarise_month",
]
