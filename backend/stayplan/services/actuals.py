"""Actual performance aggregated from the booking planner cells."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from stayplan.core.calendar import MONTHS_IN_YEAR, days_in_month, month_key
from stayplan.schemas.planning import (
    ActualSeries,
    ActualSnapshot,
    Apartment,
    BookingCell,
    cell_key,
    upgrade_legacy_cell_data,
)
from stayplan.services.metrics import safe_div

logger = logging.getLogger(__name__)


@dataclass
class MonthlyActuals:
    available_nights: int
    sold_nights: int
    revenue: float
    occupancy_pct: float
    adr: float
    revpar: float


@dataclass
class ActualResultSet:
    year: int
    months: list[MonthlyActuals]
    total: MonthlyActuals

    def series(self, name: str) -> list[float]:
        return [getattr(self.total, name), *(getattr(month, name) for month in self.months)]

    def to_series(self) -> ActualSeries:
        return ActualSeries(
            revenue=self.series("revenue"),
            nights=self.series("sold_nights"),
            occupancy_pct=self.series("occupancy_pct"),
            adr=self.series("adr"),
            revpar=self.series("revpar"),
        )


def as_cell(raw: BookingCell | Mapping[str, Any] | None) -> BookingCell | None:
    if raw is None or isinstance(raw, BookingCell):
        return raw
    return BookingCell.model_validate(raw)


def tally_cells(
    cells: Mapping[str, BookingCell | Mapping[str, Any]],
    apartment_ids: Sequence[int],
    days: int,
) -> tuple[int, float]:
    """Count sold nights and revenue; blocked and untagged cells are skipped."""

    sold = 0
    revenue = 0.0
    for apartment_id in apartment_ids:
        for day in range(1, days + 1):
            cell = as_cell(cells.get(cell_key(apartment_id, day)))
            if cell is not None and cell.is_sold:
                sold += 1
                revenue += cell.price or 0.0
    return sold, revenue


def _actuals(available: int, sold: int, revenue: float) -> MonthlyActuals:
    return MonthlyActuals(
        available_nights=available,
        sold_nights=sold,
        revenue=revenue,
        occupancy_pct=safe_div(sold, available) * 100,
        adr=safe_div(revenue, sold),
        revpar=safe_div(revenue, available),
    )


def compute_actuals_from_bookings(
    cell_data: Mapping[str, Mapping[str, BookingCell | Mapping[str, Any]]],
    apartments: Sequence[Apartment],
    year: int,
) -> ActualResultSet:
    """Aggregate ``cell_data`` (month key -> cell map) into monthly actuals.

    Legacy ``2025-Gennaio`` month keys are accepted as well as ``2025-01``.
    """

    by_month = upgrade_legacy_cell_data(dict(cell_data))
    apartment_ids = [apartment.id for apartment in apartments]
    months: list[MonthlyActuals] = []
    for index in range(MONTHS_IN_YEAR):
        days = days_in_month(index, year)
        cells = by_month.get(month_key(year, index)) or {}
        sold, revenue = tally_cells(cells, apartment_ids, days)
        months.append(_actuals(len(apartment_ids) * days, sold, revenue))

    total = _actuals(
        sum(m.available_nights for m in months),
        sum(m.sold_nights for m in months),
        sum(m.revenue for m in months),
    )
    logger.debug("Computed actuals for %s: %d sold nights", year, total.sold_nights)
    return ActualResultSet(year=year, months=months, total=total)


def save_actual_snapshot(actuals: ActualResultSet | ActualSeries, now: datetime | None = None) -> ActualSnapshot:
    """Freeze the current actuals for later as-of comparison."""

    data = actuals.to_series() if isinstance(actuals, ActualResultSet) else actuals
    return ActualSnapshot(timestamp=now or datetime.now(timezone.utc), data=data)


__all__ = [
    "ActualResultSet",
    "MonthlyActuals",
    "as_cell",
    "compute_actuals_from_bookings",
    "save_actual_snapshot",
    "tally_cells",
]
