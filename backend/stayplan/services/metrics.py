"""Revenue metrics derived from a monthly assumption set.

Every figure is recomputed from the assumptions; nothing here is persisted.
Divisions by zero produce ``0.0`` so callers never see NaN or infinity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from stayplan.core.calendar import MONTHS_IN_YEAR, days_in_month, month_key
from stayplan.schemas.planning import AssumptionSet, MonthlyTarget

SERIES_NAMES = (
    "potential_nights",
    "sold_nights",
    "occupancy_pct",
    "adr",
    "revpar",
    "revpar_index",
    "revenue",
    "prior_year_revenue",
)


def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def _finite(value: float | int | None) -> float:
    if value is None:
        return 0.0
    value = float(value)
    return value if math.isfinite(value) else 0.0


def monthly_value(series: Sequence[float | int | None], index: int) -> float:
    """Value at ``index`` treating short, missing or non-finite entries as 0."""

    return _finite(series[index]) if index < len(series) else 0.0


@dataclass
class MonthlyMetrics:
    days: int
    units: float
    potential_nights: float
    sold_nights: float
    occupancy_pct: float
    adr: float
    revenue: float
    revpar: float
    revpar_index: float
    prior_year_revenue: float


@dataclass
class MetricsResultSet:
    """Derived metrics for the twelve months of ``year`` plus yearly totals."""

    year: int
    months: list[MonthlyMetrics]
    totals: dict[str, float] = field(default_factory=dict)

    def series(self, name: str) -> list[float]:
        """Return ``[total, jan, ..., dec]`` for one metric."""

        if name not in SERIES_NAMES:
            raise KeyError(f"Unknown metric series: {name}")
        return [self.totals[name], *(getattr(month, name) for month in self.months)]

    def monthly(self, name: str) -> list[float]:
        return self.series(name)[1:]


def compute_monthly_metrics(
    assumptions: AssumptionSet,
    units: Sequence[float | int | None],
    year: int,
) -> MetricsResultSet:
    months: list[MonthlyMetrics] = []
    for index in range(MONTHS_IN_YEAR):
        days = days_in_month(index, year)
        unit_count = max(monthly_value(units, index), 0.0)
        occupancy_pct = monthly_value(assumptions.occupancy_pct, index)
        adr = monthly_value(assumptions.adr, index)

        potential = unit_count * days
        sold = potential * (occupancy_pct / 100)
        revenue = sold * adr
        revpar = safe_div(revenue, potential)
        months.append(
            MonthlyMetrics(
                days=days,
                units=unit_count,
                potential_nights=potential,
                sold_nights=sold,
                occupancy_pct=occupancy_pct,
                adr=adr,
                revenue=revenue,
                revpar=revpar,
                revpar_index=safe_div(adr, revpar),
                prior_year_revenue=monthly_value(assumptions.prior_year_revenue, index),
            )
        )

    potential_total = sum(m.potential_nights for m in months)
    sold_total = sum(m.sold_nights for m in months)
    revenue_total = sum(m.revenue for m in months)
    adr_total = safe_div(revenue_total, sold_total)
    revpar_total = safe_div(revenue_total, potential_total)
    totals = {
        "potential_nights": potential_total,
        "sold_nights": sold_total,
        "occupancy_pct": safe_div(sold_total, potential_total) * 100,
        "adr": adr_total,
        "revenue": revenue_total,
        "revpar": revpar_total,
        "revpar_index": safe_div(adr_total, revpar_total),
        "prior_year_revenue": sum(m.prior_year_revenue for m in months),
    }
    return MetricsResultSet(year=year, months=months, totals=totals)


def monthly_targets(result: MetricsResultSet) -> dict[str, MonthlyTarget]:
    """Per-month budget targets keyed by ``YYYY-MM``."""

    return {
        month_key(result.year, index): MonthlyTarget(
            budget=month.revenue,
            room_nights=month.sold_nights,
            occupancy_pct=month.occupancy_pct,
            adr=month.adr,
            revpar=month.revpar,
        )
        for index, month in enumerate(result.months)
    }


def budget_series(targets: dict[str, MonthlyTarget], year: int) -> list[float]:
    """Monthly budgets of ``year`` in display form, total first."""

    monthly = [
        targets[key].budget if key in targets else 0.0
        for key in (month_key(year, index) for index in range(MONTHS_IN_YEAR))
    ]
    return [sum(monthly), *monthly]


__all__ = [
    "MetricsResultSet",
    "MonthlyMetrics",
    "SERIES_NAMES",
    "budget_series",
    "compute_monthly_metrics",
    "monthly_targets",
    "monthly_value",
    "safe_div",
]
