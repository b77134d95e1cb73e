"""Cost allocation over the monthly revenue plan.

Series passed in may be either the twelve monthly values or the display form
with the yearly total first; results always use the display form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from stayplan.core.calendar import MONTHS_IN_YEAR
from stayplan.schemas.costs import AbsoluteCost, FixedCost, PercentageCost, StructureCosts
from stayplan.services.metrics import monthly_value, safe_div


def monthly_part(series: Sequence[float] | None) -> list[float]:
    """Return the twelve monthly values of ``series``."""

    if series is None:
        return [0.0] * MONTHS_IN_YEAR
    if len(series) == MONTHS_IN_YEAR + 1:
        series = series[1:]
    elif len(series) != MONTHS_IN_YEAR:
        raise ValueError(f"expected 12 or 13 values, got {len(series)}")
    return [monthly_value(series, i) for i in range(MONTHS_IN_YEAR)]


def with_total(monthly: Sequence[float], total: float | None = None) -> list[float]:
    return [sum(monthly) if total is None else total, *monthly]


@dataclass
class VariableCostLine:
    id: int
    name: str
    kind: str
    monthly: list[float]
    annual_total: float
    rate: float | None = None


@dataclass
class CostSummary:
    revenue: list[float]
    fixed: list[float]
    variable: list[float]
    total: list[float]
    margin: list[float]
    margin_pct: list[float]
    cost_per_available_night: list[float]
    cost_per_sold_night: list[float]
    bottom_rate: list[float]
    variable_lines: list[VariableCostLine]


def variable_cost_line(item: PercentageCost | AbsoluteCost, revenue: Sequence[float]) -> VariableCostLine:
    if isinstance(item, PercentageCost):
        monthly = [month_revenue * (item.rate / 100) for month_revenue in revenue]
        return VariableCostLine(item.id, item.name, item.kind, monthly, sum(monthly), rate=item.rate)
    monthly = [monthly_value(item.monthly, i) for i in range(MONTHS_IN_YEAR)]
    return VariableCostLine(item.id, item.name, item.kind, monthly, sum(monthly))


def allocate_costs(
    fixed_items: Sequence[FixedCost],
    variable_items: Sequence[PercentageCost | AbsoluteCost],
    revenue: Sequence[float] | None,
    available_nights: Sequence[float] | None = None,
    sold_nights: Sequence[float] | None = None,
) -> CostSummary:
    """Spread fixed and variable costs over the year and derive margins.

    Fixed costs per night use available nights; variable costs per night and
    the bottom rate use sold nights.
    """

    revenue_monthly = monthly_part(revenue)
    available = with_total(monthly_part(available_nights))
    sold = with_total(monthly_part(sold_nights))

    fixed_annual = sum(item.annual_amount for item in fixed_items)
    fixed = with_total([fixed_annual / MONTHS_IN_YEAR] * MONTHS_IN_YEAR, fixed_annual)

    lines = [variable_cost_line(item, revenue_monthly) for item in variable_items]
    variable_monthly = [sum(line.monthly[i] for line in lines) for i in range(MONTHS_IN_YEAR)]
    variable = with_total(variable_monthly, sum(line.annual_total for line in lines))

    total = [f + v for f, v in zip(fixed, variable)]
    revenue_series = with_total(revenue_monthly)
    margin = [r - c for r, c in zip(revenue_series, total)]
    margin_pct = [safe_div(m, r) * 100 if r > 0 else 0.0 for m, r in zip(margin, revenue_series)]

    return CostSummary(
        revenue=revenue_series,
        fixed=fixed,
        variable=variable,
        total=total,
        margin=margin,
        margin_pct=margin_pct,
        cost_per_available_night=[safe_div(f, n) if n > 0 else 0.0 for f, n in zip(fixed, available)],
        cost_per_sold_night=[safe_div(v, n) if n > 0 else 0.0 for v, n in zip(variable, sold)],
        bottom_rate=[safe_div(c, n) if n > 0 else 0.0 for c, n in zip(total, sold)],
        variable_lines=lines,
    )


@dataclass
class StructureCostSummary:
    fixed: list[float]
    variable: list[float]
    total: list[float]
    open_nights: list[float]
    bottom_rate: list[float]


def analyse_structure(costs: StructureCosts, open_nights: Sequence[float] | None) -> StructureCostSummary:
    """Bottom rate of a single apartment over the nights it is open.

    Only month-by-month variable costs apply here; a percentage item has no
    revenue to act on at apartment level and contributes nothing.
    """

    nights = monthly_part(open_nights)
    fixed_annual = sum(item.annual_amount for item in costs.fixed_costs)
    fixed = with_total([fixed_annual / MONTHS_IN_YEAR] * MONTHS_IN_YEAR, fixed_annual)
    absolute = [item for item in costs.variable_costs if isinstance(item, AbsoluteCost)]
    variable = with_total(
        [sum(monthly_value(item.monthly, i) for item in absolute) for i in range(MONTHS_IN_YEAR)]
    )
    total = [f + v for f, v in zip(fixed, variable)]
    open_series = with_total(nights)
    return StructureCostSummary(
        fixed=fixed,
        variable=variable,
        total=total,
        open_nights=open_series,
        bottom_rate=[safe_div(c, n) if n > 0 else 0.0 for c, n in zip(total, open_series)],
    )


__all__ = [
    "CostSummary",
    "StructureCostSummary",
    "VariableCostLine",
    "allocate_costs",
    "analyse_structure",
    "monthly_part",
    "variable_cost_line",
    "with_total",
]
