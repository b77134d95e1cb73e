"""Competitor roster and monthly price tracking."""

from __future__ import annotations

from typing import Iterable, Sequence

from stayplan.core.calendar import MONTHS_IN_YEAR
from stayplan.schemas.competitors import Competitor, MonthlyPricing, PricingData, PricingPeriod
from stayplan.services.planner import parse_decimal

ALL_CLUSTERS = "all"


def next_competitor_id(competitors: Sequence[Competitor]) -> int:
    return max((c.id for c in competitors), default=0) + 1


def add_competitor(competitors: Sequence[Competitor], cluster: str, name: str = "Nuovo Competitor") -> list[Competitor]:
    return [*competitors, Competitor(id=next_competitor_id(competitors), name=name, cluster=cluster)]


def remove_competitor(competitors: Sequence[Competitor], competitor_id: int) -> list[Competitor]:
    return [c for c in competitors if c.id != competitor_id]


def filter_by_cluster(competitors: Iterable[Competitor], cluster: str) -> list[Competitor]:
    if cluster == ALL_CLUSTERS:
        return list(competitors)
    return [c for c in competitors if c.cluster == cluster]


def average_price(periods: Iterable[PricingPeriod]) -> float:
    """Mean of the positive period prices; 0 when none is set."""

    prices = [p.price for p in periods if p.price > 0]
    return sum(prices) / len(prices) if prices else 0.0


def pricing_for(pricing: PricingData, competitor_id: int, month_index: int) -> MonthlyPricing:
    return pricing.get(competitor_id, {}).get(month_index) or MonthlyPricing()


def update_period(
    pricing: PricingData,
    competitor_id: int,
    month_index: int,
    period_index: int,
    *,
    price: str | float | None = None,
    from_: str | None = None,
    to: str | None = None,
) -> PricingData:
    """Return a copy of ``pricing`` with one period changed."""

    current = pricing_for(pricing, competitor_id, month_index)
    periods = [p.model_copy() for p in current.periods]
    changes: dict[str, object] = {}
    if price is not None:
        changes["price"] = parse_decimal(price)
    if from_ is not None:
        changes["from_"] = from_
    if to is not None:
        changes["to"] = to
    periods[period_index] = periods[period_index].model_copy(update=changes)

    updated = {cid: dict(months) for cid, months in pricing.items()}
    updated.setdefault(competitor_id, {})[month_index] = MonthlyPricing(periods=periods)
    return updated


def monthly_averages(pricing: PricingData, competitor_id: int) -> list[float]:
    return [average_price(pricing_for(pricing, competitor_id, m).periods) for m in range(MONTHS_IN_YEAR)]


__all__ = [
    "ALL_CLUSTERS",
    "add_competitor",
    "average_price",
    "filter_by_cluster",
    "monthly_averages",
    "next_competitor_id",
    "pricing_for",
    "remove_competitor",
    "update_period",
]
