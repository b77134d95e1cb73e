"""Competitor tracking schemas."""

from __future__ import annotations

from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

PERIODS_PER_MONTH = 3


class Competitor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = "Nuovo Competitor"
    cluster: str = "cluster"
    score: float = 0.0
    distance: float = Field(default=0.0, description="Distance from the property in km")
    url: str = ""
    avg_rate: float = Field(default=0.0, validation_alias=AliasChoices("avg_rate", "avgRate"))
    note: str = ""


class PricingPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(default="", alias="from")
    to: str = ""
    price: float = 0.0


def _empty_periods() -> list[PricingPeriod]:
    return [PricingPeriod() for _ in range(PERIODS_PER_MONTH)]


class MonthlyPricing(BaseModel):
    periods: Annotated[
        list[PricingPeriod], Field(min_length=PERIODS_PER_MONTH, max_length=PERIODS_PER_MONTH)
    ] = Field(default_factory=_empty_periods)


PricingData = dict[int, dict[int, MonthlyPricing]]
"""Competitor id -> zero-based month -> pricing periods."""


def default_competitors() -> list[Competitor]:
    return [
        Competitor(id=1, name="Hotel Bella Vista", score=8.5, distance=0.5, url="https://booking.com", avg_rate=120, note="Diretto concorrente"),
        Competitor(id=2, name="Residence Mare", score=9.2, distance=1.2, avg_rate=145, note="Alta qualità"),
        Competitor(id=3, name="B&B Centro", score=7.8, distance=0.2, avg_rate=90, note="Prezzi aggressivi"),
    ]


__all__ = [
    "Competitor",
    "MonthlyPricing",
    "PERIODS_PER_MONTH",
    "PricingData",
    "PricingPeriod",
    "default_competitors",
]
