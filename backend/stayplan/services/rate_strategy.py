"""Daily rate strategy forecasts and the pressure price ladder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from stayplan.schemas.planning import Apartment
from stayplan.schemas.rate_strategy import (
    MASTER_RATE,
    PRESSURE_LEVELS,
    PressureBand,
    PressureLadderSettings,
    RateStrategy,
    default_pressure_bands,
)
from stayplan.services.metrics import monthly_value, safe_div
from stayplan.services.planner import parse_decimal

MAX_BARS = 20


def derived_price(master_price: float, base_rate: float) -> float:
    return master_price * (base_rate / 100)


def parse_base_rate(raw: str | float) -> str | float:
    if isinstance(raw, str) and raw.strip().lower() == MASTER_RATE.lower():
        return MASTER_RATE
    return parse_decimal(raw)


def set_master_price(strategy: RateStrategy, day_index: int, raw: str | float) -> RateStrategy:
    """Change one master price and re-derive the prices of percentage-rated apartments."""

    price = parse_decimal(raw)
    master = _padded(strategy.master_prices, day_index + 1)
    master[day_index] = price
    prices = {name: list(values) for name, values in strategy.prices.items()}
    for name, rate in strategy.base_rates.items():
        if rate == MASTER_RATE:
            continue
        row = _padded(prices.get(name, []), len(master))
        row[day_index] = derived_price(price, float(rate))
        prices[name] = row
    return strategy.model_copy(update={"master_prices": master, "prices": prices})


def set_base_rate(strategy: RateStrategy, apartment_name: str, raw: str | float) -> RateStrategy:
    rate = parse_base_rate(raw)
    base_rates = {**strategy.base_rates, apartment_name: rate}
    prices = {name: list(values) for name, values in strategy.prices.items()}
    if rate != MASTER_RATE:
        prices[apartment_name] = [derived_price(p, float(rate)) for p in strategy.master_prices]
    return strategy.model_copy(update={"base_rates": base_rates, "prices": prices})


def set_occupancy(strategy: RateStrategy, day_index: int, raw: str | float) -> RateStrategy:
    occupancy = _padded(strategy.occupancy, day_index + 1)
    occupancy[day_index] = parse_decimal(raw)
    return strategy.model_copy(update={"occupancy": occupancy})


@dataclass
class StrategyForecast:
    nights_per_day: list[float]
    revenue_per_day: list[float]
    total_nights: float
    total_revenue: float
    adr: float
    average_occupancy: float


def forecast_month(strategy: RateStrategy, apartments: Sequence[Apartment], days: int) -> StrategyForecast:
    """Expected nights and revenue per day from the occupancy forecast."""

    count = len(apartments)
    nights: list[float] = []
    revenue: list[float] = []
    for index in range(days):
        occupancy = monthly_value(strategy.occupancy, index) / 100
        nights.append(count * occupancy)
        potential = 0.0
        for apartment in apartments:
            if strategy.base_rates.get(apartment.name) == MASTER_RATE:
                price_list = strategy.master_prices
            else:
                price_list = strategy.prices.get(apartment.name, [])
            potential += monthly_value(price_list, index)
        revenue.append(potential * occupancy)

    if count == 0:
        nights = [0.0] * days
        revenue = [0.0] * days
    total_nights = sum(nights)
    total_revenue = sum(revenue)
    return StrategyForecast(
        nights_per_day=nights,
        revenue_per_day=revenue,
        total_nights=total_nights,
        total_revenue=total_revenue,
        adr=safe_div(total_revenue, total_nights),
        average_occupancy=safe_div(sum(monthly_value(strategy.occupancy, i) for i in range(days)), days),
    )


def classify_occupancy(occupancy_pct: float, bands: Sequence[PressureBand] | None = None) -> PressureBand | None:
    """Pressure band whose range holds ``occupancy_pct`` (rounded to a whole percent)."""

    value = round(occupancy_pct)
    for band in bands or default_pressure_bands():
        if band.min <= value <= band.max:
            return band
    return None


@dataclass
class PressureLadder:
    level: str
    base_rate: float
    rungs: list[float]
    ceiling: float


def build_pressure_ladder(settings: PressureLadderSettings) -> list[PressureLadder]:
    """Price rungs for every pressure level: ``base + step * i`` then the ceiling."""

    bars = max(0, min(settings.bars, MAX_BARS))
    ladders = []
    for level in PRESSURE_LEVELS:
        base = settings.base_rates.get(level, 0.0)
        ladders.append(
            PressureLadder(
                level=level,
                base_rate=base,
                rungs=[base + settings.step * i for i in range(1, bars + 1)],
                ceiling=base + settings.step * (bars + 1),
            )
        )
    return ladders


def set_bars(settings: PressureLadderSettings, raw: str | int) -> PressureLadderSettings:
    """Accept a new bar count only when it is an integer between 0 and 20."""

    try:
        bars = int(raw)
    except (TypeError, ValueError):
        return settings
    if not 0 <= bars <= MAX_BARS:
        return settings
    return settings.model_copy(update={"bars": bars})


def _padded(values: Sequence[float], length: int) -> list[float]:
    padded = list(values)
    padded += [0.0] * (length - len(padded))
    return padded


__all__ = [
    "MAX_BARS",
    "PressureLadder",
    "StrategyForecast",
    "build_pressure_ladder",
    "classify_occupancy",
    "derived_price",
    "forecast_month",
    "parse_base_rate",
    "set_bars",
    "set_base_rate",
    "set_master_price",
    "set_occupancy",
]
