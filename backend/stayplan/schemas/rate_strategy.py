"""Schemas for the daily rate strategy and the pressure ladder."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

MASTER_RATE = "Master"

BaseRate = Union[Literal["Master"], float]


class PressureBand(BaseModel):
    level: str
    min: int
    max: int
    color: str = ""
    label: str = ""


def default_pressure_bands() -> list[PressureBand]:
    return [
        PressureBand(level="Bassissima", min=0, max=25, color="#008000"),
        PressureBand(level="Bassa", min=26, max=40, color="#8fbc8f"),
        PressureBand(level="Media", min=41, max=65, color="#daa520"),
        PressureBand(level="Alta", min=66, max=85, color="#ffa500"),
        PressureBand(level="Altissima", min=86, max=100, color="#ff4500"),
    ]


class RateStrategy(BaseModel):
    """Per-day occupancy forecast and prices for one month."""

    model_config = ConfigDict(populate_by_name=True)

    pressure_bands: list[PressureBand] = Field(
        default_factory=default_pressure_bands,
        validation_alias=AliasChoices("pressure_bands", "pressureSettings"),
    )
    occupancy: list[float] = Field(default_factory=list)
    master_prices: list[float] = Field(
        default_factory=list, validation_alias=AliasChoices("master_prices", "masterPrices")
    )
    prices: dict[str, list[float]] = Field(default_factory=dict)
    base_rates: dict[str, BaseRate] = Field(
        default_factory=dict, validation_alias=AliasChoices("base_rates", "apartmentBaseRates")
    )
    pressure_colors: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("pressure_colors", "pressureColors")
    )


PRESSURE_LEVELS = ("bassissima", "bassa", "media", "alta", "altissima")

DEFAULT_PRESSURE_RATES = {
    "bassissima": 60.0,
    "bassa": 65.0,
    "media": 75.0,
    "alta": 110.0,
    "altissima": 150.0,
}


class PressureLadderSettings(BaseModel):
    step: float = 10.0
    bars: int = Field(default=5, ge=0, le=20)
    base_rates: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_PRESSURE_RATES))


__all__ = [
    "BaseRate",
    "DEFAULT_PRESSURE_RATES",
    "MASTER_RATE",
    "PRESSURE_LEVELS",
    "PressureBand",
    "PressureLadderSettings",
    "RateStrategy",
    "default_pressure_bands",
]
