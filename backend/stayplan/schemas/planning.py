"""Pydantic schemas for the persisted planning slots."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from stayplan.core.calendar import MONTHS_IN_YEAR, normalise_month_key

MonthlySeries = Annotated[list[float], Field(min_length=MONTHS_IN_YEAR, max_length=MONTHS_IN_YEAR)]
DisplaySeries = Annotated[list[float], Field(min_length=MONTHS_IN_YEAR + 1, max_length=MONTHS_IN_YEAR + 1)]

DEFAULT_OCCUPANCY_PCT = [1.0, 3.0, 10.0, 30.0, 30.0, 70.0, 80.0, 90.0, 70.0, 10.0, 1.0, 3.0]
DEFAULT_ADR = [60.0, 60.0, 50.0, 60.0, 55.0, 90.0, 100.0, 150.0, 90.0, 50.0, 60.0, 60.0]


class Apartment(BaseModel):
    """A rentable unit tracked by the planner."""

    id: int
    name: str = Field(..., min_length=1)


class AssumptionSet(BaseModel):
    """Monthly occupancy, rate and prior-year revenue assumptions for one year."""

    model_config = ConfigDict(populate_by_name=True)

    occupancy_pct: MonthlySeries = Field(
        default_factory=lambda: list(DEFAULT_OCCUPANCY_PCT),
        validation_alias=AliasChoices("occupancy_pct", "percentualeOccupazionePrevista"),
    )
    adr: MonthlySeries = Field(default_factory=lambda: list(DEFAULT_ADR))
    prior_year_revenue: MonthlySeries = Field(
        default_factory=lambda: [0.0] * MONTHS_IN_YEAR,
        validation_alias=AliasChoices("prior_year_revenue", "fatturatoAnnoPrecedente"),
    )


class BookingCell(BaseModel):
    """One apartment-day in the booking planner.

    ``color`` is the channel tag; a price of ``-1`` marks the day as blocked.
    """

    color: str = ""
    price: float | None = None

    @property
    def is_sold(self) -> bool:
        return bool(self.color) and self.price is not None and self.price > 0

    @property
    def is_blocked(self) -> bool:
        return self.price == -1


CellMap = dict[str, BookingCell]
"""Cells of one month keyed by ``"<apartment id>-<day>"``."""


def upgrade_legacy_cell_data(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    return {normalise_month_key(key): cells for key, cells in data.items()}


CellData = Annotated[dict[str, CellMap], BeforeValidator(upgrade_legacy_cell_data)]
"""Cell maps keyed by month (``YYYY-MM``); legacy ``2025-Gennaio`` keys are converted."""


def cell_key(apartment_id: int, day: int) -> str:
    return f"{apartment_id}-{day}"


class Booking(BaseModel):
    day: int
    price: float
    channel: str | None = None


class BookingImport(BaseModel):
    """Bookings of one apartment, as produced by the spreadsheet importer."""

    model_config = ConfigDict(populate_by_name=True)

    apartment_name: str = Field(validation_alias=AliasChoices("apartment_name", "apartmentName"))
    bookings: list[Booking] = Field(default_factory=list)


class MonthlyTarget(BaseModel):
    """Budget target of one month as shown next to the booking planner."""

    budget: float = 0.0
    room_nights: float = 0.0
    occupancy_pct: float = 0.0
    adr: float = 0.0
    revpar: float = 0.0


# legacy row name -> field
LEGACY_ACTUAL_ROWS = {
    "businessOnTheBooks": "revenue",
    "roomNightsOnTheBooks": "nights",
    "occupazioneOnTheBooks": "occupancy_pct",
    "adrAttuale": "adr",
    "revParAttuale": "revpar",
}


def upgrade_legacy_actuals(data: Any) -> Any:
    """Convert ``{businessOnTheBooks: {values: [13]}, ...}`` into the field layout.

    Missing rows become zeros and ``null`` entries (NaN once serialised) become 0.
    """

    if not isinstance(data, dict) or not LEGACY_ACTUAL_ROWS.keys() & data.keys():
        return data
    upgraded: dict[str, Any] = {}
    for legacy, name in LEGACY_ACTUAL_ROWS.items():
        row = data.get(legacy)
        values = row.get("values") if isinstance(row, dict) else row
        values = list(values or [])[: MONTHS_IN_YEAR + 1]
        values += [0.0] * (MONTHS_IN_YEAR + 1 - len(values))
        upgraded[name] = [0.0 if v is None else v for v in values]
    return upgraded


class ActualSeries(BaseModel):
    """Actual performance in display form (index 0 = year total)."""

    revenue: DisplaySeries
    nights: DisplaySeries
    occupancy_pct: DisplaySeries
    adr: DisplaySeries
    revpar: DisplaySeries

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_rows(cls, data: Any) -> Any:
        return upgrade_legacy_actuals(data)


class ActualSnapshot(BaseModel):
    """A saved, timestamped copy of the actuals used for as-of comparison."""

    timestamp: datetime
    data: ActualSeries


class ChangeLogEntry(BaseModel):
    timestamp: datetime
    description: str
    comment: str | None = None

    @field_validator("comment")
    @classmethod
    def _blank_comment_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


__all__ = [
    "ActualSeries",
    "ActualSnapshot",
    "Apartment",
    "AssumptionSet",
    "Booking",
    "BookingCell",
    "BookingImport",
    "CellData",
    "CellMap",
    "ChangeLogEntry",
    "DEFAULT_ADR",
    "DEFAULT_OCCUPANCY_PCT",
    "DisplaySeries",
    "LEGACY_ACTUAL_ROWS",
    "MonthlySeries",
    "MonthlyTarget",
    "cell_key",
    "upgrade_legacy_actuals",
    "upgrade_legacy_cell_data",
]
