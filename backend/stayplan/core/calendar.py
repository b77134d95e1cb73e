"""Calendar helpers shared by the planning computations."""

from __future__ import annotations

import calendar

MONTHS_IN_YEAR = 12

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def days_in_month(month_index: int, year: int) -> int:
    """Return the number of days in a zero-based month of ``year``."""

    if not 0 <= month_index < MONTHS_IN_YEAR:
        raise ValueError(f"month_index must be between 0 and 11, got {month_index}")
    return calendar.monthrange(year, month_index + 1)[1]


def days_per_month(year: int) -> list[int]:
    return [days_in_month(m, year) for m in range(MONTHS_IN_YEAR)]


def month_key(year: int, month_index: int) -> str:
    """Key used to group per-month planner data, e.g. ``2025-01``."""

    if not 0 <= month_index < MONTHS_IN_YEAR:
        raise ValueError(f"month_index must be between 0 and 11, got {month_index}")
    return f"{year:04d}-{month_index + 1:02d}"


# earlier releases keyed planner data as "<year>-Gennaio"
LEGACY_MONTH_NAMES = (
    "Gennaio",
    "Febbraio",
    "Marzo",
    "Aprile",
    "Maggio",
    "Giugno",
    "Luglio",
    "Agosto",
    "Settembre",
    "Ottobre",
    "Novembre",
    "Dicembre",
)


def normalise_month_key(key: str) -> str:
    """Map a legacy ``2025-Gennaio`` key to ``2025-01``; other keys pass through."""

    year, sep, month = key.partition("-")
    if sep and year.isdigit() and month in LEGACY_MONTH_NAMES:
        return month_key(int(year), LEGACY_MONTH_NAMES.index(month))
    return key


__all__ = [
    "LEGACY_MONTH_NAMES",
    "MONTHS_IN_YEAR",
    "MONTH_NAMES",
    "days_in_month",
    "days_per_month",
    "month_key",
    "normalise_month_key",
]
