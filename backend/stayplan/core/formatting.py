"""Display formatting for planning figures.

Numbers use the Italian convention the operators work with (``.`` for
thousands, ``,`` for decimals). A non-finite value never reaches the screen:
each formatter renders a fixed fallback instead.
"""

from __future__ import annotations

import math

CURRENCY_FALLBACK = "€ 0,00"
NUMBER_FALLBACK = "0"
PERCENTAGE_FALLBACK = "0,00%"
INDEX_FALLBACK = "0,00"
DIVISION_ERROR = "#DIV/0!"


def _is_finite(value: float | int | None) -> bool:
    return value is not None and math.isfinite(value)


def _localise(value: float, decimals: int) -> str:
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: float | None) -> str:
    if not _is_finite(value):
        return CURRENCY_FALLBACK
    return f"€ {_localise(value, 2)}"


def format_number(value: float | None) -> str:
    if not _is_finite(value):
        return NUMBER_FALLBACK
    return _localise(value, 0)


def format_percentage(value: float | None) -> str:
    if not _is_finite(value):
        return PERCENTAGE_FALLBACK
    return f"{_localise(value, 2)}%"


def format_index(value: float | None) -> str:
    if not _is_finite(value):
        return INDEX_FALLBACK
    return _localise(value, 2)


def format_grid_value(value: float | str | None, kind: str | None) -> str:
    """Format a monitoring grid cell; NaN shows the spreadsheet division error."""

    if not isinstance(value, (int, float)):
        return value or ""
    if math.isnan(value):
        return DIVISION_ERROR
    formatter = _GRID_FORMATTERS.get(kind or "")
    if formatter is None:
        return str(value)
    return formatter(value)


_GRID_FORMATTERS = {
    "currency": format_currency,
    "percentage": format_percentage,
    "integer": format_number,
    "decimal": format_index,
}


__all__ = [
    "CURRENCY_FALLBACK",
    "DIVISION_ERROR",
    "INDEX_FALLBACK",
    "NUMBER_FALLBACK",
    "PERCENTAGE_FALLBACK",
    "format_currency",
    "format_grid_value",
    "format_index",
    "format_number",
    "format_percentage",
]
