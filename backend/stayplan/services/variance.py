"""Side-by-side monitoring of forecast, budget, actual and as-of data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from stayplan.core.calendar import MONTHS_IN_YEAR
from stayplan.core.formatting import format_grid_value
from stayplan.schemas.planning import ActualSeries, ActualSnapshot
from stayplan.services.actuals import ActualResultSet
from stayplan.services.metrics import MetricsResultSet

DISPLAY_LENGTH = MONTHS_IN_YEAR + 1


def variance(baseline: Sequence[float], comparison: Sequence[float]) -> list[float]:
    """Element-wise ``comparison - baseline``."""

    if len(baseline) != len(comparison):
        raise ValueError(f"series length mismatch: {len(baseline)} != {len(comparison)}")
    return [b - a for a, b in zip(baseline, comparison)]


def _zeros() -> list[float]:
    return [0.0] * DISPLAY_LENGTH


@dataclass
class MonitoringRow:
    label: str
    values: list[float]
    kind: str
    bold: bool = False
    highlight: bool = False

    def formatted(self) -> list[str]:
        return [format_grid_value(value, self.kind) for value in self.values]


@dataclass
class MonitoringSection:
    title: str
    rows: list[MonitoringRow] = field(default_factory=list)

    def row(self, label: str) -> MonitoringRow:
        for row in self.rows:
            if row.label == label:
                return row
        raise KeyError(label)


@dataclass
class MonitoringReport:
    sections: list[MonitoringSection]

    def section(self, title: str) -> MonitoringSection:
        for section in self.sections:
            if section.title == title:
                return section
        raise KeyError(title)


_ACTUAL_ROWS = (
    ("Business on the books", "revenue", "currency"),
    ("Room nights on the books", "nights", "integer"),
    ("Occupancy on the books", "occupancy_pct", "percentage"),
    ("Current ADR", "adr", "currency"),
    ("Current RevPAR", "revpar", "currency"),
)

# actual field -> forecast series it is compared with
_FORECAST_COUNTERPART = {
    "revenue": "revenue",
    "nights": "sold_nights",
    "occupancy_pct": "occupancy_pct",
    "adr": "adr",
    "revpar": "revpar",
}


def _actual_rows(data: ActualSeries | None) -> list[MonitoringRow]:
    return [
        MonitoringRow(label, list(getattr(data, attr)) if data else _zeros(), kind)
        for label, attr, kind in _ACTUAL_ROWS
    ]


def build_monitoring_report(
    forecast: MetricsResultSet | None,
    budget: Sequence[float] | None = None,
    actual: ActualResultSet | ActualSeries | None = None,
    as_of: ActualSnapshot | None = None,
) -> MonitoringReport:
    """Assemble the monitoring grid; missing inputs show as zero rows."""

    actual_data = actual.to_series() if isinstance(actual, ActualResultSet) else actual

    def forecast_series(name: str) -> list[float]:
        return forecast.series(name) if forecast is not None else _zeros()

    overview = MonitoringSection(
        "Overview",
        [
            MonitoringRow("Potential occupancy", forecast_series("potential_nights"), "integer"),
            MonitoringRow("Expected occupancy", forecast_series("occupancy_pct"), "percentage"),
            MonitoringRow("Occupied room nights", forecast_series("sold_nights"), "integer"),
            MonitoringRow("ADR", forecast_series("adr"), "currency"),
            MonitoringRow("RevPAR", forecast_series("revpar"), "currency"),
            MonitoringRow("FORECAST", forecast_series("revenue"), "currency", bold=True),
            MonitoringRow("BUDGET", list(budget) if budget is not None else _zeros(), "currency", bold=True),
        ],
    )

    actual_section = MonitoringSection("Actual", _actual_rows(actual_data))

    against_forecast = MonitoringSection("Variance to actual")
    for label, attr, kind in _ACTUAL_ROWS:
        values = (
            variance(forecast_series(_FORECAST_COUNTERPART[attr]), getattr(actual_data, attr))
            if actual_data is not None
            else _zeros()
        )
        against_forecast.rows.append(
            MonitoringRow(label, values, kind, highlight=attr == "occupancy_pct")
        )

    as_of_title = f"Data as of {as_of.timestamp:%Y-%m-%d}" if as_of is not None else "Data as of..."
    as_of_section = MonitoringSection(as_of_title, _actual_rows(as_of.data if as_of else None))

    against_as_of = MonitoringSection("Variance to past date")
    for label, attr, kind in _ACTUAL_ROWS:
        values = (
            variance(getattr(as_of.data, attr), getattr(actual_data, attr))
            if as_of is not None and actual_data is not None
            else _zeros()
        )
        against_as_of.rows.append(MonitoringRow(label, values, kind, highlight=attr == "occupancy_pct"))

    prior_year = forecast_series("prior_year_revenue")
    against_prior_year = MonitoringSection(
        "Variance to prior year",
        [
            MonitoringRow("Prior year revenue", prior_year, "currency"),
            MonitoringRow(
                "Revenue variance",
                variance(prior_year, actual_data.revenue) if actual_data is not None else _zeros(),
                "currency",
            ),
        ],
    )

    return MonitoringReport(
        [overview, actual_section, against_forecast, as_of_section, against_as_of, against_prior_year]
    )


__all__ = [
    "MonitoringReport",
    "MonitoringRow",
    "MonitoringSection",
    "build_monitoring_report",
    "variance",
]
