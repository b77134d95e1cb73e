"""Monitoring report tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stayplan.schemas.planning import ActualSeries, ActualSnapshot, AssumptionSet
from stayplan.services.metrics import compute_monthly_metrics
from stayplan.services.variance import build_monitoring_report, variance


def _series(value: float) -> list[float]:
    return [value] * 13


def _actual(value: float) -> ActualSeries:
    return ActualSeries(
        revenue=_series(value),
        nights=_series(value),
        occupancy_pct=_series(value),
        adr=_series(value),
        revpar=_series(value),
    )


def test_variance_is_comparison_minus_baseline():
    assert variance([1, 2], [4, 1]) == [3, -1]
    assert variance([4, 1], [1, 2]) == [-3, 1]
    with pytest.raises(ValueError):
        variance([1], [1, 2])


def test_report_without_inputs_shows_zero_rows():
    report = build_monitoring_report(None)

    titles = [section.title for section in report.sections]
    assert titles == [
        "Overview",
        "Actual",
        "Variance to actual",
        "Data as of...",
        "Variance to past date",
        "Variance to prior year",
    ]
    assert report.section("Actual").row("Current ADR").values == _series(0)


def test_report_compares_actual_with_forecast_and_snapshot():
    forecast = compute_monthly_metrics(
        AssumptionSet(occupancy_pct=[10] * 12, adr=[100] * 12, prior_year_revenue=[50] * 12),
        [1] * 12,
        2025,
    )
    snapshot = ActualSnapshot(timestamp=datetime(2025, 5, 1, tzinfo=timezone.utc), data=_actual(40))

    report = build_monitoring_report(forecast, budget=_series(10), actual=_actual(100), as_of=snapshot)

    assert report.section("Overview").row("BUDGET").values == _series(10)
    revenue_gap = report.section("Variance to actual").row("Business on the books").values
    assert revenue_gap[1] == pytest.approx(100 - forecast.months[0].revenue)
    assert report.section("Data as of 2025-05-01").row("Current RevPAR").values == _series(40)
    assert report.section("Variance to past date").row("Current ADR").values == _series(60)
    prior = report.section("Variance to prior year").row("Revenue variance").values
    assert prior[1] == 50
    assert report.section("Overview").row("ADR").formatted()[1] == "€ 100,00"
