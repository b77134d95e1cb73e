"""Cost allocation tests."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter

from stayplan.schemas.costs import (
    AbsoluteCost,
    FixedCost,
    PercentageCost,
    StructureCosts,
    VariableCost,
    default_fixed_costs,
    default_variable_costs,
)
from stayplan.services.costs import allocate_costs, analyse_structure, monthly_part


def test_fixed_costs_are_spread_evenly():
    summary = allocate_costs(default_fixed_costs(), [], [0] * 12)

    assert summary.fixed[0] == 24000
    assert summary.fixed[1:] == [2000] * 12


def test_percentage_cost_follows_revenue():
    summary = allocate_costs([], [PercentageCost(id=1, name="OTA", rate=15)], [10000] * 12)

    assert summary.variable[1] == pytest.approx(1500)
    assert summary.variable[0] == pytest.approx(18000)
    assert summary.variable_lines[0].rate == 15


def test_per_night_figures_use_their_own_denominators():
    summary = allocate_costs(
        [FixedCost(id=1, name="Rent", annual_amount=2400)],
        [AbsoluteCost(id=2, name="Cleaning", monthly=[50] * 12)],
        [0] * 12,
        available_nights=[100] * 12,
        sold_nights=[50] * 12,
    )

    assert summary.cost_per_available_night[1] == pytest.approx(2.0)
    assert summary.cost_per_sold_night[1] == pytest.approx(1.0)
    assert summary.bottom_rate[1] == pytest.approx(5.0)


def test_margin_without_revenue_is_zero_percent():
    summary = allocate_costs(default_fixed_costs(), default_variable_costs(), None)

    assert summary.margin[1] == -2200
    assert summary.margin_pct == [0.0] * 13
    assert summary.cost_per_sold_night == [0.0] * 13


def test_display_form_revenue_is_accepted():
    summary = allocate_costs([], [], [1200] + [100] * 12)

    assert summary.revenue == [1200] + [100] * 12
    with pytest.raises(ValueError):
        monthly_part([1, 2, 3])


def test_legacy_variable_costs_are_upgraded():
    adapter = TypeAdapter(list[VariableCost])

    upgraded = adapter.validate_python(
        [
            {"id": 1, "name": "OTA", "type": "percentuale", "values": [12] + [0] * 12},
            {"id": 2, "name": "Laundry", "type": "semivariabile", "values": [120] + [10] * 12},
        ]
    )

    assert upgraded[0] == PercentageCost(id=1, name="OTA", rate=12)
    assert isinstance(upgraded[1], AbsoluteCost)
    assert upgraded[1].monthly == [10] * 12
    assert upgraded[1].semi_variable is True
    assert upgraded[1].annual_total == 120


def test_structure_analysis_ignores_percentage_items():
    costs = StructureCosts(
        fixed_costs=[FixedCost(id=1, name="Rent", annual_amount=1200)],
        variable_costs=[
            PercentageCost(id=2, name="OTA", rate=20),
            AbsoluteCost(id=3, name="Utilities", monthly=[100] * 12),
        ],
    )

    summary = analyse_structure(costs, [20] * 12)

    assert summary.total[1] == 200
    assert summary.bottom_rate[1] == 10
    assert summary.bottom_rate[0] == pytest.approx(2400 / 240)
