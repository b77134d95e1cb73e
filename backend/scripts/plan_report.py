"""Print the forecast, cost and monitoring grids of a workspace."""

from __future__ import annotations

import argparse

import pandas as pd

from stayplan.config import get_settings
from stayplan.core.calendar import MONTH_NAMES
from stayplan.core.logging import setup_logging
from stayplan.schemas.costs import FixedCost, VariableCost, default_fixed_costs, default_variable_costs
from stayplan.services.costs import allocate_costs
from stayplan.services.metrics import budget_series, compute_monthly_metrics, monthly_targets
from stayplan.services.variance import build_monitoring_report
from stayplan.services.workspace import Workspace, shared_key
from stayplan.storage import PersistedStore, SqlStorage

COLUMNS = ["Total", *MONTH_NAMES]


def _frame(rows: dict[str, list[float]]) -> pd.DataFrame:
    return pd.DataFrame.from_dict(rows, orient="index", columns=COLUMNS)


def build_report(store: PersistedStore, workspace_name: str) -> dict[str, pd.DataFrame]:
    workspace = Workspace(store, workspace_name)
    try:
        year = workspace.value("current-year")
        forecast = compute_monthly_metrics(workspace.value("forecast-inputs"), workspace.value("forecast-units"), year)
        budget = compute_monthly_metrics(workspace.value("budget-data"), workspace.value("budget-units"), year)
        fixed = store.read(shared_key("costi-fixed", store.namespace), default_fixed_costs, schema=list[FixedCost])
        variable = store.read(
            shared_key("costi-variable", store.namespace), default_variable_costs, schema=list[VariableCost]
        )
        costs = allocate_costs(
            fixed,
            variable,
            forecast.series("revenue"),
            forecast.series("potential_nights"),
            forecast.series("sold_nights"),
        )
        report = build_monitoring_report(
            forecast,
            budget_series(monthly_targets(budget), year),
            workspace.value("actual-data"),
            workspace.value("saved-actual"),
        )
    finally:
        workspace.close()

    frames = {
        "Forecast": _frame({name: forecast.series(name) for name in ("potential_nights", "sold_nights", "adr", "revpar", "revenue")}),
        "Costs": _frame(
            {
                "fixed": costs.fixed,
                "variable": costs.variable,
                "total": costs.total,
                "margin": costs.margin,
                "margin_pct": costs.margin_pct,
                "bottom_rate": costs.bottom_rate,
            }
        ),
    }
    for section in report.sections:
        frames[section.title] = _frame({row.label: row.values for row in section.rows})
    return frames


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the planning grids of a workspace")
    parser.add_argument("--workspace", default="cluster")
    parser.add_argument("--database-url", help="Local slot database (defaults to LOCAL_DATABASE_URL)")
    parser.add_argument("--csv", help="Write every grid into this CSV file as well")
    args = parser.parse_args()

    setup_logging()
    settings = get_settings()
    store = PersistedStore(SqlStorage(args.database_url or settings.local_database_url), settings.storage_namespace)
    try:
        frames = build_report(store, args.workspace)
    finally:
        store.close()

    pd.set_option("display.width", 250)
    for title, frame in frames.items():
        print(f"\n== {title} ==")
        print(frame.round(2).to_string())
    if args.csv:
        pd.concat(frames, names=["grid", "row"]).to_csv(args.csv)
        print(f"\nWrote {args.csv}")


if __name__ == "__main__":
    main()
