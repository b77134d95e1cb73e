"""Workspace-scoped slot names and the bindings a planning session works on."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from stayplan.config.settings import DEFAULT_NAMESPACE
from stayplan.core.calendar import MONTHS_IN_YEAR
from stayplan.schemas.planning import ActualSeries, ActualSnapshot, Apartment, AssumptionSet, CellData, ChangeLogEntry
from stayplan.storage.store import Binding, PersistedStore

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE = "cluster"

SCOPED_SLOTS = (
    "apartments",
    "cell-data",
    "budget-units",
    "budget-data",
    "budget-locked",
    "budget-logs",
    "forecast-inputs",
    "forecast-units",
    "saved-actual",
    "actual-data",
    "current-year",
)

SHARED_SLOTS = (
    "costi-fixed",
    "costi-variable",
    "costi-selettiva",
    "costi-selettiva-notti",
    "competitors",
    "competitors-pricing",
    "pressione-step",
    "pressione-bars",
    "pressione-rates",
)

DEFAULT_APARTMENT_NAMES = (
    "Pamar 2",
    "Alba marina",
    "Balcone sul Mare",
    "Casa del fico",
    "Casa Indipendenza",
    "Corte marina",
    "Gondola Apartment",
    "Kame house",
    "La conchiglia",
    "L'onda",
    "Mediterraneo apartment",
    "Nenetta a mare",
    "Orsini house",
    "Pamar 1",
    "Riviera",
    "Suite Centrale",
)


def default_apartments() -> list[Apartment]:
    return [Apartment(id=index, name=name) for index, name in enumerate(DEFAULT_APARTMENT_NAMES)]


def shared_key(slot: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    if slot not in SHARED_SLOTS:
        raise KeyError(f"Unknown shared slot: {slot}")
    return f"{namespace}{slot}"


@dataclass(frozen=True)
class WorkspaceKeys:
    """Slot names of one workspace, e.g. ``budget-app-cluster-forecast-inputs``."""

    workspace: str = DEFAULT_WORKSPACE
    namespace: str = DEFAULT_NAMESPACE

    @property
    def prefix(self) -> str:
        return f"{self.namespace}{self.workspace}-"

    def key(self, slot: str) -> str:
        if slot not in SCOPED_SLOTS:
            raise KeyError(f"Unknown workspace slot: {slot}")
        return f"{self.prefix}{slot}"

    def rate_strategy(self, month: str) -> str:
        return f"{self.prefix}rate-strategy-{month}"

    def all(self) -> dict[str, str]:
        return {slot: self.key(slot) for slot in SCOPED_SLOTS}

    @property
    def apartments(self) -> str:
        return self.key("apartments")

    @property
    def cell_data(self) -> str:
        return self.key("cell-data")

    @property
    def budget_units(self) -> str:
        return self.key("budget-units")

    @property
    def budget_data(self) -> str:
        return self.key("budget-data")

    @property
    def budget_locked(self) -> str:
        return self.key("budget-locked")

    @property
    def budget_logs(self) -> str:
        return self.key("budget-logs")

    @property
    def forecast_inputs(self) -> str:
        return self.key("forecast-inputs")

    @property
    def forecast_units(self) -> str:
        return self.key("forecast-units")

    @property
    def saved_actual(self) -> str:
        return self.key("saved-actual")

    @property
    def actual_data(self) -> str:
        return self.key("actual-data")

    @property
    def current_year(self) -> str:
        return self.key("current-year")


def _zero_units() -> list[int]:
    return [0] * MONTHS_IN_YEAR


def _current_year() -> int:
    return date.today().year


# slot -> (default, schema)
SLOT_DEFAULTS: dict[str, tuple[Any, Any]] = {
    "apartments": (default_apartments, list[Apartment]),
    "cell-data": (dict, CellData),
    "budget-units": (_zero_units, list[int]),
    "budget-data": (AssumptionSet, AssumptionSet),
    "budget-locked": (False, bool),
    "budget-logs": (list, list[ChangeLogEntry]),
    "forecast-inputs": (AssumptionSet, AssumptionSet),
    "forecast-units": (_zero_units, list[int]),
    "saved-actual": (None, ActualSnapshot | None),
    "actual-data": (None, ActualSeries | None),
    "current-year": (_current_year, int),
}


class Workspace:
    """Live bindings for every scoped slot of the active workspace."""

    def __init__(self, store: PersistedStore, name: str = DEFAULT_WORKSPACE) -> None:
        self._store = store
        self._keys = WorkspaceKeys(name, store.namespace)
        self._bindings: dict[str, Binding] = {}
        for slot, (default, schema) in SLOT_DEFAULTS.items():
            self._bindings[slot] = store.bind(self._keys.key(slot), default, schema=schema)

    @property
    def name(self) -> str:
        return self._keys.workspace

    @property
    def keys(self) -> WorkspaceKeys:
        return self._keys

    @property
    def store(self) -> PersistedStore:
        return self._store

    def binding(self, slot: str) -> Binding:
        return self._bindings[slot]

    def value(self, slot: str) -> Any:
        return self._bindings[slot].value

    def set(self, slot: str, value: Any) -> Any:
        return self._bindings[slot].set(value)

    def watch(self, slot: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        return self._bindings[slot].watch(callback)

    def switch(self, name: str) -> None:
        """Re-point every binding at the slots of workspace ``name``."""

        if name == self._keys.workspace:
            return
        logger.info("Switching workspace from %s to %s", self._keys.workspace, name)
        self._keys = WorkspaceKeys(name, self._store.namespace)
        for slot, binding in self._bindings.items():
            binding.rebind(self._keys.key(slot))

    def close(self) -> None:
        for binding in self._bindings.values():
            binding.close()


__all__ = [
    "DEFAULT_APARTMENT_NAMES",
    "DEFAULT_WORKSPACE",
    "SCOPED_SLOTS",
    "SHARED_SLOTS",
    "SLOT_DEFAULTS",
    "Workspace",
    "WorkspaceKeys",
    "default_apartments",
    "shared_key",
]
