"""Cost item schemas.

Variable costs are a tagged union on ``kind``. Records written by earlier
releases used a 13-value ``values`` array whose first slot meant either the
rate (``percentuale``) or the annual total; those are upgraded on read.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, computed_field

from stayplan.core.calendar import MONTHS_IN_YEAR
from stayplan.schemas.planning import MonthlySeries

LEGACY_PERCENTAGE_TYPE = "percentuale"
LEGACY_ABSOLUTE_TYPES = {"variabile", "semivariabile"}


class FixedCost(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    annual_amount: float = Field(default=0.0, validation_alias=AliasChoices("annual_amount", "annualAmount"))

    @property
    def monthly_amount(self) -> float:
        return self.annual_amount / MONTHS_IN_YEAR


class PercentageCost(BaseModel):
    """A variable cost charged as a share of each month's revenue."""

    kind: Literal["percentage"] = "percentage"
    id: int
    name: str
    rate: float = 0.0


class AbsoluteCost(BaseModel):
    """A variable cost entered month by month."""

    kind: Literal["absolute"] = "absolute"
    id: int
    name: str
    monthly: MonthlySeries = Field(default_factory=lambda: [0.0] * MONTHS_IN_YEAR)
    semi_variable: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def annual_total(self) -> float:
        return sum(self.monthly)


def upgrade_legacy_variable_cost(data: Any) -> Any:
    """Convert a ``{type, values[13]}`` record into the tagged form."""

    if not isinstance(data, dict) or "kind" in data or "type" not in data:
        return data
    values = list(data.get("values") or [])
    values += [0.0] * (MONTHS_IN_YEAR + 1 - len(values))
    base = {"id": data.get("id", 0), "name": data.get("name", "")}
    if data["type"] == LEGACY_PERCENTAGE_TYPE:
        return {**base, "kind": "percentage", "rate": values[0] or 0.0}
    if data["type"] in LEGACY_ABSOLUTE_TYPES:
        return {
            **base,
            "kind": "absolute",
            "monthly": [v or 0.0 for v in values[1 : MONTHS_IN_YEAR + 1]],
            "semi_variable": data["type"] == "semivariabile",
        }
    return data


VariableCost = Annotated[
    Annotated[Union[PercentageCost, AbsoluteCost], Field(discriminator="kind")],
    BeforeValidator(upgrade_legacy_variable_cost),
]


class StructureCosts(BaseModel):
    """Costs attached to a single apartment."""

    model_config = ConfigDict(populate_by_name=True)

    fixed_costs: list[FixedCost] = Field(
        default_factory=list, validation_alias=AliasChoices("fixed_costs", "fixedCosts")
    )
    variable_costs: list[VariableCost] = Field(
        default_factory=list, validation_alias=AliasChoices("variable_costs", "variableCosts")
    )


def default_fixed_costs() -> list[FixedCost]:
    return [FixedCost(id=100, name="Affitto", annual_amount=24000)]


def default_variable_costs() -> list[PercentageCost | AbsoluteCost]:
    return [
        PercentageCost(id=200, name="Commissioni OTA", rate=15),
        AbsoluteCost(
            id=201,
            name="Utenze",
            monthly=[200, 220, 250, 300, 350, 400, 450, 400, 300, 250, 220, 210],
        ),
    ]


__all__ = [
    "AbsoluteCost",
    "FixedCost",
    "PercentageCost",
    "StructureCosts",
    "VariableCost",
    "default_fixed_costs",
    "default_variable_costs",
    "upgrade_legacy_variable_cost",
]
