"""Canned everyday scenarios that restate an old-currency amount in new currency.

Every scenario performs the same old -> new conversion; they differ only in
wording. The real value never changes, only the number of zeros.
"""

from dataclasses import dataclass
from decimal import Decimal

from redenom.engine.converter import convert, parse_amount
from redenom.exceptions import UnknownScenario
from redenom.models import NEW, OLD

_SAME_VALUE_NOTE = "The real value has not changed, only the numbers got simpler."


@dataclass(frozen=True)
class Scenario:
    name: str
    title: str
    description: str
    input_label: str
    result_label: str
    note: str = _SAME_VALUE_NOTE


@dataclass(frozen=True)
class ScenarioResult:
    scenario: str
    amount: Decimal
    label: str
    value: Decimal
    note: str


SCENARIOS: dict[str, Scenario] = {
    "salary": Scenario(
        name="salary",
        title="Salary",
        description="Work out your salary in the new currency: just drop two zeros.",
        input_label="Current salary (old currency)",
        result_label="Salary in new currency",
    ),
    "rent": Scenario(
        name="rent",
        title="Rent",
        description="Work out your rent in the new currency. Same value, simpler numbers.",
        input_label="Current rent (old currency)",
        result_label="Rent in new currency",
    ),
    "debt": Scenario(
        name="debt",
        title="Debt",
        description="Work out a debt in the new currency. Nothing is lost in the conversion.",
        input_label="Debt amount (old currency)",
        result_label="Debt in new currency",
    ),
    "product": Scenario(
        name="product",
        title="Product price",
        description="Work out a price in the new currency. Same value, easier arithmetic.",
        input_label="Current price (old currency)",
        result_label="Price in new currency",
    ),
}


def get_scenario(name: str) -> Scenario:
    scenario = SCENARIOS.get(name)
    if scenario is None:
        raise UnknownScenario(f"unknown scenario {name!r}")
    return scenario


def run_scenario(name: str, amount: object) -> ScenarioResult:
    """Convert an old-currency amount for the named scenario.

    Raises:
        UnknownScenario: If name is not one of SCENARIOS.
        InvalidAmount: If amount is not a positive number.
    """
    scenario = get_scenario(name)
    value = parse_amount(amount)
    return ScenarioResult(
        scenario=scenario.name,
        amount=value,
        label=scenario.result_label,
        value=convert(value, OLD, NEW),
        note=scenario.note,
    )
