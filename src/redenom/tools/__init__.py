"""Auxiliary tools -- cash breakdown, before/after comparison, canned scenarios, formatting."""

from redenom.tools.breakdown import CashBreakdown, Denomination
from redenom.tools.comparison import ChangeDirection, ComparisonResult, compare_amounts
from redenom.tools.formatting import format_amount, format_currency, format_percentage
from redenom.tools.scenarios import SCENARIOS, Scenario, ScenarioResult, run_scenario

__all__ = [
    "SCENARIOS",
    "CashBreakdown",
    "ChangeDirection",
    "ComparisonResult",
    "Denomination",
    "Scenario",
    "ScenarioResult",
    "compare_amounts",
    "format_amount",
    "format_currency",
    "format_percentage",
    "run_scenario",
]
