"""Before/after comparison of two amounts."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from redenom.engine.converter import parse_amount
from redenom.tools.formatting import format_percentage


class ChangeDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ComparisonResult:
    before: Decimal
    after: Decimal
    difference: Decimal
    percentage: str  # e.g. "15.5", "-3.25", "0"
    direction: ChangeDirection


def compare_amounts(before: object, after: object) -> ComparisonResult:
    """Compare two amounts and report the absolute and relative change.

    Formula:
        difference = after - before
        percentage = difference / before * 100, rounded to 2 decimals

    Raises:
        InvalidAmount: If either amount is missing, non-numeric or not positive.
    """
    before_amount = parse_amount(before)
    after_amount = parse_amount(after)

    difference = after_amount - before_amount
    percentage = difference / before_amount * Decimal("100")

    if difference > 0:
        direction = ChangeDirection.UP
    elif difference < 0:
        direction = ChangeDirection.DOWN
    else:
        direction = ChangeDirection.UNCHANGED

    return ComparisonResult(
        before=before_amount,
        after=after_amount,
        difference=difference,
        percentage=format_percentage(percentage),
        direction=direction,
    )
