"""Cash breakdown: total a stack of old banknotes and express it in new currency.

Denominations are old-currency face values. The list always holds at least
one denomination.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from redenom.engine.converter import convert
from redenom.exceptions import InvalidDenomination
from redenom.models import NEW, OLD

DEFAULT_DENOMINATIONS: tuple[Decimal, ...] = (
    Decimal("500"),
    Decimal("1000"),
    Decimal("2000"),
    Decimal("5000"),
)


@dataclass
class Denomination:
    value: Decimal
    count: int = 0

    @property
    def subtotal(self) -> Decimal:
        return self.value * self.count


def _coerce_count(raw: object) -> int:
    """Banknote counts are whole and non-negative; anything else counts as 0."""
    if isinstance(raw, bool):
        return 0
    try:
        count = int(Decimal(str(raw)))
    except (InvalidOperation, ValueError, OverflowError):
        return 0
    return max(count, 0)


class CashBreakdown:
    """Mutable list of banknote denominations with counts.

    Args:
        denominations: Initial face values. Defaults to 500, 1000, 2000, 5000.
    """

    def __init__(self, denominations: Iterable[Decimal] | None = None) -> None:
        values = list(denominations) if denominations is not None else list(DEFAULT_DENOMINATIONS)
        if not values:
            raise InvalidDenomination("at least one denomination is required")
        self._denominations: list[Denomination] = []
        for value in values:
            self.add_denomination(value)

    @property
    def denominations(self) -> list[Denomination]:
        return list(self._denominations)

    def add_denomination(self, value: object) -> Denomination:
        """Append a new denomination with a count of zero.

        Raises:
            InvalidDenomination: If value is not a positive number.
        """
        try:
            face = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidDenomination(f"invalid denomination {value!r}") from None
        if not face.is_finite() or face <= 0:
            raise InvalidDenomination(f"denomination must be positive, got {value!r}")
        denomination = Denomination(value=face)
        self._denominations.append(denomination)
        return denomination

    def remove_denomination(self, index: int) -> Denomination:
        """Remove the denomination at index.

        Raises:
            InvalidDenomination: If index is out of range or only one denomination is left.
        """
        if len(self._denominations) <= 1:
            raise InvalidDenomination("at least one denomination must remain")
        if not 0 <= index < len(self._denominations):
            raise InvalidDenomination(f"no denomination at index {index}")
        return self._denominations.pop(index)

    def set_count(self, index: int, count: object) -> None:
        if not 0 <= index < len(self._denominations):
            raise InvalidDenomination(f"no denomination at index {index}")
        self._denominations[index].count = _coerce_count(count)

    def total_old(self) -> Decimal:
        return sum((d.subtotal for d in self._denominations), Decimal("0"))

    def total_new(self) -> Decimal:
        total = self.total_old()
        if total == 0:
            return Decimal("0")
        return convert(total, OLD, NEW)

    def summary(self) -> dict:
        return {
            "denominations": [
                {"value": d.value, "count": d.count, "subtotal": d.subtotal}
                for d in self._denominations
            ],
            "total_old": self.total_old(),
            "total_new": self.total_new(),
        }
