"""Shared data models for the redenomination converter.

CRITICAL: All monetary values use Decimal. Never use float for amounts or rates.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

# 1 new-currency unit = 100 old-currency units (two zeros removed)
REDENOMINATION_RATIO = Decimal("100")

OLD = "old"
NEW = "new"
LOCAL_CURRENCIES: tuple[str, ...] = (OLD, NEW)
FOREIGN_CURRENCIES: tuple[str, ...] = ("USD", "EUR", "SAR", "TRY")
CURRENCY_CODES: tuple[str, ...] = LOCAL_CURRENCIES + FOREIGN_CURRENCIES


class MagnitudeClass(str, Enum):
    """Which denomination a raw quoted rate is expressed in."""

    OLD = "old"
    NEW = "new"


class CalculationType(str, Enum):
    """Kind of calculation stored in the history."""

    CONVERSION = "conversion"
    COMPARISON = "comparison"
    SCENARIO = "scenario"


@dataclass
class RateQuote:
    """Latest quote for one foreign currency against the local currency.

    to_old/to_new are derived from ask and are always both set or both None.
    """

    code: str
    ask: Decimal | None = None
    bid: Decimal | None = None
    to_old: Decimal | None = None
    to_new: Decimal | None = None
    last_update: datetime | None = None

    @property
    def has_rate(self) -> bool:
        return self.to_new is not None or self.to_old is not None

    def clear(self) -> None:
        """Drop all quoted values but keep last_update."""
        self.ask = None
        self.bid = None
        self.to_old = None
        self.to_new = None


class RateTable:
    """Fixed mapping of foreign currency code -> RateQuote.

    The key set is FOREIGN_CURRENCIES and never changes after construction.
    """

    def __init__(self, quotes: dict[str, RateQuote] | None = None) -> None:
        self._quotes: dict[str, RateQuote] = {
            code: RateQuote(code=code) for code in FOREIGN_CURRENCIES
        }
        if quotes:
            for code, quote in quotes.items():
                if code in self._quotes:
                    quote.code = code
                    self._quotes[code] = quote

    def __getitem__(self, code: str) -> RateQuote:
        return self._quotes[code]

    def __contains__(self, code: object) -> bool:
        return code in self._quotes

    def __iter__(self):
        return iter(self._quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RateTable):
            return NotImplemented
        return self._quotes == other._quotes

    def get(self, code: str) -> RateQuote | None:
        return self._quotes.get(code)

    def quotes(self) -> list[RateQuote]:
        return list(self._quotes.values())

    def clear_all(self) -> None:
        """Wipe ask/bid/to_old/to_new for every tracked currency."""
        for quote in self._quotes.values():
            quote.clear()

    def copy(self) -> "RateTable":
        return RateTable(
            {
                code: RateQuote(
                    code=q.code,
                    ask=q.ask,
                    bid=q.bid,
                    to_old=q.to_old,
                    to_new=q.to_new,
                    last_update=q.last_update,
                )
                for code, q in self._quotes.items()
            }
        )


@dataclass(frozen=True)
class RateClassification:
    """Result of classifying a raw quote by magnitude."""

    raw: Decimal
    magnitude: MagnitudeClass
    rate_for_old: Decimal
    rate_for_new: Decimal


@dataclass(frozen=True)
class ConversionRequest:
    """Amount to convert between two internal currency codes."""

    amount: Decimal
    from_currency: str
    to_currency: str


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a successful conversion."""

    amount: Decimal
    from_currency: str
    to_currency: str
    result: Decimal


@dataclass
class SavedCalculation:
    """One entry in the calculation history."""

    type: CalculationType
    data: dict
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AppState:
    """Everything the application persists between runs."""

    exchange_rates: RateTable = field(default_factory=RateTable)
    saved_calculations: list[SavedCalculation] = field(default_factory=list)
    large_text_mode: bool = False
    theme_mode: str | None = None  # None = follow system, "dark" or "light"
