"""Currency conversion between the old, new and foreign currencies.

Rules, in precedence order:
1. Same currency: amount unchanged.
2. old -> new: divide by 100. new -> old: multiply by 100.
3. One foreign side: use that currency's ask quote (falling back to to_new),
   classified by magnitude, against the old or new side.
4. Two foreign sides: pivot through the new currency using each side's
   new-denominated rate. Only one quote per foreign currency is ever needed.

The engine is pure: it reads a RateTable and never mutates it.
"""

from decimal import Decimal, InvalidOperation

from redenom.engine.classifier import classify_rate
from redenom.exceptions import (
    InvalidAmount,
    RateUnavailable,
    UnknownCurrency,
    UnsupportedConversion,
)
from redenom.models import (
    CURRENCY_CODES,
    FOREIGN_CURRENCIES,
    NEW,
    OLD,
    REDENOMINATION_RATIO,
    ConversionRequest,
    RateClassification,
    RateTable,
)


def parse_currency_code(code: str) -> str:
    """Map a boundary currency code to its internal key.

    "old" and "new" stay lower-case; foreign codes are upper-cased
    ("usd" -> "USD").

    Raises:
        UnknownCurrency: If the code is not one of the supported currencies.
    """
    if not isinstance(code, str):
        raise UnknownCurrency(f"currency code must be a string, got {code!r}")
    normalized = code.strip().lower()
    if normalized in (OLD, NEW):
        return normalized
    upper = normalized.upper()
    if upper in FOREIGN_CURRENCIES:
        return upper
    raise UnknownCurrency(f"unsupported currency code {code!r}")


def parse_amount(value: object) -> Decimal:
    """Convert user input to a strictly positive, finite Decimal.

    Raises:
        InvalidAmount: If the value is not numeric, not finite, or <= 0.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"invalid amount {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"invalid amount {value!r}") from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"amount must be positive, got {value!r}")
    return amount


def resolve_foreign_rate(table: RateTable, currency: str) -> RateClassification:
    """Classify the quote to use for a foreign currency.

    The ask quote is preferred; to_new is the fallback when ask is missing.

    Raises:
        RateUnavailable: If the quote has no derived rates, or the chosen
            value is missing, zero or negative.
    """
    quote = table.get(currency)
    if quote is None or not quote.has_rate:
        raise RateUnavailable(currency, "no rate loaded")

    raw = quote.ask if quote.ask is not None else quote.to_new
    if raw is None or raw <= 0:
        raise RateUnavailable(currency, "missing or non-positive rate")

    return classify_rate(raw, currency)


def _resolve_pivot_rate(table: RateTable, currency: str) -> Decimal:
    """Return a foreign currency's new-denominated rate for triangulation.

    Unlike resolve_foreign_rate, only the ask/to_new value itself is checked.
    """
    quote = table.get(currency)
    raw = None
    if quote is not None:
        raw = quote.ask if quote.ask is not None else quote.to_new
    if raw is None or raw <= 0:
        raise RateUnavailable(currency, "missing or non-positive rate")
    return classify_rate(raw, currency).rate_for_new


def convert(
    amount: Decimal,
    from_currency: str,
    to_currency: str,
    table: RateTable | None = None,
) -> Decimal:
    """Convert an amount between two internal currency codes.

    Args:
        amount: Strictly positive amount in from_currency.
        from_currency: Internal code ("old", "new", "USD", "EUR", "SAR", "TRY").
        to_currency: Internal code of the target currency.
        table: Current exchange rates. Only needed when a foreign currency is involved.

    Returns:
        The converted amount as a Decimal with full precision (no rounding).

    Raises:
        InvalidAmount: If amount is not finite and strictly positive.
        UnknownCurrency: If either code is not supported.
        RateUnavailable: If a required foreign rate is missing or unusable.
        UnsupportedConversion: If no rule covers the pair.
    """
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"amount must be positive, got {amount}")
    for code in (from_currency, to_currency):
        if code not in CURRENCY_CODES:
            raise UnknownCurrency(f"unsupported currency code {code!r}")

    if from_currency == to_currency:
        return amount
    if from_currency == OLD and to_currency == NEW:
        return amount / REDENOMINATION_RATIO
    if from_currency == NEW and to_currency == OLD:
        return amount * REDENOMINATION_RATIO

    if table is None:
        table = RateTable()
    from_foreign = from_currency in FOREIGN_CURRENCIES
    to_foreign = to_currency in FOREIGN_CURRENCIES

    if from_foreign and to_foreign:
        from_rate_new = _resolve_pivot_rate(table, from_currency)
        to_rate_new = _resolve_pivot_rate(table, to_currency)
        return amount * from_rate_new / to_rate_new

    if from_foreign:
        rate = resolve_foreign_rate(table, from_currency)
        if to_currency == OLD:
            return amount * rate.rate_for_old
        if to_currency == NEW:
            return amount * rate.rate_for_new

    if to_foreign:
        rate = resolve_foreign_rate(table, to_currency)
        if from_currency == OLD:
            return amount / rate.rate_for_old
        if from_currency == NEW:
            return amount / rate.rate_for_new

    raise UnsupportedConversion(f"no conversion rule for {from_currency} -> {to_currency}")


def convert_request(request: ConversionRequest, table: RateTable) -> Decimal:
    """Convert a ConversionRequest against the given rate table."""
    return convert(request.amount, request.from_currency, request.to_currency, table)
