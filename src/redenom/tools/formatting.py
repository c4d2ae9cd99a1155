"""Human-readable number formatting for amounts and percentages."""

from decimal import ROUND_HALF_UP, Decimal, localcontext

CURRENCY_LABELS: dict[str, str] = {
    "old": "old SYP",
    "new": "new SYP",
    "USD": "US dollar",
    "EUR": "euro",
    "SAR": "Saudi riyal",
    "TRY": "Turkish lira",
}

_TWO_PLACES = Decimal("0.01")


def trim_zeros(text: str) -> str:
    """Drop trailing fractional zeros: "15.50" -> "15.5", "20.00" -> "20"."""
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def round2(value: Decimal) -> Decimal:
    """Round half away from zero to two decimal places.

    Precision is widened to fit the integer digits, so very large amounts
    round instead of raising InvalidOperation.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal, label: str | None = None) -> str:
    """Format an amount with thousands grouping and at most two decimals.

    Args:
        value: Amount to format.
        label: Optional unit appended after a space (e.g. "new SYP").

    Returns:
        e.g. format_amount(Decimal("1234567.5"), "old SYP") -> "1,234,567.5 old SYP".
        Non-finite values render as "-".
    """
    if not value.is_finite():
        return "-"
    text = trim_zeros(f"{round2(value):,f}")
    if text == "-0":
        text = "0"
    if label:
        text = f"{text} {label}"
    return text


def format_currency(value: Decimal, currency: str) -> str:
    """Format an amount labelled with the display name of an internal currency code."""
    return format_amount(value, CURRENCY_LABELS.get(currency, currency))


def format_percentage(value: Decimal) -> str:
    """Two-decimal percentage with trailing zeros trimmed, no % sign."""
    text = trim_zeros(f"{round2(value):f}")
    return "0" if text == "-0" else text
