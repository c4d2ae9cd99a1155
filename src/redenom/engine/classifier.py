"""Magnitude-based classification of raw exchange-rate quotes.

The rate feed does not say which denomination a quote is in. Rates against
the old currency are numerically large, so a quote strictly above 1000 is
taken to be old-denominated and anything else new-denominated.

This is a heuristic: a currency whose true old-denominated rate is below
1000 (or new-denominated rate above 1000) will be misclassified silently.

CRITICAL: All values use Decimal. Never use float for rates.
"""

from decimal import Decimal

from redenom.exceptions import RateUnavailable
from redenom.models import REDENOMINATION_RATIO, MagnitudeClass, RateClassification

OLD_DENOMINATION_THRESHOLD = Decimal("1000")


def classify_magnitude(raw_quote: Decimal) -> MagnitudeClass:
    """Return OLD for quotes strictly greater than 1000, NEW otherwise."""
    if raw_quote > OLD_DENOMINATION_THRESHOLD:
        return MagnitudeClass.OLD
    return MagnitudeClass.NEW


def classify_rate(raw_quote: Decimal, currency: str = "?") -> RateClassification:
    """Classify a raw quote and derive its old- and new-denominated rates.

    Formula:
        OLD: rate_for_old = raw, rate_for_new = raw / 100
        NEW: rate_for_old = raw * 100, rate_for_new = raw

    Args:
        raw_quote: Quote as published by the feed (local units per 1 foreign unit).
        currency: Currency code, used only in the error raised for bad quotes.

    Returns:
        RateClassification carrying the magnitude and both derived rates.

    Raises:
        RateUnavailable: If the quote is zero or negative.
    """
    if raw_quote <= 0:
        raise RateUnavailable(currency, f"non-positive quote {raw_quote}")

    magnitude = classify_magnitude(raw_quote)
    if magnitude is MagnitudeClass.OLD:
        rate_for_old = raw_quote
        rate_for_new = raw_quote / REDENOMINATION_RATIO
    else:
        rate_for_old = raw_quote * REDENOMINATION_RATIO
        rate_for_new = raw_quote

    return RateClassification(
        raw=raw_quote,
        magnitude=magnitude,
        rate_for_old=rate_for_old,
        rate_for_new=rate_for_new,
    )
