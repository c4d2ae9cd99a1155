"""Custom exceptions for the redenomination converter.

All engine, rate-feed and storage exceptions live here
to avoid circular imports between modules.
"""


class RedenomError(Exception):
    """Base exception for all converter errors."""


class RateUnavailable(RedenomError):
    """Raised when a conversion needs a foreign rate that is missing, zero or negative."""

    def __init__(self, currency: str, reason: str = "rate unavailable") -> None:
        self.currency = currency
        self.reason = reason
        super().__init__(f"{currency}: {reason}")


class FetchFailed(RedenomError):
    """Raised when the rate feed cannot be reached or returns unusable data."""


class InvalidAmount(RedenomError):
    """Raised when an amount is non-numeric or not strictly positive."""


class UnknownCurrency(RedenomError):
    """Raised when a currency code is not one of the supported codes."""


class UnsupportedConversion(RedenomError, AssertionError):
    """Raised for a currency pair no conversion rule covers."""


class UnknownScenario(RedenomError):
    """Raised when a preset scenario name is not defined."""


class InvalidDenomination(RedenomError):
    """Raised when a banknote denomination change is not allowed."""


class StateCorrupted(RedenomError):
    """Raised when the persisted state blob cannot be decoded."""


class SameCurrency(RedenomError):
    """Raised when a user asks to convert a currency into itself."""
