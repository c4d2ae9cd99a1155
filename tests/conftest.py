"""Shared test fixtures for the redenomination converter."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from redenom.config import ConverterSettings
from redenom.models import RateQuote, RateTable
from redenom.rates.feed import RateFeed

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

# Feed payload in the shape the remote endpoint returns (numeric strings)
FEED_RECORDS = [
    {"name": "USD", "ask": "15000", "bid": "14900"},
    {"name": "EUR", "ask": "16000", "bid": "15800"},
    {"name": "SAR", "ask": "40", "bid": "39.5"},
    {"name": "TRY", "ask": "4.5", "bid": "4.4"},
    {"name": "GBP", "ask": "19000", "bid": "18800"},
]


def make_quote(code: str, ask: str | None, last_update: datetime | None = NOW) -> RateQuote:
    """Quote with to_old/to_new derived from ask the same way a refresh would."""
    if ask is None:
        return RateQuote(code=code, last_update=last_update)
    raw = Decimal(ask)
    if raw > 1000:
        to_old, to_new = raw, raw / 100
    else:
        to_old, to_new = raw * 100, raw
    return RateQuote(
        code=code,
        ask=raw,
        bid=None,
        to_old=to_old,
        to_new=to_new,
        last_update=last_update,
    )


def make_table(asks: dict[str, str | None], last_update: datetime | None = NOW) -> RateTable:
    return RateTable({code: make_quote(code, ask, last_update) for code, ask in asks.items()})


@pytest.fixture
def empty_table() -> RateTable:
    return RateTable()


@pytest.fixture
def full_table() -> RateTable:
    """All four currencies populated and updated at NOW."""
    return make_table({"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"})


@pytest.fixture
def mock_feed() -> AsyncMock:
    """Mock RateFeed returning FEED_RECORDS."""
    feed = AsyncMock(spec=RateFeed)
    feed.fetch_records = AsyncMock(return_value=[dict(r) for r in FEED_RECORDS])
    return feed


@pytest.fixture
def converter_settings() -> ConverterSettings:
    return ConverterSettings()


@pytest.fixture
def clock():
    """Mutable clock: call to read, set .now to move time."""

    class _Clock:
        def __init__(self) -> None:
            self.now = NOW

        def __call__(self) -> datetime:
            return self.now

        def advance(self, **kwargs) -> None:
            self.now = self.now + timedelta(**kwargs)

    return _Clock()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def table_factory():
    """Build a RateTable from {code: ask} (see make_table)."""
    return make_table


@pytest.fixture
def feed_records() -> list[dict]:
    return [dict(r) for r in FEED_RECORDS]
