"""Rate table refresh with a time-based cache window.

Refresh flow:
1. If every tracked currency has a populated ask and a last_update younger
   than the cache TTL (default 1 hour), the table is reused as-is.
2. Otherwise fetch once from the feed. Records for tracked codes with a
   positive ask overwrite that currency's quote; everything else is left alone.
3. On any fetch failure, whatever the exception type, every tracked
   currency loses ask/bid/to_old/to_new (last_update is kept), so the next
   conversion fails with RateUnavailable instead of using numbers of unknown age.

The table passed in is never mutated; callers receive a new table in the
RefreshResult and decide when to store it.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from redenom.engine.classifier import classify_rate
from redenom.exceptions import FetchFailed
from redenom.logging import get_logger
from redenom.models import AppState, RateTable
from redenom.rates.feed import RateFeed

logger = get_logger(__name__)

DEFAULT_CACHE_TTL = timedelta(hours=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RefreshResult:
    """Outcome of a refresh attempt.

    ok is False only when a fetch was attempted and failed; in that case
    table is the wiped table and error holds the cause.
    """

    ok: bool
    fetched: bool
    table: RateTable
    updated: list[str]
    error: FetchFailed | None = None


def _parse_decimal(raw: object) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def is_table_fresh(
    table: RateTable,
    now: datetime,
    ttl: timedelta = DEFAULT_CACHE_TTL,
) -> bool:
    """Return True when every tracked currency has a recent, populated ask."""
    for quote in table.quotes():
        if quote.last_update is None or not quote.ask:
            return False
        if now - quote.last_update >= ttl:
            return False
    return True


def apply_feed_records(table: RateTable, records: list[dict], now: datetime) -> list[str]:
    """Write feed records into table in place.

    Args:
        table: Table to update.
        records: Raw feed records with "name", "ask" and "bid" keys.
        now: Timestamp stored as last_update for updated currencies.

    Returns:
        Codes whose quote was overwritten, in feed order.
    """
    updated: list[str] = []
    for record in records:
        code = record.get("name")
        if not isinstance(code, str) or code not in table:
            continue

        ask = _parse_decimal(record.get("ask"))
        bid = _parse_decimal(record.get("bid"))
        if ask is None or ask <= 0:
            logger.debug("rate_record_skipped", currency=code, raw_ask=record.get("ask"))
            continue

        rate = classify_rate(ask, code)
        quote = table[code]
        quote.ask = ask
        quote.bid = bid
        quote.to_old = rate.rate_for_old
        quote.to_new = rate.rate_for_new
        quote.last_update = now
        updated.append(code)
    return updated


async def refresh_rates(
    table: RateTable,
    feed: RateFeed,
    ttl: timedelta = DEFAULT_CACHE_TTL,
    now: datetime | None = None,
) -> RefreshResult:
    """Return an up-to-date copy of table, fetching from feed only when needed.

    Args:
        table: Current rate table (not modified).
        feed: Source of raw rate records.
        ttl: Cache window; rates younger than this are reused.
        now: Reference time, defaults to the current UTC time.

    Returns:
        RefreshResult with the new table. A failed fetch yields ok=False and a
        table whose quotes are all cleared.
    """
    now = now or utc_now()
    new_table = table.copy()

    if is_table_fresh(table, now, ttl):
        logger.debug("using_cached_rates")
        return RefreshResult(ok=True, fetched=False, table=new_table, updated=[])

    try:
        records = await feed.fetch_records()
    except FetchFailed as e:
        logger.warning("rate_feed_failed", error=str(e))
        error = e
    except Exception as e:
        logger.warning("rate_feed_failed", error=repr(e), exc_info=True)
        error = FetchFailed(f"rate feed error: {e!r}")
        error.__cause__ = e
    else:
        error = None

    if error is not None:
        new_table.clear_all()
        return RefreshResult(ok=False, fetched=True, table=new_table, updated=[], error=error)

    updated = apply_feed_records(new_table, records, now)
    logger.info("rates_refreshed", updated=updated, records=len(records))
    return RefreshResult(ok=True, fetched=True, table=new_table, updated=updated)


class RateRefresher:
    """Serializes refreshes so only one feed request is ever in flight.

    A refresh triggered while another is running waits for it, then re-checks
    freshness against the table the first one stored, which normally skips
    the second fetch entirely.

    Args:
        feed: Source of raw rate records.
        ttl_seconds: Cache window in seconds.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        feed: RateFeed,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._feed = feed
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def is_fresh(self, table: RateTable) -> bool:
        return is_table_fresh(table, self._clock(), self._ttl)

    async def refresh(self, state: AppState) -> RefreshResult:
        """Refresh state.exchange_rates and store the resulting table on state."""
        async with self._lock:
            result = await refresh_rates(
                state.exchange_rates,
                self._feed,
                ttl=self._ttl,
                now=self._clock(),
            )
            state.exchange_rates = result.table
            return result
