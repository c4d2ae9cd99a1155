"""Tests for the cache-window rate refresh and RateRefresher serialization.

All tests use a mocked feed to avoid real network calls.
"""

import asyncio
import http.client
import urllib.request
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from redenom.exceptions import FetchFailed
from redenom.models import AppState, RateQuote, RateTable
from redenom.rates.feed import HttpRateFeed
from redenom.rates.refresher import (
    RateRefresher,
    apply_feed_records,
    is_table_fresh,
    refresh_rates,
)


class TestIsTableFresh:
    def test_recent_complete_table_is_fresh(self, table_factory, now) -> None:
        table = table_factory(
            {"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"},
            last_update=now - timedelta(minutes=30),
        )
        assert is_table_fresh(table, now) is True

    def test_61_minutes_is_stale(self, table_factory, now) -> None:
        table = table_factory(
            {"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"},
            last_update=now - timedelta(minutes=61),
        )
        assert is_table_fresh(table, now) is False

    def test_exactly_one_hour_is_stale(self, table_factory, now) -> None:
        table = table_factory(
            {"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"},
            last_update=now - timedelta(hours=1),
        )
        assert is_table_fresh(table, now) is False

    def test_one_missing_currency_makes_table_stale(self, table_factory, now) -> None:
        table = table_factory({"USD": "15000", "EUR": "16000", "SAR": "40"})
        assert is_table_fresh(table, now) is False

    def test_missing_ask_makes_table_stale(self, full_table: RateTable, now) -> None:
        full_table["TRY"].clear()
        assert is_table_fresh(full_table, now) is False

    def test_empty_table_is_stale(self, empty_table: RateTable, now) -> None:
        assert is_table_fresh(empty_table, now) is False

    def test_custom_ttl(self, full_table: RateTable, now) -> None:
        later = now + timedelta(minutes=10)
        assert is_table_fresh(full_table, later, ttl=timedelta(minutes=5)) is False
        assert is_table_fresh(full_table, later, ttl=timedelta(minutes=15)) is True


class TestApplyFeedRecords:
    def test_populates_tracked_currencies(self, empty_table, feed_records, now) -> None:
        updated = apply_feed_records(empty_table, feed_records, now)
        assert updated == ["USD", "EUR", "SAR", "TRY"]

        usd = empty_table["USD"]
        assert usd.ask == Decimal("15000")
        assert usd.bid == Decimal("14900")
        assert usd.to_old == Decimal("15000")
        assert usd.to_new == Decimal("150")
        assert usd.last_update == now

        sar = empty_table["SAR"]
        assert sar.to_old == Decimal("4000")
        assert sar.to_new == Decimal("40")

    def test_untracked_codes_ignored(self, empty_table, feed_records, now) -> None:
        apply_feed_records(empty_table, feed_records, now)
        assert "GBP" not in empty_table
        assert len(empty_table) == 4

    @pytest.mark.parametrize("bad_ask", [None, "", "0", "-3", "n/a"])
    def test_unusable_ask_leaves_quote_untouched(self, full_table, now, bad_ask) -> None:
        before = full_table["USD"].ask
        later = now + timedelta(hours=2)
        updated = apply_feed_records(
            full_table, [{"name": "USD", "ask": bad_ask, "bid": "1"}], later
        )
        assert updated == []
        assert full_table["USD"].ask == before
        assert full_table["USD"].last_update == now

    def test_unparseable_bid_stored_as_none(self, empty_table, now) -> None:
        apply_feed_records(empty_table, [{"name": "EUR", "ask": "16000", "bid": "?"}], now)
        assert empty_table["EUR"].ask == Decimal("16000")
        assert empty_table["EUR"].bid is None

    def test_numeric_json_values_accepted(self, empty_table, now) -> None:
        apply_feed_records(empty_table, [{"name": "TRY", "ask": 4.5, "bid": 4.4}], now)
        assert empty_table["TRY"].to_new == Decimal("4.5")
        assert empty_table["TRY"].to_old == Decimal("450")


class TestRefreshRates:
    @pytest.mark.asyncio
    async def test_fresh_table_skips_network(self, table_factory, now, mock_feed) -> None:
        table = table_factory(
            {"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"},
            last_update=now - timedelta(minutes=30),
        )
        result = await refresh_rates(table, mock_feed, now=now)

        mock_feed.fetch_records.assert_not_called()
        assert result.ok is True
        assert result.fetched is False
        assert result.table == table

    @pytest.mark.asyncio
    async def test_stale_table_fetches_once(self, table_factory, now, mock_feed) -> None:
        table = table_factory(
            {"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"},
            last_update=now - timedelta(minutes=61),
        )
        result = await refresh_rates(table, mock_feed, now=now)

        mock_feed.fetch_records.assert_awaited_once()
        assert result.ok is True
        assert result.fetched is True
        assert result.updated == ["USD", "EUR", "SAR", "TRY"]
        assert result.table["USD"].last_update == now

    @pytest.mark.asyncio
    async def test_input_table_not_mutated(self, empty_table, now, mock_feed) -> None:
        result = await refresh_rates(empty_table, mock_feed, now=now)
        assert result.table["USD"].ask == Decimal("15000")
        assert empty_table["USD"].ask is None

    @pytest.mark.asyncio
    async def test_fetch_failure_wipes_quotes_keeps_last_update(
        self, table_factory, now
    ) -> None:
        stamp = now - timedelta(hours=3)
        table = table_factory(
            {"USD": "15000", "EUR": "16000", "SAR": "40", "TRY": "4.5"},
            last_update=stamp,
        )
        feed = AsyncMock()
        feed.fetch_records = AsyncMock(side_effect=FetchFailed("HTTP 500"))

        result = await refresh_rates(table, feed, now=now)

        assert result.ok is False
        assert result.fetched is True
        assert isinstance(result.error, FetchFailed)
        for quote in result.table.quotes():
            assert quote.ask is None
            assert quote.bid is None
            assert quote.to_old is None
            assert quote.to_new is None
            assert quote.last_update == stamp

    @pytest.mark.asyncio
    async def test_failure_wipes_every_currency_not_just_stale_ones(self, now) -> None:
        table = RateTable(
            {
                "USD": RateQuote(
                    code="USD",
                    ask=Decimal("15000"),
                    to_old=Decimal("15000"),
                    to_new=Decimal("150"),
                    last_update=now,
                )
            }
        )
        feed = AsyncMock()
        feed.fetch_records = AsyncMock(side_effect=FetchFailed("timeout"))

        result = await refresh_rates(table, feed, now=now)

        assert result.table["USD"].ask is None
        assert result.table["USD"].last_update == now

    @pytest.mark.asyncio
    async def test_partial_feed_updates_only_listed(self, full_table, now) -> None:
        later = now + timedelta(hours=2)
        feed = AsyncMock()
        feed.fetch_records = AsyncMock(return_value=[{"name": "USD", "ask": "14000", "bid": "13900"}])

        result = await refresh_rates(full_table, feed, now=later)

        assert result.updated == ["USD"]
        assert result.table["USD"].to_new == Decimal("140")
        assert result.table["USD"].last_update == later
        assert result.table["EUR"].ask == Decimal("16000")
        assert result.table["EUR"].last_update == now

    @pytest.mark.asyncio
    async def test_unexpected_feed_error_still_wipes(self, full_table, now) -> None:
        feed = AsyncMock()
        feed.fetch_records = AsyncMock(side_effect=RuntimeError("socket reset"))

        result = await refresh_rates(full_table, feed, now=now + timedelta(hours=2))

        assert result.ok is False
        assert isinstance(result.error, FetchFailed)
        assert isinstance(result.error.__cause__, RuntimeError)
        assert all(q.ask is None and q.to_new is None for q in result.table.quotes())
        assert result.table["USD"].last_update == now

    @pytest.mark.asyncio
    async def test_truncated_http_body_wipes_table(self, full_table, now, monkeypatch) -> None:
        class _TruncatedResponse:
            status = 200

            def read(self) -> bytes:
                raise http.client.IncompleteRead(b"[{", 100)

            def __enter__(self) -> "_TruncatedResponse":
                return self

            def __exit__(self, *exc) -> None:
                return None

        monkeypatch.setattr(
            urllib.request, "urlopen", lambda req, timeout=None: _TruncatedResponse()
        )
        feed = HttpRateFeed("https://rates.example.test/exec")

        result = await refresh_rates(full_table, feed, now=now + timedelta(hours=2))

        assert result.ok is False
        assert isinstance(result.error, FetchFailed)
        assert all(q.ask is None for q in result.table.quotes())


class TestRateRefresher:
    @pytest.mark.asyncio
    async def test_stores_result_on_state(self, mock_feed, clock) -> None:
        refresher = RateRefresher(mock_feed, ttl_seconds=3600, clock=clock)
        state = AppState()

        result = await refresher.refresh(state)

        assert result.ok is True
        assert state.exchange_rates is result.table
        assert state.exchange_rates["EUR"].to_new == Decimal("160")

    @pytest.mark.asyncio
    async def test_second_refresh_within_window_uses_cache(self, mock_feed, clock) -> None:
        refresher = RateRefresher(mock_feed, ttl_seconds=3600, clock=clock)
        state = AppState()

        await refresher.refresh(state)
        clock.advance(minutes=30)
        result = await refresher.refresh(state)

        assert result.fetched is False
        assert mock_feed.fetch_records.await_count == 1

    @pytest.mark.asyncio
    async def test_refresh_after_window_fetches_again(self, mock_feed, clock) -> None:
        refresher = RateRefresher(mock_feed, ttl_seconds=3600, clock=clock)
        state = AppState()

        await refresher.refresh(state)
        clock.advance(minutes=61)
        result = await refresher.refresh(state)

        assert result.fetched is True
        assert mock_feed.fetch_records.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_triggers_issue_one_fetch(self, clock, feed_records) -> None:
        release = asyncio.Event()

        async def slow_fetch() -> list[dict]:
            await release.wait()
            return feed_records

        feed = AsyncMock()
        feed.fetch_records = AsyncMock(side_effect=slow_fetch)
        refresher = RateRefresher(feed, clock=clock)
        state = AppState()

        first = asyncio.create_task(refresher.refresh(state))
        second = asyncio.create_task(refresher.refresh(state))
        await asyncio.sleep(0)
        assert refresher.in_flight is True

        release.set()
        results = await asyncio.gather(first, second)

        assert feed.fetch_records.await_count == 1
        assert [r.fetched for r in results] == [True, False]
        assert refresher.in_flight is False

    @pytest.mark.asyncio
    async def test_failure_then_manual_retry_fetches(self, clock, feed_records) -> None:
        feed = AsyncMock()
        feed.fetch_records = AsyncMock(side_effect=[FetchFailed("down"), feed_records])
        refresher = RateRefresher(feed, clock=clock)
        state = AppState()

        failed = await refresher.refresh(state)
        assert failed.ok is False
        assert refresher.is_fresh(state.exchange_rates) is False

        retried = await refresher.refresh(state)
        assert retried.ok is True
        assert refresher.is_fresh(state.exchange_rates) is True
