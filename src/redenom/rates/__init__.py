"""Rate feed layer -- remote quote fetching and cache-window refresh."""

from redenom.rates.feed import HttpRateFeed, RateFeed
from redenom.rates.refresher import RateRefresher, RefreshResult, is_table_fresh, refresh_rates

__all__ = [
    "HttpRateFeed",
    "RateFeed",
    "RateRefresher",
    "RefreshResult",
    "is_table_fresh",
    "refresh_rates",
]
