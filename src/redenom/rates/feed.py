"""Exchange-rate feed clients.

RateFeed defines the contract the refresher depends on. HttpRateFeed is the
single production implementation: one HTTP GET against a fixed endpoint that
answers with a JSON array of {"name": code, "ask": "...", "bid": "..."}.
Uses urllib.request (stdlib) run in a worker thread so the event loop stays free.
"""

import asyncio
import http.client
import json
import urllib.error
import urllib.request
from abc import ABC, abstractmethod

from redenom.exceptions import FetchFailed
from redenom.logging import get_logger

logger = get_logger(__name__)


class RateFeed(ABC):
    """Abstract source of raw exchange-rate records."""

    @abstractmethod
    async def fetch_records(self) -> list[dict]:
        """Fetch the raw rate records.

        Returns:
            List of dicts, each with at least "name", "ask" and "bid" keys.

        Raises:
            FetchFailed: On transport failure, non-2xx status or malformed payload.
        """
        ...


class HttpRateFeed(RateFeed):
    """Fetches rate records with a single GET request.

    Args:
        url: Feed endpoint.
        timeout_seconds: Socket timeout for the request.
    """

    def __init__(self, url: str, timeout_seconds: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout_seconds

    @property
    def url(self) -> str:
        return self._url

    def _get_json(self) -> object:
        headers = {"Accept": "application/json", "User-Agent": "redenom/1.0"}
        try:
            req = urllib.request.Request(self._url, headers=headers)
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                status = getattr(resp, "status", 200)
                if not 200 <= status < 300:
                    raise FetchFailed(f"rate feed returned HTTP {status}")
                body = resp.read()
        except urllib.error.HTTPError as e:
            raise FetchFailed(f"rate feed returned HTTP {e.code}") from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise FetchFailed(f"rate feed unreachable: {e}") from e
        except http.client.HTTPException as e:
            raise FetchFailed(f"rate feed response broken: {e!r}") from e
        except ValueError as e:
            raise FetchFailed(f"rate feed request invalid: {e}") from e

        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FetchFailed(f"rate feed returned malformed JSON: {e}") from e

    async def fetch_records(self) -> list[dict]:
        data = await asyncio.to_thread(self._get_json)
        if not isinstance(data, list):
            raise FetchFailed(
                f"rate feed payload must be a JSON array, got {type(data).__name__}"
            )
        records = [item for item in data if isinstance(item, dict)]
        logger.debug("rate_feed_fetched", url=self._url, records=len(records))
        return records
