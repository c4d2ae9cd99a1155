"""Entry point for the redenomination converter.

Component wiring order (in build_service):
1. AppSettings (configuration)
2. Logging setup
3. HttpRateFeed (remote quotes)
4. RateRefresher (cache window + in-flight serialization)
5. StateStore (JSON state blob)
6. ConverterService (state owner)

When the API is enabled (API_ENABLED=true, the default) the service is
served over FastAPI/uvicorn and rates are refreshed once at startup, the
same way the app fetched rates on load. Otherwise a single refresh runs
and the resulting rates are logged.
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from redenom.config import AppSettings
from redenom.logging import get_logger, setup_logging
from redenom.rates.feed import HttpRateFeed
from redenom.rates.refresher import RateRefresher
from redenom.service import ConverterService
from redenom.storage.state import StateStore


def build_service(settings: AppSettings) -> ConverterService:
    """Build the converter service and its collaborators from settings."""
    feed = HttpRateFeed(settings.feed.url, timeout_seconds=settings.feed.timeout_seconds)
    refresher = RateRefresher(feed, ttl_seconds=settings.feed.cache_ttl_seconds)
    store = StateStore(settings.storage.state_path)
    return ConverterService(settings.converter, refresher, store=store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Refresh rates when the API starts; nothing to tear down."""
    logger = get_logger("redenom.main")
    service: ConverterService = app.state.service

    result = await service.refresh_rates()
    logger.info(
        "lifespan_started",
        rates_ok=result.ok,
        fetched=result.fetched,
        updated=result.updated,
    )

    yield

    logger.info("redenom_stopped")


async def run() -> None:
    """Run the converter, with or without the JSON API."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("redenom.main")

    service = build_service(settings)

    if settings.api.enabled:
        from redenom.api.app import create_app

        app = create_app(service, lifespan=lifespan)

        logger.info("starting_api", host=settings.api.host, port=settings.api.port)

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        result = await service.refresh_rates()
        for quote in service.rates.quotes():
            logger.info(
                "exchange_rate",
                currency=quote.code,
                ask=str(quote.ask) if quote.ask is not None else None,
                to_new=str(quote.to_new) if quote.to_new is not None else None,
                last_update=quote.last_update.isoformat() if quote.last_update else None,
            )
        if not result.ok:
            logger.error("exchange_rates_unavailable", error=str(result.error))


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
