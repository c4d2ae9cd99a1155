"""FastAPI application factory for the converter JSON API."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from redenom.api import routes
from redenom.exceptions import RateUnavailable, RedenomError
from redenom.service import ConverterService

log = structlog.get_logger(__name__)


async def _rate_unavailable_handler(request: Request, exc: RateUnavailable) -> JSONResponse:
    """A needed rate is missing: the client should refresh rates first."""
    log.info("conversion_rate_unavailable", currency=exc.currency, reason=exc.reason)
    return JSONResponse(
        status_code=409,
        content={
            "error": "rate_unavailable",
            "currency": exc.currency,
            "detail": "Exchange rate unavailable. Refresh the exchange rates first.",
        },
    )


async def _redenom_error_handler(request: Request, exc: RedenomError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


async def _value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_value", "detail": str(exc)},
    )


def create_app(service: ConverterService, lifespan: Any = None) -> FastAPI:
    """Create and configure the converter API application.

    Args:
        service: Converter service shared by every request.
        lifespan: Optional async context manager for startup/shutdown,
                  injected by main.py.

    Returns:
        FastAPI application with routes mounted under /api.
    """
    app = FastAPI(title="Redenomination Converter", lifespan=lifespan)
    app.state.service = service

    app.add_exception_handler(RateUnavailable, _rate_unavailable_handler)
    app.add_exception_handler(RedenomError, _redenom_error_handler)
    app.add_exception_handler(ValueError, _value_error_handler)

    app.include_router(routes.router, prefix="/api")

    return app
