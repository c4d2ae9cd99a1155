"""JSON API endpoints for conversion, rates, auxiliary tools and history."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from redenom.models import RateQuote, SavedCalculation
from redenom.service import ConverterService
from redenom.storage.state import encode_calculation
from redenom.tools.formatting import format_amount, format_currency
from redenom.tools.scenarios import SCENARIOS

log = structlog.get_logger(__name__)

router = APIRouter()


class ConvertBody(BaseModel):
    amount: Decimal
    from_currency: str
    to_currency: str


class CompareBody(BaseModel):
    before: Decimal
    after: Decimal


class DenominationBody(BaseModel):
    value: Decimal
    count: int = 0


class BreakdownBody(BaseModel):
    denominations: list[DenominationBody] = []


class ScenarioBody(BaseModel):
    amount: Decimal


class PreferencesBody(BaseModel):
    large_text_mode: bool | None = None
    theme_mode: str | None = None


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _service(request: Request) -> ConverterService:
    return request.app.state.service


def _quote_payload(quote: RateQuote, display_rate: Decimal | None) -> dict:
    return {
        "code": quote.code,
        "ask": quote.ask,
        "bid": quote.bid,
        "to_old": quote.to_old,
        "to_new": quote.to_new,
        "last_update": quote.last_update.isoformat() if quote.last_update else None,
        "display_rate": display_rate,
    }


def _rates_payload(service: ConverterService) -> dict:
    return {
        "fresh": service.rates_fresh,
        "rates": [
            _quote_payload(quote, service.display_rate(quote.code))
            for quote in service.rates.quotes()
        ],
    }


def _history_payload(calculations: list[SavedCalculation]) -> list[dict]:
    return [_decimal_to_str(encode_calculation(calc)) for calc in calculations]


@router.get("/rates")
async def get_rates(request: Request) -> JSONResponse:
    """Current rate table with the new-currency display rate per currency."""
    return JSONResponse(content=_decimal_to_str(_rates_payload(_service(request))))


@router.post("/rates/refresh")
async def refresh_rates(request: Request) -> JSONResponse:
    """Refresh rates from the feed (no-op while the cache window is fresh)."""
    service = _service(request)
    result = await service.refresh_rates()
    payload = _rates_payload(service)
    payload.update(
        {
            "ok": result.ok,
            "fetched": result.fetched,
            "updated": result.updated,
            "error": str(result.error) if result.error else None,
        }
    )
    status_code = 200 if result.ok else 502
    if not result.ok:
        log.warning("rate_refresh_failed_via_api", error=payload["error"])
    return JSONResponse(content=_decimal_to_str(payload), status_code=status_code)


@router.post("/convert")
async def convert(request: Request, body: ConvertBody) -> JSONResponse:
    result = await _service(request).convert(
        body.amount, body.from_currency, body.to_currency
    )
    return JSONResponse(
        content=_decimal_to_str(
            {
                "amount": result.amount,
                "from_currency": result.from_currency,
                "to_currency": result.to_currency,
                "result": result.result,
                "formatted": format_currency(result.result, result.to_currency),
            }
        )
    )


@router.post("/compare")
async def compare(request: Request, body: CompareBody) -> JSONResponse:
    result = await _service(request).compare(body.before, body.after)
    return JSONResponse(
        content=_decimal_to_str(
            {
                "before": result.before,
                "after": result.after,
                "difference": result.difference,
                "formatted_difference": format_amount(result.difference),
                "percentage": result.percentage,
                "direction": result.direction.value,
            }
        )
    )


@router.post("/breakdown")
async def breakdown(request: Request, body: BreakdownBody) -> JSONResponse:
    entries = [d.model_dump() for d in body.denominations]
    cash = _service(request).breakdown(entries)
    summary = cash.summary()
    summary["formatted_total_old"] = format_currency(summary["total_old"], "old")
    summary["formatted_total_new"] = format_currency(summary["total_new"], "new")
    return JSONResponse(content=_decimal_to_str(summary))


@router.get("/scenarios")
async def list_scenarios() -> JSONResponse:
    return JSONResponse(
        content=[
            {
                "name": s.name,
                "title": s.title,
                "description": s.description,
                "input_label": s.input_label,
            }
            for s in SCENARIOS.values()
        ]
    )


@router.post("/scenarios/{name}")
async def run_scenario(request: Request, name: str, body: ScenarioBody) -> JSONResponse:
    result = await _service(request).run_scenario(name, body.amount)
    return JSONResponse(
        content=_decimal_to_str(
            {
                "scenario": result.scenario,
                "amount": result.amount,
                "label": result.label,
                "value": result.value,
                "formatted": format_currency(result.value, "new"),
                "note": result.note,
            }
        )
    )


@router.get("/history")
async def get_history(request: Request) -> JSONResponse:
    return JSONResponse(content=_history_payload(_service(request).history()))


@router.delete("/history")
async def clear_history(request: Request) -> JSONResponse:
    await _service(request).clear_history()
    return JSONResponse(content=[])


@router.get("/settings")
async def get_preferences(request: Request) -> JSONResponse:
    state = _service(request).state
    return JSONResponse(
        content={"large_text_mode": state.large_text_mode, "theme_mode": state.theme_mode}
    )


@router.post("/settings")
async def update_preferences(request: Request, body: PreferencesBody) -> JSONResponse:
    state = await _service(request).update_preferences(
        large_text_mode=body.large_text_mode,
        theme_mode=body.theme_mode,
    )
    log.info("preferences_updated", theme_mode=state.theme_mode)
    return JSONResponse(
        content={"large_text_mode": state.large_text_mode, "theme_mode": state.theme_mode}
    )
