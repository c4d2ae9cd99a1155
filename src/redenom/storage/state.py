"""JSON (de)serialization of the persisted application state.

The blob keeps the historical browser-storage shape so existing saves load
unchanged:

    {
        "savedCalculations": [...],
        "largeTextMode": false,
        "themeMode": null | "dark" | "light",
        "exchangeRates": {"USD": {"ask", "bid", "toOld", "toNew", "lastUpdate"}, ...}
    }

Blobs written before multi-currency support carry a single "usdRates"
object instead of "exchangeRates"; it is migrated into the USD quote.

Rates are written as JSON numbers and read back with parse_float=Decimal,
so values never pass through float arithmetic on load.
"""

import asyncio
import json
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path

from redenom.exceptions import StateCorrupted
from redenom.logging import get_logger
from redenom.models import (
    REDENOMINATION_RATIO,
    AppState,
    CalculationType,
    RateQuote,
    RateTable,
    SavedCalculation,
)

logger = get_logger(__name__)

THEME_MODES = ("dark", "light")


# ──────────────────────────────────────────────
# Scalar helpers
# ──────────────────────────────────────────────


def _to_json_number(value: Decimal | None) -> int | float | None:
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _from_json_number(raw: object) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def _format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_timestamp(raw: object) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _json_default(obj: object) -> object:
    if isinstance(obj, Decimal):
        return _to_json_number(obj)
    if isinstance(obj, datetime):
        return _format_timestamp(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


# ──────────────────────────────────────────────
# Rate table
# ──────────────────────────────────────────────


def encode_quote(quote: RateQuote) -> dict:
    return {
        "ask": _to_json_number(quote.ask),
        "bid": _to_json_number(quote.bid),
        "toOld": _to_json_number(quote.to_old),
        "toNew": _to_json_number(quote.to_new),
        "lastUpdate": _format_timestamp(quote.last_update),
    }


def decode_quote(code: str, raw: dict) -> RateQuote:
    """Build a RateQuote from its stored form.

    If only one of toOld/toNew was stored the other is derived from the
    redenomination ratio, keeping both-or-neither.
    """
    to_old = _from_json_number(raw.get("toOld"))
    to_new = _from_json_number(raw.get("toNew"))
    if to_old is None and to_new is not None:
        to_old = to_new * REDENOMINATION_RATIO
    elif to_new is None and to_old is not None:
        to_new = to_old / REDENOMINATION_RATIO
    return RateQuote(
        code=code,
        ask=_from_json_number(raw.get("ask")),
        bid=_from_json_number(raw.get("bid")),
        to_old=to_old,
        to_new=to_new,
        last_update=_parse_timestamp(raw.get("lastUpdate")),
    )


def encode_rate_table(table: RateTable) -> dict:
    return {code: encode_quote(table[code]) for code in table}


def decode_rate_table(data: dict) -> RateTable:
    """Decode the rate part of a state blob, migrating legacy usdRates."""
    stored = data.get("exchangeRates")
    if isinstance(stored, dict):
        quotes = {
            code: decode_quote(code, raw)
            for code, raw in stored.items()
            if isinstance(raw, dict)
        }
        return RateTable(quotes)

    legacy = data.get("usdRates")
    if isinstance(legacy, dict):
        logger.info("migrating_legacy_usd_rates")
        usd = decode_quote("USD", {**legacy, "bid": None})
        usd.ask = usd.to_new
        return RateTable({"USD": usd})

    return RateTable()


# ──────────────────────────────────────────────
# Saved calculations
# ──────────────────────────────────────────────


def encode_calculation(calc: SavedCalculation) -> dict:
    return {"type": calc.type.value, **calc.data, "timestamp": _format_timestamp(calc.timestamp)}


def decode_calculation(raw: dict) -> SavedCalculation | None:
    payload = dict(raw)
    try:
        calc_type = CalculationType(payload.pop("type", None))
    except ValueError:
        return None
    timestamp = _parse_timestamp(payload.pop("timestamp", None))
    if timestamp is None:
        return SavedCalculation(type=calc_type, data=payload)
    return SavedCalculation(type=calc_type, data=payload, timestamp=timestamp)


# ──────────────────────────────────────────────
# Whole blob
# ──────────────────────────────────────────────


def encode_state(state: AppState) -> dict:
    return {
        "savedCalculations": [encode_calculation(c) for c in state.saved_calculations],
        "largeTextMode": state.large_text_mode,
        "themeMode": state.theme_mode,
        "exchangeRates": encode_rate_table(state.exchange_rates),
    }


def decode_state(data: dict) -> AppState:
    """Build AppState from a decoded blob, tolerating missing keys."""
    calculations = []
    for raw in data.get("savedCalculations") or []:
        if isinstance(raw, dict):
            calc = decode_calculation(raw)
            if calc is not None:
                calculations.append(calc)

    theme_mode = data.get("themeMode")
    return AppState(
        exchange_rates=decode_rate_table(data),
        saved_calculations=calculations,
        large_text_mode=bool(data.get("largeTextMode", False)),
        theme_mode=theme_mode if theme_mode in THEME_MODES else None,
    )


def dumps_state(state: AppState) -> str:
    return json.dumps(encode_state(state), default=_json_default, ensure_ascii=False)


def loads_state(text: str) -> AppState:
    """Parse a JSON blob into AppState.

    Raises:
        StateCorrupted: If the text is not a JSON object.
    """
    try:
        data = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise StateCorrupted(f"state blob is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise StateCorrupted("state blob must be a JSON object")
    return decode_state(data)


class StateStore:
    """Reads and writes the state blob to a single JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash never leaves a half-written blob behind. From async code
    use save_async: the blob is serialized on the event loop and the file I/O
    runs in a worker thread, one write at a time.

    Args:
        path: Location of the JSON file. Parent directories are created on save.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppState:
        """Return the stored state, or a default AppState if nothing is saved."""
        if not self._path.exists():
            logger.debug("state_file_missing", path=str(self._path))
            return AppState()
        state = loads_state(self._path.read_text(encoding="utf-8"))
        logger.debug(
            "state_loaded",
            path=str(self._path),
            calculations=len(state.saved_calculations),
        )
        return state

    def save(self, state: AppState) -> None:
        self._write(dumps_state(state))

    async def save_async(self, state: AppState) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self._write, dumps_state(state))

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._path.parent, prefix=".state-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, self._path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
