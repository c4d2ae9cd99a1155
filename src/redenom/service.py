"""Converter service -- the single owner of application state.

Holds the explicit AppState object, runs the pure engine functions against it,
serializes rate refreshes through RateRefresher, keeps the calculation history
bounded and persists every change through StateStore.

Callers (the JSON API, scripts) talk only to this class; nothing else
mutates the state.
"""

from decimal import Decimal

from redenom.config import ConverterSettings
from redenom.engine.classifier import classify_rate
from redenom.engine.converter import convert, parse_amount, parse_currency_code
from redenom.exceptions import InvalidDenomination, SameCurrency, UnknownCurrency
from redenom.logging import get_logger
from redenom.models import (
    FOREIGN_CURRENCIES,
    AppState,
    CalculationType,
    ConversionRequest,
    ConversionResult,
    RateTable,
    SavedCalculation,
)
from redenom.rates.refresher import RateRefresher, RefreshResult
from redenom.storage.state import THEME_MODES, StateStore
from redenom.tools.breakdown import CashBreakdown
from redenom.tools.comparison import ComparisonResult, compare_amounts
from redenom.tools.scenarios import ScenarioResult, run_scenario

logger = get_logger(__name__)


class ConverterService:
    """Coordinates conversion, rate refresh, history and persistence.

    Args:
        settings: Converter parameters (history limit, default denominations).
        refresher: Serialized rate refresher wrapping the feed.
        store: Optional state store; when None nothing is persisted.
        state: Initial state; loaded from store (or empty) when None.
    """

    def __init__(
        self,
        settings: ConverterSettings,
        refresher: RateRefresher,
        store: StateStore | None = None,
        state: AppState | None = None,
    ) -> None:
        self._settings = settings
        self._refresher = refresher
        self._store = store
        if state is None:
            state = store.load() if store is not None else AppState()
        self._state = state

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def rates(self) -> RateTable:
        return self._state.exchange_rates

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresher.in_flight

    @property
    def rates_fresh(self) -> bool:
        return self._refresher.is_fresh(self.rates)

    # ──────────────────────────────────────────────
    # Rates
    # ──────────────────────────────────────────────

    async def refresh_rates(self) -> RefreshResult:
        """Refresh exchange rates unless the cached ones are still fresh.

        A failed fetch wipes the quotes; that wiped table is persisted too.
        """
        result = await self._refresher.refresh(self._state)
        if result.fetched:
            await self._save()
        return result

    def display_rate(self, currency: str) -> Decimal | None:
        """New-currency price of one unit of a foreign currency, or None if unknown."""
        code = parse_currency_code(currency)
        if code not in FOREIGN_CURRENCIES:
            raise UnknownCurrency(f"{currency!r} is not a foreign currency")
        quote = self.rates[code]
        if not quote.ask:
            return None
        return classify_rate(quote.ask, code).rate_for_new

    # ──────────────────────────────────────────────
    # Calculations
    # ──────────────────────────────────────────────

    async def convert(
        self, amount: object, from_currency: str, to_currency: str
    ) -> ConversionResult:
        """Validate user input, convert, and record the calculation.

        Raises:
            InvalidAmount: If amount is not a positive number.
            UnknownCurrency: If a currency code is not supported.
            SameCurrency: If both currencies are the same.
            RateUnavailable: If a needed foreign rate is missing.
        """
        request = ConversionRequest(
            amount=parse_amount(amount),
            from_currency=parse_currency_code(from_currency),
            to_currency=parse_currency_code(to_currency),
        )
        if request.from_currency == request.to_currency:
            raise SameCurrency(f"cannot convert {request.from_currency} into itself")

        value = convert(request.amount, request.from_currency, request.to_currency, self.rates)
        result = ConversionResult(
            amount=request.amount,
            from_currency=request.from_currency,
            to_currency=request.to_currency,
            result=value,
        )
        await self._record(
            CalculationType.CONVERSION,
            {
                "amount": result.amount,
                "from": from_currency.strip().lower(),
                "to": to_currency.strip().lower(),
                "result": result.result,
            },
        )
        logger.debug(
            "conversion_performed",
            from_currency=result.from_currency,
            to_currency=result.to_currency,
        )
        return result

    async def compare(self, before: object, after: object) -> ComparisonResult:
        result = compare_amounts(before, after)
        await self._record(
            CalculationType.COMPARISON,
            {
                "before": result.before,
                "after": result.after,
                "difference": result.difference,
                "percentage": result.percentage,
            },
        )
        return result

    async def run_scenario(self, name: str, amount: object) -> ScenarioResult:
        result = run_scenario(name, amount)
        await self._record(
            CalculationType.SCENARIO,
            {"scenario": result.scenario, "amount": result.amount, "result": result.value},
        )
        return result

    def breakdown(self, entries: list[dict] | None = None) -> CashBreakdown:
        """Build a cash breakdown from {"value", "count"} entries.

        With no entries the configured default denominations are used, all
        with a count of zero. Breakdowns are not recorded in the history.
        """
        if not entries:
            return CashBreakdown(self._settings.default_denominations)

        values = []
        for entry in entries:
            if "value" not in entry:
                raise InvalidDenomination("every denomination needs a value")
            values.append(entry["value"])

        cash = CashBreakdown(values)
        for index, entry in enumerate(entries):
            cash.set_count(index, entry.get("count", 0))
        return cash

    # ──────────────────────────────────────────────
    # History and preferences
    # ──────────────────────────────────────────────

    def history(self) -> list[SavedCalculation]:
        """Saved calculations, oldest first."""
        return list(self._state.saved_calculations)

    async def clear_history(self) -> None:
        self._state.saved_calculations.clear()
        await self._save()

    async def update_preferences(
        self,
        large_text_mode: bool | None = None,
        theme_mode: str | None = None,
    ) -> AppState:
        """Update display preferences. theme_mode "auto" resets to follow the system."""
        if theme_mode is not None and theme_mode != "auto" and theme_mode not in THEME_MODES:
            raise ValueError(f"theme_mode must be one of {THEME_MODES + ('auto',)}")
        if large_text_mode is not None:
            self._state.large_text_mode = large_text_mode
        if theme_mode is not None:
            self._state.theme_mode = None if theme_mode == "auto" else theme_mode
        await self._save()
        return self._state

    # Internal --------------------------------------------------

    async def _record(self, calc_type: CalculationType, data: dict) -> None:
        history = self._state.saved_calculations
        history.append(SavedCalculation(type=calc_type, data=data))
        overflow = len(history) - self._settings.history_limit
        if overflow > 0:
            del history[:overflow]
        await self._save()

    async def _save(self) -> None:
        if self._store is not None:
            await self._store.save_async(self._state)
