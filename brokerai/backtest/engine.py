"""brokerai.backtest.engine

Backtest entry point.

Order of operations:
1. validate the request (no side effects yet)
2. load strategy, resolve its rule, parse its parameters
3. claim the strategy: inactive -> backtesting (conditional update)
4. fetch bars, filter to range, simulate, persist
5. release the strategy: backtesting -> inactive, on every exit path

Nothing is persisted unless step 4 completes. Errors are logged and
re-raised; the caller decides what the user sees.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import UTC, date, datetime
from datetime import time as dt_time

from brokerai.backtest.bars import BarWindow
from brokerai.backtest.models import BacktestRecord, BacktestRequest, StrategyStatus
from brokerai.backtest.simulator import simulate
from brokerai.backtest.store import ResultStore, StrategyStore
from brokerai.backtest.strategies import get_rule
from brokerai.core.config import BacktestSettings
from brokerai.core.exceptions import (
    BacktestInProgressError,
    DataUnavailableError,
    NoDataInRangeError,
    InputValidationError,
)
from brokerai.core.time import parse_bound
from brokerai.data.base import BarSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _ValidatedRequest:
    strategy_id: str
    symbol: str
    start: date | datetime
    end: date | datetime
    initial_capital: float


def _earliest(b: date | datetime) -> datetime:
    # A date bound covers the whole UTC day: it opens at midnight...
    if isinstance(b, datetime):
        return b
    return datetime.combine(b, dt_time.min, tzinfo=UTC)


def _latest(b: date | datetime) -> datetime:
    # ...and closes at the last instant of that day.
    if isinstance(b, datetime):
        return b
    return datetime.combine(b, dt_time.max, tzinfo=UTC)


def _validate(req: BacktestRequest, settings: BacktestSettings) -> _ValidatedRequest:
    if not req.strategy_id:
        raise InputValidationError("strategy_id is required")
    if not req.symbol or not str(req.symbol).strip():
        raise InputValidationError("symbol is required")
    if not req.start_date or not req.end_date:
        raise InputValidationError("start_date and end_date are required")

    try:
        start = parse_bound(req.start_date)
        end = parse_bound(req.end_date)
    except ValueError as e:
        raise InputValidationError(f"invalid date: {e}") from e

    if _earliest(start) > _latest(end):
        raise InputValidationError("start_date must be on or before end_date")

    capital = settings.initial_capital if req.initial_capital is None else float(req.initial_capital)
    if not math.isfinite(capital) or capital <= 0:
        raise InputValidationError(f"initial_capital must be > 0, got {capital!r}")

    return _ValidatedRequest(
        strategy_id=str(req.strategy_id),
        symbol=str(req.symbol).strip().upper(),
        start=start,
        end=end,
        initial_capital=capital,
    )


class BacktestOrchestrator:
    def __init__(
        self,
        *,
        strategies: StrategyStore,
        results: ResultStore,
        source: BarSource,
        settings: BacktestSettings | None = None,
    ) -> None:
        self.strategies = strategies
        self.results = results
        self.source = source
        self.settings = settings or BacktestSettings()

    async def run(self, req: BacktestRequest) -> BacktestRecord:
        v = _validate(req, self.settings)

        strategy = self.strategies.require(v.strategy_id)
        rule = get_rule(strategy.kind)
        params = rule.parse_parameters(strategy.parameters)

        if not self.strategies.begin_backtest(strategy.id):
            current = self.strategies.require(strategy.id)
            if current.status == StrategyStatus.BACKTESTING:
                raise BacktestInProgressError(f"a backtest is already running for strategy {strategy.id}")
            raise InputValidationError(f"strategy {strategy.id} is {current.status}; only inactive strategies can be backtested")

        log_ctx = {"strategy_id": strategy.id, "symbol": v.symbol, "kind": str(strategy.kind)}
        logger.info("backtest_started", extra=log_ctx)
        started = time.perf_counter()
        try:
            history: BarWindow = await self.source.fetch_bars(v.symbol)
            if len(history) == 0:
                raise DataUnavailableError(f"no historical data for {v.symbol}")

            window = history.filter_range(v.start, v.end)
            if len(window) == 0:
                raise NoDataInRangeError("no data available for the specified date range")
            warmup = rule.warmup(params)
            if len(window) <= warmup:
                # the rule never gets a say; the result is all cash
                logger.warning("backtest_window_within_warmup", extra={**log_ctx, "bars": len(window), "warmup": warmup})

            result = simulate(
                rule=rule,
                params=params,
                bars=window,
                initial_capital=v.initial_capital,
                symbol=v.symbol,
                periods_per_year=self.settings.periods_per_year,
            )
            record = self.results.save(
                strategy_id=strategy.id,
                symbol=v.symbol,
                start_date=v.start,
                end_date=v.end,
                result=result,
            )
        except Exception:
            logger.exception("backtest_failed", extra=log_ctx)
            raise
        finally:
            self.strategies.end_backtest(strategy.id)

        logger.info(
            "backtest_completed",
            extra={
                **log_ctx,
                "bars": len(window),
                "trades": len(result.trades),
                "final_capital": result.final_capital,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return record
