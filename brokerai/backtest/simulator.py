"""brokerai.backtest.simulator

Single-asset, single-position bar replay.

One pass, in order, per bar:
- rule emits a signal; the first ``rule.warmup(params)`` bars hold without
  asking it
- position manager applies it (ledger records transitions)
- equity tracker marks to market

No fees, no slippage, no shorting. Deterministic: same inputs, same bits.

A long still open after the last bar is valued at the final close and
reported as ``open_position_at_end``. It is not written to the ledger.
"""

from __future__ import annotations

import math

from brokerai.backtest.bars import BarWindow
from brokerai.backtest.equity import EquityCurveTracker
from brokerai.backtest.ledger import TradeLedger
from brokerai.backtest.models import BacktestResult
from brokerai.backtest.position import PositionManager
from brokerai.backtest.strategies.base import RuleParameters, Signal, StrategyRule
from brokerai.backtest.validation import compute_metrics
from brokerai.core.exceptions import InputValidationError, NoDataInRangeError


def simulate(
    *,
    rule: StrategyRule,
    params: RuleParameters,
    bars: BarWindow,
    initial_capital: float,
    symbol: str = "",
    periods_per_year: int = 252,
) -> BacktestResult:
    if not math.isfinite(initial_capital) or initial_capital <= 0:
        raise InputValidationError(f"initial_capital must be > 0, got {initial_capital!r}")
    if len(bars) == 0:
        raise NoDataInRangeError("no data in range")
    bars.require_tradable()

    ledger = TradeLedger()
    position = PositionManager(initial_capital=initial_capital, ledger=ledger, symbol=symbol)
    curve = EquityCurveTracker(initial_capital)

    warmup = rule.warmup(params)
    for i, bar in enumerate(bars):
        if i < warmup:
            signal = Signal.HOLD
        else:
            signal = rule.decide(bars, i, params, in_position=position.in_position)
        position.apply(signal, bar)
        curve.record(bar.timestamp, position.equity(bar.close))

    last = bars[len(bars) - 1]
    final_capital = position.equity(last.close)

    m = compute_metrics(
        trades=ledger,
        equity=curve.equities(),
        initial_capital=initial_capital,
        final_capital=final_capital,
        periods_per_year=periods_per_year,
        drawdown=curve.max_drawdown,
    )

    return BacktestResult(
        initial_capital=float(initial_capital),
        final_capital=float(final_capital),
        total_return=m.total_return,
        total_return_percent=m.total_return_percent,
        sharpe_ratio=m.sharpe_ratio,
        max_drawdown=m.max_drawdown,
        win_rate=m.win_rate,
        total_trades=m.total_trades,
        profitable_trades=m.profitable_trades,
        losing_trades=m.losing_trades,
        average_win=m.average_win,
        average_loss=m.average_loss,
        largest_win=m.largest_win,
        largest_loss=m.largest_loss,
        trades=ledger.trades,
        equity_curve=curve.points,
        open_position_at_end=position.open_position(last),
    )
