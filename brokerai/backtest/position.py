"""brokerai.backtest.position

Single-position state machine: FLAT <-> LONG.

All-in sizing, no fractional-share limits, no fees. Entering commits every
unit of available capital; exiting returns the proceeds.

quantity > 0 iff state is LONG.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import StrEnum
from typing import Final

from brokerai.backtest.bars import Bar
from brokerai.backtest.ledger import TradeLedger
from brokerai.backtest.models import OpenPosition, Trade, TradeAction
from brokerai.backtest.strategies.base import Signal
from brokerai.core.exceptions import ComputationError


class PositionState(StrEnum):
    FLAT = "flat"
    LONG = "long"


ALLOWED_TRANSITIONS: Final[dict[PositionState, dict[Signal, PositionState]]] = {
    PositionState.FLAT: {Signal.ENTER: PositionState.LONG},
    PositionState.LONG: {Signal.EXIT: PositionState.FLAT},
}


class PositionManager:
    def __init__(self, *, initial_capital: float, ledger: TradeLedger, symbol: str = "") -> None:
        self.state = PositionState.FLAT
        self.capital = float(initial_capital)
        self.quantity = 0.0
        self.ledger = ledger
        self.symbol = symbol

        self._committed = 0.0
        self._entry_price = 0.0
        self._entry_ts: datetime | None = None

    @property
    def in_position(self) -> bool:
        return self.state == PositionState.LONG

    def apply(self, signal: Signal, bar: Bar) -> Trade | None:
        if signal == Signal.HOLD:
            return None

        target = ALLOWED_TRANSITIONS[self.state].get(signal)
        if target is None:
            raise ComputationError(f"invalid transition {self.state} --{signal}-->")

        if signal == Signal.ENTER:
            return self._enter(bar)
        return self._exit(bar)

    def _enter(self, bar: Bar) -> Trade:
        price = float(bar.close)
        if not math.isfinite(price) or price <= 0:
            raise ComputationError(f"cannot size a position at price {price!r}")

        qty = self.capital / price
        if not math.isfinite(qty) or qty <= 0:
            raise ComputationError(f"invalid position size {qty!r} (capital={self.capital!r}, price={price!r})")

        self._committed = self.capital
        self._entry_price = price
        self._entry_ts = bar.timestamp
        self.quantity = qty
        self.capital = 0.0
        self.state = PositionState.LONG

        trade = Trade(timestamp=bar.timestamp, action=TradeAction.BUY, quantity=qty, price=price, symbol=self.symbol)
        self.ledger.append(trade)
        return trade

    def _exit(self, bar: Bar) -> Trade:
        price = float(bar.close)
        qty = self.quantity
        proceeds = qty * price
        pnl = proceeds - self._committed

        self.capital = proceeds
        self.quantity = 0.0
        self._committed = 0.0
        self._entry_price = 0.0
        self._entry_ts = None
        self.state = PositionState.FLAT

        trade = Trade(
            timestamp=bar.timestamp,
            action=TradeAction.SELL,
            quantity=qty,
            price=price,
            pnl=pnl,
            symbol=self.symbol,
        )
        self.ledger.append(trade)
        return trade

    def equity(self, close: float) -> float:
        """Mark-to-market value at ``close``."""

        if self.quantity > 0:
            return self.quantity * float(close)
        return self.capital

    def open_position(self, bar: Bar) -> OpenPosition | None:
        if not self.in_position or self._entry_ts is None:
            return None
        value = self.quantity * float(bar.close)
        return OpenPosition(
            entry_timestamp=self._entry_ts,
            entry_price=self._entry_price,
            quantity=self.quantity,
            committed_capital=self._committed,
            mark_price=float(bar.close),
            market_value=value,
            unrealized_pnl=value - self._committed,
        )
