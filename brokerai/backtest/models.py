"""brokerai.backtest.models

Domain records for the simulator.

Dataclasses for the hot path; pydantic owns the IO boundaries (api.schemas).
Everything here is frozen. A result, once built, is evidence.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from brokerai.core.time import to_iso


class StrategyKind(StrEnum):
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    BREAKOUT = "breakout"
    CUSTOM = "custom"


class StrategyStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BACKTESTING = "backtesting"


class TradeAction(StrEnum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True, slots=True)
class StrategyDefinition:
    id: str
    name: str
    kind: StrategyKind
    parameters: dict[str, Any]
    status: StrategyStatus = StrategyStatus.INACTIVE
    description: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True, slots=True)
class Trade:
    timestamp: datetime
    action: TradeAction
    quantity: float
    price: float
    pnl: float | None = None  # sells only
    symbol: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "timestamp": to_iso(self.timestamp),
            "symbol": self.symbol,
            "action": str(self.action),
            "quantity": self.quantity,
            "price": self.price,
        }
        if self.pnl is not None:
            out["pnl"] = self.pnl
        return out


@dataclass(frozen=True, slots=True)
class EquityPoint:
    timestamp: datetime
    equity: float

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": to_iso(self.timestamp), "equity": self.equity}


@dataclass(frozen=True, slots=True)
class OpenPosition:
    """A long still held after the last bar.

    Valued at the final close and counted in ``final_capital``; never written
    to the trade ledger.
    """

    entry_timestamp: datetime
    entry_price: float
    quantity: float
    committed_capital: float
    mark_price: float
    market_value: float
    unrealized_pnl: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_timestamp": to_iso(self.entry_timestamp),
            "entry_price": self.entry_price,
            "quantity": self.quantity,
            "committed_capital": self.committed_capital,
            "mark_price": self.mark_price,
            "market_value": self.market_value,
            "unrealized_pnl": self.unrealized_pnl,
        }


@dataclass(frozen=True, slots=True)
class BacktestResult:
    initial_capital: float
    final_capital: float
    total_return: float
    total_return_percent: float
    sharpe_ratio: float
    max_drawdown: float  # percent
    win_rate: float  # percent
    total_trades: int
    profitable_trades: int
    losing_trades: int
    average_win: float
    average_loss: float
    largest_win: float
    largest_loss: float
    trades: tuple[Trade, ...] = ()
    equity_curve: tuple[EquityPoint, ...] = ()
    open_position_at_end: OpenPosition | None = None

    def summary(self) -> dict[str, Any]:
        return {
            "initial_capital": self.initial_capital,
            "final_capital": self.final_capital,
            "total_return": self.total_return,
            "total_return_percent": self.total_return_percent,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "win_rate": self.win_rate,
            "total_trades": self.total_trades,
            "profitable_trades": self.profitable_trades,
            "losing_trades": self.losing_trades,
            "average_win": self.average_win,
            "average_loss": self.average_loss,
            "largest_win": self.largest_win,
            "largest_loss": self.largest_loss,
        }

    def to_dict(self) -> dict[str, Any]:
        out = self.summary()
        out["trades"] = [t.to_dict() for t in self.trades]
        out["equity_curve"] = [p.to_dict() for p in self.equity_curve]
        out["open_position_at_end"] = (
            self.open_position_at_end.to_dict() if self.open_position_at_end is not None else None
        )
        return out


@dataclass(frozen=True, slots=True)
class BacktestRequest:
    strategy_id: str
    symbol: str
    start_date: str | date | datetime
    end_date: str | date | datetime
    initial_capital: float | None = None  # None -> config default


@dataclass(frozen=True, slots=True)
class BacktestRecord:
    """A persisted run."""

    id: str
    strategy_id: str
    symbol: str
    start_date: str
    end_date: str
    created_at: str
    result: BacktestResult
