from __future__ import annotations

import pytest

from brokerai.backtest.ledger import TradeLedger
from brokerai.backtest.models import Trade, TradeAction
from brokerai.core.exceptions import ComputationError
from tests.unit._bars import T0


def _trade(action: TradeAction, pnl: float | None = None) -> Trade:
    return Trade(timestamp=T0, action=action, quantity=1.0, price=10.0, pnl=pnl)


def test_ledger_accepts_alternating_trades() -> None:
    ledger = TradeLedger()
    ledger.append(_trade(TradeAction.BUY))
    ledger.append(_trade(TradeAction.SELL, pnl=1.0))
    ledger.append(_trade(TradeAction.BUY))

    assert len(ledger) == 3
    assert [t.action for t in ledger] == [TradeAction.BUY, TradeAction.SELL, TradeAction.BUY]
    assert len(ledger.sells()) == 1


def test_ledger_must_start_with_buy() -> None:
    with pytest.raises(ComputationError):
        TradeLedger().append(_trade(TradeAction.SELL, pnl=0.0))


def test_ledger_rejects_double_buy() -> None:
    ledger = TradeLedger()
    ledger.append(_trade(TradeAction.BUY))
    with pytest.raises(ComputationError):
        ledger.append(_trade(TradeAction.BUY))


def test_trades_snapshot_is_immutable() -> None:
    ledger = TradeLedger()
    ledger.append(_trade(TradeAction.BUY))
    snap = ledger.trades
    ledger.append(_trade(TradeAction.SELL, pnl=0.0))
    assert len(snap) == 1
    assert isinstance(snap, tuple)
