from __future__ import annotations

import math

import pytest

from brokerai.backtest.bars import Bar
from brokerai.backtest.ledger import TradeLedger
from brokerai.backtest.models import TradeAction
from brokerai.backtest.position import PositionManager, PositionState
from brokerai.backtest.strategies import Signal
from brokerai.core.exceptions import ComputationError
from tests.unit._bars import T0


def _bar(close: float) -> Bar:
    return Bar(timestamp=T0, open=close, high=close, low=close, close=close)


def test_enter_commits_all_capital() -> None:
    ledger = TradeLedger()
    pm = PositionManager(initial_capital=10_000.0, ledger=ledger, symbol="ACME")

    t = pm.apply(Signal.ENTER, _bar(50.0))
    assert t is not None
    assert t.action == TradeAction.BUY
    assert t.quantity == pytest.approx(200.0)
    assert t.pnl is None
    assert pm.state == PositionState.LONG
    assert pm.capital == 0.0
    assert pm.equity(55.0) == pytest.approx(11_000.0)


def test_exit_realizes_pnl_against_committed_capital() -> None:
    ledger = TradeLedger()
    pm = PositionManager(initial_capital=10_000.0, ledger=ledger)
    pm.apply(Signal.ENTER, _bar(100.0))

    t = pm.apply(Signal.EXIT, _bar(90.0))
    assert t is not None
    assert t.action == TradeAction.SELL
    assert t.pnl == pytest.approx(-1_000.0)
    assert pm.state == PositionState.FLAT
    assert pm.quantity == 0.0
    assert pm.capital == pytest.approx(9_000.0)
    assert len(ledger) == 2


def test_hold_does_nothing() -> None:
    pm = PositionManager(initial_capital=1_000.0, ledger=TradeLedger())
    assert pm.apply(Signal.HOLD, _bar(10.0)) is None
    assert pm.state == PositionState.FLAT


@pytest.mark.parametrize("first, second", [(Signal.EXIT, None), (Signal.ENTER, Signal.ENTER)])
def test_invalid_transitions_raise(first: Signal, second: Signal | None) -> None:
    pm = PositionManager(initial_capital=1_000.0, ledger=TradeLedger())
    with pytest.raises(ComputationError):
        pm.apply(first, _bar(10.0))
        if second is not None:
            pm.apply(second, _bar(10.0))


@pytest.mark.parametrize("price", [0.0, -1.0, math.nan, math.inf])
def test_enter_refuses_non_positive_or_non_finite_price(price: float) -> None:
    pm = PositionManager(initial_capital=1_000.0, ledger=TradeLedger())
    with pytest.raises(ComputationError):
        pm.apply(Signal.ENTER, _bar(price))
    assert pm.state == PositionState.FLAT


def test_open_position_reports_unrealized_pnl() -> None:
    pm = PositionManager(initial_capital=1_000.0, ledger=TradeLedger())
    assert pm.open_position(_bar(10.0)) is None

    pm.apply(Signal.ENTER, _bar(10.0))
    pos = pm.open_position(_bar(12.0))
    assert pos is not None
    assert pos.entry_price == 10.0
    assert pos.quantity == pytest.approx(100.0)
    assert pos.market_value == pytest.approx(1_200.0)
    assert pos.unrealized_pnl == pytest.approx(200.0)
