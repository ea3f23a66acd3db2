from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from brokerai.backtest.models import StrategyKind, StrategyStatus
from brokerai.backtest.simulator import simulate
from brokerai.backtest.store import ResultStore, StrategyStore
from brokerai.backtest.strategies import MomentumRule
from brokerai.core.database import Database
from brokerai.core.exceptions import BacktestInProgressError, InputValidationError, StrategyNotFoundError
from tests.unit._bars import RISING, make_window


@pytest.fixture()
def db(temp_dir: Path):
    d = Database(temp_dir / "brokerai.db")
    try:
        yield d
    finally:
        d.close()


def test_create_and_get(db: Database) -> None:
    store = StrategyStore(db)
    s = store.create(name="trend", kind="momentum", parameters={"lookback": 5}, description="d")

    got = store.require(s.id)
    assert got.name == "trend"
    assert got.kind == StrategyKind.MOMENTUM
    assert got.parameters == {"lookback": 5}
    assert got.status == StrategyStatus.INACTIVE
    assert got.description == "d"


def test_create_validates_kind_and_parameters(db: Database) -> None:
    store = StrategyStore(db)
    with pytest.raises(InputValidationError):
        store.create(name="x", kind="astrology", parameters={})
    with pytest.raises(InputValidationError):
        store.create(name="x", kind="momentum", parameters={"lookback": 0})
    with pytest.raises(InputValidationError):
        store.create(name="", kind="momentum", parameters={})


def test_unimplemented_kinds_can_be_stored(db: Database) -> None:
    s = StrategyStore(db).create(name="mr", kind="mean_reversion", parameters={"anything": 1})
    assert s.kind == StrategyKind.MEAN_REVERSION


def test_list_is_newest_first(db: Database) -> None:
    store = StrategyStore(db)
    a = store.create(name="a", kind="momentum", parameters={})
    b = store.create(name="b", kind="momentum", parameters={})
    assert [s.id for s in store.list_all()] == [b.id, a.id]


def test_update_and_delete(db: Database) -> None:
    store = StrategyStore(db)
    s = store.create(name="a", kind="momentum", parameters={})

    u = store.update(s.id, name="renamed", parameters={"lookback": 7}, status="active")
    assert u.name == "renamed"
    assert u.parameters == {"lookback": 7}
    assert u.status == StrategyStatus.ACTIVE

    assert store.delete(s.id) is True
    assert store.delete(s.id) is False
    with pytest.raises(StrategyNotFoundError):
        store.require(s.id)


def test_backtesting_status_only_via_guard(db: Database) -> None:
    store = StrategyStore(db)
    s = store.create(name="a", kind="momentum", parameters={})

    with pytest.raises(InputValidationError):
        store.update(s.id, status="backtesting")

    assert store.begin_backtest(s.id) is True
    assert store.begin_backtest(s.id) is False
    assert store.require(s.id).status == StrategyStatus.BACKTESTING

    with pytest.raises(BacktestInProgressError):
        store.update(s.id, name="nope")
    with pytest.raises(BacktestInProgressError):
        store.delete(s.id)

    assert store.end_backtest(s.id) is True
    assert store.end_backtest(s.id) is False
    assert store.require(s.id).status == StrategyStatus.INACTIVE


def test_active_strategy_cannot_be_claimed(db: Database) -> None:
    store = StrategyStore(db)
    s = store.create(name="a", kind="momentum", parameters={})
    store.update(s.id, status="active")
    assert store.begin_backtest(s.id) is False


def test_results_round_trip_through_sqlite(db: Database) -> None:
    strategies = StrategyStore(db)
    results = ResultStore(db)
    s = strategies.create(name="a", kind="momentum", parameters={})

    rule = MomentumRule()
    res = simulate(
        rule=rule,
        params=rule.parse_parameters({"lookback": 20}),
        bars=make_window(RISING),
        initial_capital=10_000.0,
        symbol="ACME",
    )
    rec = results.save(
        strategy_id=s.id,
        symbol="ACME",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 25),
        result=res,
    )

    got = results.get(rec.id)
    assert got is not None
    assert got.start_date == "2024-01-01"
    assert got.result == res
    assert results.list_for_strategy(s.id)[0].id == rec.id


def test_deleting_strategy_cascades_results(db: Database) -> None:
    strategies = StrategyStore(db)
    results = ResultStore(db)
    s = strategies.create(name="a", kind="momentum", parameters={})

    rule = MomentumRule()
    res = simulate(rule=rule, params=rule.parse_parameters({}), bars=make_window([1.0, 2.0]), initial_capital=1.0)
    results.save(strategy_id=s.id, symbol="X", start_date=date(2024, 1, 1), end_date=date(2024, 1, 2), result=res)

    strategies.delete(s.id)
    assert results.list_for_strategy(s.id) == []
