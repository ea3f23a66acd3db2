from __future__ import annotations

import pytest

from brokerai.backtest.models import StrategyKind
from brokerai.backtest.strategies import MomentumParameters, MomentumRule, Signal, get_rule, is_supported
from brokerai.backtest.strategies.momentum import sma
from brokerai.core.exceptions import InputValidationError, UnsupportedStrategyError
from tests.unit._bars import make_window


def test_default_lookback_is_twenty() -> None:
    params = MomentumRule().parse_parameters({})
    assert isinstance(params, MomentumParameters)
    assert params.lookback == 20


@pytest.mark.parametrize("raw", [{"lookback": 0}, {"lookback": -3}, {"lookback": "soon"}])
def test_invalid_lookback_rejected(raw: dict) -> None:
    with pytest.raises(InputValidationError) as e:
        MomentumRule().parse_parameters(raw)
    assert "lookback" in str(e.value)


def test_unknown_parameter_keys_rejected() -> None:
    with pytest.raises(InputValidationError):
        MomentumRule().parse_parameters({"lookback": 5, "threshold": 0.1})


def test_sma_excludes_current_bar() -> None:
    w = make_window([1.0, 2.0, 3.0, 100.0])
    assert sma(w.closes, 3, 3) == pytest.approx(2.0)


def test_holds_during_warmup() -> None:
    rule = MomentumRule()
    params = rule.parse_parameters({"lookback": 3})
    w = make_window([10.0, 20.0, 30.0, 40.0])
    assert [rule.decide(w, i, params, in_position=False) for i in range(3)] == [Signal.HOLD] * 3
    assert rule.warmup(params) == 3


def test_enter_when_close_above_average_and_flat() -> None:
    rule = MomentumRule()
    params = rule.parse_parameters({"lookback": 2})
    w = make_window([10.0, 10.0, 11.0])
    assert rule.decide(w, 2, params, in_position=False) == Signal.ENTER
    assert rule.decide(w, 2, params, in_position=True) == Signal.HOLD


def test_exit_when_close_below_average_and_long() -> None:
    rule = MomentumRule()
    params = rule.parse_parameters({"lookback": 2})
    w = make_window([10.0, 10.0, 9.0])
    assert rule.decide(w, 2, params, in_position=True) == Signal.EXIT
    assert rule.decide(w, 2, params, in_position=False) == Signal.HOLD


def test_equal_close_holds() -> None:
    rule = MomentumRule()
    params = rule.parse_parameters({"lookback": 2})
    w = make_window([10.0, 10.0, 10.0])
    assert rule.decide(w, 2, params, in_position=False) == Signal.HOLD
    assert rule.decide(w, 2, params, in_position=True) == Signal.HOLD


def test_registry_resolves_momentum() -> None:
    assert isinstance(get_rule("momentum"), MomentumRule)
    assert is_supported(StrategyKind.MOMENTUM)


@pytest.mark.parametrize("kind", ["mean_reversion", "breakout", "custom"])
def test_declared_but_unimplemented_kinds_fail_fast(kind: str) -> None:
    assert not is_supported(kind)
    with pytest.raises(UnsupportedStrategyError, match="unsupported strategy kind"):
        get_rule(kind)


def test_unknown_kind_is_input_error() -> None:
    with pytest.raises(InputValidationError):
        get_rule("astrology")
