"""brokerai.backtest.strategies

Rule registry: one rule per strategy kind.

Only momentum is implemented. The other declared kinds fail fast instead of
running a simulation that can never trade.
"""

from __future__ import annotations

from brokerai.backtest.models import StrategyKind
from brokerai.backtest.strategies.base import RuleParameters, Signal, StrategyRule
from brokerai.backtest.strategies.momentum import MomentumParameters, MomentumRule
from brokerai.core.exceptions import InputValidationError, UnsupportedStrategyError

RULES: dict[StrategyKind, type[StrategyRule]] = {
    StrategyKind.MOMENTUM: MomentumRule,
}


def parse_kind(kind: str | StrategyKind) -> StrategyKind:
    try:
        return StrategyKind(str(kind))
    except ValueError as e:
        valid = ", ".join(k.value for k in StrategyKind)
        raise InputValidationError(f"invalid strategy kind {kind!r} (expected one of: {valid})") from e


def get_rule(kind: str | StrategyKind) -> StrategyRule:
    k = parse_kind(kind)
    cls = RULES.get(k)
    if cls is None:
        raise UnsupportedStrategyError(f"unsupported strategy kind: {k}")
    return cls()


def is_supported(kind: str | StrategyKind) -> bool:
    return parse_kind(kind) in RULES


__all__ = [
    "RULES",
    "MomentumParameters",
    "MomentumRule",
    "RuleParameters",
    "Signal",
    "StrategyRule",
    "get_rule",
    "is_supported",
    "parse_kind",
]
