"""brokerai.backtest.strategies.momentum

Moving-average momentum (long-only):
- enter when close > SMA(lookback) of the preceding closes
- exit when close < SMA(lookback)
- ties hold

The SMA window ends at the previous bar; the current close is compared
against history it is not part of.
"""

from __future__ import annotations

import numpy as np
from pydantic import Field

from brokerai.backtest.bars import BarWindow
from brokerai.backtest.models import StrategyKind
from brokerai.backtest.strategies.base import RuleParameters, Signal, StrategyRule


class MomentumParameters(RuleParameters):
    lookback: int = Field(default=20, ge=1, description="Trailing bars in the moving average.")


def sma(closes: np.ndarray, index: int, n: int) -> float:
    """Mean of closes[index-n:index]."""

    return float(np.mean(closes[index - n : index]))


class MomentumRule(StrategyRule):
    kind = StrategyKind.MOMENTUM
    parameters_model = MomentumParameters

    def warmup(self, params: MomentumParameters) -> int:
        return int(params.lookback)

    def decide(self, bars: BarWindow, index: int, params: MomentumParameters, *, in_position: bool) -> Signal:
        n = int(params.lookback)
        if index < n:
            return Signal.HOLD

        close = float(bars.closes[index])
        avg = sma(bars.closes, index, n)
        if not in_position and close > avg:
            return Signal.ENTER
        if in_position and close < avg:
            return Signal.EXIT
        return Signal.HOLD
