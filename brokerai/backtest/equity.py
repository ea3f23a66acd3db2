"""brokerai.backtest.equity

Equity curve with running peak and max drawdown (percent).

One point per bar from bar 0, including the warm-up bars where nothing can
trade. The peak starts at initial capital, not at the first point.
"""

from __future__ import annotations

from datetime import datetime

import numpy as np

from brokerai.backtest.models import EquityPoint


class EquityCurveTracker:
    def __init__(self, initial_capital: float) -> None:
        self.peak = float(initial_capital)
        self.max_drawdown = 0.0
        self._points: list[EquityPoint] = []

    def record(self, timestamp: datetime, equity: float) -> EquityPoint:
        point = EquityPoint(timestamp=timestamp, equity=float(equity))
        self._points.append(point)

        self.peak = max(self.peak, point.equity)
        if self.peak > 0:
            dd = (self.peak - point.equity) / self.peak * 100.0
            self.max_drawdown = max(self.max_drawdown, dd)
        return point

    @property
    def points(self) -> tuple[EquityPoint, ...]:
        return tuple(self._points)

    def equities(self) -> np.ndarray:
        return np.array([p.equity for p in self._points], dtype=np.float64)

    def __len__(self) -> int:
        return len(self._points)
