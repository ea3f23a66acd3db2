"""brokerai.backtest.validation

Performance metrics.

Classification of closed round trips (sells):
- pnl > 0  -> win
- pnl < 0  -> loss
- pnl == 0 -> neither, but still a completed trade

So ``wins + losses <= total_trades`` and the win rate of a book of scratch
trades is 0, not undefined.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from brokerai.backtest.models import Trade, TradeAction


@dataclass(frozen=True, slots=True)
class Metrics:
    total_return: float
    total_return_percent: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    total_trades: int
    profitable_trades: int
    losing_trades: int
    average_win: float
    average_loss: float
    largest_win: float
    largest_loss: float


def simple_returns(equity: np.ndarray) -> np.ndarray:
    """r[i] = (e[i] - e[i-1]) / e[i-1] for i >= 1. Zero where e[i-1] == 0."""

    e = equity.astype(np.float64)
    if e.size < 2:
        return np.zeros(0, dtype=np.float64)
    prev = e[:-1]
    diff = e[1:] - prev
    out = np.zeros_like(diff)
    np.divide(diff, prev, out=out, where=prev != 0)
    return out


def sharpe(returns: np.ndarray, *, periods_per_year: int = 252) -> float:
    """Annualized mean/stdev, population stdev, no risk-free rate."""

    r = returns.astype(np.float64)
    if r.size < 1:
        return 0.0
    sd = float(np.std(r, ddof=0))
    if sd == 0.0:
        return 0.0
    return float(np.mean(r)) / sd * float(np.sqrt(periods_per_year))


def max_drawdown(equity: np.ndarray, *, initial: float | None = None) -> float:
    """Largest peak-to-trough decline, percent. Peak seeded with ``initial`` if given."""

    e = equity.astype(np.float64)
    if e.size == 0:
        return 0.0
    peak = np.maximum.accumulate(e)
    if initial is not None:
        peak = np.maximum(peak, float(initial))
    dd = np.zeros_like(e)
    np.divide(peak - e, peak, out=dd, where=peak > 0)
    return float(dd.max() * 100.0)


def trade_stats(trades: Iterable[Trade]) -> dict[str, float | int]:
    pnls = [float(t.pnl) for t in trades if t.action == TradeAction.SELL and t.pnl is not None]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    total = len(pnls)
    return {
        "total_trades": total,
        "profitable_trades": len(wins),
        "losing_trades": len(losses),
        "win_rate": (len(wins) / total * 100.0) if total else 0.0,
        "average_win": (sum(wins) / len(wins)) if wins else 0.0,
        "average_loss": (sum(abs(p) for p in losses) / len(losses)) if losses else 0.0,
        "largest_win": max(0.0, max(wins)) if wins else 0.0,
        "largest_loss": min(0.0, min(losses)) if losses else 0.0,
    }


def compute_metrics(
    *,
    trades: Iterable[Trade],
    equity: np.ndarray,
    initial_capital: float,
    final_capital: float,
    periods_per_year: int = 252,
    drawdown: float | None = None,
) -> Metrics:
    """Reduce a finished run to its summary.

    ``drawdown`` lets the caller pass the running value it already tracked;
    otherwise it is recomputed from ``equity`` seeded with ``initial_capital``.
    """

    stats = trade_stats(trades)
    total_return = float(final_capital) - float(initial_capital)
    total_return_pct = (total_return / float(initial_capital) * 100.0) if initial_capital else 0.0
    dd = max_drawdown(equity, initial=initial_capital) if drawdown is None else float(drawdown)

    return Metrics(
        total_return=total_return,
        total_return_percent=total_return_pct,
        sharpe_ratio=sharpe(simple_returns(equity), periods_per_year=periods_per_year),
        max_drawdown=dd,
        win_rate=float(stats["win_rate"]),
        total_trades=int(stats["total_trades"]),
        profitable_trades=int(stats["profitable_trades"]),
        losing_trades=int(stats["losing_trades"]),
        average_win=float(stats["average_win"]),
        average_loss=float(stats["average_loss"]),
        largest_win=float(stats["largest_win"]),
        largest_loss=float(stats["largest_loss"]),
    )
