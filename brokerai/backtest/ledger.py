"""brokerai.backtest.ledger

Append-only trade ledger. No deletions, no edits.

Alternation (buy, sell, buy, ...) is guaranteed by the position manager;
the ledger refuses anything else rather than trusting it.
"""

from __future__ import annotations

from collections.abc import Iterator

from brokerai.backtest.models import Trade, TradeAction
from brokerai.core.exceptions import ComputationError


class TradeLedger:
    def __init__(self) -> None:
        self._trades: list[Trade] = []

    def append(self, trade: Trade) -> None:
        expected = TradeAction.BUY if not self._trades or self._trades[-1].action == TradeAction.SELL else TradeAction.SELL
        if trade.action != expected:
            raise ComputationError(f"ledger expects {expected} next, got {trade.action}")
        self._trades.append(trade)

    def __iter__(self) -> Iterator[Trade]:
        return iter(self._trades)

    def __len__(self) -> int:
        return len(self._trades)

    @property
    def trades(self) -> tuple[Trade, ...]:
        return tuple(self._trades)

    def sells(self) -> list[Trade]:
        return [t for t in self._trades if t.action == TradeAction.SELL]
