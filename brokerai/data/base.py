"""brokerai.data.base

Bar source contract.

A source returns the full available history for a symbol, oldest first.
Range filtering is the orchestrator's job. A source that cannot deliver
raises DataUnavailableError; it never returns a silently truncated window
it knows to be wrong.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from brokerai.backtest.bars import BarWindow


@runtime_checkable
class BarSource(Protocol):
    name: str

    async def fetch_bars(self, symbol: str) -> BarWindow: ...
