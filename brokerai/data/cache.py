"""brokerai.data.cache

Fetched bar windows, kept for a while per (symbol, interval).

Daily history changes once a day at most and provider quotas are small, so
repeat backtests of one symbol should not refetch. Windows are immutable;
sharing one between runs is safe.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from brokerai.backtest.bars import BarWindow

_Key = tuple[str, str]


class BarCache:
    def __init__(self, ttl_s: float = 300.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_s = float(ttl_s)
        self._clock = clock
        self._entries: dict[_Key, tuple[float, BarWindow]] = {}

    @staticmethod
    def _key(symbol: str, interval: str) -> _Key:
        return symbol.strip().upper(), interval

    def get(self, symbol: str, interval: str) -> BarWindow | None:
        key = self._key(symbol, interval)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, window = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return window

    def put(self, symbol: str, interval: str, window: BarWindow) -> None:
        # Empty windows are answers worth refetching, not caching.
        if len(window) == 0 or self.ttl_s <= 0:
            return
        self._entries[self._key(symbol, interval)] = (self._clock() + self.ttl_s, window)

    def invalidate(self, symbol: str | None = None) -> None:
        if symbol is None:
            self._entries.clear()
            return
        sym = symbol.strip().upper()
        for key in [k for k in self._entries if k[0] == sym]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
