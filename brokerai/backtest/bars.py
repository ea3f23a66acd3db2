"""brokerai.backtest.bars

Bars and the bar window.

CSV schema:
- required: timestamp, close
- optional: open, high, low, volume (missing -> close / 0.0)

A window is time-ascending. Loaders sort; nothing downstream does.
"""

from __future__ import annotations

import csv
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

import numpy as np

from brokerai.core.exceptions import ComputationError, DataUnavailableError
from brokerai.core.time import parse_dt, within


@dataclass(frozen=True, slots=True)
class Bar:
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True, slots=True)
class BarWindow:
    bars: tuple[Bar, ...]
    closes: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bars", tuple(self.bars))
        object.__setattr__(self, "closes", np.array([b.close for b in self.bars], dtype=np.float64))

    @classmethod
    def of(cls, bars: Iterable[Bar]) -> BarWindow:
        return cls(bars=tuple(sorted(bars, key=lambda b: b.timestamp)))

    def __len__(self) -> int:
        return len(self.bars)

    def __getitem__(self, idx: int) -> Bar:
        return self.bars[idx]

    def __iter__(self) -> Iterator[Bar]:
        return iter(self.bars)

    def filter_range(self, start: date | datetime | None, end: date | datetime | None) -> BarWindow:
        """Inclusive on both ends."""

        return BarWindow(bars=tuple(b for b in self.bars if within(b.timestamp, start, end)))

    def require_tradable(self) -> None:
        """Every close must be finite and > 0. Sizing divides by it."""

        for i, b in enumerate(self.bars):
            if not math.isfinite(b.close) or b.close <= 0:
                raise ComputationError(f"invalid close {b.close!r} at bar {i} ({b.timestamp.isoformat()})")


def load_bars_csv(path: str | Path) -> BarWindow:
    p = Path(path)
    if not p.exists():
        raise DataUnavailableError(f"bar file not found: {p}")

    rows: list[dict[str, str]] = []
    with p.open("r", encoding="utf-8") as f:
        r = csv.DictReader(f)
        for row in r:
            rows.append({k.strip().lower(): (v.strip() if isinstance(v, str) else "") for k, v in row.items() if k is not None})

    if not rows:
        return BarWindow(bars=())

    for name in ("timestamp", "close"):
        if name not in rows[0]:
            raise ValueError(f"CSV missing required column: {name}")

    def num(row: dict[str, str], name: str, default: float) -> float:
        v = row.get(name, "")
        if v is None or v == "":
            return default
        return float(v)

    bars: list[Bar] = []
    for row in rows:
        close = num(row, "close", float("nan"))
        bars.append(
            Bar(
                timestamp=parse_dt(row["timestamp"]),
                open=num(row, "open", close),
                high=num(row, "high", close),
                low=num(row, "low", close),
                close=close,
                volume=num(row, "volume", 0.0),
            )
        )
    return BarWindow.of(bars)
