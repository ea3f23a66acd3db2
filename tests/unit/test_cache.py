from __future__ import annotations

from brokerai.backtest.bars import BarWindow
from brokerai.data.cache import BarCache
from tests.unit._bars import RISING, make_window


def test_window_expires_after_ttl() -> None:
    now = [100.0]
    c = BarCache(10.0, clock=lambda: now[0])
    w = make_window(RISING)

    c.put("ACME", "1d", w)
    assert c.get("ACME", "1d") is w

    now[0] += 10.0
    assert c.get("ACME", "1d") is None
    assert len(c) == 0


def test_key_is_symbol_case_insensitive_and_per_interval() -> None:
    c = BarCache(60.0)
    w = make_window([1.0, 2.0])
    c.put(" acme ", "1d", w)

    assert c.get("ACME", "1d") is w
    assert c.get("ACME", "1w") is None


def test_empty_windows_and_zero_ttl_are_not_cached() -> None:
    c = BarCache(60.0)
    c.put("ACME", "1d", BarWindow(bars=()))
    assert len(c) == 0

    off = BarCache(0.0)
    off.put("ACME", "1d", make_window([1.0]))
    assert off.get("ACME", "1d") is None


def test_invalidate_one_symbol_or_all() -> None:
    c = BarCache(60.0)
    w = make_window([1.0])
    c.put("ACME", "1d", w)
    c.put("ACME", "1h", w)
    c.put("BETA", "1d", w)

    c.invalidate("acme")
    assert c.get("ACME", "1d") is None
    assert c.get("ACME", "1h") is None
    assert c.get("BETA", "1d") is w

    c.invalidate()
    assert len(c) == 0
