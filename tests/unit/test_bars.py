from __future__ import annotations

from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from brokerai.backtest.bars import load_bars_csv
from brokerai.core.exceptions import DataUnavailableError
from tests.unit._bars import make_window, write_csv


def test_csv_loads_sorted_ascending(temp_dir: Path) -> None:
    p = temp_dir / "X.csv"
    p.write_text(
        "timestamp,close\n"
        "2024-01-03,12\n"
        "2024-01-01,10\n"
        "2024-01-02,11\n",
        encoding="utf-8",
    )
    w = load_bars_csv(p)
    assert w.closes.tolist() == [10.0, 11.0, 12.0]
    assert w[0].timestamp == datetime(2024, 1, 1, tzinfo=UTC)
    # open/high/low default to close
    assert (w[0].open, w[0].high, w[0].low, w[0].volume) == (10.0, 10.0, 10.0, 0.0)


def test_csv_missing_file(temp_dir: Path) -> None:
    with pytest.raises(DataUnavailableError):
        load_bars_csv(temp_dir / "nope.csv")


def test_csv_missing_close_column(temp_dir: Path) -> None:
    p = temp_dir / "X.csv"
    p.write_text("timestamp,open\n2024-01-01,1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="close"):
        load_bars_csv(p)


def test_csv_written_by_helper_round_trips(temp_dir: Path) -> None:
    p = write_csv(temp_dir / "bars" / "ACME.csv", [1.0, 2.0, 3.0])
    assert len(load_bars_csv(p)) == 3


def test_filter_range_inclusive_dates_and_datetimes() -> None:
    w = make_window([1.0, 2.0, 3.0, 4.0, 5.0])

    assert w.filter_range(date(2024, 1, 2), date(2024, 1, 4)).closes.tolist() == [2.0, 3.0, 4.0]
    assert w.filter_range(
        datetime(2024, 1, 2, tzinfo=UTC), datetime(2024, 1, 3, tzinfo=UTC)
    ).closes.tolist() == [2.0, 3.0]
    assert w.filter_range(None, date(2024, 1, 2)).closes.tolist() == [1.0, 2.0]
    assert len(w.filter_range(date(2025, 1, 1), date(2025, 2, 1))) == 0
