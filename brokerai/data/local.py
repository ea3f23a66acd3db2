"""brokerai.data.local

Bars from a directory of CSV files, one per symbol: ``<dir>/<SYMBOL>.csv``.
"""

from __future__ import annotations

from pathlib import Path

from brokerai.backtest.bars import BarWindow, load_bars_csv
from brokerai.core.exceptions import DataUnavailableError, InputValidationError


class CsvBarSource:
    name = "csv"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, symbol: str) -> Path:
        safe = symbol.strip().upper()
        # A symbol that could leave the directory is a bad request, not a data outage.
        if not safe or "/" in safe or "\\" in safe or safe.startswith("."):
            raise InputValidationError(f"invalid symbol: {symbol!r}")
        return self.directory / f"{safe}.csv"

    async def fetch_bars(self, symbol: str) -> BarWindow:
        path = self.path_for(symbol)
        try:
            return load_bars_csv(path)
        except ValueError as e:
            raise DataUnavailableError(f"unreadable bar file for {symbol}: {e}") from e
