"""brokerai.data.alphavantage

Alpha Vantage time series (TIME_SERIES_DAILY / WEEKLY / MONTHLY / INTRADAY).

Response shape: one key containing "Time Series", mapping timestamp to
{"1. open", "2. high", "3. low", "4. close", "5. volume"}, newest first.
We return oldest first. Throttle notices never reach the parser; the client
retries them.
"""

from __future__ import annotations

import logging
from typing import Any

from brokerai.backtest.bars import Bar, BarWindow
from brokerai.core.client import DataClient
from brokerai.core.exceptions import DataUnavailableError
from brokerai.core.time import parse_dt
from brokerai.data.cache import BarCache

logger = logging.getLogger(__name__)

FUNCTIONS: dict[str, str] = {
    "1m": "TIME_SERIES_INTRADAY",
    "5m": "TIME_SERIES_INTRADAY",
    "15m": "TIME_SERIES_INTRADAY",
    "1h": "TIME_SERIES_INTRADAY",
    "1d": "TIME_SERIES_DAILY",
    "1w": "TIME_SERIES_WEEKLY",
    "1M": "TIME_SERIES_MONTHLY",
}

# Alpha Vantage spells intraday intervals its own way.
INTRADAY_INTERVALS: dict[str, str] = {"1m": "1min", "5m": "5min", "15m": "15min", "1h": "60min"}


def parse_time_series(payload: dict[str, Any]) -> BarWindow:
    key = next((k for k in payload if "Time Series" in k), None)
    if key is None:
        raise DataUnavailableError(f"no time series in response (keys: {sorted(payload)})")

    series = payload[key]
    if not isinstance(series, dict):
        raise DataUnavailableError("malformed time series")

    bars: list[Bar] = []
    try:
        for ts, values in series.items():
            bars.append(
                Bar(
                    timestamp=parse_dt(ts),
                    open=float(values["1. open"]),
                    high=float(values["2. high"]),
                    low=float(values["3. low"]),
                    close=float(values["4. close"]),
                    volume=float(values.get("5. volume", 0.0)),
                )
            )
    except (KeyError, TypeError, ValueError) as e:
        raise DataUnavailableError(f"malformed bar in time series: {e}") from e
    return BarWindow.of(bars)


class AlphaVantageBarSource:
    name = "alphavantage"

    def __init__(
        self,
        *,
        client: DataClient,
        api_key: str,
        interval: str = "1d",
        cache: BarCache | None = None,
    ) -> None:
        if interval not in FUNCTIONS:
            raise ValueError(f"unsupported interval: {interval}")
        self.client = client
        self.api_key = api_key
        self.interval = interval
        self.cache = cache or BarCache()

    def _params(self, symbol: str) -> dict[str, str]:
        params = {
            "function": FUNCTIONS[self.interval],
            "symbol": symbol,
            "apikey": self.api_key,
            "outputsize": "full",
        }
        if self.interval in INTRADAY_INTERVALS:
            params["interval"] = INTRADAY_INTERVALS[self.interval]
        return params

    async def fetch_bars(self, symbol: str) -> BarWindow:
        cached = self.cache.get(symbol, self.interval)
        if cached is not None:
            return cached

        try:
            payload = await self.client.fetch_json(self._params(symbol))
        except DataUnavailableError as e:
            logger.warning("bar_fetch_failed", extra={"symbol": symbol, "interval": self.interval, "error": str(e)})
            raise

        window = parse_time_series(payload)
        if len(window) == 0:
            raise DataUnavailableError(f"no historical data for {symbol}")
        self.cache.put(symbol, self.interval, window)
        return window

    async def aclose(self) -> None:
        await self.client.aclose()
