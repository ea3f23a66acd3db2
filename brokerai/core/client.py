"""brokerai.core.client

HTTP client for the market data provider.

One call shape: GET ``base_url`` with query params, JSON object back.

Failure handling, per fetch:
- transport errors, 429, 5xx and throttle notices are retried with
  exponential backoff
- other 4xx, provider error messages and malformed bodies fail at once
- a fetch that exhausts its retries counts against the circuit breaker;
  an open breaker refuses fetches until its cooldown passes

Alpha Vantage answers quota exhaustion with HTTP 200 and a ``Note`` (or
``Information``) body instead of data. That is a throttle, not a result.

Everything that escapes is a DataUnavailableError.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from brokerai.core.config import DataConfig
from brokerai.core.exceptions import DataUnavailableError

logger = logging.getLogger(__name__)

THROTTLE_KEYS: tuple[str, ...] = ("Note", "Information")


class _RetryableUpstreamError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class ClientConfig:
    base_url: str = "https://www.alphavantage.co/query"
    rate_limit_rps: float = 1.0
    max_retries: int = 3
    timeout_s: float = 20.0
    max_bytes: int = 8 * 1024 * 1024  # full daily history is a few MB
    backoff_base_s: float = 1.0
    backoff_max_s: float = 8.0
    breaker_threshold: int = 3
    breaker_cooldown_s: float = 60.0

    @classmethod
    def from_data_config(cls, cfg: DataConfig) -> ClientConfig:
        return cls(
            base_url=cfg.base_url,
            rate_limit_rps=cfg.rate_limit_rps,
            max_retries=cfg.max_retries,
            timeout_s=cfg.timeout_s,
        )


class _RequestSpacer:
    """Request starts at least ``1 / rps`` seconds apart."""

    def __init__(self, rate_per_sec: float) -> None:
        self.interval = 1.0 / max(rate_per_sec, 0.001)
        self._next_at = 0.0
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            now = time.monotonic()
            delay = self._next_at - now
            self._next_at = max(now, self._next_at) + self.interval
        if delay > 0:
            await asyncio.sleep(delay)


class _FetchBreaker:
    """Counts failed fetches, not failed attempts."""

    def __init__(self, threshold: int, cooldown_s: float) -> None:
        self.threshold = threshold
        self.cooldown_s = cooldown_s
        self.consecutive_failures = 0
        self.open_until = 0.0

    @property
    def is_open(self) -> bool:
        return time.monotonic() < self.open_until

    def check(self) -> None:
        remaining = self.open_until - time.monotonic()
        if remaining > 0:
            raise DataUnavailableError(f"market data provider unavailable; retry in {remaining:.0f}s")

    def record_success(self) -> None:
        self.consecutive_failures = 0
        self.open_until = 0.0

    def record_failure(self) -> None:
        self.consecutive_failures += 1
        if self.consecutive_failures >= self.threshold:
            self.open_until = time.monotonic() + self.cooldown_s
            logger.warning(
                "data_provider_circuit_open",
                extra={"failures": self.consecutive_failures, "cooldown_s": self.cooldown_s},
            )


class DataClient:
    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._spacer = _RequestSpacer(self.config.rate_limit_rps)
        self.breaker = _FetchBreaker(self.config.breaker_threshold, self.config.breaker_cooldown_s)
        self._http = httpx.AsyncClient(timeout=self.config.timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    def _backoff_s(self, attempt: int) -> float:
        return min(self.config.backoff_base_s * (2**attempt), self.config.backoff_max_s)

    async def fetch_json(self, params: Mapping[str, str]) -> dict[str, Any]:
        self.breaker.check()

        attempts = self.config.max_retries + 1
        last: Exception | None = None
        for attempt in range(attempts):
            await self._spacer.wait()
            try:
                payload = await self._get_once(params)
            except (httpx.TimeoutException, httpx.NetworkError, _RetryableUpstreamError) as e:
                last = e
                logger.warning(
                    "data_request_retry",
                    extra={"attempt": attempt, "symbol": params.get("symbol"), "error": str(e) or type(e).__name__},
                )
                if attempt + 1 < attempts:
                    await asyncio.sleep(self._backoff_s(attempt))
                continue

            self.breaker.record_success()
            return payload

        self.breaker.record_failure()
        raise DataUnavailableError(f"market data request failed after {attempts} attempts: {last}") from last

    async def _get_once(self, params: Mapping[str, str]) -> dict[str, Any]:
        resp = await self._http.get(self.config.base_url, params=dict(params))

        if resp.status_code == 429 or resp.status_code >= 500:
            raise _RetryableUpstreamError(f"http {resp.status_code}")
        if resp.status_code >= 400:
            raise DataUnavailableError(f"market data provider rejected the request: http {resp.status_code}")
        if len(resp.content) > self.config.max_bytes:
            raise DataUnavailableError(f"market data response too large: {len(resp.content)} bytes")

        try:
            data = resp.json()
        except ValueError as e:
            raise DataUnavailableError("market data provider returned non-JSON") from e
        if not isinstance(data, dict):
            raise DataUnavailableError(f"unexpected market data response: {type(data).__name__}")

        if "Error Message" in data:
            raise DataUnavailableError(f"market data provider error: {data['Error Message']}")
        if not any("Time Series" in k for k in data):
            note = next((data[k] for k in THROTTLE_KEYS if data.get(k)), None)
            if note:
                raise _RetryableUpstreamError(f"throttled: {note}")
        return data
