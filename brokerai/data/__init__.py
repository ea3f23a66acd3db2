"""brokerai.data

Historical bar sources. Pick one from config.
"""

from __future__ import annotations

from brokerai.core.config import Config
from brokerai.data.base import BarSource


def build_source(config: Config) -> BarSource:
    # Lazy imports: the HTTP stack is only needed for remote providers.
    if config.data.provider == "alphavantage":
        from brokerai.core.client import ClientConfig, DataClient
        from brokerai.data.alphavantage import AlphaVantageBarSource
        from brokerai.data.cache import BarCache

        return AlphaVantageBarSource(
            client=DataClient(ClientConfig.from_data_config(config.data)),
            api_key=config.data.api_key,
            interval=config.data.interval,
            cache=BarCache(config.data.cache_ttl_s),
        )

    from brokerai.data.local import CsvBarSource

    return CsvBarSource(config.data.csv_dir)


__all__ = ["BarSource", "build_source"]
