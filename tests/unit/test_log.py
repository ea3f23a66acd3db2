from __future__ import annotations

import json
import logging

from brokerai.core.config import LoggingConfig
from brokerai.core.log import JsonFormatter, configure_logging


def test_json_formatter_carries_extra() -> None:
    record = logging.LogRecord("brokerai.backtest.engine", logging.INFO, __file__, 1, "backtest_started", (), None)
    record.strategy_id = "s1"
    body = json.loads(JsonFormatter().format(record))
    assert body["event"] == "backtest_started"
    assert body["strategy_id"] == "s1"
    assert body["level"] == "INFO"


def test_configure_logging_is_idempotent() -> None:
    configure_logging(LoggingConfig(level="DEBUG", json_output=True))
    configure_logging(LoggingConfig(level="INFO"))
    ours = [h for h in logging.getLogger().handlers if h.get_name() == "brokerai"]
    assert len(ours) == 1
    assert logging.getLogger().level == logging.INFO
