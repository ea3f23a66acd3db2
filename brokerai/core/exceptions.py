"""brokerai.core.exceptions

Errors are part of the interface.

Every error carries a stable ``code``. The API surfaces it verbatim; callers
branch on it, never on message text.
"""

from __future__ import annotations


class BrokerAIError(Exception):
    """Base exception for brokerai."""

    code: str = "brokerai.error"


class ConfigError(BrokerAIError):
    """Configuration is missing, invalid, or inconsistent."""

    code = "config.invalid"


class StorageError(BrokerAIError):
    """Persistence failures: schema, IO, integrity."""

    code = "storage.error"


class InputValidationError(BrokerAIError):
    """Request is malformed. The simulation never starts."""

    code = "input.invalid"


class StrategyNotFoundError(InputValidationError):
    """No strategy with that id."""

    code = "strategy.not_found"


class UnsupportedStrategyError(InputValidationError):
    """Strategy kind is declared but has no rule behind it."""

    code = "strategy.unsupported_kind"


class DataUnavailableError(BrokerAIError):
    """Historical bars could not be fetched."""

    code = "data.unavailable"


class NoDataInRangeError(DataUnavailableError):
    """Bars exist, just none between the requested dates."""

    code = "data.empty_range"


class ComputationError(BrokerAIError):
    """Invalid numeric state inside the simulation loop."""

    code = "backtest.computation"


class BacktestInProgressError(BrokerAIError):
    """Another backtest already holds this strategy."""

    code = "backtest.in_progress"

