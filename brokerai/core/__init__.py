"""brokerai.core

Core primitives: config, errors, storage, time.

If a module needs to exist, it should probably depend only on this package.
"""

from .config import Config
from .database import Database
from .exceptions import BrokerAIError
from .time import parse_dt, utc_now

__all__ = [
    "BrokerAIError",
    "Config",
    "Database",
    "parse_dt",
    "utc_now",
]
