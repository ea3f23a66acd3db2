"""brokerai: strategy backtesting core.

Replays a strategy over historical bars, one bar at a time, and reports what
would have happened. Nothing here places orders.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "1.0.0"
