"""Liveness plus a snapshot of what the service holds.

No auth: counts only, never ids or parameters.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from api.deps import get_config, get_db
from brokerai import __version__
from brokerai.backtest.store import ResultStore, StrategyStore
from brokerai.core.config import Config
from brokerai.core.database import Database

router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    schema_version: int
    uptime_seconds: float
    data_provider: str
    strategies: dict[str, int]
    stored_backtests: int


@router.get("/health", response_model=HealthResponse)
def health(
    request: Request,
    db: Database = Depends(get_db),
    config: Config = Depends(get_config),
) -> HealthResponse:
    started_at = getattr(request.app.state, "started_at", None)
    uptime = 0.0 if started_at is None else time.monotonic() - float(started_at)

    return HealthResponse(
        version=__version__,
        schema_version=db.schema_version(),
        uptime_seconds=round(uptime, 3),
        data_provider=config.data.provider,
        strategies=StrategyStore(db).count_by_status(),
        stored_backtests=ResultStore(db).count(),
    )
