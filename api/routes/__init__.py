from __future__ import annotations

from fastapi import APIRouter

from api.routes import backtests, health, strategies


def get_api_router() -> APIRouter:
    router = APIRouter()

    router.include_router(health.router, tags=["health"])
    router.include_router(strategies.router, tags=["strategies"])
    router.include_router(backtests.router, tags=["backtests"])

    return router
