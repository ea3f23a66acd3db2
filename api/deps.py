from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request

from brokerai.backtest.engine import BacktestOrchestrator
from brokerai.backtest.store import ResultStore, StrategyStore
from brokerai.core.config import Config
from brokerai.core.database import Database
from brokerai.data import BarSource, build_source


@lru_cache
def _repo_root() -> Path:
    # Assume running from repo root (uvicorn started there). Fallback to parent of this file.
    here = Path(__file__).resolve()
    for p in [Path.cwd(), here.parent.parent]:
        if (p / "config" / "default.yaml").exists():
            return p
    return Path.cwd()


@lru_cache
def _load_config() -> Config:
    return Config.from_repo_defaults(_repo_root())


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "config", None)
    return cfg or _load_config()


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        db = Database(get_config(request).db_path)
        request.app.state.db = db
    return db


def get_source(request: Request) -> BarSource:
    source = getattr(request.app.state, "source", None)
    if source is None:
        source = build_source(get_config(request))
        request.app.state.source = source
    return source


def get_strategy_store(db: Database = Depends(get_db)) -> StrategyStore:
    return StrategyStore(db)


def get_result_store(db: Database = Depends(get_db)) -> ResultStore:
    return ResultStore(db)


def get_orchestrator(
    config: Config = Depends(get_config),
    strategies: StrategyStore = Depends(get_strategy_store),
    results: ResultStore = Depends(get_result_store),
    source: BarSource = Depends(get_source),
) -> BacktestOrchestrator:
    return BacktestOrchestrator(
        strategies=strategies,
        results=results,
        source=source,
        settings=config.backtest,
    )
