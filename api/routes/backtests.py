from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from api.auth import AuthDep
from api.deps import get_orchestrator, get_result_store, get_strategy_store
from api.schemas.backtests import BacktestResultResponse, BacktestRunRequest
from api.schemas.common import error_responses
from brokerai.backtest.engine import BacktestOrchestrator
from brokerai.backtest.models import BacktestRequest
from brokerai.backtest.store import ResultStore, StrategyStore

router = APIRouter(prefix="/strategies", dependencies=[AuthDep], responses=error_responses(401))


@router.post(
    "/{strategy_id}/backtest",
    response_model=BacktestResultResponse,
    status_code=201,
    responses=error_responses(400, 404, 409, 422, 503),
)
async def run_backtest(
    body: BacktestRunRequest,
    strategy_id: str = Path(..., min_length=1),
    orchestrator: BacktestOrchestrator = Depends(get_orchestrator),
) -> BacktestResultResponse:
    record = await orchestrator.run(
        BacktestRequest(
            strategy_id=strategy_id,
            symbol=body.symbol or "",
            start_date=body.start_date or "",
            end_date=body.end_date or "",
            initial_capital=body.initial_capital,
        )
    )
    return BacktestResultResponse.from_record(record)


@router.get(
    "/{strategy_id}/backtest-results",
    response_model=list[BacktestResultResponse],
    responses=error_responses(404),
)
def list_backtest_results(
    strategy_id: str = Path(..., min_length=1),
    strategies: StrategyStore = Depends(get_strategy_store),
    results: ResultStore = Depends(get_result_store),
) -> list[BacktestResultResponse]:
    strategies.require(strategy_id)
    return [BacktestResultResponse.from_record(r) for r in results.list_for_strategy(strategy_id)]
