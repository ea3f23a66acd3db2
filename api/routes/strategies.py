from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Response

from api.auth import AuthDep
from api.deps import get_strategy_store
from api.errors import ApiError
from api.schemas.common import error_responses
from api.schemas.strategies import StrategyCreate, StrategyResponse, StrategyUpdate
from brokerai.backtest.store import StrategyStore

router = APIRouter(prefix="/strategies", dependencies=[AuthDep], responses=error_responses(401))


@router.get("", response_model=list[StrategyResponse])
def list_strategies(store: StrategyStore = Depends(get_strategy_store)) -> list[StrategyResponse]:
    return [StrategyResponse.from_definition(s) for s in store.list_all()]


@router.post("", response_model=StrategyResponse, status_code=201, responses=error_responses(400))
def create_strategy(
    body: StrategyCreate,
    store: StrategyStore = Depends(get_strategy_store),
) -> StrategyResponse:
    s = store.create(
        name=body.name,
        kind=body.kind,
        parameters=body.parameters,
        description=body.description,
    )
    return StrategyResponse.from_definition(s)


@router.get("/{strategy_id}", response_model=StrategyResponse, responses=error_responses(404))
def get_strategy(
    strategy_id: str = Path(..., min_length=1),
    store: StrategyStore = Depends(get_strategy_store),
) -> StrategyResponse:
    return StrategyResponse.from_definition(store.require(strategy_id))


@router.put("/{strategy_id}", response_model=StrategyResponse, responses=error_responses(400, 404))
def update_strategy(
    body: StrategyUpdate,
    strategy_id: str = Path(..., min_length=1),
    store: StrategyStore = Depends(get_strategy_store),
) -> StrategyResponse:
    s = store.update(
        strategy_id,
        name=body.name,
        description=body.description,
        kind=body.kind,
        parameters=body.parameters,
        status=body.status,
    )
    return StrategyResponse.from_definition(s)


@router.delete("/{strategy_id}", status_code=204, responses=error_responses(404))
def delete_strategy(
    strategy_id: str = Path(..., min_length=1),
    store: StrategyStore = Depends(get_strategy_store),
) -> Response:
    if not store.delete(strategy_id):
        raise ApiError(
            code="strategy.not_found",
            message=f"strategy not found: {strategy_id}",
            status=404,
        )
    return Response(status_code=204)
