from api.schemas.backtests import BacktestResultResponse, BacktestRunRequest
from api.schemas.common import ErrorResponse
from api.schemas.strategies import StrategyCreate, StrategyResponse, StrategyUpdate

__all__ = [
    "BacktestResultResponse",
    "BacktestRunRequest",
    "ErrorResponse",
    "StrategyCreate",
    "StrategyResponse",
    "StrategyUpdate",
]
