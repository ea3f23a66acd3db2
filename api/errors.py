from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from brokerai.core.exceptions import (
    BacktestInProgressError,
    BrokerAIError,
    ComputationError,
    DataUnavailableError,
    InputValidationError,
    NoDataInRangeError,
    StrategyNotFoundError,
)

# Most specific first.
STATUS_BY_ERROR: tuple[tuple[type[BrokerAIError], int], ...] = (
    (StrategyNotFoundError, 404),
    (InputValidationError, 400),
    (NoDataInRangeError, 422),
    (DataUnavailableError, 503),
    (BacktestInProgressError, 409),
    (ComputationError, 422),
)


class ApiError(Exception):
    def __init__(self, code: str, message: str, status: int = 400, **extra: object) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.extra = extra


def status_for(exc: BrokerAIError) -> int:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = {"error": {"code": exc.code, "message": exc.message, **exc.extra}}
    return JSONResponse(status_code=exc.status, content=body)


async def domain_error_handler(request: Request, exc: BrokerAIError) -> JSONResponse:
    body = {"error": {"code": exc.code, "message": str(exc)}}
    return JSONResponse(status_code=status_for(exc), content=body)
