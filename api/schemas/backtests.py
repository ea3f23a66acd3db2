from __future__ import annotations

from pydantic import BaseModel

from brokerai.backtest.models import BacktestRecord


class BacktestRunRequest(BaseModel):
    # Optional at the schema level so missing fields surface as input.invalid.
    symbol: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    initial_capital: float | None = None


class TradeResponse(BaseModel):
    timestamp: str
    symbol: str
    action: str
    quantity: float
    price: float
    pnl: float | None = None


class EquityPointResponse(BaseModel):
    timestamp: str
    equity: float


class OpenPositionResponse(BaseModel):
    entry_timestamp: str
    entry_price: float
    quantity: float
    committed_capital: float
    mark_price: float
    market_value: float
    unrealized_pnl: float


class BacktestResultResponse(BaseModel):
    id: str
    strategy_id: str
    symbol: str
    start_date: str
    end_date: str
    created_at: str

    initial_capital: float
    final_capital: float
    total_return: float
    total_return_percent: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    total_trades: int
    profitable_trades: int
    losing_trades: int
    average_win: float
    average_loss: float
    largest_win: float
    largest_loss: float

    trades: list[TradeResponse]
    equity_curve: list[EquityPointResponse]
    open_position_at_end: OpenPositionResponse | None = None

    @classmethod
    def from_record(cls, rec: BacktestRecord) -> BacktestResultResponse:
        return cls.model_validate(
            {
                "id": rec.id,
                "strategy_id": rec.strategy_id,
                "symbol": rec.symbol,
                "start_date": rec.start_date,
                "end_date": rec.end_date,
                "created_at": rec.created_at,
                **rec.result.to_dict(),
            }
        )
