"""brokerai.backtest.store

Strategy and result persistence over the shared SQLite database.

The strategy status column is the per-strategy run guard. It only moves
through conditional updates:

    inactive --begin_backtest--> backtesting --end_backtest--> inactive

A second run against the same strategy finds the row already claimed and is
refused. No row lock, no sleep, no retry.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import date, datetime
from typing import Any

from brokerai.backtest.models import (
    BacktestRecord,
    BacktestResult,
    EquityPoint,
    OpenPosition,
    StrategyDefinition,
    StrategyKind,
    StrategyStatus,
    Trade,
    TradeAction,
)
from brokerai.backtest.strategies import get_rule, is_supported, parse_kind
from brokerai.core.database import Database
from brokerai.core.exceptions import (
    BacktestInProgressError,
    InputValidationError,
    StorageError,
    StrategyNotFoundError,
)
from brokerai.core.time import parse_dt, to_iso, utc_now

_STRATEGY_COLS = "id, name, description, kind, parameters, status, created_at, updated_at"


def _validate_parameters(kind: StrategyKind, parameters: dict[str, Any]) -> None:
    # Declared-but-unimplemented kinds can be stored; they fail when run.
    if is_supported(kind):
        get_rule(kind).parse_parameters(parameters)


def _parse_status(status: str | StrategyStatus) -> StrategyStatus:
    try:
        return StrategyStatus(str(status))
    except ValueError as e:
        valid = ", ".join(s.value for s in StrategyStatus)
        raise InputValidationError(f"invalid status {status!r} (expected one of: {valid})") from e


class StrategyStore:
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _row_to_strategy(row: sqlite3.Row) -> StrategyDefinition:
        try:
            params = json.loads(str(row["parameters"] or "{}"))
        except json.JSONDecodeError as e:
            raise StorageError(f"corrupt parameters for strategy {row['id']}") from e

        return StrategyDefinition(
            id=str(row["id"]),
            name=str(row["name"]),
            description=row["description"],
            kind=StrategyKind(str(row["kind"])),
            parameters=params,
            status=StrategyStatus(str(row["status"])),
            created_at=str(row["created_at"]),
            updated_at=str(row["updated_at"]),
        )

    def create(
        self,
        *,
        name: str,
        kind: str | StrategyKind,
        parameters: dict[str, Any],
        description: str | None = None,
    ) -> StrategyDefinition:
        if not name:
            raise InputValidationError("name is required")
        k = parse_kind(kind)
        _validate_parameters(k, parameters)

        strategy_id = str(uuid.uuid4())
        now = utc_now().isoformat()
        with self._db.lock, self._db.conn:
            self._db.conn.execute(
                f"INSERT INTO strategies ({_STRATEGY_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    strategy_id,
                    name,
                    description,
                    str(k),
                    json.dumps(parameters, sort_keys=True),
                    str(StrategyStatus.INACTIVE),
                    now,
                    now,
                ),
            )

        return StrategyDefinition(
            id=strategy_id,
            name=name,
            description=description,
            kind=k,
            parameters=dict(parameters),
            status=StrategyStatus.INACTIVE,
            created_at=now,
            updated_at=now,
        )

    def get(self, strategy_id: str) -> StrategyDefinition | None:
        row = self._db.conn.execute(
            f"SELECT {_STRATEGY_COLS} FROM strategies WHERE id = ?",
            (strategy_id,),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_strategy(row)

    def require(self, strategy_id: str) -> StrategyDefinition:
        s = self.get(strategy_id)
        if s is None:
            raise StrategyNotFoundError(f"strategy not found: {strategy_id}")
        return s

    def list_all(self) -> list[StrategyDefinition]:
        rows = self._db.conn.execute(
            f"SELECT {_STRATEGY_COLS} FROM strategies ORDER BY created_at DESC, rowid DESC",
        ).fetchall()
        return [self._row_to_strategy(r) for r in rows]

    def count_by_status(self) -> dict[str, int]:
        """Every status present, zero-filled."""

        counts = {str(s): 0 for s in StrategyStatus}
        for row in self._db.conn.execute("SELECT status, COUNT(*) FROM strategies GROUP BY status"):
            counts[str(row[0])] = int(row[1])
        return counts

    def update(
        self,
        strategy_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        kind: str | StrategyKind | None = None,
        parameters: dict[str, Any] | None = None,
        status: str | StrategyStatus | None = None,
    ) -> StrategyDefinition:
        with self._db.lock:
            existing = self.require(strategy_id)
            if existing.status == StrategyStatus.BACKTESTING:
                raise BacktestInProgressError(f"strategy {strategy_id} is backtesting")

            new_status = _parse_status(status) if status is not None else existing.status
            if new_status == StrategyStatus.BACKTESTING:
                raise InputValidationError("status 'backtesting' is set by the backtest runner only")

            new_kind = parse_kind(kind) if kind is not None else existing.kind
            new_params = parameters if parameters is not None else existing.parameters
            _validate_parameters(new_kind, new_params)

            now = utc_now().isoformat()
            with self._db.conn:
                self._db.conn.execute(
                    """
                    UPDATE strategies
                    SET name = ?, description = ?, kind = ?, parameters = ?, status = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        name if name is not None else existing.name,
                        description if description is not None else existing.description,
                        str(new_kind),
                        json.dumps(new_params, sort_keys=True),
                        str(new_status),
                        now,
                        strategy_id,
                    ),
                )
        return self.require(strategy_id)

    def delete(self, strategy_id: str) -> bool:
        with self._db.lock:
            existing = self.get(strategy_id)
            if existing is None:
                return False
            if existing.status == StrategyStatus.BACKTESTING:
                raise BacktestInProgressError(f"strategy {strategy_id} is backtesting")
            with self._db.conn:
                cur = self._db.conn.execute("DELETE FROM strategies WHERE id = ?", (strategy_id,))
        return cur.rowcount > 0

    def begin_backtest(self, strategy_id: str) -> bool:
        """Claim the strategy for a run. False if it was not inactive."""

        with self._db.lock, self._db.conn:
            cur = self._db.conn.execute(
                "UPDATE strategies SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (str(StrategyStatus.BACKTESTING), utc_now().isoformat(), strategy_id, str(StrategyStatus.INACTIVE)),
            )
        return cur.rowcount == 1

    def end_backtest(self, strategy_id: str) -> bool:
        with self._db.lock, self._db.conn:
            cur = self._db.conn.execute(
                "UPDATE strategies SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (str(StrategyStatus.INACTIVE), utc_now().isoformat(), strategy_id, str(StrategyStatus.BACKTESTING)),
            )
        return cur.rowcount == 1


def _trade_from_dict(d: dict[str, Any]) -> Trade:
    return Trade(
        timestamp=parse_dt(str(d["timestamp"])),
        action=TradeAction(str(d["action"])),
        quantity=float(d["quantity"]),
        price=float(d["price"]),
        pnl=float(d["pnl"]) if d.get("pnl") is not None else None,
        symbol=str(d.get("symbol", "")),
    )


def _open_position_from_dict(d: dict[str, Any] | None) -> OpenPosition | None:
    if not d:
        return None
    return OpenPosition(
        entry_timestamp=parse_dt(str(d["entry_timestamp"])),
        entry_price=float(d["entry_price"]),
        quantity=float(d["quantity"]),
        committed_capital=float(d["committed_capital"]),
        mark_price=float(d["mark_price"]),
        market_value=float(d["market_value"]),
        unrealized_pnl=float(d["unrealized_pnl"]),
    )


class ResultStore:
    """Finished runs only. There is no update and no partial insert."""

    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> BacktestRecord:
        try:
            trades = [_trade_from_dict(t) for t in json.loads(str(row["trades"]))]
            curve = [
                EquityPoint(timestamp=parse_dt(str(p["timestamp"])), equity=float(p["equity"]))
                for p in json.loads(str(row["equity_curve"]))
            ]
            open_pos = _open_position_from_dict(json.loads(row["open_position_at_end"] or "null"))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            raise StorageError(f"corrupt backtest result {row['id']}") from e

        result = BacktestResult(
            initial_capital=float(row["initial_capital"]),
            final_capital=float(row["final_capital"]),
            total_return=float(row["total_return"]),
            total_return_percent=float(row["total_return_percent"]),
            sharpe_ratio=float(row["sharpe_ratio"]),
            max_drawdown=float(row["max_drawdown"]),
            win_rate=float(row["win_rate"]),
            total_trades=int(row["total_trades"]),
            profitable_trades=int(row["profitable_trades"]),
            losing_trades=int(row["losing_trades"]),
            average_win=float(row["average_win"]),
            average_loss=float(row["average_loss"]),
            largest_win=float(row["largest_win"]),
            largest_loss=float(row["largest_loss"]),
            trades=tuple(trades),
            equity_curve=tuple(curve),
            open_position_at_end=open_pos,
        )
        return BacktestRecord(
            id=str(row["id"]),
            strategy_id=str(row["strategy_id"]),
            symbol=str(row["symbol"]),
            start_date=str(row["start_date"]),
            end_date=str(row["end_date"]),
            created_at=str(row["created_at"]),
            result=result,
        )

    def save(
        self,
        *,
        strategy_id: str,
        symbol: str,
        start_date: date | datetime,
        end_date: date | datetime,
        result: BacktestResult,
    ) -> BacktestRecord:
        record_id = str(uuid.uuid4())
        now = utc_now().isoformat()
        start_s = to_iso(start_date) or ""
        end_s = to_iso(end_date) or ""
        payload = result.to_dict()

        try:
            with self._db.lock, self._db.conn:
                self._db.conn.execute(
                    """
                    INSERT INTO backtest_results (
                        id, strategy_id, symbol, start_date, end_date, initial_capital, final_capital,
                        total_return, total_return_percent, sharpe_ratio, max_drawdown, win_rate,
                        total_trades, profitable_trades, losing_trades, average_win, average_loss,
                        largest_win, largest_loss, trades, equity_curve, open_position_at_end, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record_id,
                        strategy_id,
                        symbol,
                        start_s,
                        end_s,
                        result.initial_capital,
                        result.final_capital,
                        result.total_return,
                        result.total_return_percent,
                        result.sharpe_ratio,
                        result.max_drawdown,
                        result.win_rate,
                        result.total_trades,
                        result.profitable_trades,
                        result.losing_trades,
                        result.average_win,
                        result.average_loss,
                        result.largest_win,
                        result.largest_loss,
                        json.dumps(payload["trades"]),
                        json.dumps(payload["equity_curve"]),
                        json.dumps(payload["open_position_at_end"]),
                        now,
                    ),
                )
        except sqlite3.Error as e:
            raise StorageError(f"failed to save backtest result: {e}") from e

        return BacktestRecord(
            id=record_id,
            strategy_id=strategy_id,
            symbol=symbol,
            start_date=start_s,
            end_date=end_s,
            created_at=now,
            result=result,
        )

    def get(self, record_id: str) -> BacktestRecord | None:
        row = self._db.conn.execute("SELECT * FROM backtest_results WHERE id = ?", (record_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def list_for_strategy(self, strategy_id: str) -> list[BacktestRecord]:
        rows = self._db.conn.execute(
            "SELECT * FROM backtest_results WHERE strategy_id = ? ORDER BY created_at DESC, rowid DESC",
            (strategy_id,),
        ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def count(self) -> int:
        row = self._db.conn.execute("SELECT COUNT(*) FROM backtest_results").fetchone()
        return int(row[0])
