"""brokerai.cli

Command line interface entry point for brokerai.

Design constraints:
- argparse-based.
- Lazy imports: do not import heavy dependencies at parse time.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brokerai",
        description="Replay trading strategies over historical bars.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    p_bt = sub.add_parser("backtest", help="Run a backtest over a CSV bar file (nothing is stored)")
    p_bt.add_argument("--csv", required=True, type=Path, help="CSV with timestamp,close[,open,high,low,volume].")
    p_bt.add_argument("--kind", default="momentum", help="Strategy kind.")
    p_bt.add_argument("--lookback", type=int, default=None, help="Momentum lookback (bars).")
    p_bt.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra strategy parameter. Repeatable.",
    )
    p_bt.add_argument("--start", default=None, help="Inclusive start (YYYY-MM-DD or ISO timestamp).")
    p_bt.add_argument("--end", default=None, help="Inclusive end (YYYY-MM-DD or ISO timestamp).")
    p_bt.add_argument("--capital", type=float, default=None, help="Initial capital.")
    p_bt.add_argument("--json", action="store_true", help="Print the full result as JSON.")

    p_api = sub.add_parser("api", help="Start FastAPI server")
    p_api.add_argument("--host", default=None)
    p_api.add_argument("--port", type=int, default=None)

    sub.add_parser("status", help="Print system status")

    return parser


def _print_version() -> None:
    from brokerai import __version__

    print(f"brokerai v{__version__}")


def _load_config(repo_root: Path):
    from brokerai.core.config import Config

    return Config.from_repo_defaults(repo_root)


def _parse_params(pairs: list[str]) -> dict[str, Any]:
    import yaml

    out: dict[str, Any] = {}
    for raw in pairs:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected KEY=VALUE, got {raw!r}")
        # YAML scalars: "20" -> 20, "true" -> True, "abc" -> "abc"
        out[key.strip()] = yaml.safe_load(value)
    return out


def _cmd_backtest(ctx: CliContext, args: argparse.Namespace) -> int:
    import json

    from brokerai.backtest.bars import load_bars_csv
    from brokerai.backtest.simulator import simulate
    from brokerai.backtest.strategies import get_rule, parse_kind
    from brokerai.core.exceptions import BrokerAIError, InputValidationError
    from brokerai.core.log import configure_logging
    from brokerai.core.time import parse_bound

    config = _load_config(ctx.repo_root)
    configure_logging(config.logging)

    try:
        raw_params = _parse_params(list(args.param))
    except ValueError as e:
        print(f"invalid --param: {e}", file=sys.stderr)
        return 2
    if args.lookback is not None:
        raw_params["lookback"] = args.lookback

    try:
        rule = get_rule(parse_kind(args.kind))
        params = rule.parse_parameters(raw_params)

        try:
            start = parse_bound(args.start) if args.start else None
            end = parse_bound(args.end) if args.end else None
        except ValueError as e:
            raise InputValidationError(f"invalid date: {e}") from e

        try:
            history = load_bars_csv(args.csv)
        except ValueError as e:
            raise InputValidationError(str(e)) from e

        window = history.filter_range(start, end)
        capital = config.backtest.initial_capital if args.capital is None else float(args.capital)
        result = simulate(
            rule=rule,
            params=params,
            bars=window,
            initial_capital=capital,
            symbol=args.csv.stem.upper(),
            periods_per_year=config.backtest.periods_per_year,
        )
    except BrokerAIError as e:
        print(f"backtest failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print(f"backtest {args.csv.stem.upper()} ({args.kind}, {len(window)} bars)")
    for k, v in result.summary().items():
        print(f"- {k}: {v:.4f}" if isinstance(v, float) else f"- {k}: {v}")
    if result.open_position_at_end is not None:
        pos = result.open_position_at_end
        print(f"- open position: {pos.quantity:.6f} @ {pos.entry_price:.4f} (unrealized {pos.unrealized_pnl:.4f})")
    return 0


def _cmd_api(ctx: CliContext, args: argparse.Namespace) -> int:
    config = _load_config(ctx.repo_root)

    host = args.host or config.api.host
    port = args.port or config.api.port

    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=False)
    return 0


def _cmd_status(ctx: CliContext, args: argparse.Namespace) -> int:
    from brokerai.core.config import Config

    repo_root = ctx.repo_root
    cfg = repo_root / "config" / "default.yaml"

    db_path = repo_root / "data" / "brokerai.db"
    try:
        config = Config.from_repo_defaults(repo_root)
        config_status = str(cfg)
        db_path = config.db_path if config.db_path.is_absolute() else repo_root / config.db_path
        provider = config.data.provider
    except Exception as e:
        config_status = f"{cfg} (error: {e})"
        provider = "unknown"

    db_status = "present" if db_path.exists() else "missing"

    print("brokerai status")
    print(f"- config: {config_status}")
    print(f"- db: {db_path} ({db_status})")
    print(f"- data provider: {provider}")

    health = "ok" if cfg.exists() else "degraded"
    print(f"- system health: {health}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "backtest": _cmd_backtest,
        "api": _cmd_api,
        "status": _cmd_status,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args))


if __name__ == "__main__":
    raise SystemExit(main())
