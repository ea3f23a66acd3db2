from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from brokerai.cli import build_parser, main
from tests.unit._bars import RALLY_THEN_CRASH, RISING, write_csv


def _scaffold_repo(tmp_path: Path) -> Path:
    """Create a minimal repo root layout expected by the CLI."""

    repo_root = tmp_path
    src_root = Path(__file__).resolve().parents[2]

    (repo_root / "config").mkdir(parents=True, exist_ok=True)
    shutil.copy2(src_root / "config" / "default.yaml", repo_root / "config" / "default.yaml")
    return repo_root


def test_cli_help_includes_subcommands(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main([])
    assert rc == 2
    out = capsys.readouterr().out
    assert "backtest" in out
    assert "api" in out
    assert "status" in out


def test_cli_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    from brokerai import __version__

    rc = main(["--version"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == f"brokerai v{__version__}"


def test_cli_unknown_command_errors() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["nope"])


def test_backtest_prints_summary(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    repo_root = _scaffold_repo(tmp_path)
    monkeypatch.chdir(repo_root)
    csv = write_csv(repo_root / "ACME.csv", RISING)

    rc = main(["backtest", "--csv", str(csv), "--lookback", "20"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "backtest ACME" in out
    assert "- final_capital:" in out
    assert "open position" in out


def test_backtest_json_with_params_and_range(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    repo_root = _scaffold_repo(tmp_path)
    monkeypatch.chdir(repo_root)
    csv = write_csv(repo_root / "ACME.csv", RALLY_THEN_CRASH)

    rc = main(
        [
            "backtest",
            "--csv",
            str(csv),
            "--param",
            "lookback=3",
            "--start",
            "2024-01-01",
            "--end",
            "2024-01-10",
            "--capital",
            "1000",
            "--json",
        ]
    )
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["initial_capital"] == 1000.0
    assert [t["action"] for t in payload["trades"]] == ["buy", "sell"]
    assert payload["losing_trades"] == 1
    assert payload["open_position_at_end"] is None
    assert len(payload["equity_curve"]) == len(RALLY_THEN_CRASH)


@pytest.mark.parametrize(
    "extra",
    [
        ["--kind", "breakout"],
        ["--param", "threshold=2"],
        ["--capital", "0"],
        ["--start", "2030-01-01"],
    ],
)
def test_backtest_failures_return_one(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], extra: list[str]
) -> None:
    repo_root = _scaffold_repo(tmp_path)
    monkeypatch.chdir(repo_root)
    csv = write_csv(repo_root / "ACME.csv", RISING)

    rc = main(["backtest", "--csv", str(csv), *extra])
    assert rc == 1
    assert "backtest failed" in capsys.readouterr().err


def test_backtest_bad_param_syntax(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo_root = _scaffold_repo(tmp_path)
    monkeypatch.chdir(repo_root)
    csv = write_csv(repo_root / "ACME.csv", RISING)
    assert main(["backtest", "--csv", str(csv), "--param", "lookback"]) == 2


def test_status_reports_config_and_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    repo_root = _scaffold_repo(tmp_path)
    monkeypatch.chdir(repo_root)

    assert main(["status"]) == 0
    out = capsys.readouterr().out
    assert "brokerai status" in out
    assert "(missing)" in out
    assert "data provider: csv" in out
