from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd
import pytest

from steam_catalog_importer.cli import main
from steam_catalog_importer.config import ENV_VARS


@pytest.fixture(autouse=True)
def _isolate_logging_and_env(monkeypatch: pytest.MonkeyPatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def _games_csv(tmp_path: Path) -> Path:
    p = tmp_path / "games.csv"
    pd.DataFrame(
        [
            {"AppID": 1, "Name": "A", "Price": "0"},
            {"AppID": 2, "Name": "B", "Price": "19.99"},
            {"AppID": 3, "Name": "C", "Price": "49.99"},
        ]
    ).to_csv(p, index=False)
    return p


def test_cli_import_prints_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "games.db"
    code = main(["import", str(_games_csv(tmp_path)), "--out", str(db), "--batch-size", "2"])

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["inserted"] == 3
    assert report["batches"] == 2
    assert report["stats"]["total_rows"] == 3
    assert report["stats"]["price_range"] == {"min": 19.99, "max": 49.99}
    # Default log file lands next to the database.
    assert list((tmp_path / "logs").glob("log-*-import.log"))


def test_cli_import_reads_paths_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "env.db"
    monkeypatch.setenv("STEAM_CSV_PATH", str(_games_csv(tmp_path)))
    monkeypatch.setenv("STEAM_DB_PATH", str(db))
    monkeypatch.setenv("STEAM_TABLE_NAME", "games")

    assert main(["import", "--no-log-file"]) == 0
    assert json.loads(capsys.readouterr().out)["inserted"] == 3
    assert db.exists()


def test_cli_import_missing_input_exits_nonzero(tmp_path: Path) -> None:
    code = main(
        ["import", str(tmp_path / "missing.csv"), "--out", str(tmp_path / "x.db"), "--no-log-file"]
    )
    assert code == 1


def test_cli_invalid_config_exits_nonzero(tmp_path: Path) -> None:
    code = main(
        ["import", str(_games_csv(tmp_path)), "--table", "bad name", "--no-log-file"]
    )
    assert code == 1


def test_cli_stats(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "games.db"
    assert main(["import", str(_games_csv(tmp_path)), "--out", str(db), "--no-log-file"]) == 0
    capsys.readouterr()

    assert main(["stats", str(db), "--no-log-file"]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["total_rows"] == 3
    assert stats["avg_price"] == pytest.approx(34.99)

    assert main(["stats", str(tmp_path / "missing.db"), "--no-log-file"]) == 1


def test_cli_stats_reads_database_and_table_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "env.db"
    monkeypatch.setenv("STEAM_DB_PATH", str(db))
    monkeypatch.setenv("STEAM_TABLE_NAME", "games")
    assert main(["import", str(_games_csv(tmp_path)), "--no-log-file"]) == 0
    capsys.readouterr()

    assert main(["stats", "--no-log-file"]) == 0
    assert json.loads(capsys.readouterr().out)["total_rows"] == 3

    # Explicit arguments still win over the environment.
    assert main(["stats", str(db), "--table", "steam_games", "--no-log-file"]) == 1


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        main([])
