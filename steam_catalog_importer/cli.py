"""Command-line interface for the Steam catalog importer."""

from __future__ import annotations

import argparse
import json
import logging
import os
import shlex
import sys
from datetime import datetime
from pathlib import Path

from .config import DEFAULT_OUTPUT_PATH, DEFAULT_TABLE_NAME, config_from_env, load_import_config
from .errors import ImporterError
from .pipelines.import_pipeline import run_import
from .store import SqliteCatalogWriter


def setup_logging(log_file: Path | None, *, debug: bool = False) -> None:
    """Configure logging to the console and (optionally) a file."""
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logging.info(f"Logging to file: {log_file}")


def _default_log_file(*, command_name: str, logs_dir: Path) -> Path:
    now = datetime.now()
    stamp = now.strftime("%Y%m%d-%H%M%S") + f".{now.microsecond // 1000:03d}"
    candidate = logs_dir / f"log-{stamp}-{command_name}.log"
    if not candidate.exists():
        return candidate
    for i in range(2, 1000):
        p = logs_dir / f"log-{stamp}-{command_name}-{i}.log"
        if not p.exists():
            return p
    return logs_dir / f"log-{stamp}-{command_name}-{os.getpid()}.log"


def _setup_logging_from_args(args: argparse.Namespace, *, command_name: str, db_path: Path) -> None:
    if args.no_log_file:
        log_file = None
    else:
        log_file = args.log_file or _default_log_file(
            command_name=command_name, logs_dir=db_path.resolve().parent / "logs"
        )
    setup_logging(log_file, debug=bool(args.debug))
    argv = " ".join(shlex.quote(a) for a in sys.argv)
    logging.info(f"Invocation: {argv}")


def _command_import(args: argparse.Namespace) -> None:
    config = load_import_config(
        args.config,
        overrides={
            "input_path": args.input,
            "output_path": args.out,
            "batch_size": args.batch_size,
            "table_name": args.table,
            "encoding": args.encoding,
        },
    )
    _setup_logging_from_args(args, command_name="import", db_path=config.output_path)
    report = run_import(config)
    print(json.dumps(report.as_dict(), indent=2))


def _command_stats(args: argparse.Namespace) -> None:
    env = config_from_env()
    db_path = args.db or Path(env.get("output_path", DEFAULT_OUTPUT_PATH))
    table = args.table or env.get("table_name", DEFAULT_TABLE_NAME)
    _setup_logging_from_args(args, command_name="stats", db_path=db_path)
    with SqliteCatalogWriter.open_existing(db_path, table_name=table) as store:
        stats = store.get_stats()
    logging.info(f"✔ Stats for {db_path} (table={table}): total_rows={stats.total_rows}")
    print(json.dumps(stats.as_dict(), indent=2))


def _add_logging_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--log-file",
        type=Path,
        help="Log file path (default: <db dir>/logs/log-<timestamp>-<command>.log)",
    )
    p.add_argument(
        "--no-log-file", action="store_true", help="Log to the console only (default: off)"
    )
    p.add_argument("--debug", action="store_true", help="Enable DEBUG logging (default: INFO)")


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        raise SystemExit(
            "Missing command. Use one of: import, stats. "
            "Run `steam-catalog-import --help` for usage."
        )

    parser = argparse.ArgumentParser(description="Load a Steam games CSV export into SQLite")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Stream a games CSV into a SQLite table")
    p_import.add_argument(
        "input",
        type=Path,
        nargs="?",
        help="Input CSV (default: $STEAM_CSV_PATH, else ./steam_games.csv)",
    )
    p_import.add_argument(
        "--out", type=Path, help="Output SQLite file (default: $STEAM_DB_PATH, else ./steam_games.db)"
    )
    p_import.add_argument(
        "--table", type=str, help="Destination table (default: $STEAM_TABLE_NAME, else steam_games)"
    )
    p_import.add_argument(
        "--batch-size", type=int, help="Rows per transaction (default: $STEAM_BATCH_SIZE, else 1000)"
    )
    p_import.add_argument("--encoding", type=str, help="Input CSV encoding (default: utf-8)")
    p_import.add_argument("--config", type=Path, help="YAML file with import settings")
    _add_logging_args(p_import)
    p_import.set_defaults(_fn=_command_import)

    p_stats = sub.add_parser("stats", help="Print statistics of an imported database")
    p_stats.add_argument(
        "db",
        type=Path,
        nargs="?",
        help="SQLite file (default: $STEAM_DB_PATH, else ./steam_games.db)",
    )
    p_stats.add_argument(
        "--table", type=str, help="Table name (default: $STEAM_TABLE_NAME, else steam_games)"
    )
    _add_logging_args(p_stats)
    p_stats.set_defaults(_fn=_command_stats)

    ns = parser.parse_args(argv)
    try:
        ns._fn(ns)
    except ImporterError as e:
        logging.error(f"✖ {ns.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
