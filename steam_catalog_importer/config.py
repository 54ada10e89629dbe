from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError
from .schema import validate_table_name

DEFAULT_INPUT_PATH = Path("steam_games.csv")
DEFAULT_OUTPUT_PATH = Path("steam_games.db")
DEFAULT_TABLE_NAME = "steam_games"
DEFAULT_BATCH_SIZE = 1000

# Environment variable -> ImportConfig field.
ENV_VARS: dict[str, str] = {
    "STEAM_CSV_PATH": "input_path",
    "STEAM_DB_PATH": "output_path",
    "STEAM_BATCH_SIZE": "batch_size",
    "STEAM_TABLE_NAME": "table_name",
    "STEAM_CSV_ENCODING": "encoding",
}


@dataclass(frozen=True)
class ProgressConfig:
    # Log a progress line every N rows read, or at most once per interval when set.
    every_n: int = 10000
    min_interval_s: float = 30.0


@dataclass(frozen=True)
class ImportConfig:
    input_path: Path = DEFAULT_INPUT_PATH
    output_path: Path = DEFAULT_OUTPUT_PATH
    batch_size: int = DEFAULT_BATCH_SIZE
    table_name: str = DEFAULT_TABLE_NAME
    encoding: str = "utf-8"
    # Rows pulled from the CSV reader per chunk; independent of the write batch size.
    read_chunk_rows: int = 10000

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "output_path", Path(self.output_path))
        object.__setattr__(self, "batch_size", _positive_int("batch_size", self.batch_size))
        object.__setattr__(
            self, "read_chunk_rows", _positive_int("read_chunk_rows", self.read_chunk_rows)
        )
        validate_table_name(self.table_name)
        if not str(self.encoding or "").strip():
            raise ConfigError("encoding must not be empty")


def _positive_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        n = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from e
    if n <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return n


def _config_field_names() -> set[str]:
    return {f.name for f in fields(ImportConfig)}


def load_config_file(path: str | Path) -> dict[str, Any]:
    """
    Load import settings from a YAML file.

    The file is a flat mapping of ImportConfig field names, e.g.:

        input_path: data/steam_games.csv
        output_path: data/steam_games.db
        batch_size: 5000
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {p}")

    unknown = sorted(set(data) - _config_field_names())
    if unknown:
        raise ConfigError(f"Unknown config keys in {p}: {', '.join(unknown)}")
    return dict(data)


def config_from_env(env: Mapping[str, str] | None = None) -> dict[str, Any]:
    env = os.environ if env is None else env
    out: dict[str, Any] = {}
    for var, field_name in ENV_VARS.items():
        value = str(env.get(var, "") or "").strip()
        if value:
            out[field_name] = value
    return out


def load_import_config(
    config_path: str | Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ImportConfig:
    """
    Build the effective ImportConfig.

    Precedence (lowest -> highest): defaults, YAML config file, environment, overrides.
    `None` values in overrides are ignored so unset CLI flags don't mask lower layers.
    """
    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(load_config_file(config_path))
    values.update(config_from_env(env))
    for k, v in (overrides or {}).items():
        if v is None:
            continue
        if k not in _config_field_names():
            raise ConfigError(f"Unknown config option: {k}")
        values[k] = v
    return replace(ImportConfig(), **values) if values else ImportConfig()


PROGRESS = ProgressConfig()
