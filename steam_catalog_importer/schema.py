from __future__ import annotations

import re
from dataclasses import astuple, dataclass, fields

from .errors import ConfigError

# -----------------------------------------------------------------------------
# Typed row
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SteamGameRow:
    """
    One fully coerced catalog entry, in destination column order.

    Build it through `transform.transform_record`; direct construction is type-checked so a
    misspelled or mis-typed field fails here instead of landing in the store as NULL.
    """

    app_id: int | None
    name: str | None
    release_date: str | None
    estimated_owners: str | None
    peak_ccu: int
    required_age: int
    price: float
    discount_dlc_count: int
    about_the_game: str | None
    supported_languages: str | None
    full_audio_languages: str | None
    reviews: str | None
    header_image: str | None
    website: str | None
    support_url: str | None
    support_email: str | None
    windows: str | None
    mac: str | None
    linux: str | None
    metacritic_score: str | None
    metacritic_url: str | None
    user_score: str | None
    positive: int
    negative: int
    score_rank: int
    achievements: int | None
    recommendations: int
    notes: str | None
    average_playtime_forever: str | None
    average_playtime_two_weeks: int
    median_playtime_forever: int
    median_playtime_two_weeks: int
    developers: str | None
    publishers: str | None
    categories: str | None
    genres: str | None
    tags: str | None
    screenshots: str | None
    movies: str | None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            kind = COLUMN_KINDS[f.name]
            if not _value_matches_kind(value, kind):
                raise TypeError(
                    f"SteamGameRow.{f.name} expects a {kind} value, got {type(value).__name__}"
                )

    def as_params(self) -> tuple[object, ...]:
        """Values in ROW_COLUMNS order, ready for a parameterized INSERT."""
        return astuple(self)


# -----------------------------------------------------------------------------
# Column classes
# -----------------------------------------------------------------------------

ID = "id"
COUNT = "count"
PRICE = "price"
ACHIEVEMENTS = "achievements"
PLATFORM = "platform"
TEXT = "text"

COUNT_COLUMNS = (
    "peak_ccu",
    "required_age",
    "discount_dlc_count",
    "positive",
    "negative",
    "score_rank",
    "recommendations",
    "average_playtime_two_weeks",
    "median_playtime_forever",
    "median_playtime_two_weeks",
)

PLATFORM_COLUMNS = ("windows", "mac", "linux")

ROW_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(SteamGameRow))


def _kind_for(column: str) -> str:
    if column == "app_id":
        return ID
    if column == "price":
        return PRICE
    if column == "achievements":
        return ACHIEVEMENTS
    if column in COUNT_COLUMNS:
        return COUNT
    if column in PLATFORM_COLUMNS:
        return PLATFORM
    return TEXT


COLUMN_KINDS: dict[str, str] = {c: _kind_for(c) for c in ROW_COLUMNS}

# Normalized source keys that feed a differently named destination column.
COLUMN_ALIASES: dict[str, str] = {"appid": "app_id"}


def _value_matches_kind(value: object, kind: str) -> bool:
    if kind == COUNT:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind == PRICE:
        return isinstance(value, float)
    if kind in (ID, ACHIEVEMENTS):
        return value is None or (isinstance(value, int) and not isinstance(value, bool))
    return value is None or isinstance(value, str)


# -----------------------------------------------------------------------------
# SQL
# -----------------------------------------------------------------------------

_SQL_TYPES = {
    ID: "INTEGER PRIMARY KEY",
    COUNT: "INTEGER",
    PRICE: "REAL",
    ACHIEVEMENTS: "INTEGER",
    PLATFORM: "TEXT",
    TEXT: "TEXT",
}

# Columns a row must carry to be stored. Checked before the INSERT: OR IGNORE would
# otherwise drop NOT NULL violations silently, and a NULL INTEGER PRIMARY KEY gets a rowid.
NOT_NULL_COLUMNS = ("app_id", "name")

# (suffix, indexed columns); created after the bulk load only.
INDEXES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("app_id", ("app_id",)),
    ("name", ("name",)),
    ("price", ("price",)),
    ("positive", ("positive",)),
    ("release_date", ("release_date",)),
    ("price_positive", ("price", "positive")),
)


_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def validate_table_name(table_name: object) -> str:
    """Table names are interpolated into SQL, so only plain identifiers are accepted."""
    if not isinstance(table_name, str) or not _IDENTIFIER_RE.fullmatch(table_name):
        raise ConfigError(f"Invalid table name: {table_name!r}")
    return table_name


def create_table_sql(table_name: str) -> str:
    lines: list[str] = []
    for col in ROW_COLUMNS:
        sql_type = _SQL_TYPES[COLUMN_KINDS[col]]
        if col in NOT_NULL_COLUMNS:
            sql_type += " NOT NULL"
        lines.append(f"    {col} {sql_type}")
    lines.append("    created_at DATETIME DEFAULT CURRENT_TIMESTAMP")
    body = ",\n".join(lines)
    return f"CREATE TABLE IF NOT EXISTS {table_name} (\n{body}\n)"


def insert_sql(table_name: str) -> str:
    cols = ", ".join(ROW_COLUMNS)
    placeholders = ", ".join("?" for _ in ROW_COLUMNS)
    return f"INSERT OR IGNORE INTO {table_name} ({cols}) VALUES ({placeholders})"


def index_name(table_name: str, suffix: str) -> str:
    return f"idx_{table_name}_{suffix}"


def create_index_statements(table_name: str) -> list[tuple[str, str]]:
    """Return [(index_name, CREATE INDEX sql)] in creation order."""
    out: list[tuple[str, str]] = []
    for suffix, cols in INDEXES:
        name = index_name(table_name, suffix)
        out.append(
            (name, f"CREATE INDEX IF NOT EXISTS {name} ON {table_name}({', '.join(cols)})")
        )
    return out
