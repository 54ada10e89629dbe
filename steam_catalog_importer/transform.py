from __future__ import annotations

import re
from typing import Any, Callable, Mapping

from .schema import (
    ACHIEVEMENTS,
    COLUMN_ALIASES,
    COLUMN_KINDS,
    COUNT,
    ID,
    PLATFORM,
    PRICE,
    ROW_COLUMNS,
    TEXT,
    SteamGameRow,
)
from .utils.parse import as_text, parse_float_text, parse_int_text

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^0-9A-Za-z_]")

# SQLite INTEGER is a signed 64-bit value.
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_TRUE_VALUES = ("True", "true")
_FALSE_VALUES = ("False", "false")


def normalize_column_name(name: str) -> str:
    """
    Map a source header to its destination column key.

    - lowercase
    - whitespace runs -> "_"
    - "-" -> "_"
    - drop anything that isn't [0-9a-z_]

    "Peak CCU" -> "peak_ccu", "DiscountDLC count" -> "discountdlc_count". Idempotent.
    """
    s = str(name or "").lower()
    s = _WHITESPACE_RE.sub("_", s)
    s = s.replace("-", "_")
    return _NON_WORD_RE.sub("", s)


def normalize_platform_flag(value: object) -> object:
    """
    Canonicalize a Windows/Mac/Linux support flag to "True"/"False".

    Unrecognized values (e.g. "N/A") pass through unchanged; empty becomes None.
    """
    if value is True or value in _TRUE_VALUES:
        return "True"
    if value is False or value in _FALSE_VALUES:
        return "False"
    return as_text(value)


def _coerce_id(value: object) -> int | None:
    return parse_int_text(value)


def _fits_int64(n: int) -> bool:
    return _INT64_MIN <= n <= _INT64_MAX


def _coerce_count(value: object) -> int:
    n = parse_int_text(value)
    if n is None or not _fits_int64(n):
        return 0
    return n


def _coerce_price(value: object) -> float:
    f = parse_float_text(value)
    return 0.0 if f is None else f


def _coerce_achievements(value: object) -> int | None:
    # "0" means "no achievements listed"; store NULL rather than a misleading count.
    if as_text(value) is None or value == "0":
        return None
    n = parse_int_text(value)
    if n is None or not _fits_int64(n):
        return None
    return n


_COERCERS: dict[str, Callable[[object], Any]] = {
    ID: _coerce_id,
    COUNT: _coerce_count,
    PRICE: _coerce_price,
    ACHIEVEMENTS: _coerce_achievements,
    PLATFORM: normalize_platform_flag,
    TEXT: as_text,
}


def normalize_record_keys(raw: Mapping[str, object]) -> dict[str, object]:
    """
    Re-key a raw record by destination column; later duplicates of a key win.
    """
    out: dict[str, object] = {}
    for key, value in raw.items():
        col = normalize_column_name(key)
        out[COLUMN_ALIASES.get(col, col)] = value
    return out


def transform_record(raw: Mapping[str, object]) -> SteamGameRow:
    """
    Convert one raw CSV record into a typed SteamGameRow.

    Pure and total: unparseable numbers fall back to the column default (0 / 0.0 / None),
    unknown columns are ignored.
    """
    values = normalize_record_keys(raw)
    kwargs = {col: _COERCERS[COLUMN_KINDS[col]](values.get(col)) for col in ROW_COLUMNS}
    return SteamGameRow(**kwargs)
