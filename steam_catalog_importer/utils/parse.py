from __future__ import annotations

import math
import re

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def as_text(value: object) -> str | None:
    """
    Pass a CSV cell through as text; empty/missing becomes None.

    Whitespace is preserved: descriptions and notes are stored verbatim.
    """
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    s = value if isinstance(value, str) else str(value)
    return s if s != "" else None


def parse_int_text(value: object) -> int | None:
    """
    Parse the leading integer of an export text field.

    Export cells are not always clean: "12", " 12", "12.0" and "12 (est.)" all give 12.
    Rejects bool and anything without a leading digit run.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    m = _INT_PREFIX_RE.match(value)
    if not m:
        return None
    return int(m.group(1))


def parse_float_text(value: object) -> float | None:
    """
    Parse the leading decimal number of an export text field ("19.99", "19.99 USD").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else None
    if not isinstance(value, str):
        return None
    m = _FLOAT_PREFIX_RE.match(value)
    if not m:
        return None
    f = float(m.group(1))
    return f if math.isfinite(f) else None
