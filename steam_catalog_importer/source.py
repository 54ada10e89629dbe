from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Iterator

import pandas as pd

from .errors import IOFailure

RawRecord = dict[str, str | None]


def _cell(value: object) -> str | None:
    # Short lines leave trailing cells as NaN even with keep_default_na=False.
    if value is None or pd.isna(value):
        return None
    return str(value)


def iter_raw_records(
    path: str | Path,
    *,
    chunk_size: int = 10000,
    encoding: str = "utf-8",
) -> Iterator[RawRecord]:
    """
    Stream raw records (header -> cell text) from a delimited file.

    Reads `chunk_size` rows at a time, preserving strings and avoiding type inference, so
    arbitrarily large exports never sit in memory at once. Header names are kept verbatim.

    Lines with more cells than the header keep their leading cells and log a warning.
    Raises IOFailure when the file is missing, unreadable, badly encoded or malformed;
    the reader is closed on every exit path.
    """
    p = Path(path)
    if not p.is_file():
        raise IOFailure(f"Input file not found: {p}")
    if p.stat().st_size == 0:
        logging.warning(f"Input file is empty: {p}")
        return

    try:
        with pd.read_csv(
            p,
            dtype=str,
            keep_default_na=False,
            # Never promote the first column to an index; cells beyond the header width
            # are dropped instead of failing the whole file.
            index_col=False,
            engine="python",
            chunksize=chunk_size,
            encoding=encoding,
        ) as reader:
            first_row = 1
            while True:
                with warnings.catch_warnings(record=True) as caught:
                    warnings.simplefilter("always", pd.errors.ParserWarning)
                    chunk = next(reader, None)
                if chunk is None:
                    break
                last_row = first_row + len(chunk) - 1
                for w in caught:
                    logging.warning(f"⚠ {p} rows {first_row}-{last_row}: {w.message}")
                columns = [str(c) for c in chunk.columns]
                for values in chunk.itertuples(index=False, name=None):
                    yield {col: _cell(v) for col, v in zip(columns, values)}
                first_row = last_row + 1
    except (OSError, UnicodeDecodeError, LookupError) as e:
        raise IOFailure(f"Failed reading {p}: {e}") from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise IOFailure(f"Malformed CSV {p}: {e}") from e
