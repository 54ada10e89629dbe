from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

from .errors import IOFailure, RowInsertFailure, SchemaFailure, WriterStateError
from .schema import (
    NOT_NULL_COLUMNS,
    SteamGameRow,
    create_index_statements,
    create_table_sql,
    insert_sql,
    validate_table_name,
)


class WriterState(Enum):
    UNOPENED = "unopened"
    SCHEMA_READY = "schema_ready"
    INDEXES_BUILT = "indexes_built"
    CLOSED = "closed"


class RowOutcome(Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class BatchResult:
    """Per-row outcomes of one committed batch, in input order."""

    outcomes: list[tuple[int | None, RowOutcome]] = field(default_factory=list)

    def _count(self, outcome: RowOutcome) -> int:
        return sum(1 for _app_id, o in self.outcomes if o is outcome)

    @property
    def inserted(self) -> int:
        return self._count(RowOutcome.INSERTED)

    @property
    def duplicates(self) -> int:
        return self._count(RowOutcome.DUPLICATE)

    @property
    def failed(self) -> int:
        return self._count(RowOutcome.FAILED)

    def __len__(self) -> int:
        return len(self.outcomes)


@dataclass(frozen=True)
class CatalogStats:
    total_rows: int
    avg_price: float | None
    min_price: float | None
    max_price: float | None

    def as_dict(self) -> dict[str, object]:
        return {
            "total_rows": self.total_rows,
            "avg_price": self.avg_price,
            "price_range": {"min": self.min_price, "max": self.max_price},
        }


def _check_required(row: SteamGameRow) -> None:
    for col in NOT_NULL_COLUMNS:
        if getattr(row, col) is None:
            raise RowInsertFailure(row.app_id, f"NOT NULL constraint failed: {col}")


class SqliteCatalogWriter:
    """
    Owns the destination SQLite database: schema, batched inserts, indexes and stats.

    Lifecycle: UNOPENED -> SCHEMA_READY -> (write_batch)* -> INDEXES_BUILT -> CLOSED.
    `close()` is valid from any state and is terminal.
    """

    def __init__(self, db_path: str | Path, *, table_name: str = "steam_games") -> None:
        self.db_path = Path(db_path)
        self.table_name = validate_table_name(table_name)
        self.state = WriterState.UNOPENED
        self._conn: sqlite3.Connection | None = None
        self._insert_sql = insert_sql(table_name)

    def __enter__(self) -> SqliteCatalogWriter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------
    # Internals
    # ------------------
    def _require(self, *states: WriterState, op: str) -> sqlite3.Connection:
        if self.state not in states or self._conn is None:
            allowed = ", ".join(s.value for s in states)
            raise WriterStateError(f"{op}() not allowed in state {self.state.value} (needs {allowed})")
        return self._conn

    def _connect(self, *, read_only: bool = False) -> sqlite3.Connection:
        try:
            if read_only:
                return sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode: transactions are opened explicitly per batch.
            return sqlite3.connect(self.db_path, isolation_level=None)
        except (sqlite3.Error, OSError) as e:
            raise IOFailure(f"Cannot open database {self.db_path}: {e}") from e

    def _table_exists(self, conn: sqlite3.Connection) -> bool:
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (self.table_name,),
        ).fetchone()
        return row is not None

    # ------------------
    # Schema
    # ------------------
    def ensure_schema(self) -> None:
        """Create the destination table if missing. Safe to call on every run."""
        if self.state is WriterState.CLOSED:
            raise WriterStateError("ensure_schema() not allowed in state closed")
        if self._conn is None:
            self._conn = self._connect()
        try:
            self._conn.execute(create_table_sql(self.table_name))
        except sqlite3.Error as e:
            raise SchemaFailure(f"Cannot create table '{self.table_name}': {e}") from e
        if self.state is WriterState.UNOPENED:
            self.state = WriterState.SCHEMA_READY
        logging.info(f"✔ Table '{self.table_name}' ready in {self.db_path}")

    @classmethod
    def open_existing(cls, db_path: str | Path, *, table_name: str = "steam_games") -> SqliteCatalogWriter:
        """
        Open an already imported database read-only (for stats).
        """
        writer = cls(db_path, table_name=table_name)
        if not writer.db_path.is_file():
            raise IOFailure(f"Database not found: {writer.db_path}")
        conn = writer._connect(read_only=True)
        try:
            exists = writer._table_exists(conn)
        except sqlite3.Error as e:
            conn.close()
            raise IOFailure(f"Cannot read database {writer.db_path}: {e}") from e
        if not exists:
            conn.close()
            raise SchemaFailure(f"Table '{table_name}' not found in {writer.db_path}")
        writer._conn = conn
        writer.state = WriterState.INDEXES_BUILT
        return writer

    # ------------------
    # Writes
    # ------------------
    def write_batch(self, rows: Iterable[SteamGameRow]) -> BatchResult:
        """
        Insert rows in one transaction with INSERT OR IGNORE semantics.

        A row that violates a constraint is logged and skipped; the rest of the batch still
        commits. Store-level errors roll the batch back and raise IOFailure.
        """
        conn = self._require(WriterState.SCHEMA_READY, op="write_batch")
        result = BatchResult()
        try:
            conn.execute("BEGIN")
            for row in rows:
                try:
                    _check_required(row)
                    cur = conn.execute(self._insert_sql, row.as_params())
                except (
                    RowInsertFailure,
                    sqlite3.IntegrityError,
                    sqlite3.InterfaceError,
                    OverflowError,
                ) as e:
                    logging.warning(f"⚠ Error inserting row {row.app_id}: {e}")
                    result.outcomes.append((row.app_id, RowOutcome.FAILED))
                    continue
                if cur.rowcount == 1:
                    result.outcomes.append((row.app_id, RowOutcome.INSERTED))
                else:
                    logging.debug(f"Skipped duplicate app_id {row.app_id}")
                    result.outcomes.append((row.app_id, RowOutcome.DUPLICATE))
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise IOFailure(f"Batch write to {self.db_path} failed: {e}") from e
        return result

    def build_indexes(self) -> list[str]:
        """
        Create secondary indexes once all batches are committed.

        Each failure is logged and does not prevent the remaining indexes.
        """
        conn = self._require(WriterState.SCHEMA_READY, op="build_indexes")
        statements = create_index_statements(self.table_name)
        created: list[str] = []
        for i, (name, sql) in enumerate(statements, start=1):
            try:
                conn.execute(sql)
            except sqlite3.Error as e:
                logging.warning(f"⚠ Error creating index {i} ({name}): {e}")
                continue
            created.append(name)
            logging.info(f"Created index {i}/{len(statements)}: {name}")
        self.state = WriterState.INDEXES_BUILT
        return created

    # ------------------
    # Reads
    # ------------------
    def get_stats(self) -> CatalogStats:
        """Row count plus average/min/max over priced (price > 0) rows."""
        conn = self._require(WriterState.SCHEMA_READY, WriterState.INDEXES_BUILT, op="get_stats")
        table = self.table_name
        try:
            (total,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            avg_price, min_price, max_price = conn.execute(
                f"SELECT AVG(price), MIN(price), MAX(price) FROM {table} WHERE price > 0"
            ).fetchone()
        except sqlite3.Error as e:
            raise IOFailure(f"Cannot read stats from '{table}': {e}") from e
        return CatalogStats(
            total_rows=int(total),
            avg_price=avg_price,
            min_price=min_price,
            max_price=max_price,
        )

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logging.error(f"Error closing database: {e}")
            else:
                logging.info("Database connection closed")
            self._conn = None
        self.state = WriterState.CLOSED
