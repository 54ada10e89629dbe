from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace

from ..config import ImportConfig
from ..schema import SteamGameRow
from ..source import iter_raw_records
from ..store import BatchResult, CatalogStats, SqliteCatalogWriter
from ..transform import transform_record
from ..utils.progress import Progress


@dataclass(frozen=True)
class ImportReport:
    rows_read: int = 0
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
    batches: int = 0
    indexes_created: tuple[str, ...] = ()
    stats: CatalogStats | None = None
    elapsed_s: float = 0.0

    def with_batch(self, result: BatchResult) -> ImportReport:
        return replace(
            self,
            inserted=self.inserted + result.inserted,
            duplicates=self.duplicates + result.duplicates,
            failed=self.failed + result.failed,
            batches=self.batches + 1,
        )

    def as_dict(self) -> dict[str, object]:
        return {
            "rows_read": self.rows_read,
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "batches": self.batches,
            "indexes_created": list(self.indexes_created),
            "stats": self.stats.as_dict() if self.stats else None,
            "elapsed_s": round(self.elapsed_s, 3),
        }


def _write(writer: SqliteCatalogWriter, batch: list[SteamGameRow], report: ImportReport) -> ImportReport:
    result = writer.write_batch(batch)
    report = report.with_batch(result)
    logging.info(f"Processed batch: {len(batch)} rows (Total inserted: {report.inserted})")
    return report


def run_import(config: ImportConfig) -> ImportReport:
    """
    Stream the CSV into SQLite: schema -> batched inserts -> indexes -> stats.

    The writer is always closed, including when the source or schema setup fails.
    """
    started = time.monotonic()
    logging.info("Starting Steam games CSV import")
    logging.info(f"CSV file: {config.input_path}")
    logging.info(f"Database: {config.output_path} (table={config.table_name})")
    logging.info(f"Batch size: {config.batch_size}")

    writer = SqliteCatalogWriter(config.output_path, table_name=config.table_name)
    try:
        writer.ensure_schema()

        report = ImportReport()
        rows_read = 0
        progress = Progress("IMPORT")
        buffer: list[SteamGameRow] = []
        for raw in iter_raw_records(
            config.input_path,
            chunk_size=config.read_chunk_rows,
            encoding=config.encoding,
        ):
            rows_read += 1
            buffer.append(transform_record(raw))
            progress.maybe_log(rows_read)
            if len(buffer) >= config.batch_size:
                report = _write(writer, buffer, report)
                buffer = []
        if buffer:
            report = _write(writer, buffer, report)

        indexes = writer.build_indexes()
        stats = writer.get_stats()
    finally:
        writer.close()

    report = replace(
        report,
        rows_read=rows_read,
        indexes_created=tuple(indexes),
        stats=stats,
        elapsed_s=time.monotonic() - started,
    )
    logging.info(
        f"✔ Import completed: {config.output_path} (read={report.rows_read}, "
        f"inserted={report.inserted}, duplicates={report.duplicates}, failed={report.failed}, "
        f"batches={report.batches}, {report.elapsed_s:.1f}s)"
    )
    return report
