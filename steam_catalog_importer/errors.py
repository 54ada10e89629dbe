from __future__ import annotations


class ImporterError(Exception):
    """Base class for failures surfaced by the importer."""


class IOFailure(ImporterError):
    """The source CSV or the destination store could not be read/written. Fatal."""


class SchemaFailure(ImporterError):
    """Table (fatal) or index (logged only) creation failed."""


class RowInsertFailure(ImporterError):
    """A single row violated a store constraint; the row is skipped."""

    def __init__(self, app_id: int | None, message: str) -> None:
        super().__init__(message)
        self.app_id = app_id


class ConfigError(ImporterError):
    """Invalid configuration value (file, environment or CLI flag)."""


class WriterStateError(ImporterError):
    """A writer operation was called in a lifecycle state that does not allow it."""
