"""Steam Catalog Importer - Stream a Steam games CSV export into a SQLite catalog."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("steam-catalog-importer")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"
