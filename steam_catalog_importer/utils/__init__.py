"""Small helpers shared by the importer (text parsing, progress logging)."""
