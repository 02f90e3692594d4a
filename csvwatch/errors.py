## csvwatch/errors.py

"""
Error types for the watch-and-import pipeline.

Everything inherits from WatchError. Per-file failures inherit from
CsvImportError and are contained at the importer; they never reach the
poll loop.
"""


class WatchError(Exception):
    """Base exception for csvwatch failures."""
    pass


class ConfigError(WatchError):
    """Raised when configuration is missing or invalid. Fatal at startup."""
    pass


class ListingError(WatchError):
    """Raised when the watched directory cannot be listed."""

    def __init__(self, directory: str, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"Cannot list {directory}: {reason}")


class CsvImportError(WatchError):
    """Base for failures importing a single file."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(message)


class UnsupportedFormat(CsvImportError):
    """Raised when a file does not have the .csv extension."""

    def __init__(self, path: str):
        super().__init__(path, f"Cannot import {path}. Only '.csv' supported.")


class ReadError(CsvImportError):
    """Raised when a file vanished or cannot be read as UTF-8 text."""

    def __init__(self, path: str, reason: str):
        self.reason = reason
        super().__init__(path, f"Cannot read {path}: {reason}")


class ParseError(CsvImportError):
    """Raised for malformed CSV content. `row` is the 1-based line number."""

    def __init__(self, path: str, row: int, reason: str):
        self.row = row
        self.reason = reason
        super().__init__(path, f"Malformed CSV in {path} at line {row}: {reason}")
