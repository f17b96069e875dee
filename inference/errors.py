"""
Dataset-layer exceptions for parsing and analysis flows.
"""

from __future__ import annotations

GENERIC_FORMAT_MESSAGE = "Error parsing file. Please check format."


class DatasetError(Exception):
    """Base exception for dataset loading and analysis failures."""


class EmptyDatasetError(DatasetError):
    """Raised when a dataset has no rows to analyze."""

    def __init__(self, message: str = "Empty dataset") -> None:
        super().__init__(message)


class DatasetFormatError(DatasetError):
    """Raised at the file-load boundary when a file cannot become a dataset.

    The message is always the generic, user-facing format hint; the
    underlying failure is chained as ``__cause__``.
    """

    def __init__(self, filename: str, message: str = GENERIC_FORMAT_MESSAGE) -> None:
        self.filename = filename
        super().__init__(message)


class UploadTooLargeError(DatasetError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Upload of {size} bytes exceeds the {limit} byte limit.")
