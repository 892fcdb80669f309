"""Errors raised by the record store. Each carries the page id and the operation."""

from typing import Optional


class StoreError(Exception):
    """Base for store failures with a machine-readable code."""
    code = "store_error"

    def __init__(self, page_id: str, operation: str, message: Optional[str] = None):
        self.page_id = page_id
        self.operation = operation
        self.message = message or f"{self.code}: {operation} '{page_id}'"
        super().__init__(self.message)


class InvalidIdentifierError(StoreError, ValueError):
    code = "invalid_id"


class StorageCorruptionError(StoreError):
    """Metadata artifact exists but is not a JSON object."""
    code = "storage_corrupt"


class StorageIOError(StoreError, OSError):
    """Filesystem failure while reading, writing, moving or deleting an artifact."""
    code = "storage_io"
