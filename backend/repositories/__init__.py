"""Persistence layer: storage port, implementations and the paste record store."""

from .base import StoragePort
from .errors import (
    InvalidIdentifierError,
    StorageCorruptionError,
    StorageIOError,
    StoreError,
)
from .keyed_lock import KeyedLock
from .local_storage import LocalStorage
from .memory_storage import MemoryStorage
from .paste_store import PasteStore

__all__ = [
    "StoragePort",
    "StoreError",
    "InvalidIdentifierError",
    "StorageCorruptionError",
    "StorageIOError",
    "KeyedLock",
    "LocalStorage",
    "MemoryStorage",
    "PasteStore",
]
