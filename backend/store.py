"""
Paste persistence entry point.
Builds the process-wide PasteStore from settings. Structure on disk:
  data/
    {id}.txt   — pasted text
    {id}.json  — metadata (created, updated, attachment descriptor)
    {id}.file  — uploaded file
    tmp/       — upload staging (PASTE_TEMP_DIR)
"""

import logging
import os
import threading
from typing import Optional

from config import Settings, get_settings
from repositories import PasteStore

logger = logging.getLogger(__name__)

_store: Optional[PasteStore] = None
_lock = threading.Lock()


class DataDirError(RuntimeError):
    """Data directory missing or not writable. Fatal at startup."""


def check_data_dir(settings: Optional[Settings] = None) -> None:
    """Data dir must already exist and be writable; the staging dir is created."""
    settings = settings or get_settings()
    data_dir = settings.PASTE_DATA_DIR
    if not data_dir.is_dir():
        raise DataDirError(f"Data directory does not exist: {data_dir}")
    if not os.access(data_dir, os.W_OK):
        raise DataDirError(f"Data directory is not writable: {data_dir}")
    settings.PASTE_TEMP_DIR.mkdir(parents=True, exist_ok=True)
    logger.info("Data directory: %s (staging: %s)", data_dir, settings.PASTE_TEMP_DIR)


def get_store() -> PasteStore:
    """Return the shared store (lazy). Use in Depends()."""
    global _store
    with _lock:
        if _store is None:
            _store = PasteStore.local(get_settings().PASTE_DATA_DIR)
        return _store


def reset_store() -> None:
    """Drop the shared store so the next get_store() re-reads settings."""
    global _store
    with _lock:
        _store = None
