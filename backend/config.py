"""
Paste service configuration.
Single source of truth for environment and app settings.
"""

import os
import re
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_SIZE_UNITS = {
    "": 1, "b": 1,
    "k": 1024, "kb": 1024,
    "m": 1024 ** 2, "mb": 1024 ** 2,
    "g": 1024 ** 3, "gb": 1024 ** 3,
}


def parse_size(value: str) -> int:
    """Parse '250mb', '10 KB', '1024' into bytes."""
    m = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*([kmg]?b?)\s*", value.lower())
    if not m:
        raise ValueError(f"Invalid size: {value!r}")
    return int(float(m.group(1)) * _SIZE_UNITS[m.group(2)])


def get_settings():
    """Return app settings (use as FastAPI Depends or call directly)."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    APP_TITLE: str = "Paste API"
    APP_VERSION: str = "1.0.0"
    ALLOWED_ORIGINS: list[str]
    LOG_LEVEL: str = "INFO"

    # Server
    PASTE_HOST: str = "127.0.0.1"
    PASTE_PORT: int = 3000

    # Storage: permanent records and upload staging
    PASTE_DATA_DIR: Path
    PASTE_TEMP_DIR: Path

    # Uploads larger than this are rejected (413)
    PASTE_MAX_FILE_SIZE: int = 250 * 1024 ** 2

    # Records are deleted by /cleanup after n days without an update
    PASTE_CLEANUP_DAYS: float = 3

    def __init__(self):
        origins = os.environ.get("ALLOWED_ORIGINS", "*")
        self.ALLOWED_ORIGINS = [o.strip() for o in origins.split(",") if o.strip()]
        self.LOG_LEVEL = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
        self.PASTE_HOST = (os.environ.get("PASTE_HOST") or "127.0.0.1").strip()
        self.PASTE_PORT = int(os.environ.get("PASTE_PORT") or 3000)
        self.PASTE_DATA_DIR = Path(os.environ.get("PASTE_DATA_DIR") or "data")
        temp_dir = (os.environ.get("PASTE_TEMP_DIR") or "").strip()
        self.PASTE_TEMP_DIR = Path(temp_dir) if temp_dir else self.PASTE_DATA_DIR / "tmp"
        self.PASTE_MAX_FILE_SIZE = parse_size(os.environ.get("PASTE_MAX_FILE_SIZE") or "250mb")
        self.PASTE_CLEANUP_DAYS = float(os.environ.get("PASTE_CLEANUP_DAYS") or 3)

    @property
    def cleanup_offset_ms(self) -> int:
        """Default /cleanup age in milliseconds."""
        return int(self.PASTE_CLEANUP_DAYS * 24 * 3600 * 1000)
