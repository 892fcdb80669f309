"""Liveness plus the state of the data and staging directories."""

import os
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter

from api.deps import SettingsDep

router = APIRouter(tags=["health"])


def _dir_ok(path: Path) -> bool:
    return path.is_dir() and os.access(path, os.W_OK)


@router.get("/health")
async def health(settings: SettingsDep):
    data_ok = _dir_ok(settings.PASTE_DATA_DIR)
    staging_ok = _dir_ok(settings.PASTE_TEMP_DIR)
    return {
        "status": "ok" if data_ok and staging_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.APP_VERSION,
        "storage": {"data_dir": data_ok, "staging_dir": staging_ok},
    }
