"""Index, listing, cleanup sweep, reserved routes."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from api.deps import SettingsDep, StoreDep
from api.helpers import sort_newest_first, view_model

logger = logging.getLogger(__name__)
router = APIRouter(tags=["pages"])

RESERVED = ("api", "admin", "status", "help", "docs")


@router.get("/")
async def index(store: StoreDep, message: Optional[str] = None):
    """Editor model for a fresh, not yet stored id."""
    return JSONResponse(view_model(store.new_id(), "new", message=message))


@router.get("/list")
async def list_pages(store: StoreDep):
    pages = await run_in_threadpool(store.list_pages)
    return JSONResponse({"pages": sort_newest_first(pages)})


@router.get("/cleanup")
async def cleanup(
    store: StoreDep,
    settings: SettingsDep,
    ms: Optional[int] = Query(None, ge=0, description="Age in milliseconds; default PASTE_CLEANUP_DAYS"),
):
    """Delete records not updated within the given age."""
    offset = ms if ms is not None else settings.cleanup_offset_ms
    threshold = datetime.now(timezone.utc) - timedelta(milliseconds=offset)
    deleted = await run_in_threadpool(store.cleanup, threshold)
    logger.info("cleanup: %d record(s) older than %s removed", len(deleted), threshold.isoformat())
    return PlainTextResponse("OK")


async def _not_implemented():
    return PlainTextResponse("Not implemented", status_code=501)


for _name in RESERVED:
    router.add_api_route(
        f"/{_name}", _not_implemented, methods=["GET", "POST"], include_in_schema=False
    )
