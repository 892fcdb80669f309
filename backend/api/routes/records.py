"""View, raw content, duplicate, download, save (PUT/POST), delete for one record."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from api.deps import PageId, SettingsDep, StoreDep
from api.helpers import (
    discard_staged,
    stage_stream,
    upload_chunks,
    view_model,
    without_attachment,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["records"])


@router.get("/{page_id}")
async def view_page(page_id: PageId, store: StoreDep, message: Optional[str] = None):
    """Editor model for an existing id (or an empty one if nothing is stored yet)."""
    page = await run_in_threadpool(store.load_page, page_id)
    return JSONResponse(view_model(page_id, "edit", page.content or "", page.meta, message))


@router.get("/{page_id}/content")
async def page_content(page_id: PageId, store: StoreDep):
    """Plain text body, no markup."""
    page = await run_in_threadpool(store.load_page, page_id)
    headers = {}
    if page.meta and page.meta.get("created"):
        headers["X-Content-Created"] = str(page.meta["created"])
    return PlainTextResponse(page.content or "", headers=headers)


@router.get("/{page_id}/duplicate")
async def duplicate_page(page_id: PageId, store: StoreDep, message: Optional[str] = None):
    """Text only, under a new id. Nothing is stored until the copy is saved."""
    page = await run_in_threadpool(store.load_page, page_id)
    return JSONResponse(view_model(
        store.new_id(),
        "duplicate",
        page.content or "",
        without_attachment(page.meta),
        message or "Duplicate",
    ))


@router.get("/{page_id}/download")
async def download_file(page_id: PageId, store: StoreDep):
    page = await run_in_threadpool(store.load_page, page_id)
    path = store.file_path(page_id)
    if not path.is_file():
        raise HTTPException(404, "404 Not Found")
    meta = page.meta or {}
    return FileResponse(
        path,
        media_type=meta.get("mimetype") or "application/octet-stream",
        filename=meta.get("filename") or page_id,
    )


@router.put("/{page_id}")
async def upload_file(page_id: PageId, request: Request, store: StoreDep, settings: SettingsDep):
    """Raw body becomes the attachment (curl -T). Stored text is kept."""
    attachment = await stage_stream(
        request.stream(),
        settings.PASTE_TEMP_DIR,
        settings.PASTE_MAX_FILE_SIZE,
        filename=request.headers.get("x-filename") or page_id,
        mimetype=request.headers.get("content-type"),
    )
    try:
        await run_in_threadpool(
            store.save_page, page_id, None, attachment, keep_content=True
        )
    finally:
        discard_staged(attachment)
    return PlainTextResponse("OK")


@router.post("/{page_id}")
async def post_page(page_id: PageId, request: Request, store: StoreDep, settings: SettingsDep):
    """
    multipart/form-data (HTML form): the pressed button decides, save or delete.
    Anything else (curl --data): the raw body is saved as the text.
    """
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("multipart/form-data"):
        body = await request.body()
        if len(body) > settings.PASTE_MAX_FILE_SIZE:
            raise HTTPException(413, "Content too large.")
        await run_in_threadpool(store.save_page, page_id, body.decode("utf-8", errors="replace"))
        return PlainTextResponse("OK")

    async with request.form(max_part_size=settings.PASTE_MAX_FILE_SIZE) as form:
        if "save" in form:
            attachment = None
            upload = form.get("file")
            if isinstance(upload, UploadFile) and upload.filename:
                attachment = await stage_stream(
                    upload_chunks(upload),
                    settings.PASTE_TEMP_DIR,
                    settings.PASTE_MAX_FILE_SIZE,
                    filename=upload.filename,
                    mimetype=upload.content_type,
                )
            content = form.get("content")
            try:
                await run_in_threadpool(
                    store.save_page,
                    page_id,
                    content if isinstance(content, str) else "",
                    attachment,
                )
            finally:
                discard_staged(attachment)
            return RedirectResponse(f"/{page_id}", status_code=302)

        if "delete" in form:
            await run_in_threadpool(store.delete_page, page_id)
            return RedirectResponse("/?message=Deleted", status_code=302)

    raise HTTPException(400, "Unknown action")


@router.delete("/{page_id}")
async def delete_page(page_id: PageId, store: StoreDep):
    await run_in_threadpool(store.delete_page, page_id)
    return PlainTextResponse("OK")
