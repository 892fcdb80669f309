"""Shared helpers for API routes (view models, listing order, upload staging)."""

import logging
import os
import tempfile
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import HTTPException, UploadFile

from repositories.paste_store import effective_timestamp
from schemas.records import Attachment

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
ATTACHMENT_FIELDS = ("filename", "mimetype", "filesize")


def view_model(
    page_id: str,
    mode: str,
    content: str = "",
    meta: Optional[dict] = None,
    message: Optional[str] = None,
) -> dict:
    """Model for the content editor: mode is new | edit | duplicate."""
    return {
        "id": page_id,
        "mode": mode,
        "content": content,
        "meta": meta,
        "message": message,
    }


def without_attachment(meta: Optional[dict]) -> Optional[dict]:
    if meta is None:
        return None
    return {k: v for k, v in meta.items() if k not in ATTACHMENT_FIELDS}


def sort_newest_first(pages: list[dict]) -> list[dict]:
    """Add date = updated or created and sort descending; undated pages go last."""
    for page in pages:
        page["date"] = page.get("updated") or page.get("created")

    def key(page: dict):
        try:
            ts = effective_timestamp(page)
        except ValueError:
            ts = None
        return (ts is not None, ts.timestamp() if ts else 0.0)

    return sorted(pages, key=key, reverse=True)


async def upload_chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


async def stage_stream(
    chunks: AsyncIterator[bytes],
    temp_dir: Path,
    max_size: int,
    filename: Optional[str],
    mimetype: Optional[str],
) -> Attachment:
    """
    Write an incoming payload to a staging file and describe it.
    Over max_size: the staging file is removed and 413 raised.
    """
    fd, tmp = tempfile.mkstemp(dir=temp_dir, prefix="upload-")
    size = 0
    try:
        with os.fdopen(fd, "wb") as out:
            async for chunk in chunks:
                size += len(chunk)
                if size > max_size:
                    raise HTTPException(413, f"File too large. Maximum {max_size} bytes.")
                out.write(chunk)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    logger.debug("Staged upload %s (%d bytes) at %s", filename, size, tmp)
    return Attachment(
        filename=filename,
        mimetype=mimetype or "application/octet-stream",
        size=size,
        path=Path(tmp),
    )


def discard_staged(attachment: Optional[Attachment]) -> None:
    """Remove a staged payload that was never moved into the store."""
    if attachment and attachment.path:
        Path(attachment.path).unlink(missing_ok=True)
