"""
Paste record store.
A record is up to three artifacts under one id, each read/written/deleted on its own:
  {id}.txt   — text body (UTF-8, may be empty)
  {id}.json  — metadata: created, updated, filename, mimetype, filesize
  {id}.file  — uploaded binary payload
Operations on one id are serialized; list/cleanup scan without locking.
"""

import json
import logging
import re
import secrets
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from schemas.records import Attachment, Page

from .base import StoragePort
from .errors import InvalidIdentifierError, StorageCorruptionError, StorageIOError
from .keyed_lock import KeyedLock
from .local_storage import LocalStorage

logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r"[A-Za-z0-9-]+")
ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 9

TEXT_SUFFIX = ".txt"
META_SUFFIX = ".json"
FILE_SUFFIX = ".file"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp. Naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def effective_timestamp(meta: dict) -> Optional[datetime]:
    """updated if present, else created, else None (never expires)."""
    return parse_timestamp(meta.get("updated") or meta.get("created"))


class PasteStore:
    """Persists, loads, lists and expires paste records on a StoragePort."""

    def __init__(self, storage: StoragePort, clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.clock = clock
        self._locks = KeyedLock()

    @classmethod
    def local(cls, data_dir: Path, **kwargs) -> "PasteStore":
        return cls(LocalStorage(data_dir), **kwargs)

    # Ids
    @staticmethod
    def new_id() -> str:
        """Random 9-char [a-z0-9] token. Not checked against existing records."""
        return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))

    @staticmethod
    def is_valid_id(page_id: str) -> bool:
        return bool(page_id) and ID_PATTERN.fullmatch(page_id) is not None

    def _check_id(self, page_id: str, operation: str) -> None:
        if not self.is_valid_id(page_id):
            raise InvalidIdentifierError(page_id, operation)

    # Artifact locations
    def file_path(self, page_id: str) -> Path:
        self._check_id(page_id, "file_path")
        return self.storage.path(page_id + FILE_SUFFIX)

    def _io(self, page_id: str, operation: str, fn, *args):
        try:
            return fn(*args)
        except OSError as e:
            logger.error("%s failed for '%s': %s", operation, page_id, e, exc_info=True)
            raise StorageIOError(page_id, operation) from e

    def _read_meta(self, page_id: str, operation: str) -> Optional[dict]:
        raw = self._io(page_id, operation, self.storage.read, page_id + META_SUFFIX)
        if raw is None:
            return None
        try:
            meta = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageCorruptionError(page_id, operation) from e
        if not isinstance(meta, dict):
            raise StorageCorruptionError(page_id, operation)
        return meta

    def _delete_artifacts(self, page_id: str, operation: str) -> None:
        for suffix in (TEXT_SUFFIX, META_SUFFIX, FILE_SUFFIX):
            self._io(page_id, operation, self.storage.delete, page_id + suffix)

    # Records
    def load_page(self, page_id: str) -> Page:
        """Read whatever artifacts exist. Returns an empty shell if none do."""
        self._check_id(page_id, "load")
        with self._locks.hold(page_id):
            meta = self._read_meta(page_id, "load")
            raw = self._io(page_id, "load", self.storage.read, page_id + TEXT_SUFFIX)
        content = raw.decode("utf-8", errors="replace") if raw is not None else None
        return Page(id=page_id, content=content, meta=meta)

    def save_page(
        self,
        page_id: str,
        content: Optional[str],
        attachment: Optional[Attachment] = None,
        keep_content: bool = False,
    ) -> dict:
        """
        Save text and an optional attachment, merging into existing metadata.
        The staged attachment payload is moved first; if that fails nothing else is written.
        A named attachment replaces filename/mimetype/filesize as a whole; without one
        the stored attachment is kept. created is set once, later saves set updated.
        keep_content: ignore content and rewrite the stored text, read under the same lock.
        """
        self._check_id(page_id, "save")
        with self._locks.hold(page_id):
            meta = self._read_meta(page_id, "save") or {}

            if attachment and attachment.path:
                self._io(
                    page_id, "save", self.storage.move_in,
                    Path(attachment.path), page_id + FILE_SUFFIX,
                )

            if attachment and attachment.filename:
                meta["filename"] = attachment.filename
                meta["mimetype"] = attachment.mimetype
                meta["filesize"] = attachment.size

            now = self.clock().isoformat()
            if not meta.get("created"):
                meta["created"] = now
            else:
                meta["updated"] = now

            if keep_content:
                text = self._io(
                    page_id, "save", self.storage.read, page_id + TEXT_SUFFIX
                ) or b""
            else:
                text = (content or "").encode("utf-8")

            data = json.dumps(meta, ensure_ascii=False, indent=2).encode("utf-8")
            self._io(page_id, "save", self.storage.write, page_id + META_SUFFIX, data)
            self._io(page_id, "save", self.storage.write, page_id + TEXT_SUFFIX, text)
        logger.info(
            "save_page: id=%s bytes=%d attachment=%s",
            page_id, len(text), meta.get("filename"),
        )
        return dict(meta)

    def delete_page(self, page_id: str) -> None:
        """Delete text, metadata and uploaded file. Missing artifacts are fine."""
        self._check_id(page_id, "delete")
        with self._locks.hold(page_id):
            self._delete_artifacts(page_id, "delete")
        logger.info("delete_page: id=%s", page_id)

    def list_pages(self) -> list[dict]:
        """Every id with a text artifact, merged with its metadata (no content)."""
        keys = self._io("*", "list", self.storage.keys)
        ids = [k[: -len(TEXT_SUFFIX)] for k in keys if k.endswith(TEXT_SUFFIX)]
        pages = []
        for page_id in ids:
            if not self.is_valid_id(page_id):
                continue
            meta = self._read_meta(page_id, "list")
            # Deleted after the scan
            if meta is None and not self._io(
                page_id, "list", self.storage.exists, page_id + TEXT_SUFFIX
            ):
                continue
            item = {"id": page_id}
            item.update(meta or {})
            pages.append(item)
        return pages

    def _is_expired(self, page_id: str, meta: dict, threshold: datetime) -> bool:
        try:
            ts = effective_timestamp(meta)
        except ValueError:
            logger.warning("cleanup: unreadable timestamp on '%s', skipping", page_id)
            return False
        return ts is not None and ts < threshold

    def cleanup(self, threshold: datetime) -> list[str]:
        """
        Delete records whose updated (else created) time is strictly before threshold.
        Records with no timestamp never expire. Each candidate is re-checked under its
        lock, so one saved again mid-sweep survives. Returns the deleted ids.
        """
        threshold = parse_timestamp(threshold)
        pages = self.list_pages()
        candidates = [p["id"] for p in pages if self._is_expired(p["id"], p, threshold)]

        deleted = []
        for page_id in candidates:
            with self._locks.hold(page_id):
                meta = self._read_meta(page_id, "cleanup")
                if meta is None or not self._is_expired(page_id, meta, threshold):
                    continue
                self._delete_artifacts(page_id, "cleanup")
            deleted.append(page_id)

        logger.info(
            "cleanup: threshold=%s scanned=%d deleted=%d",
            threshold.isoformat(), len(pages), len(deleted),
        )
        return deleted
