"""Record types exchanged between the store and the API layer."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Attachment:
    """
    Uploaded file descriptor.
    path: staged payload to move into place (None when the payload is already stored).
    filename: original name; when set, replaces the stored filename/mimetype/filesize.
    """
    filename: Optional[str] = None
    mimetype: str = "application/octet-stream"
    size: int = 0
    path: Optional[Path] = None


@dataclass
class Page:
    id: str
    content: Optional[str] = None
    meta: Optional[dict] = None

    @property
    def exists(self) -> bool:
        return self.content is not None or self.meta is not None
