"""Record types shared by the store and the API."""

from .records import Attachment, Page

__all__ = [
    "Attachment",
    "Page",
]
