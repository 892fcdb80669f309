"""FastAPI dependencies and require-helpers for routes."""

from typing import Annotated

from fastapi import Depends, HTTPException

import store
from config import Settings, get_settings
from repositories import PasteStore


def get_store() -> PasteStore:
    """Return the persistence store. Use in Depends()."""
    return store.get_store()


def require_page_id(page_id: str) -> str:
    """Path id must match [A-Za-z0-9-]+ or the route does not exist."""
    if not PasteStore.is_valid_id(page_id):
        raise HTTPException(404, "Not Found")
    return page_id


StoreDep = Annotated[PasteStore, Depends(get_store)]
PageId = Annotated[str, Depends(require_page_id)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
