"""API route modules. records_router must be included last: it matches /{page_id}."""

from .health import router as health_router
from .pages import router as pages_router
from .records import router as records_router

__all__ = [
    "health_router",
    "pages_router",
    "records_router",
]
