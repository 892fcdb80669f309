"""Global exception handlers: store errors become JSON with code, message and id."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from repositories import InvalidIdentifierError, StoreError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register store error handlers on the FastAPI app."""

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        status = 400 if isinstance(exc, InvalidIdentifierError) else 500
        logger.error(
            "%s on %s %s (id=%s)",
            exc.code, request.method, request.url.path, exc.page_id,
        )
        return JSONResponse(
            status_code=status,
            content={"code": exc.code, "message": exc.message, "id": exc.page_id},
        )
