"""
Paste Backend API
Text and file sharing: view, edit, download, list and expire records by short id.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.error_handlers import register_error_handlers
from api.routes import health_router, pages_router, records_router
from config import get_settings
from store import DataDirError, check_data_dir

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Data directory needs to be created with write permissions
    try:
        check_data_dir(get_settings())
    except DataDirError as e:
        data_dir = get_settings().PASTE_DATA_DIR
        logger.error("%s", e)
        logger.error("Hint: mkdir %s && chmod +w %s", data_dir, data_dir)
        raise SystemExit(1) from e
    yield


def create_app() -> FastAPI:
    # /docs is a reserved route, so the generated docs are off
    app = FastAPI(
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(pages_router)
    app.include_router(records_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("HTTP listening at http://%s:%s", settings.PASTE_HOST, settings.PASTE_PORT)
    uvicorn.run("main:app", host=settings.PASTE_HOST, port=settings.PASTE_PORT)
