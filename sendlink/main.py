# sendlink/main.py

import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from sendlink.config import Settings, get_settings
from sendlink.db.base import create_engine, create_session_factory, create_tables
from sendlink.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from sendlink.observability.logger import configure_logging
from sendlink.repositories.board_repository import BoardRepository
from sendlink.repositories.share_link_repository import ShareLinkRepository
from sendlink.routers.boards import router as boards_router
from sendlink.routers.health import router as health_router
from sendlink.routers.media import router as media_router
from sendlink.routers.share import router as share_router
from sendlink.services.media_service import MediaService
from sendlink.storage.blob import LocalBlobStore
from sendlink.storage.kv import create_kv_store
from sendlink.utils.boards import Clock, utcnow
from sendlink.utils.logger import log_info


def create_app(settings: Optional[Settings] = None, clock: Clock = utcnow) -> FastAPI:
    """Build the API. Stores are opened in the lifespan and kept on app.state."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine(settings.DB_URL, echo=settings.DEBUG)
        if settings.AUTO_CREATE_TABLES:
            await create_tables(engine)
        if settings.OTEL_ENABLED:
            from sendlink.utils.telemetry import instrument_engine
            instrument_engine(engine)

        kv = create_kv_store(settings.KV_BACKEND, settings.REDIS_URL, clock=clock)
        boards = BoardRepository(kv, clock=clock)
        blobs = LocalBlobStore(settings.MEDIA_ROOT, settings.MEDIA_URL_PREFIX)

        app.state.engine = engine
        app.state.kv = kv
        app.state.boards = boards
        app.state.share_links = ShareLinkRepository(create_session_factory(engine), clock=clock)
        app.state.media = MediaService(boards, blobs, clock=clock)
        log_info(f"sendlink started (kv={settings.KV_BACKEND})")
        try:
            yield
        finally:
            log_info("Starting graceful shutdown...")
            await kv.close()
            await engine.dispose()
            log_info("Shutdown complete.")

    app = FastAPI(
        title="sendlink API",
        description="Ephemeral boards with text, media and share links",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Error handler should be outermost to catch all errors
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.DEBUG)

    # Register exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)  # Health checks at root level
    app.include_router(boards_router, prefix="/api")
    app.include_router(media_router, prefix="/api")
    app.include_router(share_router, prefix="/api")

    # Uploaded files are served straight from the blob directory
    os.makedirs(settings.MEDIA_ROOT, exist_ok=True)
    app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_ROOT), name="media")

    if settings.OTEL_ENABLED:
        from sendlink.utils.telemetry import init_otel
        init_otel(app=app)

    return app


def main() -> None:
    """Console entry point: configure logging and serve the API."""
    settings = get_settings()
    configure_logging(settings)
    log_info(f"Server starting at http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        "sendlink.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
