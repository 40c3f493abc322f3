import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request

from dal.lore_record_dal import LoreRecordDAL
from routes.capture_route import router as capture_router
from routes.record_route import router as record_router
from services.capture_coordinator import CaptureCoordinator
from services.image_codec import JpegEncoder
from services.lore.client import LoreClient
from services.preview_data import seed_preview_records
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import Settings, load_settings

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Explicit settings; read from the environment when omitted.
        transport: Optional httpx transport for the lore service client.
    """
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the SQLite record store (kept across restarts, at <DATABASE_DIR>/lore.db)
          - the async HTTP client used to reach the lore service
        and attach them to `app.state`.
        """
        db_initializer = AsyncDatabaseInitializer(settings.database_dir)
        await db_initializer.ensure_database()
        record_dal = LoreRecordDAL(db_initializer)
        if settings.seed_preview:
            await seed_preview_records(record_dal)

        if settings.allow_offline_fallback:
            LOGGER.warning("Running in %r: offline lore fallback is enabled", settings.environment)

        http_client = httpx.AsyncClient(timeout=settings.request_timeout, transport=transport)
        lore_client = LoreClient(
            settings.lore_service_url,
            http_client,
            allow_offline_fallback=settings.allow_offline_fallback,
        )

        app.state.settings = settings
        app.state.db_initializer = db_initializer
        app.state.record_dal = record_dal
        app.state.http_client = http_client
        app.state.capture_coordinator = CaptureCoordinator(
            lore_client,
            record_dal,
            JpegEncoder(quality=settings.jpeg_quality),
        )

        try:
            yield
        finally:
            await http_client.aclose()

    app = FastAPI(title="Lore Generator", lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports DB readiness and the configured lore service.
        """
        db_initializer = getattr(request.app.state, "db_initializer", None)
        return {
            "ok": True,
            "db_initialized": bool(db_initializer and db_initializer.initialized),
            "lore_service_url": settings.lore_service_url,
        }

    # Register application routers
    app.include_router(capture_router)
    app.include_router(record_router)

    return app


app = create_app()
