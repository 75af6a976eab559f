import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from dal.group_dal import GroupDAL, InMemoryGroupDAL
from dal.session_dal import InMemorySessionDAL, SessionDAL
from dal.sqlite_group_dal import SQLiteGroupDAL
from dal.sqlite_session_dal import SQLiteSessionDAL
from middleware.error_handler import register_error_handlers
from middleware.rate_limit import RateLimitMiddleware
from middleware.security_headers import SecurityHeadersMiddleware
from routes.group_route import router as group_router
from routes.whatsapp_route import router as whatsapp_router
from services.automation_client import AutomationClient, ClientFactory
from services.group_service import GroupService
from services.group_sync import GroupSynchronizer
from services.request_throttle import RequestThrottle
from services.session_manager import SessionManager
from utils.database_init import AsyncDatabaseInitializer
from utils.logging_setup import configure_logging
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)


def neonize_client_factory(settings: Settings) -> ClientFactory:
    """Build WhatsApp clients backed by neonize (installed with the `whatsapp` extra)."""

    def factory() -> AutomationClient:
        from services.neonize_client import NeonizeAutomationClient

        return NeonizeAutomationClient(settings.whatsapp_store_dir, settings.session_id)

    return factory


async def build_stores(settings: Settings) -> Tuple[SessionDAL, GroupDAL]:
    """Create the session and group stores for the configured backend."""
    if settings.storage_backend == "sqlite":
        db_initializer = AsyncDatabaseInitializer(settings.database_dir)
        await db_initializer.ensure_database()
        return SQLiteSessionDAL(db_initializer), SQLiteGroupDAL(db_initializer)
    return InMemorySessionDAL(), InMemoryGroupDAL()


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Optional[ClientFactory] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Configuration; read from the environment when omitted.
        client_factory: Builds WhatsApp automation clients; defaults to neonize.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    factory = client_factory or neonize_client_factory(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Compose the stores, session manager and group services, attach them
        to `app.state`, and tear the WhatsApp session down on shutdown.
        """
        session_dal, group_dal = await build_stores(settings)
        session_manager = SessionManager(session_dal, factory, session_id=settings.session_id)

        app.state.session_manager = session_manager
        app.state.group_synchronizer = GroupSynchronizer(session_manager, group_dal)
        app.state.group_service = GroupService(group_dal)
        app.state.started_at = time.monotonic()
        LOGGER.info("Service started with %s storage", settings.storage_backend)

        try:
            yield
        finally:
            await session_manager.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.throttle = RequestThrottle(
        limit=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    app.add_middleware(RateLimitMiddleware, throttle=app.state.throttle)
    # outside the throttle so 429 responses get the headers too
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.is_development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app, development=settings.is_development)

    @app.get("/api/health")
    async def health(request: Request):
        """
        Liveness check with uptime and version.
        """
        started_at = getattr(request.app.state, "started_at", None)
        uptime = time.monotonic() - started_at if started_at is not None else 0.0
        return {
            "success": True,
            "message": "Service is running",
            "data": {
                "uptime": uptime,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "version": settings.version,
            },
        }

    # Register application routers
    app.include_router(whatsapp_router)
    app.include_router(group_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
