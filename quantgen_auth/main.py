"""FastAPI application wiring for the auth service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import AsyncConnectionPool

from .api.errors import install_exception_handlers
from .api.routes import router as auth_router
from .config import get_settings
from .domain.service import AuthService
from .repository import PostgresCredentialStore, build_credential_store

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the configured credential store for the app lifecycle and close it on shutdown."""
    pool: AsyncConnectionPool | None = None
    if settings.store_backend == "postgres":
        pool = AsyncConnectionPool(settings.database_url, open=False)
        await pool.open()
        app.state.pool = pool
    try:
        store = build_credential_store(settings, pool)
        if isinstance(store, PostgresCredentialStore):
            await store.ensure_schema()
        app.state.auth_service = AuthService(store)
        logger.info("%s %s ready", settings.app_name, settings.version)
        yield
    finally:
        if pool is not None:
            await pool.close()


def create_app(service: AuthService | None = None) -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routes.

    When ``service`` is given it is used as-is and no store resources are opened;
    otherwise the lifespan builds one from the configured credential store.
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan if service is None else None,
    )
    if service is not None:
        app.state.auth_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    install_exception_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", tags=["health"])
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(auth_router)
    return app


app = create_app()
