"""
FastAPI application factory.

``create_app()`` wires routers, error handlers and lifespan hooks into a
single ``FastAPI`` instance; the rest of the codebase never touches
``FastAPI`` directly.

Tags:
    linkspine, api, app-factory, FastAPI
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from linkspine import __version__
from linkspine.api.middleware.errors import unhandled_exception_handler
from linkspine.core.logging import get_logger
from linkspine.core.settings import LinkSpineSettings, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the schema and register the default link kind on startup."""
    from linkspine.domain.catalog.models import get_link_kind
    from linkspine.ops.sqlite_conn import SqliteConnection
    from linkspine.store.schema import init_store

    log = get_logger("linkspine.api")
    settings: LinkSpineSettings = app.state.settings
    log.info("api_starting", version=app.version, database=settings.resolved_database_path)

    conn = SqliteConnection(settings.resolved_database_path)
    try:
        init_store(conn, (get_link_kind(settings.default_link_kind),))
    finally:
        conn.close()

    yield
    log.info("api_stopping")


def create_app(*, settings: LinkSpineSettings | None = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    settings : LinkSpineSettings | None
        Override settings (tests). Defaults to the cached singleton.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_exception_handler(Exception, unhandled_exception_handler)

    from linkspine.api.routers import health, links

    prefix = settings.api_prefix
    app.include_router(health.router, prefix=prefix, tags=["health"])
    app.include_router(links.router, prefix=prefix, tags=["links"])

    return app
