"""Entrypoint for the SiteLedger FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteledger import __version__
from siteledger.api.errors import register_error_handlers
from siteledger.api.routes import api_router
from siteledger.config import get_settings
from siteledger.core.logging import setup_logging
from siteledger.core.telemetry import setup_telemetry
from siteledger.db.init import init_database
from siteledger.db.session import get_engine
from siteledger.services.changes import ChangeBroker, get_change_broker, install_change_hooks
from siteledger.services.pg_listener import PostgresChangeListener

logger = logging.getLogger("siteledger")


@asynccontextmanager
async def _lifespan(app: FastAPI, create_schema: bool) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("SiteLedger configuration", extra=settings.dict_for_logging())

    if create_schema:
        factory = app.state.session_factory
        await init_database(factory.kw.get("bind") if factory is not None else None)

    broker: ChangeBroker = app.state.change_broker
    listener: PostgresChangeListener | None = None
    hooks = None
    if settings.change_feed_enabled:
        # Database triggers already cover writes made by this process.
        listener = PostgresChangeListener(settings.database_url, broker, settings.change_feed_channel)
        await listener.start()
    else:
        hooks = install_change_hooks(broker)
    try:
        yield
    finally:
        if listener is not None:
            await listener.stop()
        if hooks is not None:
            hooks.remove()


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    broker: ChangeBroker | None = None,
    *,
    create_schema: bool = False,
) -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lambda app: _lifespan(app, create_schema),
    )
    app.state.session_factory = session_factory
    app.state.change_broker = broker or get_change_broker()

    register_error_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    if settings.telemetry_enabled:
        setup_telemetry(app, settings, None if session_factory else get_engine())

    return app


app = create_app()


__all__ = ["app", "create_app"]
