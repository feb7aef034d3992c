"""Database schema initialization helpers."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from siteledger.db.base import Base
from siteledger.db.session import get_engine

# Import models so that SQLAlchemy is aware of all tables before create_all runs.
import siteledger.models  # noqa: F401  # pylint: disable=unused-import

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine | None = None) -> None:
    """Ensure all ledger tables exist; production schemas come from Alembic."""

    target = engine or get_engine()
    try:
        async with target.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError:
        logger.exception("Failed to initialise database schema")
        raise


__all__ = ["init_database"]
