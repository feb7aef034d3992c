"""Bridge PostgreSQL ``LISTEN/NOTIFY`` into the change broker."""

from __future__ import annotations

import json
import logging
from typing import Any
from uuid import UUID

import asyncpg
from sqlalchemy.engine import make_url

from siteledger.core.errors import TransientIOError
from siteledger.services.changes import LEDGER_TABLES, ChangeBroker, ChangeEvent

logger = logging.getLogger(__name__)

_ACTIONS = {"insert", "update", "delete"}


def parse_notification(payload: str) -> ChangeEvent | None:
    """Decode a ``notify_ledger_change`` payload; ``None`` for anything unrecognised."""

    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed change notification: %r", payload)
        return None
    if not isinstance(data, dict):
        return None
    table = str(data.get("table", "")).lower()
    action = str(data.get("action", "")).lower()
    if table not in LEDGER_TABLES or action not in _ACTIONS:
        return None
    project_id: UUID | None = None
    if data.get("project_id"):
        try:
            project_id = UUID(str(data["project_id"]))
        except ValueError:
            project_id = None
    return ChangeEvent(table=table, action=action, project_id=project_id)  # type: ignore[arg-type]


def _asyncpg_dsn(database_url: str) -> str:
    url = make_url(database_url)
    return url.set(drivername="postgresql").render_as_string(hide_password=False)


class PostgresChangeListener:
    """Hold a dedicated connection that listens on the change channel."""

    def __init__(self, database_url: str, broker: ChangeBroker, channel: str) -> None:
        self._dsn = _asyncpg_dsn(database_url)
        self._broker = broker
        self._channel = channel
        self._connection: Any = None

    @property
    def running(self) -> bool:
        return self._connection is not None

    async def start(self) -> None:
        if self._connection is not None:
            return
        try:
            self._connection = await asyncpg.connect(self._dsn)
            await self._connection.add_listener(self._channel, self._on_notify)
            self._connection.add_termination_listener(self._on_terminate)
        except (OSError, asyncpg.PostgresError) as exc:
            self._connection = None
            raise TransientIOError(f"Unable to listen for ledger changes: {exc}") from exc
        logger.info("Listening for ledger changes on channel %s", self._channel)

    async def stop(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None or connection.is_closed():
            return
        connection.remove_termination_listener(self._on_terminate)
        try:
            await connection.remove_listener(self._channel, self._on_notify)
        finally:
            await connection.close()

    def _on_terminate(self, connection: Any) -> None:
        if connection is self._connection:
            self._connection = None
            logger.warning("Lost the change feed connection on channel %s; subscribers will go stale", self._channel)

    def _on_notify(self, connection: Any, pid: int, channel: str, payload: str) -> None:
        change = parse_notification(payload)
        if change is not None:
            self._broker.publish(change)


__all__ = ["PostgresChangeListener", "parse_notification"]
