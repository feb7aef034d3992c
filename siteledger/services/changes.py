"""In-process change notifications for the ledger tables.

Subscribers only learn that *something* changed in a table they watch; they
are expected to refetch. Events reach the broker from two places: the
SQLAlchemy session hooks installed by :func:`install_change_hooks` (writes
made through this process) and :class:`~siteledger.services.pg_listener.PostgresChangeListener`
(writes made by anyone else against the same database).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Iterable, Literal
from uuid import UUID

from sqlalchemy import event
from sqlalchemy.orm import Session

from siteledger.models import Project, Transaction

logger = logging.getLogger(__name__)

LEDGER_TABLES = frozenset({"projects", "transactions"})
ChangeAction = Literal["insert", "update", "delete"]

_PENDING_KEY = "siteledger.pending_changes"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: ChangeAction
    project_id: UUID | None = None


@dataclass(frozen=True)
class ChangeScope:
    """Which events a subscriber cares about.

    ``project_id`` narrows the scope the way a foreign-key filter does. A
    project delete also matches ``transactions`` scopes for that project
    because the database cascade removes its rows without row-level events.
    """

    tables: frozenset[str] = LEDGER_TABLES
    project_id: UUID | None = None

    @classmethod
    def for_tables(cls, *tables: str, project_id: UUID | None = None) -> "ChangeScope":
        unknown = set(tables) - LEDGER_TABLES
        if unknown:
            raise ValueError(f"Unknown tables: {', '.join(sorted(unknown))}")
        return cls(tables=frozenset(tables or LEDGER_TABLES), project_id=project_id)

    def matches(self, change: ChangeEvent) -> bool:
        if self.project_id is not None and change.project_id not in (None, self.project_id):
            return False
        if change.table in self.tables:
            return True
        return (
            change.table == "projects"
            and change.action == "delete"
            and "transactions" in self.tables
        )


class Subscription:
    """Handle returned by :meth:`ChangeBroker.subscribe`; cancel it to stop delivery."""

    def __init__(self, broker: "ChangeBroker", scope: ChangeScope, callback: Callable[[], Any]) -> None:
        self._broker = broker
        self.scope = scope
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._broker._discard(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class ChangeBroker:
    """Fan out change events to every matching subscription."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, scope: ChangeScope, callback: Callable[[], Any]) -> Subscription:
        subscription = Subscription(self, scope, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _discard(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, change: ChangeEvent) -> int:
        """Invoke matching callbacks; return how many were notified."""

        with self._lock:
            targets = [sub for sub in self._subscriptions if sub.active and sub.scope.matches(change)]
        for subscription in targets:
            try:
                subscription.callback()
            except Exception:
                logger.exception("Change subscriber failed for %s %s", change.action, change.table)
        return len(targets)

    def publish_many(self, changes: Iterable[ChangeEvent]) -> None:
        for change in changes:
            self.publish(change)


@lru_cache(maxsize=1)
def get_change_broker() -> ChangeBroker:
    """Return the process-wide broker."""

    return ChangeBroker()


def _describe(instance: object, action: ChangeAction) -> ChangeEvent | None:
    if isinstance(instance, Project):
        return ChangeEvent(table="projects", action=action, project_id=instance.id)
    if isinstance(instance, Transaction):
        return ChangeEvent(table="transactions", action=action, project_id=instance.project_id)
    return None


class ChangeHooks:
    """SQLAlchemy session listeners that publish ledger changes after commit.

    Changes are gathered per session at flush time and delivered only once the
    surrounding transaction commits; a rollback drops them.
    """

    def __init__(self, broker: ChangeBroker) -> None:
        self.broker = broker
        self._installed = False

    def install(self) -> "ChangeHooks":
        if not self._installed:
            event.listen(Session, "after_flush", self._after_flush)
            event.listen(Session, "after_commit", self._after_commit)
            event.listen(Session, "after_rollback", self._after_rollback)
            self._installed = True
        return self

    def remove(self) -> None:
        if self._installed:
            event.remove(Session, "after_flush", self._after_flush)
            event.remove(Session, "after_commit", self._after_commit)
            event.remove(Session, "after_rollback", self._after_rollback)
            self._installed = False

    def _after_flush(self, session: Session, flush_context: Any) -> None:
        pending: list[ChangeEvent] = session.info.setdefault(_PENDING_KEY, [])
        for action, instances in (
            ("insert", session.new),
            ("update", session.dirty),
            ("delete", session.deleted),
        ):
            for instance in instances:
                if action == "update" and not session.is_modified(instance):
                    continue
                change = _describe(instance, action)  # type: ignore[arg-type]
                if change is not None:
                    pending.append(change)

    def _after_commit(self, session: Session) -> None:
        pending = session.info.pop(_PENDING_KEY, [])
        if pending:
            logger.debug("Publishing %d ledger change(s)", len(pending))
            self.broker.publish_many(pending)

    def _after_rollback(self, session: Session) -> None:
        session.info.pop(_PENDING_KEY, None)


def install_change_hooks(broker: ChangeBroker | None = None) -> ChangeHooks:
    return ChangeHooks(broker or get_change_broker()).install()


__all__ = [
    "ChangeAction",
    "ChangeBroker",
    "ChangeEvent",
    "ChangeHooks",
    "ChangeScope",
    "LEDGER_TABLES",
    "Subscription",
    "get_change_broker",
    "install_change_hooks",
]
