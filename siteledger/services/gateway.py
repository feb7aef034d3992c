"""Owner-scoped data access for projects and transactions."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, Callable, TypeVar
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteledger.config import get_settings
from siteledger.core.errors import (
    LedgerError,
    NotAuthorized,
    NotFound,
    TransientIOError,
    UnknownLedgerError,
    ValidationError,
)
from siteledger.models import Project, Transaction
from siteledger.schemas import ProjectCreateRequest, ProjectUpdateRequest, TransactionCreateRequest
from siteledger.services.changes import ChangeBroker, ChangeScope, Subscription, get_change_broker

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)


def validate_payload(model: type[RequestT], payload: RequestT | Mapping[str, Any]) -> RequestT:
    """Validate raw input against a request schema, raising :class:`ValidationError`."""

    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(details) from exc


@asynccontextmanager
async def translate_errors(operation: str) -> AsyncIterator[None]:
    """Map driver and SQLAlchemy failures onto the ledger error taxonomy."""

    try:
        yield
    except LedgerError:
        raise
    except (OperationalError, InterfaceError, DisconnectionError, TimeoutError, OSError) as exc:
        logger.warning("Database unavailable during %s: %s", operation, exc)
        raise TransientIOError(f"Database unavailable during {operation}") from exc
    except SQLAlchemyError as exc:
        detail = getattr(exc, "orig", None) or exc
        logger.error("Database rejected %s: %s", operation, detail)
        raise UnknownLedgerError(str(detail)) from exc


class LedgerGateway:
    """Reads and writes on behalf of one authenticated user.

    Each call runs in its own session so a gateway can be shared by long-lived
    consumers that refetch on change.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        user_id: UUID,
        *,
        broker: ChangeBroker | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._user_id = user_id
        self._broker = broker or get_change_broker()
        self._today = today or get_settings().today

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with translate_errors(operation):
            async with self._session_factory() as session:
                yield session

    async def _require_project(self, session: AsyncSession, project_id: UUID) -> Project:
        project = await session.get(Project, project_id)
        if project is None:
            raise NotFound("Project not found")
        if project.user_id != self._user_id:
            raise NotAuthorized("Project belongs to another user")
        return project

    async def list_projects_for_user(
        self, user_id: UUID | None = None, *, newest_first: bool = False
    ) -> list[Project]:
        owner = user_id or self._user_id
        if owner != self._user_id:
            raise NotAuthorized("Cannot list projects of another user")
        stmt = select(Project).where(Project.user_id == owner)
        if newest_first:
            stmt = stmt.order_by(Project.created_at.desc())
        async with self._session("list_projects") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_project(self, project_id: UUID) -> Project:
        async with self._session("get_project") as session:
            return await self._require_project(session, project_id)

    async def list_transactions_for_projects(self, project_ids: Iterable[UUID]) -> list[Transaction]:
        ids = set(project_ids)
        if not ids:
            return []
        stmt = (
            select(Transaction, Project.user_id)
            .join(Project, Transaction.project_id == Project.id)
            .where(Transaction.project_id.in_(ids))
            .order_by(Transaction.transaction_date, Transaction.created_at)
        )
        async with self._session("list_transactions") as session:
            rows = (await session.execute(stmt)).all()
        if any(owner != self._user_id for _, owner in rows):
            raise NotAuthorized("Transactions belong to another user's project")
        return [tx for tx, _ in rows]

    async def list_transactions_for_project(self, project_id: UUID) -> list[Transaction]:
        """One project's transactions, most recent ``transaction_date`` first."""

        async with self._session("list_project_transactions") as session:
            await self._require_project(session, project_id)
            result = await session.execute(
                select(Transaction)
                .where(Transaction.project_id == project_id)
                .order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
            )
            return list(result.scalars().all())

    async def insert_project(self, payload: ProjectCreateRequest | Mapping[str, Any]) -> Project:
        request = validate_payload(ProjectCreateRequest, payload)
        async with self._session("insert_project") as session:
            project = Project(
                user_id=self._user_id,
                name=request.name,
                location=request.location,
                project_type=request.project_type,
                base_contract_amount=request.base_contract_amount,
            )
            session.add(project)
            await session.commit()
        logger.info("Created project %s for user %s", project.id, self._user_id)
        return project

    async def update_project(
        self, project_id: UUID, payload: ProjectUpdateRequest | Mapping[str, Any]
    ) -> Project:
        request = validate_payload(ProjectUpdateRequest, payload)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No fields to update")
        async with self._session("update_project") as session:
            project = await self._require_project(session, project_id)
            for key, value in changes.items():
                setattr(project, key, value)
            project.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(project)
        return project

    async def delete_project(self, project_id: UUID) -> None:
        async with self._session("delete_project") as session:
            project = await self._require_project(session, project_id)
            await session.delete(project)
            await session.commit()
        logger.info("Deleted project %s for user %s", project_id, self._user_id)

    async def insert_transaction(
        self, project_id: UUID, payload: TransactionCreateRequest | Mapping[str, Any]
    ) -> Transaction:
        request = validate_payload(TransactionCreateRequest, payload)
        async with self._session("insert_transaction") as session:
            await self._require_project(session, project_id)
            tx = Transaction(
                project_id=project_id,
                type=request.type,
                amount=request.amount,
                description=request.description,
                transaction_date=request.transaction_date or self._today(),
                category=request.category,
            )
            session.add(tx)
            await session.commit()
        logger.info("Recorded %s of %s on project %s", tx.type, tx.amount, project_id)
        return tx

    def subscribe(self, scope: ChangeScope, on_change: Callable[[], Any]) -> Subscription:
        return self._broker.subscribe(scope, on_change)


__all__ = ["LedgerGateway", "translate_errors", "validate_payload"]
