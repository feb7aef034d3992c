"""Shared FastAPI dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteledger.config import get_settings
from siteledger.db.session import get_session_factory
from siteledger.services.changes import ChangeBroker, get_change_broker
from siteledger.services.gateway import LedgerGateway


def verify_internal_token(x_internal_token: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if settings.internal_auth_token is None:
        return
    if x_internal_token != settings.internal_auth_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid internal token")


InternalAuth = Depends(verify_internal_token)


@dataclass
class RequestContext:
    user_id: UUID


def get_request_context(x_user_id: str | None = Header(default=None)) -> RequestContext:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user context")
    try:
        user_id = UUID(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Malformed user id") from exc
    return RequestContext(user_id=user_id)


def get_app_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    factory = getattr(request.app.state, "session_factory", None)
    return factory or get_session_factory()


def get_app_broker(request: Request) -> ChangeBroker:
    broker = getattr(request.app.state, "change_broker", None)
    return broker or get_change_broker()


def get_gateway(
    context: RequestContext = Depends(get_request_context),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_app_session_factory),
    broker: ChangeBroker = Depends(get_app_broker),
) -> LedgerGateway:
    return LedgerGateway(session_factory, context.user_id, broker=broker)


__all__ = ["InternalAuth", "RequestContext", "get_gateway", "get_request_context"]
