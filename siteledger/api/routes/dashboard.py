"""Portfolio dashboard endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...config import get_settings
from ...schemas import PortfolioSnapshotSchema
from ...services.dashboard import load_portfolio_snapshot
from ...services.gateway import LedgerGateway
from ..dependencies import InternalAuth, get_gateway

router = APIRouter(dependencies=[InternalAuth])


@router.get("", response_model=PortfolioSnapshotSchema)
async def get_dashboard(gateway: LedgerGateway = Depends(get_gateway)) -> PortfolioSnapshotSchema:
    snapshot = await load_portfolio_snapshot(gateway, get_settings().today())
    return PortfolioSnapshotSchema.model_validate(snapshot)
