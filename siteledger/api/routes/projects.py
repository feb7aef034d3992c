"""Project and transaction endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from ...schemas import (
    ProjectCreateRequest,
    ProjectLedgerSchema,
    ProjectSchema,
    ProjectUpdateRequest,
    TransactionCreateRequest,
    TransactionSchema,
)
from ...services.dashboard import load_project_ledger
from ...services.gateway import LedgerGateway
from ..dependencies import InternalAuth, get_gateway

router = APIRouter(dependencies=[InternalAuth])


@router.get("", response_model=list[ProjectSchema])
async def list_projects(gateway: LedgerGateway = Depends(get_gateway)) -> list[ProjectSchema]:
    projects = await gateway.list_projects_for_user(newest_first=True)
    return [ProjectSchema.model_validate(project) for project in projects]


@router.post("", response_model=ProjectSchema, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreateRequest,
    gateway: LedgerGateway = Depends(get_gateway),
) -> ProjectSchema:
    project = await gateway.insert_project(payload)
    return ProjectSchema.model_validate(project)


@router.get("/{project_id}", response_model=ProjectLedgerSchema)
async def get_project(
    project_id: UUID,
    gateway: LedgerGateway = Depends(get_gateway),
) -> ProjectLedgerSchema:
    ledger = await load_project_ledger(gateway, project_id)
    return ProjectLedgerSchema.model_validate(ledger)


@router.patch("/{project_id}", response_model=ProjectSchema)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdateRequest,
    gateway: LedgerGateway = Depends(get_gateway),
) -> ProjectSchema:
    project = await gateway.update_project(project_id, payload)
    return ProjectSchema.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    gateway: LedgerGateway = Depends(get_gateway),
) -> Response:
    await gateway.delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{project_id}/transactions",
    response_model=TransactionSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    project_id: UUID,
    payload: TransactionCreateRequest,
    gateway: LedgerGateway = Depends(get_gateway),
) -> TransactionSchema:
    tx = await gateway.insert_transaction(project_id, payload)
    return TransactionSchema.model_validate(tx)
