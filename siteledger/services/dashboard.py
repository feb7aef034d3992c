"""Dashboard and project-ledger loading on top of the gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Sequence
from uuid import UUID

from opentelemetry import trace

from siteledger.config import get_settings
from siteledger.models import Project, Transaction
from siteledger.services.aggregation import (
    PortfolioSnapshot,
    ProjectInput,
    ProjectSummary,
    TransactionInput,
    compute_portfolio_snapshot,
    compute_project_summary,
)
from siteledger.services.changes import ChangeScope
from siteledger.services.gateway import LedgerGateway
from siteledger.services.live import ErrorPolicy, LiveQuery, LiveState

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class ProjectLedger:
    project: Project
    transactions: tuple[Transaction, ...]
    summary: ProjectSummary


def project_inputs(projects: Iterable[Project]) -> list[ProjectInput]:
    return [ProjectInput(id=project.id, name=project.name) for project in projects]


def transaction_inputs(transactions: Iterable[Transaction]) -> list[TransactionInput]:
    return [
        TransactionInput(
            id=tx.id,
            project_id=tx.project_id,
            type=tx.type,
            amount=Decimal(str(tx.amount)),
            transaction_date=tx.transaction_date,
        )
        for tx in transactions
    ]


async def load_portfolio_snapshot(
    gateway: LedgerGateway,
    reference_date: date,
    *,
    weeks: int | None = None,
    months: int | None = None,
) -> PortfolioSnapshot:
    """Fetch the caller's projects and transactions and aggregate them.

    Without projects the empty snapshot is returned and no transaction query
    is issued.
    """

    settings = get_settings()
    with tracer.start_as_current_span("dashboard.load_snapshot") as span:
        projects = await gateway.list_projects_for_user()
        span.set_attribute("siteledger.projects", len(projects))
        if not projects:
            return PortfolioSnapshot.empty()
        transactions = await gateway.list_transactions_for_projects(project.id for project in projects)
        span.set_attribute("siteledger.transactions", len(transactions))
        snapshot = compute_portfolio_snapshot(
            project_inputs(projects),
            transaction_inputs(transactions),
            reference_date,
            weeks=settings.dashboard_weeks if weeks is None else weeks,
            months=settings.dashboard_months if months is None else months,
        )
    logger.debug(
        "Snapshot for user %s: %d projects, balance %s",
        gateway.user_id,
        snapshot.total_projects,
        snapshot.total_portfolio_balance,
    )
    return snapshot


async def load_project_ledger(gateway: LedgerGateway, project_id: UUID) -> ProjectLedger:
    with tracer.start_as_current_span("dashboard.load_project_ledger"):
        project = await gateway.get_project(project_id)
        transactions = await gateway.list_transactions_for_project(project_id)
    inputs: Sequence[TransactionInput] = transaction_inputs(transactions)
    return ProjectLedger(
        project=project,
        transactions=tuple(transactions),
        summary=compute_project_summary(ProjectInput(id=project.id, name=project.name), inputs),
    )


def dashboard_query(
    gateway: LedgerGateway,
    *,
    today: Callable[[], date] | None = None,
    error_policy: ErrorPolicy | str | None = None,
    on_update: Callable[[LiveState[PortfolioSnapshot]], object] | None = None,
) -> LiveQuery[PortfolioSnapshot]:
    """Live portfolio snapshot, refetched on any project or transaction change."""

    settings = get_settings()
    clock = today or settings.today
    return LiveQuery(
        lambda: load_portfolio_snapshot(gateway, clock()),
        gateway.subscribe,
        ChangeScope.for_tables("projects", "transactions"),
        error_policy=ErrorPolicy(error_policy or settings.dashboard_error_policy),
        reset_value=PortfolioSnapshot.empty,
        on_update=on_update,
        name=f"dashboard:{gateway.user_id}",
    )


def project_ledger_query(
    gateway: LedgerGateway,
    project_id: UUID,
    *,
    error_policy: ErrorPolicy | str | None = None,
    on_update: Callable[[LiveState[ProjectLedger]], object] | None = None,
) -> LiveQuery[ProjectLedger]:
    """Live view of one project, refetched when it or its transactions change."""

    settings = get_settings()
    return LiveQuery(
        lambda: load_project_ledger(gateway, project_id),
        gateway.subscribe,
        ChangeScope.for_tables("projects", "transactions", project_id=project_id),
        error_policy=ErrorPolicy(error_policy or settings.dashboard_error_policy),
        on_update=on_update,
        name=f"project:{project_id}",
    )


__all__ = [
    "ProjectLedger",
    "dashboard_query",
    "load_portfolio_snapshot",
    "load_project_ledger",
    "project_inputs",
    "project_ledger_query",
    "transaction_inputs",
]
