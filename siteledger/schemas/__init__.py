"""Pydantic schema exports."""

from .dashboard import (
    DailyStatSchema,
    PeriodStatSchema,
    PortfolioSnapshotSchema,
    ProjectLedgerSchema,
    ProjectSummarySchema,
)
from .ledger import (
    ProjectCreateRequest,
    ProjectSchema,
    ProjectUpdateRequest,
    TransactionCreateRequest,
    TransactionSchema,
)

__all__ = [
    "DailyStatSchema",
    "PeriodStatSchema",
    "PortfolioSnapshotSchema",
    "ProjectCreateRequest",
    "ProjectLedgerSchema",
    "ProjectSchema",
    "ProjectSummarySchema",
    "ProjectUpdateRequest",
    "TransactionCreateRequest",
    "TransactionSchema",
]
