"""Pydantic schemas for dashboard snapshots and project ledgers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .ledger import ProjectSchema, TransactionSchema


class ProjectSummarySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: UUID
    project_name: str
    total_credits: Decimal
    total_debits: Decimal
    profit: Decimal


class DailyStatSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    credits: Decimal
    debits: Decimal


class PeriodStatSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str = Field(..., examples=["2024-W10", "2024-03"])
    start: date
    end: date
    credits: Decimal
    debits: Decimal


class PortfolioSnapshotSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "total_portfolio_balance": "3500.00",
                "total_projects": 1,
                "projects_summary": [
                    {
                        "project_id": "5b0e3a52-8f6f-4c55-9a8e-7f1f6c0a2b11",
                        "project_name": "Downtown Office",
                        "total_credits": "5000.00",
                        "total_debits": "1500.00",
                        "profit": "3500.00",
                    }
                ],
                "daily_stats": [{"date": "2024-03-07", "credits": "5000.00", "debits": "1200.00"}],
                "weekly_stats": [],
                "monthly_stats": [],
            }
        },
    )

    total_portfolio_balance: Decimal
    total_projects: int
    projects_summary: list[ProjectSummarySchema]
    daily_stats: list[DailyStatSchema]
    weekly_stats: list[PeriodStatSchema] = Field(default_factory=list)
    monthly_stats: list[PeriodStatSchema] = Field(default_factory=list)


class ProjectLedgerSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project: ProjectSchema
    transactions: list[TransactionSchema]
    summary: ProjectSummarySchema


__all__ = [
    "DailyStatSchema",
    "PeriodStatSchema",
    "PortfolioSnapshotSchema",
    "ProjectLedgerSchema",
    "ProjectSummarySchema",
]
