"""Pydantic schemas for projects and transactions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, examples=["Downtown Office"])
    location: str = Field(..., min_length=1, examples=["12 Main St"])
    project_type: str = Field(..., min_length=1, examples=["Commercial"])
    base_contract_amount: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)


class ProjectUpdateRequest(BaseModel):
    """Partial update; the owner is not an updatable field."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    location: str | None = Field(default=None, min_length=1)
    project_type: str | None = Field(default=None, min_length=1)
    base_contract_amount: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)


class TransactionCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: Literal["credit", "debit"]
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    description: str = Field(..., min_length=1)
    transaction_date: date | None = Field(
        default=None, description="Defaults to today in the configured timezone"
    )
    category: str = Field(default="")

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category(cls, value: object) -> object:
        return "" if value is None else value


class ProjectSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    location: str
    project_type: str
    base_contract_amount: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    type: str
    amount: Decimal
    description: str
    transaction_date: date
    category: str = ""
    created_at: datetime | None = None


__all__ = [
    "ProjectCreateRequest",
    "ProjectSchema",
    "ProjectUpdateRequest",
    "TransactionCreateRequest",
    "TransactionSchema",
]
