from __future__ import annotations

from decimal import Decimal

import pytest

from siteledger.core.errors import ValidationError
from siteledger.schemas import ProjectCreateRequest, TransactionCreateRequest
from siteledger.services.gateway import validate_payload


def _transaction(**overrides):
    payload = {"type": "debit", "amount": "12.50", "description": "Rebar"}
    payload.update(overrides)
    return payload


@pytest.mark.parametrize("amount", ["-5", "0", "abc", "1.234"])
def test_rejects_non_positive_or_malformed_amounts(amount):
    with pytest.raises(ValidationError) as excinfo:
        validate_payload(TransactionCreateRequest, _transaction(amount=amount))
    assert "amount" in excinfo.value.message


def test_rejects_blank_description():
    with pytest.raises(ValidationError):
        validate_payload(TransactionCreateRequest, _transaction(description="   "))


def test_rejects_unknown_kind():
    with pytest.raises(ValidationError):
        validate_payload(TransactionCreateRequest, _transaction(type="refund"))


def test_category_defaults_to_empty():
    request = validate_payload(TransactionCreateRequest, _transaction(category=None))
    assert request.category == ""
    assert request.amount == Decimal("12.50")
    assert request.transaction_date is None


def test_project_requires_fields_and_non_negative_contract():
    with pytest.raises(ValidationError):
        validate_payload(
            ProjectCreateRequest,
            {"name": "", "location": "Main St", "project_type": "Retail", "base_contract_amount": "10"},
        )
    with pytest.raises(ValidationError):
        validate_payload(
            ProjectCreateRequest,
            {"name": "Shop", "location": "Main St", "project_type": "Retail", "base_contract_amount": "-1"},
        )
    request = validate_payload(
        ProjectCreateRequest,
        {"name": " Shop ", "location": "Main St", "project_type": "Retail", "base_contract_amount": "0"},
    )
    assert request.name == "Shop"


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_payload(TransactionCreateRequest, {})
