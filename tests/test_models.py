import math
from datetime import date

import pytest

from renovation_tracker.core.models import (
    Category,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationError,
    validate_draft,
)


def _draft(**overrides):
    fields = dict(
        date="2025-03-01",
        description="Marble tiles",
        amount=1200,
        category="Material",
        type="bill",
        vendor="Stone World",
    )
    fields.update(overrides)
    return TransactionDraft(**fields)


def test_validate_draft_normalises_fields():
    clean = validate_draft(_draft(description="  Marble tiles  ", amount="1200.50"))
    assert clean.description == "Marble tiles"
    assert clean.amount == 1200.5
    assert clean.category is Category.MATERIAL
    assert clean.type is TransactionType.BILL
    assert clean.vendor == "Stone World"


def test_validate_draft_accepts_date_objects():
    clean = validate_draft(_draft(date=date(2025, 3, 1)))
    assert clean.date == "2025-03-01"


def test_vendor_is_dropped_for_expenses():
    clean = validate_draft(_draft(type="expense", vendor="Stone World"))
    assert clean.vendor is None


def test_zero_amount_is_allowed():
    assert validate_draft(_draft(amount=0)).amount == 0.0


@pytest.mark.parametrize("amount", [-0.01, -500, math.inf, math.nan, "abc", None, True])
def test_invalid_amounts_are_rejected(amount):
    with pytest.raises(ValidationError):
        validate_draft(_draft(amount=amount))


@pytest.mark.parametrize(
    "overrides",
    [
        {"description": ""},
        {"description": "   "},
        {"date": ""},
        {"date": "01/03/2025"},
        {"category": "Plumbing"},
        {"type": "income"},
    ],
)
def test_missing_or_invalid_fields_are_rejected(overrides):
    with pytest.raises(ValidationError):
        validate_draft(_draft(**overrides))


def test_to_dict_uses_persisted_field_names():
    tx = Transaction.from_draft(validate_draft(_draft(attachment_name="invoice.pdf")), "abc")
    assert tx.to_dict() == {
        "id": "abc",
        "date": "2025-03-01",
        "description": "Marble tiles",
        "amount": 1200.0,
        "category": "Material",
        "type": "bill",
        "vendor": "Stone World",
        "attachmentName": "invoice.pdf",
    }


def test_to_dict_omits_unset_optionals():
    tx = Transaction.from_draft(validate_draft(_draft(type="expense")), "abc")
    data = tx.to_dict()
    assert "vendor" not in data
    assert "attachmentName" not in data


def test_from_dict_reads_persisted_shape():
    tx = Transaction.from_dict(
        {
            "id": "t1",
            "date": "2025-02-10",
            "description": "Electrician",
            "amount": 2500,
            "category": "Labor",
            "type": "expense",
        }
    )
    assert tx.id == "t1"
    assert tx.category is Category.LABOR
    assert tx.vendor is None
    assert tx.attachment_name is None


def test_from_dict_requires_id():
    with pytest.raises(ValidationError):
        Transaction.from_dict({"date": "2025-02-10", "description": "x", "amount": 1, "category": "Labor"})
