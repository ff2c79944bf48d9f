# renovation_tracker/core/models.py
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional


class ValidationError(ValueError):
    """Raised when a transaction draft or stored record is malformed."""


class Category(str, Enum):
    MATERIAL = "Material"
    LABOR = "Labor"
    APPLIANCES = "Appliances"
    MISCELLANEOUS = "Miscellaneous"
    FEES = "Fees & Permits"


class TransactionType(str, Enum):
    EXPENSE = "expense"
    BILL = "bill"


@dataclass
class TransactionDraft:
    """Everything the entry form collects; the id is minted on create."""

    date: str
    description: str
    amount: float
    category: Category
    type: TransactionType = TransactionType.EXPENSE
    vendor: Optional[str] = None
    attachment_name: Optional[str] = None


@dataclass
class Transaction:
    id: str
    date: str
    description: str
    amount: float
    category: Category
    type: TransactionType = TransactionType.EXPENSE
    vendor: Optional[str] = None
    attachment_name: Optional[str] = None

    @classmethod
    def from_draft(cls, draft: TransactionDraft, id: str) -> "Transaction":
        return cls(
            id=id,
            date=draft.date,
            description=draft.description,
            amount=draft.amount,
            category=draft.category,
            type=draft.type,
            vendor=draft.vendor,
            attachment_name=draft.attachment_name,
        )

    def to_draft(self) -> TransactionDraft:
        return TransactionDraft(
            date=self.date,
            description=self.description,
            amount=self.amount,
            category=self.category,
            type=self.type,
            vendor=self.vendor,
            attachment_name=self.attachment_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the persisted JSON shape (optional fields omitted when unset)."""
        data: Dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "category": self.category.value,
            "type": self.type.value,
        }
        if self.vendor is not None:
            data["vendor"] = self.vendor
        if self.attachment_name is not None:
            data["attachmentName"] = self.attachment_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        if not isinstance(data, dict):
            raise ValidationError(f"Transaction record must be an object: {data!r}")
        tx_id = data.get("id")
        if not tx_id or not isinstance(tx_id, str):
            raise ValidationError(f"Missing 'id' in transaction record: {data}")
        draft = validate_draft(
            TransactionDraft(
                date=data.get("date"),
                description=data.get("description"),
                amount=data.get("amount"),
                category=data.get("category"),
                type=data.get("type", TransactionType.EXPENSE.value),
                vendor=data.get("vendor"),
                attachment_name=data.get("attachmentName"),
            )
        )
        return cls.from_draft(draft, tx_id)


def _parse_amount(value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if not math.isfinite(amount):
        raise ValidationError(f"Amount must be a finite number: {value!r}")
    if amount < 0:
        raise ValidationError(f"Amount must not be negative: {value!r}")
    return amount


def _parse_date(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    if not value or not isinstance(value, str):
        raise ValidationError("Date is required")
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid ISO date: {value!r}") from None


def _parse_enum(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name} {value!r}; expected one of: {allowed}"
        ) from None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_draft(draft: TransactionDraft) -> TransactionDraft:
    """Return a normalised copy of *draft* or raise :class:`ValidationError`.

    Dates are normalised to ``YYYY-MM-DD``, the description is stripped and
    must be non-empty, the amount must be a finite non-negative number and
    the vendor is dropped for plain expenses.
    """
    description = draft.description.strip() if isinstance(draft.description, str) else ""
    if not description:
        raise ValidationError("Description is required")

    tx_type = _parse_enum(TransactionType, draft.type, "type")
    vendor = _optional_text(draft.vendor) if tx_type is TransactionType.BILL else None

    return replace(
        draft,
        date=_parse_date(draft.date),
        description=description,
        amount=_parse_amount(draft.amount),
        category=_parse_enum(Category, draft.category, "category"),
        type=tx_type,
        vendor=vendor,
        attachment_name=_optional_text(draft.attachment_name),
    )


@dataclass
class BudgetStats:
    total_budget: float
    total_spent: float
    remaining: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "totalBudget": self.total_budget,
            "totalSpent": self.total_spent,
            "remaining": self.remaining,
        }
