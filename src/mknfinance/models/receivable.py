"""SQLModel definitions for receivables, payables and their payment history."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants.currencies import from_minor
from .transaction import _utcnow


class DebtKind(str, Enum):
    RECEIVABLE = "receivable"
    PAYABLE = "payable"


class DebtStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COLLECTED = "collected"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class CounterpartyType(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    PERSONNEL = "personnel"
    OTHER = "other"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    EFT = "eft"
    CREDIT_CARD = "credit_card"
    CHEQUE = "cheque"
    PROMISSORY = "promissory"
    ONLINE = "online"


DEBT_PREFIXES = {
    DebtKind.RECEIVABLE.value: "ALC",
    DebtKind.PAYABLE.value: "BRC",
}

# Statuses a payment can still move
OPEN_STATUSES = (DebtStatus.PENDING.value, DebtStatus.PARTIAL.value, DebtStatus.OVERDUE.value)


def settled_status(kind: str) -> str:
    """``collected`` for receivables, ``paid`` for payables."""

    if kind == DebtKind.RECEIVABLE.value:
        return DebtStatus.COLLECTED.value
    return DebtStatus.PAID.value


class Debt(SQLModel, table=True):
    """Money a counterparty owes us (receivable) or we owe them (payable)."""

    __tablename__: ClassVar[str] = "finance_debt"

    id: Optional[int] = Field(default=None, primary_key=True)
    debt_number: str = Field(nullable=False, unique=True, index=True, max_length=32)
    kind: str = Field(nullable=False, index=True, max_length=16)
    status: str = Field(default=DebtStatus.PENDING.value, nullable=False, index=True, max_length=16)

    counterparty_type: str = Field(default=CounterpartyType.OTHER.value, nullable=False, max_length=16)
    counterparty_id: Optional[str] = Field(default=None, max_length=64, index=True)
    counterparty_name: str = Field(default="", max_length=128)
    company_id: Optional[str] = Field(default=None, max_length=64, index=True)
    company_name: str = Field(default="", max_length=128)
    order_id: Optional[str] = Field(default=None, max_length=64)
    order_number: Optional[str] = Field(default=None, max_length=64)
    category: Optional[str] = Field(default=None, max_length=32)

    currency: str = Field(nullable=False, max_length=3)
    amount_minor: int = Field(nullable=False)
    paid_minor: int = Field(default=0, nullable=False)

    due_date: Optional[datetime] = Field(default=None, index=True)
    description: str = Field(default="", max_length=255)
    notes: str = Field(default="", max_length=1024)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    created_by: Optional[str] = Field(default=None, max_length=128)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_by: Optional[str] = Field(default=None, max_length=128)
    version: int = Field(default=1, nullable=False)

    @property
    def remaining_minor(self) -> int:
        return max(0, self.amount_minor - self.paid_minor)

    @property
    def amount(self) -> float:
        return from_minor(self.amount_minor, self.currency)

    @property
    def paid_amount(self) -> float:
        return from_minor(self.paid_minor, self.currency)

    @property
    def remaining_amount(self) -> float:
        return from_minor(self.remaining_minor, self.currency)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def to_dict(self, payments: Optional[list["DebtPayment"]] = None) -> dict:
        data = {
            "id": self.id,
            "debt_number": self.debt_number,
            "kind": self.kind,
            "status": self.status,
            "counterparty_type": self.counterparty_type,
            "counterparty_id": self.counterparty_id,
            "counterparty_name": self.counterparty_name,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "order_id": self.order_id,
            "order_number": self.order_number,
            "category": self.category,
            "currency": self.currency,
            "amount": self.amount,
            "paid_amount": self.paid_amount,
            "remaining_amount": self.remaining_amount,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "description": self.description,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
            "version": self.version,
        }
        if payments is not None:
            data["payments"] = [payment.to_dict(self.currency) for payment in payments]
        return data


class DebtPayment(SQLModel, table=True):
    """One collection against a receivable or payment against a payable."""

    __tablename__: ClassVar[str] = "finance_debt_payment"

    id: Optional[int] = Field(default=None, primary_key=True)
    debt_id: int = Field(foreign_key="finance_debt.id", nullable=False, index=True)
    amount_minor: int = Field(nullable=False)
    method: str = Field(default=PaymentMethod.BANK_TRANSFER.value, nullable=False, max_length=16)
    account_id: Optional[int] = Field(default=None, foreign_key="finance_account.id")
    paid_at: datetime = Field(default_factory=_utcnow, nullable=False)
    note: str = Field(default="", max_length=255)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    created_by: Optional[str] = Field(default=None, max_length=128)

    def to_dict(self, currency: str) -> dict:
        return {
            "id": self.id,
            "amount": from_minor(self.amount_minor, currency),
            "method": self.method,
            "account_id": self.account_id,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "note": self.note,
            "created_by": self.created_by,
        }
