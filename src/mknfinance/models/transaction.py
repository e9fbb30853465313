"""SQLModel definitions for finance ledger transactions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..constants.currencies import from_minor


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    EXCHANGE = "exchange"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransferDirection(str, Enum):
    IN = "in"
    OUT = "out"


NUMBER_PREFIXES = {
    TransactionType.INCOME.value: "INC",
    TransactionType.EXPENSE.value: "EXP",
    TransactionType.TRANSFER.value: "TRF",
    TransactionType.EXCHANGE.value: "EXC",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC; naive values are taken to already be UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Transaction(SQLModel, table=True):
    """One ledger entry; also the instruction that mutated account balances.

    ``amount``/``currency`` describe the primary leg on ``account_id``. Transfers
    and exchanges carry the counter leg in ``to_*`` fields: a transfer credits
    ``to_account_id`` while an exchange credits ``to_currency`` on the same
    account. Amounts are magnitudes in minor units; direction comes from ``type``.
    """

    __tablename__: ClassVar[str] = "finance_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_number: str = Field(nullable=False, unique=True, index=True, max_length=32)
    type: str = Field(nullable=False, index=True, max_length=16)
    status: str = Field(
        default=TransactionStatus.COMPLETED.value, nullable=False, index=True, max_length=16
    )
    category: Optional[str] = Field(default=None, max_length=32, index=True)

    account_id: int = Field(foreign_key="finance_account.id", nullable=False, index=True)
    currency: str = Field(nullable=False, max_length=3)
    amount_minor: int = Field(nullable=False)

    to_account_id: Optional[int] = Field(
        default=None, foreign_key="finance_account.id", index=True
    )
    to_currency: Optional[str] = Field(default=None, max_length=3)
    to_amount_minor: Optional[int] = Field(default=None)
    exchange_rate: Optional[float] = Field(default=None)

    description: str = Field(default="", max_length=255)
    notes: str = Field(default="", max_length=1024)
    reference: str = Field(default="", max_length=128)
    inventory_transaction_id: Optional[str] = Field(default=None, max_length=64)

    transaction_date: datetime = Field(default_factory=_utcnow, nullable=False, index=True)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    created_by: Optional[str] = Field(default=None, max_length=128)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_by: Optional[str] = Field(default=None, max_length=128)
    cancelled_at: Optional[datetime] = Field(default=None)
    cancelled_by: Optional[str] = Field(default=None, max_length=128)

    # Bumped on every write; guards compare-and-set updates
    version: int = Field(default=1, nullable=False)

    @property
    def amount(self) -> float:
        return from_minor(self.amount_minor, self.currency)

    @property
    def to_amount(self) -> Optional[float]:
        if self.to_amount_minor is None or self.to_currency is None:
            return None
        return from_minor(self.to_amount_minor, self.to_currency)

    # Exchange/transfer aliases for the debited leg
    @property
    def from_currency(self) -> str:
        return self.currency

    @property
    def from_amount(self) -> float:
        return self.amount

    @property
    def is_cancelled(self) -> bool:
        return self.status == TransactionStatus.CANCELLED.value

    def direction_for(self, account_id: int | None) -> Optional[str]:
        """Return the transfer leg seen from ``account_id`` (None for non-transfers)."""

        if self.type != TransactionType.TRANSFER.value or account_id is None:
            return None
        if account_id == self.account_id:
            return TransferDirection.OUT.value
        if account_id == self.to_account_id:
            return TransferDirection.IN.value
        return None

    def to_dict(self, *, viewer_account_id: int | None = None) -> dict:
        """Serialize for JSON responses and logs."""

        data = {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "type": self.type,
            "status": self.status,
            "category": self.category,
            "account_id": self.account_id,
            "currency": self.currency,
            "amount": self.amount,
            "to_account_id": self.to_account_id,
            "to_currency": self.to_currency,
            "to_amount": self.to_amount,
            "exchange_rate": self.exchange_rate,
            "description": self.description,
            "notes": self.notes,
            "reference": self.reference,
            "inventory_transaction_id": self.inventory_transaction_id,
            "transaction_date": self.transaction_date.isoformat() if self.transaction_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by": self.cancelled_by,
        }
        if self.type == TransactionType.EXCHANGE.value:
            data["from_currency"] = self.from_currency
            data["from_amount"] = self.from_amount
        if viewer_account_id is not None:
            data["transfer_direction"] = self.direction_for(viewer_account_id)
        return data
