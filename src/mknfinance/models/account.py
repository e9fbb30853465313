"""Finance account models: the account itself and its per-currency balances."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..constants.currencies import TRY, from_minor


class AccountMode(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"
    CREDIT_CARD = "credit_card"
    POS = "pos"
    CHEQUE = "cheque"
    PROMISSORY = "promissory"
    ONLINE = "online"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    """A cash box, bank account or wallet that holds money in one or more currencies.

    SINGLE accounts hold exactly one currency (``currency``); MULTI accounts hold
    an independent balance for every code in ``supported_currencies``.
    Balances are never written directly: they change only through ledger
    transactions (see ``services.ledger_service``).
    """

    __tablename__: ClassVar[str] = "finance_account"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=128, index=True)
    account_type: str = Field(default=AccountType.BANK.value, max_length=16)
    mode: str = Field(default=AccountMode.SINGLE.value, max_length=8)
    currency: str = Field(default=TRY, max_length=3, description="Primary ISO-4217 code")
    supported_currencies: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    bank_name: str = Field(default="", max_length=128)
    iban: str = Field(default="", max_length=34)
    account_number: str = Field(default="", max_length=64)
    branch_code: str = Field(default="", max_length=32)
    description: str = Field(default="", max_length=255)
    notes: str = Field(default="", max_length=1024)

    is_active: bool = Field(default=True, index=True)
    is_default: bool = Field(default=False)
    # None inherits ALLOW_EXPENSE_OVERDRAFT from config
    allow_overdraft: Optional[bool] = Field(default=None)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    created_by: Optional[str] = Field(default=None, max_length=128)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_by: Optional[str] = Field(default=None, max_length=128)
    deleted_at: Optional[datetime] = Field(default=None)
    deleted_by: Optional[str] = Field(default=None, max_length=128)

    balances: list["AccountBalance"] = Relationship(
        back_populates="account",
        sa_relationship=relationship(
            "AccountBalance",
            back_populates="account",
            lazy="selectin",
            cascade="all, delete-orphan",
        ),
    )

    @property
    def is_multi(self) -> bool:
        return self.mode == AccountMode.MULTI.value

    def supports(self, currency: str) -> bool:
        if self.is_multi:
            return currency in (self.supported_currencies or [])
        return currency == self.currency

    def balance_minor(self, currency: str) -> int:
        """Balance in minor units; absent currencies read as zero."""

        if not self.is_multi and currency != self.currency:
            return 0
        for row in self.balances or []:
            if row.currency == currency:
                return row.amount_minor
        return 0

    def balance_map(self) -> dict[str, float]:
        """Return ``{currency: amount}`` for every currency the account holds."""

        codes = self.supported_currencies if self.is_multi else [self.currency]
        return {code: from_minor(self.balance_minor(code), code) for code in codes or []}

    @property
    def current_balance(self) -> float:
        """Balance in the primary currency."""

        return from_minor(self.balance_minor(self.currency), self.currency)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "account_type": self.account_type,
            "mode": self.mode,
            "currency": self.currency,
            "supported_currencies": list(self.supported_currencies or []),
            "balances": self.balance_map(),
            "current_balance": self.current_balance,
            "bank_name": self.bank_name,
            "iban": self.iban,
            "account_number": self.account_number,
            "branch_code": self.branch_code,
            "description": self.description,
            "notes": self.notes,
            "is_active": self.is_active,
            "is_default": self.is_default,
            "allow_overdraft": self.allow_overdraft,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "deleted_by": self.deleted_by,
        }


class AccountBalance(SQLModel, table=True):
    """Running balance of one account in one currency, in minor units."""

    __tablename__: ClassVar[str] = "finance_account_balance"
    __table_args__ = (UniqueConstraint("account_id", "currency", name="uq_account_currency"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="finance_account.id", nullable=False, index=True)
    currency: str = Field(nullable=False, max_length=3)
    amount_minor: int = Field(default=0, nullable=False)
    initial_minor: int = Field(default=0, nullable=False)

    account: "Account" = Relationship(
        back_populates="balances",
        sa_relationship=relationship("Account", back_populates="balances"),
    )
