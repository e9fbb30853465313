"""Transaction form validation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...models.transaction import TransactionStatus, TransactionType
from ...services.ledger_service import LedgerFilters, Pagination
from ..forms import BaseForm

_COMMON_FIELDS = ("description", "notes", "reference", "transaction_date", "status")
_CREATE_STATUSES = {TransactionStatus.PENDING.value, TransactionStatus.COMPLETED.value}


def _common(form: BaseForm, data: dict[str, Any]) -> None:
    data["description"] = form._text("description", label="Description")
    data["notes"] = form._text("notes", label="Notes", max_length=1024)
    data["reference"] = form._text("reference", label="Reference", max_length=128)
    occurred = form._date("transaction_date", label="Date")
    if occurred is not None:
        data["transaction_date"] = occurred
    status = form._text("status", label="Status") or TransactionStatus.COMPLETED.value
    if status not in _CREATE_STATUSES:
        form._add_error("status", "Status must be pending or completed.")
    data["status"] = status


@dataclass(slots=True)
class IncomeExpenseForm(BaseForm):
    """Income or expense entry against one account."""

    FIELDS = (
        "account_id",
        "amount",
        "currency",
        "category",
        "inventory_transaction_id",
        *_COMMON_FIELDS,
    )

    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        data: dict[str, Any] = {
            "account_id": self._int("account_id", label="Account", required=True),
            "amount": self._amount("amount", label="Amount"),
        }
        currency = self._currency("currency", label="Currency")
        if currency:
            data["currency"] = currency
        category = self._text("category", label="Category", max_length=32)
        if category:
            data["category"] = category
        inventory_ref = self._text("inventory_transaction_id", label="Inventory reference", max_length=64)
        if inventory_ref:
            data["inventory_transaction_id"] = inventory_ref
        _common(self, data)
        self.cleaned = data


@dataclass(slots=True)
class TransferForm(BaseForm):
    """Transfer between two accounts, optionally across currencies."""

    FIELDS = (
        "from_account_id",
        "to_account_id",
        "from_amount",
        "to_amount",
        "from_currency",
        "to_currency",
        "exchange_rate",
        *_COMMON_FIELDS,
    )

    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        data: dict[str, Any] = {
            "from_account_id": self._int("from_account_id", label="Source account", required=True),
            "to_account_id": self._int("to_account_id", label="Target account", required=True),
            "from_amount": self._amount("from_amount", label="Amount"),
            "to_amount": self._amount("to_amount", label="Received amount", required=False),
            "exchange_rate": self._amount("exchange_rate", label="Exchange rate", required=False),
        }
        for key, label in (("from_currency", "Source currency"), ("to_currency", "Target currency")):
            code = self._currency(key, label=label)
            if code:
                data[key] = code
        _common(self, data)
        self.cleaned = data


@dataclass(slots=True)
class ExchangeForm(BaseForm):
    """Currency exchange inside one multi-currency account."""

    FIELDS = (
        "account_id",
        "from_currency",
        "to_currency",
        "from_amount",
        "to_amount",
        "exchange_rate",
        *_COMMON_FIELDS,
    )

    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        data: dict[str, Any] = {
            "account_id": self._int("account_id", label="Account", required=True),
            "from_currency": self._currency("from_currency", label="Source currency", required=True),
            "to_currency": self._currency("to_currency", label="Target currency", required=True),
            "from_amount": self._amount("from_amount", label="Amount"),
            "to_amount": self._amount("to_amount", label="Received amount", required=False),
            "exchange_rate": self._amount("exchange_rate", label="Exchange rate", required=False),
        }
        if (
            data["from_currency"]
            and data["from_currency"] == data["to_currency"]
        ):
            self._add_error("to_currency", "Choose a currency different from the source.")
        if data["to_amount"] is None and data["exchange_rate"] is None and not self.errors:
            self._add_error("exchange_rate", "Enter an exchange rate or the received amount.")
        _common(self, data)
        self.cleaned = data


@dataclass(slots=True)
class TransactionUpdateForm(BaseForm):
    """Partial edit of an existing transaction."""

    FIELDS = (
        "amount",
        "description",
        "notes",
        "category",
        "reference",
        "transaction_date",
        "inventory_transaction_id",
        "expected_version",
    )

    changes: dict[str, Any] = field(default_factory=dict, init=False)
    expected_version: int | None = None

    def _validate(self) -> None:
        changes: dict[str, Any] = {}
        if self.has("amount"):
            changes["amount"] = self._amount("amount", label="Amount")
        for key, label, max_length in (
            ("description", "Description", 255),
            ("notes", "Notes", 1024),
            ("reference", "Reference", 128),
            ("category", "Category", 32),
            ("inventory_transaction_id", "Inventory reference", 64),
        ):
            if self.has(key):
                changes[key] = self._text(key, label=label, max_length=max_length)
        if self.has("transaction_date"):
            occurred = self._date("transaction_date", label="Date")
            if occurred is None and "transaction_date" not in self.errors:
                self._add_error("transaction_date", "Date cannot be cleared.")
            changes["transaction_date"] = occurred
        self.expected_version = self._int("expected_version", label="Version")
        if not changes and not self.errors:
            self._add_error("__all__", "Nothing to update.")
        self.changes = changes


@dataclass(slots=True)
class LedgerFilterForm(BaseForm):
    """Query-string filters for the ledger listing."""

    FIELDS = (
        "start_date",
        "end_date",
        "account_id",
        "type",
        "status",
        "currency",
        "category",
        "q",
        "page",
        "per_page",
    )

    filters: LedgerFilters = field(default_factory=LedgerFilters, init=False)
    pagination: Pagination = field(default_factory=Pagination, init=False)

    def _validate(self) -> None:
        txn_type = self._text("type", label="Type").lower()
        if txn_type in {"", "all"}:
            txn_type = ""
        elif txn_type not in {t.value for t in TransactionType}:
            self._add_error("type", f"Unknown transaction type: {txn_type}.")
        status = self._text("status", label="Status").lower()
        if status in {"", "all"}:
            status = ""
        elif status not in {s.value for s in TransactionStatus}:
            self._add_error("status", f"Unknown status: {status}.")

        self.filters = LedgerFilters(
            start_date=self._date("start_date", label="Start date"),
            end_date=self._date("end_date", label="End date"),
            account_id=self._int("account_id", label="Account"),
            transaction_type=txn_type or None,
            status=status or None,
            currency=self._currency("currency", label="Currency"),
            category=self._text("category", label="Category", max_length=32) or None,
            text=self._text("q", label="Search") or None,
        )
        if self.filters.end_date is not None and self.has("end_date") and len(str(self.raw_data["end_date"]).strip()) == 10:
            # Date-only end bounds include the whole day
            self.filters.end_date = self.filters.end_date.replace(hour=23, minute=59, second=59, microsecond=999999)
        self.pagination = Pagination(
            page=self._int("page", label="Page") or 1,
            per_page=self._int("per_page", label="Page size") or 25,
        )
