"""Receivable/payable form validation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...models.receivable import CounterpartyType, PaymentMethod
from ..forms import BaseForm

_TEXT_FIELDS = {
    "counterparty_id": ("Counterparty", 64),
    "counterparty_name": ("Counterparty name", 128),
    "company_id": ("Company", 64),
    "company_name": ("Company name", 128),
    "order_id": ("Order", 64),
    "order_number": ("Order number", 64),
    "category": ("Category", 32),
    "description": ("Description", 255),
    "notes": ("Notes", 1024),
}


def _counterparty_type(form: BaseForm, data: dict[str, Any]) -> None:
    value = form._text("counterparty_type", label="Counterparty type")
    if not value:
        return
    if value not in {c.value for c in CounterpartyType}:
        form._add_error("counterparty_type", f"Unknown counterparty type: {value}.")
    data["counterparty_type"] = value


@dataclass(slots=True)
class DebtForm(BaseForm):
    """New receivable or payable."""

    FIELDS = ("amount", "currency", "due_date", "counterparty_type", *_TEXT_FIELDS)

    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        data: dict[str, Any] = {"amount": self._amount("amount", label="Amount")}
        currency = self._currency("currency", label="Currency")
        if currency:
            data["currency"] = currency
        due = self._date("due_date", label="Due date")
        if due is not None:
            data["due_date"] = due
        _counterparty_type(self, data)
        for key, (label, max_length) in _TEXT_FIELDS.items():
            if self.has(key):
                data[key] = self._text(key, label=label, max_length=max_length)
        self.cleaned = data


@dataclass(slots=True)
class DebtUpdateForm(BaseForm):
    """Partial update of a receivable or payable."""

    FIELDS = ("amount", "due_date", "counterparty_type", "expected_version", *_TEXT_FIELDS)

    changes: dict[str, Any] = field(default_factory=dict, init=False)
    expected_version: int | None = None

    def _validate(self) -> None:
        changes: dict[str, Any] = {}
        if self.has("amount"):
            changes["amount"] = self._amount("amount", label="Amount")
        if self.has("due_date"):
            changes["due_date"] = self._date("due_date", label="Due date")
        _counterparty_type(self, changes)
        for key, (label, max_length) in _TEXT_FIELDS.items():
            if self.has(key):
                changes[key] = self._text(key, label=label, max_length=max_length)
        self.expected_version = self._int("expected_version", label="Version")
        if not changes and not self.errors:
            self._add_error("__all__", "Nothing to update.")
        self.changes = changes


@dataclass(slots=True)
class PaymentForm(BaseForm):
    """A collection or payment against a debt."""

    FIELDS = ("amount", "method", "account_id", "paid_at", "note", "expected_version")

    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        data: dict[str, Any] = {
            "amount": self._amount("amount", label="Amount"),
            "account_id": self._int("account_id", label="Account"),
            "note": self._text("note", label="Note"),
            "expected_version": self._int("expected_version", label="Version"),
        }
        method = self._text("method", label="Payment method")
        if method:
            if method not in {m.value for m in PaymentMethod}:
                self._add_error("method", f"Unknown payment method: {method}.")
            data["method"] = method
        paid_at = self._date("paid_at", label="Payment date")
        if paid_at is not None:
            data["paid_at"] = paid_at
        self.cleaned = data
