"""Account form validation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ...models.account import AccountMode, AccountType
from ..forms import BaseForm

_TEXT_FIELDS = {
    "bank_name": ("Bank name", 128),
    "iban": ("IBAN", 34),
    "account_number": ("Account number", 64),
    "branch_code": ("Branch code", 32),
    "description": ("Description", 255),
    "notes": ("Notes", 1024),
}


@dataclass(slots=True)
class AccountForm(BaseForm):
    """Input for opening a new account."""

    FIELDS = (
        "name",
        "account_type",
        "mode",
        "currency",
        "supported_currencies",
        "initial_balance",
        "initial_balances",
        "is_default",
        "allow_overdraft",
        *_TEXT_FIELDS,
    )

    cleaned: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        data: dict[str, Any] = {"name": self._text("name", label="Name", required=True, max_length=128)}

        account_type = self._text("account_type", label="Account type") or AccountType.BANK.value
        if account_type not in {t.value for t in AccountType}:
            self._add_error("account_type", f"Unknown account type: {account_type}.")
        data["account_type"] = account_type

        mode = self._text("mode", label="Mode") or AccountMode.SINGLE.value
        if mode not in {m.value for m in AccountMode}:
            self._add_error("mode", f"Unknown mode: {mode}.")
        data["mode"] = mode

        currency = self._currency("currency", label="Currency")
        if currency:
            data["currency"] = currency

        if mode == AccountMode.MULTI.value:
            supported = self._currency_list("supported_currencies", label="Supported currencies")
            if supported:
                data["supported_currencies"] = supported
            data["initial_balances"] = self._balances("initial_balances")
        else:
            opening = self._amount("initial_balance", label="Initial balance", required=False, allow_zero=True)
            data["initial_balance"] = opening or 0

        for key in ("is_default", "allow_overdraft"):
            if self.has(key):
                data[key] = self._bool(key, label=key.replace("_", " ").capitalize())
        data["is_default"] = bool(data.get("is_default"))

        for key, (label, max_length) in _TEXT_FIELDS.items():
            if self.has(key):
                data[key] = self._text(key, label=label, max_length=max_length)

        self.cleaned = data

    def _balances(self, key: str) -> dict[str, float]:
        raw = self.raw_data.get(key)
        if raw is None or raw == "":
            return {}
        if not isinstance(raw, dict):
            self._add_error(key, "Initial balances must be an object of currency: amount.")
            return {}
        balances: dict[str, float] = {}
        for code, amount in raw.items():
            try:
                value = float(amount or 0)
            except (TypeError, ValueError):
                self._add_error(key, f"Enter a valid number for the {code} balance.")
                continue
            if value < 0:
                self._add_error(key, f"The {code} balance cannot be negative.")
                continue
            balances[str(code).strip().upper()] = value
        return balances


@dataclass(slots=True)
class AccountUpdateForm(BaseForm):
    """Partial update of an account's descriptive fields."""

    FIELDS = (
        "name",
        "account_type",
        "supported_currencies",
        "is_default",
        "allow_overdraft",
        *_TEXT_FIELDS,
    )

    changes: dict[str, Any] = field(default_factory=dict, init=False)

    def _validate(self) -> None:
        changes: dict[str, Any] = {}
        if self.has("name"):
            changes["name"] = self._text("name", label="Name", required=True, max_length=128)
        if self.has("account_type"):
            changes["account_type"] = self._text("account_type", label="Account type")
        if self.has("supported_currencies"):
            changes["supported_currencies"] = self._currency_list(
                "supported_currencies", label="Supported currencies"
            )
        for key in ("is_default", "allow_overdraft"):
            if self.has(key):
                value: Optional[bool] = self._bool(key, label=key.replace("_", " ").capitalize())
                if value is None and key != "allow_overdraft":
                    continue
                changes[key] = value
        for key, (label, max_length) in _TEXT_FIELDS.items():
            if self.has(key):
                changes[key] = self._text(key, label=label, max_length=max_length)
        if not changes and not self.errors:
            self._add_error("__all__", "Nothing to update.")
        self.changes = changes
