"""Account store: CRUD over finance accounts plus balance read helpers."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from ..constants.currencies import (
    TRY,
    all_currencies,
    from_minor,
    is_known_currency,
    normalize_code,
    to_minor,
)
from ..domain.errors import InvalidStateError, NotFoundError, ValidationError
from ..domain.repositories import AccountRepository
from ..domain.results import as_result
from ..logging_config import get_logger
from ..models.account import Account, AccountMode, AccountType

logger = get_logger(__name__)

_UPDATABLE_FIELDS = {
    "name",
    "account_type",
    "supported_currencies",
    "bank_name",
    "iban",
    "account_number",
    "branch_code",
    "description",
    "notes",
    "is_default",
    "allow_overdraft",
}


def get_balance(account: Account, currency: str) -> float:
    """Balance of ``account`` in ``currency``; currencies it never touched read as 0."""

    code = normalize_code(currency)
    return from_minor(account.balance_minor(code), code)


def _non_zero(balances: Mapping[str, float]) -> dict[str, float]:
    return {code: amount for code, amount in balances.items() if amount != 0}


def _sum_balances(accounts: Iterable[Account], currency: Optional[str] = None) -> dict[str, float]:
    """Total per currency across ``accounts`` using exact minor-unit sums."""

    totals: dict[str, int] = {}
    for account in accounts:
        for row in account.balances or []:
            if currency and row.currency != currency:
                continue
            if not account.supports(row.currency):
                continue
            totals[row.currency] = totals.get(row.currency, 0) + row.amount_minor
    return {code: from_minor(minor, code) for code, minor in totals.items() if minor}


class AccountService:
    """Create, edit, retire and inspect finance accounts.

    Every public method returns a :class:`Result`; balance fields are never
    written here apart from opening balances at creation.
    """

    def __init__(self, accounts: AccountRepository, *, default_currency: str = TRY):
        self.accounts = accounts
        self.default_currency = normalize_code(default_currency) or TRY

    # ------------------------------------------------------------------ reads
    @as_result(logger)
    def get_account(self, account_id: int) -> Account:
        return self._require(account_id)

    @as_result(logger)
    def get_accounts(
        self,
        *,
        is_active: Optional[bool] = True,
        account_type: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> list[Account]:
        """List accounts; ``is_active=None`` includes retired ones."""

        return self.accounts.list_all(
            is_active=is_active,
            account_type=account_type,
            currency=normalize_code(currency) or None,
        )

    @as_result(logger)
    def get_default_account(self, currency: Optional[str] = None) -> Account:
        code = normalize_code(currency) or self.default_currency
        account = self.accounts.get_default(code)
        if account is None:
            raise NotFoundError(f"No default account for {code}.", currency=code)
        return account

    @as_result(logger)
    def get_account_balances(self, account_id: int) -> dict[str, Any]:
        account = self._require(account_id)
        all_balances = account.balance_map()
        return {
            "account_id": account.id,
            "account_name": account.name,
            "mode": account.mode,
            "main_currency": account.currency,
            "balances": _non_zero(all_balances),
            "all_balances": all_balances,
        }

    @as_result(logger)
    def get_total_balance(self, currency: Optional[str] = None) -> dict[str, float]:
        """Non-zero totals per currency across active accounts."""

        code = normalize_code(currency) or None
        return _sum_balances(self.accounts.list_all(is_active=True), code)

    @as_result(logger)
    def get_account_stats(self) -> dict[str, Any]:
        accounts = self.accounts.list_all(is_active=True)
        by_mode = {AccountMode.SINGLE.value: 0, AccountMode.MULTI.value: 0}
        by_mode.update(Counter(account.mode for account in accounts))
        return {
            "total_accounts": len(accounts),
            "by_type": dict(Counter(account.account_type for account in accounts)),
            "by_currency": dict(Counter(account.currency for account in accounts)),
            "by_mode": by_mode,
            "total_balances": _sum_balances(accounts),
        }

    # ----------------------------------------------------------------- writes
    @as_result(logger)
    def create_account(
        self,
        *,
        name: str,
        account_type: str = AccountType.BANK.value,
        mode: str = AccountMode.SINGLE.value,
        currency: Optional[str] = None,
        supported_currencies: Optional[list[str]] = None,
        initial_balance: float = 0,
        initial_balances: Optional[Mapping[str, float]] = None,
        is_default: bool = False,
        allow_overdraft: Optional[bool] = None,
        bank_name: str = "",
        iban: str = "",
        account_number: str = "",
        branch_code: str = "",
        description: str = "",
        notes: str = "",
        user_id: Optional[str] = None,
    ) -> Account:
        """Create an account with its opening balances.

        SINGLE accounts take ``initial_balance`` in ``currency``. MULTI accounts
        take ``initial_balances`` keyed by currency and default to supporting
        every registered currency.
        """

        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required.")
        account_type = self._check_type(account_type)
        if mode not in {m.value for m in AccountMode}:
            raise ValidationError(f"Unknown account mode: {mode!r}.", mode=mode)
        primary = self._check_currency(currency or self.default_currency)

        if mode == AccountMode.MULTI.value:
            codes = self._check_currencies(supported_currencies or all_currencies())
            if primary not in codes:
                codes.insert(0, primary)
            openings: dict[str, int] = {}
            for code, amount in (initial_balances or {}).items():
                code = self._check_currency(code)
                if code not in codes:
                    raise ValidationError(
                        f"{code} is not supported by this account.", currency=code
                    )
                openings[code] = self._to_minor(amount, code)
        else:
            codes = [primary]
            openings = {primary: self._to_minor(initial_balance, primary)}

        now = datetime.now(timezone.utc)
        account = Account(
            name=name,
            account_type=account_type,
            mode=mode,
            currency=primary,
            supported_currencies=codes,
            bank_name=bank_name or "",
            iban=(iban or "").replace(" ", "").upper(),
            account_number=account_number or "",
            branch_code=branch_code or "",
            description=description or "",
            notes=notes or "",
            is_active=True,
            is_default=bool(is_default),
            allow_overdraft=allow_overdraft,
            created_at=now,
            created_by=user_id,
            updated_at=now,
            updated_by=user_id,
        )
        created = self.accounts.create(account, openings)
        logger.info(
            "Account created",
            extra={"account_id": created.id, "mode": mode, "currency": primary, "user_id": user_id},
        )
        return created

    @as_result(logger)
    def update_account(
        self, account_id: int, changes: Mapping[str, Any], user_id: Optional[str] = None
    ) -> Account:
        """Edit descriptive fields; currency, mode and balances are fixed.

        Retiring an account goes through :meth:`delete_account`.
        """

        account = self._require(account_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be changed: {', '.join(sorted(unknown))}.",
                fields=sorted(unknown),
            )

        for key, value in changes.items():
            if key == "name":
                value = (value or "").strip()
                if not value:
                    raise ValidationError("Account name is required.")
            elif key == "account_type":
                value = self._check_type(value)
            elif key == "supported_currencies":
                value = self._resolve_supported(account, value)
            elif key == "iban":
                value = (value or "").replace(" ", "").upper()
            elif key == "is_default":
                value = bool(value)
            setattr(account, key, value)

        account.updated_at = datetime.now(timezone.utc)
        account.updated_by = user_id
        updated = self.accounts.update(account)
        logger.info(
            "Account updated",
            extra={"account_id": account_id, "fields": sorted(changes), "user_id": user_id},
        )
        return updated

    @as_result(logger)
    def delete_account(self, account_id: int, user_id: Optional[str] = None) -> Account:
        """Soft delete: hide the account but keep it for historical transactions."""

        account = self._require(account_id)
        if not account.is_active:
            raise InvalidStateError("Account is already deleted.", account_id=account_id)
        now = datetime.now(timezone.utc)
        account.is_active = False
        account.is_default = False
        account.deleted_at = now
        account.deleted_by = user_id
        account.updated_at = now
        account.updated_by = user_id
        updated = self.accounts.update(account)
        logger.info("Account soft-deleted", extra={"account_id": account_id, "user_id": user_id})
        return updated

    @as_result(logger)
    def permanent_delete_account(self, account_id: int) -> int:
        """Remove an account row; only allowed once no transaction references it."""

        self._require(account_id)
        if self.accounts.has_transactions(account_id):
            raise InvalidStateError(
                "Account has transactions and cannot be removed permanently.",
                account_id=account_id,
            )
        self.accounts.delete(account_id)
        logger.info("Account permanently deleted", extra={"account_id": account_id})
        return account_id

    # ---------------------------------------------------------------- helpers
    def _require(self, account_id: int) -> Account:
        account = self.accounts.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found.", account_id=account_id)
        return account

    @staticmethod
    def _check_type(value: Optional[str]) -> str:
        value = (value or AccountType.BANK.value).strip().lower()
        if value not in {t.value for t in AccountType}:
            raise ValidationError(f"Unknown account type: {value!r}.", account_type=value)
        return value

    @staticmethod
    def _check_currency(code: Optional[str]) -> str:
        normalized = normalize_code(code)
        if not is_known_currency(normalized):
            raise ValidationError(f"Unsupported currency: {code!r}.", currency=code)
        return normalized

    def _check_currencies(self, codes: Iterable[str]) -> list[str]:
        result: list[str] = []
        for code in codes:
            normalized = self._check_currency(code)
            if normalized not in result:
                result.append(normalized)
        if not result:
            raise ValidationError("At least one currency is required.")
        return result

    def _resolve_supported(self, account: Account, codes: Iterable[str]) -> list[str]:
        if not account.is_multi:
            raise ValidationError("Single-currency accounts cannot change currencies.")
        resolved = self._check_currencies(codes)
        if account.currency not in resolved:
            resolved.insert(0, account.currency)
        dropped = [code for code in account.supported_currencies or [] if code not in resolved]
        with_balance = [code for code in dropped if account.balance_minor(code) != 0]
        if with_balance:
            raise ValidationError(
                f"Currencies with a balance cannot be removed: {', '.join(with_balance)}.",
                currencies=with_balance,
            )
        in_use = [code for code in dropped if self.accounts.has_transactions(account.id, code)]
        if in_use:
            raise ValidationError(
                f"Currencies used by transactions cannot be removed: {', '.join(in_use)}.",
                currencies=in_use,
            )
        return resolved

    @staticmethod
    def _to_minor(amount: Any, currency: str) -> int:
        try:
            return to_minor(amount or 0, currency)
        except ValueError as exc:
            raise ValidationError(str(exc), currency=currency) from exc


__all__ = ["AccountService", "get_balance"]
