"""Receivables and payables: amounts owed to or by the business and their payments.

A debt tracks ``amount`` against ``paid``; every payment is kept as a row and
moves the debt through ``pending -> partial -> collected/paid``. Open debts
past their due date are flagged ``overdue`` by :meth:`check_overdue`.
Recording a payment does not post a ledger transaction; ``account_id`` only
notes where the money went.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..constants.currencies import TRY, from_minor, is_known_currency, normalize_code, to_minor
from ..domain.errors import ConcurrencyError, InvalidStateError, NotFoundError, ValidationError
from ..domain.results import as_result
from ..infra.database import SessionFactory
from ..infra.repositories.account import SQLModelAccountRepository
from ..infra.repositories.debt import SQLModelDebtRepository
from ..logging_config import get_logger
from ..models.receivable import (
    CounterpartyType,
    Debt,
    DebtKind,
    DebtPayment,
    DebtStatus,
    PaymentMethod,
    settled_status,
)
from ..models.transaction import as_utc

logger = get_logger(__name__)

T = TypeVar("T")

_NUMBER_ATTEMPTS = 3

_TEXT_FIELDS = {
    "counterparty_id",
    "counterparty_name",
    "company_id",
    "company_name",
    "order_id",
    "order_number",
    "category",
    "description",
    "notes",
}
_UPDATABLE_FIELDS = _TEXT_FIELDS | {"amount", "due_date", "counterparty_type"}
_DEFAULT_COUNTERPARTY = {
    DebtKind.RECEIVABLE.value: CounterpartyType.CUSTOMER.value,
    DebtKind.PAYABLE.value: CounterpartyType.SUPPLIER.value,
}


@dataclass
class DebtFilters:
    """Filters applied to receivable/payable listings."""

    kind: Optional[str] = None
    status: Optional[str] = None
    currency: Optional[str] = None
    counterparty_type: Optional[str] = None
    counterparty_id: Optional[str] = None
    company_id: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _positive_minor(value: Any, currency: str) -> int:
    try:
        minor = to_minor(value, currency)
    except (TypeError, ValueError) as exc:
        raise ValidationError("amount must be a number.", field="amount") from exc
    if minor <= 0:
        raise ValidationError("amount must be greater than zero.", field="amount", value=value)
    return minor


class ReceivableService:
    """Track what customers owe us and what we owe suppliers or staff."""

    def __init__(
        self,
        debts: SQLModelDebtRepository,
        accounts: SQLModelAccountRepository,
        session_factory: SessionFactory,
        *,
        default_currency: str = TRY,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.debts = debts
        self.accounts = accounts
        self.session_factory = session_factory
        self.default_currency = normalize_code(default_currency) or TRY
        self.clock = clock

    # ---------------------------------------------------------------- creation
    @as_result(logger)
    def create_receivable(self, **fields: Any) -> Debt:
        """Record an amount a customer or company owes us."""

        return self._create(DebtKind.RECEIVABLE.value, **fields)

    @as_result(logger)
    def create_payable(self, **fields: Any) -> Debt:
        """Record an amount we owe a supplier, a staff member or someone else."""

        return self._create(DebtKind.PAYABLE.value, **fields)

    # ---------------------------------------------------------------- changes
    @as_result(logger)
    def update_debt(
        self,
        debt_id: int,
        changes: Mapping[str, Any],
        user_id: Optional[str] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Debt:
        """Edit an open or settled debt; the amount may not drop below what was paid."""

        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be changed: {', '.join(sorted(unknown))}.",
                fields=sorted(unknown),
            )

        def work(session: Session) -> Debt:
            debt = self._load(session, debt_id, expected_version)
            if debt.status == DebtStatus.CANCELLED.value:
                raise InvalidStateError("Cancelled records cannot be edited.", debt_id=debt_id)
            now = self.clock()
            values: dict[str, Any] = {}
            for key, value in changes.items():
                if key == "amount":
                    amount_minor = _positive_minor(value, debt.currency)
                    if amount_minor < debt.paid_minor:
                        raise ValidationError(
                            "Amount cannot be less than what was already paid.",
                            field="amount",
                            paid=debt.paid_amount,
                        )
                    values["amount_minor"] = amount_minor
                elif key == "due_date":
                    values["due_date"] = self._date(value) if value else None
                elif key == "counterparty_type":
                    values["counterparty_type"] = self._counterparty_type(value, debt.kind)
                else:
                    values[key] = (value or "").strip() if isinstance(value, str) else value
            values["status"] = self._status_for(
                debt.kind,
                values.get("amount_minor", debt.amount_minor),
                debt.paid_minor,
                values.get("due_date", debt.due_date),
                now,
            )
            values["updated_at"] = now
            values["updated_by"] = user_id
            return self.debts.compare_and_set(session, debt, values)

        debt = self._atomic(work)
        self._log_mutation("Debt updated", debt, fields=sorted(changes))
        return debt

    @as_result(logger)
    def record_payment(
        self,
        debt_id: int,
        *,
        amount: Any,
        method: Optional[str] = None,
        account_id: Optional[int] = None,
        paid_at: Any = None,
        note: str = "",
        user_id: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Debt:
        """Add a collection (receivable) or payment (payable) and advance the status."""

        method = method or PaymentMethod.BANK_TRANSFER.value
        if method not in {m.value for m in PaymentMethod}:
            raise ValidationError(f"Unknown payment method: {method!r}.", field="method")

        def work(session: Session) -> Debt:
            debt = self._load(session, debt_id, expected_version)
            if not debt.is_open:
                raise InvalidStateError(
                    f"Payments cannot be added to a {debt.status} record.", debt_id=debt_id
                )
            amount_minor = _positive_minor(amount, debt.currency)
            if amount_minor > debt.remaining_minor:
                raise ValidationError(
                    "Payment exceeds the remaining amount.",
                    field="amount",
                    remaining=debt.remaining_amount,
                )
            if account_id is not None:
                self._check_account(account_id, debt.currency)
            now = self.clock()
            session.add(
                DebtPayment(
                    debt_id=debt.id,
                    amount_minor=amount_minor,
                    method=method,
                    account_id=account_id,
                    paid_at=self._date(paid_at) if paid_at else now,
                    note=(note or "").strip(),
                    created_at=now,
                    created_by=user_id,
                )
            )
            paid_minor = debt.paid_minor + amount_minor
            return self.debts.compare_and_set(
                session,
                debt,
                {
                    "paid_minor": paid_minor,
                    "status": self._status_for(debt.kind, debt.amount_minor, paid_minor, debt.due_date, now),
                    "updated_at": now,
                    "updated_by": user_id,
                },
            )

        debt = self._atomic(work)
        self._log_mutation("Debt payment recorded", debt, account_id=account_id)
        return debt

    @as_result(logger)
    def cancel_debt(
        self, debt_id: int, user_id: Optional[str] = None, *, expected_version: Optional[int] = None
    ) -> Debt:
        """Write off an open debt; cancellation is terminal."""

        def work(session: Session) -> Debt:
            debt = self._load(session, debt_id, expected_version)
            if not debt.is_open:
                raise InvalidStateError(
                    f"Only open records can be cancelled (status: {debt.status}).", debt_id=debt_id
                )
            return self.debts.compare_and_set(
                session,
                debt,
                {"status": DebtStatus.CANCELLED.value, "updated_at": self.clock(), "updated_by": user_id},
            )

        debt = self._atomic(work)
        self._log_mutation("Debt cancelled", debt)
        return debt

    @as_result(logger)
    def delete_debt(
        self, debt_id: int, user_id: Optional[str] = None, *, expected_version: Optional[int] = None
    ) -> int:
        """Remove a debt that has no payments; paid history is kept via cancel."""

        def work(session: Session) -> Debt:
            debt = self._load(session, debt_id, expected_version)
            if debt.paid_minor:
                raise InvalidStateError(
                    "Records with payments cannot be deleted, cancel them instead.", debt_id=debt_id
                )
            self.debts.delete(session, debt)
            return debt

        debt = self._atomic(work)
        self._log_mutation("Debt deleted", debt, user_id=user_id)
        return debt_id

    @as_result(logger)
    def check_overdue(self, kind: Optional[str] = None) -> dict[str, int]:
        """Flag pending/partial debts past their due date; counts per kind."""

        kinds = [self._kind(kind)] if kind else [k.value for k in DebtKind]
        now = self.clock()
        with self.session_factory() as session:
            counts = {name: self.debts.mark_overdue(session, name, now) for name in kinds}
        if any(counts.values()):
            logger.info("Overdue debts flagged", extra={"counts": counts})
        return counts

    # ------------------------------------------------------------------ reads
    @as_result(logger)
    def get_debt(self, debt_id: int) -> Debt:
        debt = self.debts.get_by_id(debt_id)
        if debt is None:
            raise NotFoundError("Record not found.", debt_id=debt_id)
        return debt

    @as_result(logger)
    def get_payments(self, debt_id: int) -> list[DebtPayment]:
        if self.debts.get_by_id(debt_id) is None:
            raise NotFoundError("Record not found.", debt_id=debt_id)
        return self.debts.payments_for(debt_id)

    @as_result(logger)
    def list_debts(self, filters: Optional[DebtFilters] = None) -> list[Debt]:
        filters = filters or DebtFilters()
        return self.debts.search(
            kind=self._kind(filters.kind) if filters.kind else None,
            status=filters.status or None,
            currency=normalize_code(filters.currency) or None,
            counterparty_type=filters.counterparty_type or None,
            counterparty_id=filters.counterparty_id or None,
            company_id=filters.company_id or None,
        )

    @as_result(logger)
    def get_summary(self) -> dict[str, Any]:
        """Per-currency totals for receivables and payables.

        ``pending`` covers pending and partial remainders, ``overdue`` the
        remainders of overdue records. Cancelled records only count in ``count``.
        """

        summary: dict[str, Any] = {}
        for kind in DebtKind:
            settled_key = "collected" if kind is DebtKind.RECEIVABLE else "paid"
            sums: dict[str, dict[str, int]] = {
                "total": {},
                settled_key: {},
                "pending": {},
                "overdue": {},
            }
            rows = self.debts.search(kind=kind.value)
            for debt in rows:
                if debt.status == DebtStatus.CANCELLED.value:
                    continue
                code = debt.currency
                sums["total"][code] = sums["total"].get(code, 0) + debt.amount_minor
                sums[settled_key][code] = sums[settled_key].get(code, 0) + debt.paid_minor
                if debt.status in (DebtStatus.PENDING.value, DebtStatus.PARTIAL.value):
                    sums["pending"][code] = sums["pending"].get(code, 0) + debt.remaining_minor
                elif debt.status == DebtStatus.OVERDUE.value:
                    sums["overdue"][code] = sums["overdue"].get(code, 0) + debt.remaining_minor
            section: dict[str, Any] = {
                key: {code: from_minor(minor, code) for code, minor in per_currency.items()}
                for key, per_currency in sums.items()
            }
            section["count"] = len(rows)
            summary[f"{kind.value}s"] = section
        return summary

    # ---------------------------------------------------------------- helpers
    def _create(
        self,
        kind: str,
        *,
        amount: Any,
        currency: Optional[str] = None,
        due_date: Any = None,
        counterparty_type: Optional[str] = None,
        user_id: Optional[str] = None,
        **details: Any,
    ) -> Debt:
        unknown = set(details) - _TEXT_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown fields: {', '.join(sorted(unknown))}.", fields=sorted(unknown)
            )
        code = normalize_code(currency) or self.default_currency
        if not is_known_currency(code):
            raise ValidationError(f"Unsupported currency: {currency!r}.", field="currency")
        amount_minor = _positive_minor(amount, code)
        counterparty = self._counterparty_type(counterparty_type, kind)
        due = self._date(due_date) if due_date else None
        text = {key: (value or "").strip() if isinstance(value, str) else value for key, value in details.items()}
        for key in ("counterparty_id", "company_id", "order_id", "order_number", "category"):
            text[key] = text.get(key) or None

        def work(session: Session) -> Debt:
            now = self.clock()
            debt = Debt(
                kind=kind,
                status=DebtStatus.PENDING.value,
                counterparty_type=counterparty,
                currency=code,
                amount_minor=amount_minor,
                paid_minor=0,
                due_date=due,
                created_at=now,
                created_by=user_id,
                updated_at=now,
                updated_by=user_id,
                **text,
            )
            debt.debt_number = self.debts.next_number(session, kind, now)
            session.add(debt)
            session.flush()
            return debt

        debt = self._atomic(work)
        self._log_mutation("Debt recorded", debt)
        return debt

    def _atomic(self, work: Callable[[Session], T]) -> T:
        """Run ``work`` in one unit of work, retrying debt-number collisions."""

        for attempt in range(1, _NUMBER_ATTEMPTS + 1):
            try:
                with self.session_factory() as session:
                    return work(session)
            except IntegrityError:
                if attempt == _NUMBER_ATTEMPTS:
                    raise
                logger.warning("Unique constraint hit, retrying unit of work", extra={"attempt": attempt})
        raise RuntimeError("unreachable")  # pragma: no cover

    def _load(self, session: Session, debt_id: int, expected_version: Optional[int]) -> Debt:
        debt = session.get(Debt, debt_id)
        if debt is None:
            raise NotFoundError("Record not found.", debt_id=debt_id)
        if expected_version is not None and expected_version != debt.version:
            raise ConcurrencyError(
                "The record was modified by someone else, reload and retry.",
                debt_id=debt_id,
                expected_version=expected_version,
                current_version=debt.version,
            )
        return debt

    def _check_account(self, account_id: int, currency: str) -> None:
        account = self.accounts.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found.", account_id=account_id)
        if not account.is_active:
            raise ValidationError("Account is not active.", account_id=account_id)
        if not account.supports(currency):
            raise ValidationError(
                f"Account {account.name!r} does not hold {currency}.",
                account_id=account_id,
                currency=currency,
            )

    @staticmethod
    def _status_for(
        kind: str, amount_minor: int, paid_minor: int, due_date: Optional[datetime], now: datetime
    ) -> str:
        if paid_minor >= amount_minor:
            return settled_status(kind)
        if due_date is not None and as_utc(due_date) < as_utc(now):
            return DebtStatus.OVERDUE.value
        if paid_minor > 0:
            return DebtStatus.PARTIAL.value
        return DebtStatus.PENDING.value

    @staticmethod
    def _kind(value: str) -> str:
        if value not in {k.value for k in DebtKind}:
            raise ValidationError(f"Unknown record kind: {value!r}.", field="kind")
        return value

    @staticmethod
    def _counterparty_type(value: Optional[str], kind: str) -> str:
        value = (value or _DEFAULT_COUNTERPARTY[kind]).strip().lower()
        if value not in {c.value for c in CounterpartyType}:
            raise ValidationError(f"Unknown counterparty type: {value!r}.", field="counterparty_type")
        return value

    @staticmethod
    def _date(value: Any) -> datetime:
        if isinstance(value, datetime):
            return as_utc(value)
        try:
            return as_utc(datetime.fromisoformat(str(value)))
        except ValueError as exc:
            raise ValidationError("Enter a valid date (YYYY-MM-DD).", field="due_date") from exc

    @staticmethod
    def _log_mutation(message: str, debt: Debt, **extra: Any) -> None:
        logger.info(
            message,
            extra={
                "debt_number": debt.debt_number,
                "kind": debt.kind,
                "status": debt.status,
                "currency": debt.currency,
                "amount_minor": debt.amount_minor,
                "paid_minor": debt.paid_minor,
                **extra,
            },
        )


__all__ = ["DebtFilters", "ReceivableService"]
