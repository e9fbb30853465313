"""Ledger engine: transaction creation, delta corrections and status changes.

Every balance-mutating operation runs inside one unit of work obtained from the
session factory, so the transaction row and the balance increments it implies
commit or roll back together. Balances only ever move through
``AccountRepository.adjust_balance`` which is an in-database increment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_CEILING, Decimal
from typing import Any, Callable, Mapping, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..constants.categories import get_categories_for_type
from ..constants.currencies import (
    currency_decimals,
    from_minor,
    is_known_currency,
    normalize_code,
    to_minor,
)
from ..domain.errors import (
    ConcurrencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..domain.results import as_result
from ..infra.database import SessionFactory
from ..infra.repositories.account import SQLModelAccountRepository
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.account import Account
from ..models.transaction import Transaction, TransactionStatus, TransactionType, as_utc

logger = get_logger(__name__)

T = TypeVar("T")

_NUMBER_ATTEMPTS = 3
_EDITABLE_FIELDS = {
    "amount",
    "description",
    "notes",
    "category",
    "reference",
    "transaction_date",
    "inventory_transaction_id",
}
_CREATABLE_STATUSES = {TransactionStatus.PENDING.value, TransactionStatus.COMPLETED.value}


@dataclass
class LedgerFilters:
    """Filters applied to ledger listings."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    account_id: Optional[int] = None
    transaction_type: Optional[str] = None
    status: Optional[str] = None
    currency: Optional[str] = None
    category: Optional[str] = None
    text: Optional[str] = None


@dataclass
class Pagination:
    """Simple pagination parameters."""

    page: int = 1
    per_page: int = 25

    @property
    def offset(self) -> int:
        return (max(1, self.page) - 1) * self.limit

    @property
    def limit(self) -> int:
        return min(max(1, self.per_page), 500)


@dataclass
class TransactionPage:
    """One page of a ledger listing."""

    items: list[Transaction]
    total: int
    page: int
    per_page: int
    viewer_account_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [t.to_dict(viewer_account_id=self.viewer_account_id) for t in self.items],
            "total": self.total,
            "page": self.page,
            "per_page": self.per_page,
        }


@dataclass(frozen=True)
class _Leg:
    """Signed balance effect of a transaction on one (account, currency)."""

    account_id: int
    currency: str
    minor: int
    needs_funds: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _positive_minor(value: Any, currency: str, field: str) -> int:
    try:
        minor = to_minor(value, currency)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number.", field=field) from exc
    if minor <= 0:
        raise ValidationError(f"{field} must be greater than zero.", field=field, value=value)
    return minor


def _rate(value: Any) -> float:
    try:
        rate = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Exchange rate must be a number.", field="exchange_rate") from exc
    if not rate > 0 or rate == float("inf"):
        raise ValidationError("Exchange rate must be greater than zero.", field="exchange_rate")
    return rate


def counter_amount_minor(from_minor_value: int, from_currency: str, to_currency: str, rate: float) -> int:
    """Convert a debited amount into the credited currency at ``rate`` (half-up)."""

    from_value = Decimal(from_minor_value).scaleb(-currency_decimals(from_currency))
    return to_minor(from_value * Decimal(str(rate)), to_currency)


def counter_tolerance_minor(
    from_minor_value: int, from_currency: str, to_currency: str, raw_rate: Any
) -> int:
    """How far a typed counter amount may sit from ``rate × amount``.

    A rate typed with N decimals stands for anything within half a unit of its
    last digit, so the allowance grows with the debited amount. Never below one
    minor unit.
    """

    exponent = Decimal(str(raw_rate).strip()).as_tuple().exponent
    if not isinstance(exponent, int):
        return 1
    from_value = Decimal(from_minor_value).scaleb(-currency_decimals(from_currency))
    slack = (from_value * Decimal(5).scaleb(exponent - 1)).scaleb(currency_decimals(to_currency))
    return max(1, int(slack.to_integral_value(rounding=ROUND_CEILING)))


class LedgerService:
    """Records income, expenses, transfers and exchanges against accounts."""

    def __init__(
        self,
        accounts: SQLModelAccountRepository,
        transactions: SQLModelTransactionRepository,
        session_factory: SessionFactory,
        *,
        allow_expense_overdraft: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.accounts = accounts
        self.transactions = transactions
        self.session_factory = session_factory
        self.allow_expense_overdraft = allow_expense_overdraft
        self.clock = clock

    # ---------------------------------------------------------------- creation
    @as_result(logger)
    def create_income(self, **fields: Any) -> Transaction:
        """Record money received into ``account_id``."""

        return self._create_simple(TransactionType.INCOME.value, **fields)

    @as_result(logger)
    def create_expense(self, **fields: Any) -> Transaction:
        """Record money paid out of ``account_id``.

        Overdraft follows the account's ``allow_overdraft`` flag, falling back to
        the service-wide setting.
        """

        return self._create_simple(TransactionType.EXPENSE.value, **fields)

    @as_result(logger)
    def create_exchange_transaction(
        self,
        *,
        account_id: int,
        from_currency: str,
        to_currency: str,
        from_amount: Any,
        to_amount: Any = None,
        exchange_rate: Any = None,
        description: str = "",
        notes: str = "",
        reference: str = "",
        transaction_date: Optional[datetime] = None,
        status: str = TransactionStatus.COMPLETED.value,
        user_id: Optional[str] = None,
    ) -> Transaction:
        """Move value between two currency balances of one MULTI account."""

        from_code = self._currency(from_currency, "from_currency")
        to_code = self._currency(to_currency, "to_currency")
        if from_code == to_code:
            raise ValidationError(
                "Exchange needs two different currencies.", from_currency=from_code
            )
        from_minor_value = _positive_minor(from_amount, from_code, "from_amount")
        to_minor_value, rate = self._counter_leg(
            from_minor_value, from_code, to_code, to_amount, exchange_rate
        )
        status = self._creation_status(status)

        def work(session: Session) -> Transaction:
            account = self._active_account(session, account_id)
            if not account.is_multi:
                raise ValidationError(
                    "Currency exchange requires a multi-currency account.", account_id=account_id
                )
            for code in (from_code, to_code):
                self._require_support(account, code)
            txn = Transaction(
                type=TransactionType.EXCHANGE.value,
                status=status,
                account_id=account.id,
                currency=from_code,
                amount_minor=from_minor_value,
                to_currency=to_code,
                to_amount_minor=to_minor_value,
                exchange_rate=rate,
                **self._common(description, notes, reference, transaction_date, user_id),
            )
            return self._insert(session, txn)

        txn = self._atomic(work)
        self._log_mutation("Exchange recorded", txn)
        return txn

    @as_result(logger)
    def create_cross_transfer_transaction(
        self,
        *,
        from_account_id: int,
        to_account_id: int,
        from_amount: Any,
        to_amount: Any = None,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        exchange_rate: Any = None,
        description: str = "",
        notes: str = "",
        reference: str = "",
        transaction_date: Optional[datetime] = None,
        status: str = TransactionStatus.COMPLETED.value,
        user_id: Optional[str] = None,
    ) -> Transaction:
        """Move value from one account to another, optionally across currencies.

        Stored as a single row; ``transfer_direction`` is derived when listing
        against either account.
        """

        status = self._creation_status(status)

        def work(session: Session) -> Transaction:
            source = self._active_account(session, from_account_id)
            target = self._active_account(session, to_account_id)
            from_code = self._currency(from_currency or source.currency, "from_currency")
            to_code = self._currency(to_currency or target.currency, "to_currency")
            if source.id == target.id and from_code == to_code:
                raise ValidationError(
                    "Transfer to the same account needs a different currency.",
                    account_id=source.id,
                )
            self._require_support(source, from_code)
            self._require_support(target, to_code)

            from_minor_value = _positive_minor(from_amount, from_code, "from_amount")
            if from_code == to_code:
                to_minor_value = from_minor_value
                if to_amount not in (None, ""):
                    if _positive_minor(to_amount, to_code, "to_amount") != from_minor_value:
                        raise ValidationError(
                            "Same-currency transfers must credit the amount debited.",
                            field="to_amount",
                        )
                rate = 1.0
            else:
                to_minor_value, rate = self._counter_leg(
                    from_minor_value, from_code, to_code, to_amount, exchange_rate
                )

            txn = Transaction(
                type=TransactionType.TRANSFER.value,
                status=status,
                account_id=source.id,
                currency=from_code,
                amount_minor=from_minor_value,
                to_account_id=target.id,
                to_currency=to_code,
                to_amount_minor=to_minor_value,
                exchange_rate=rate,
                **self._common(description, notes, reference, transaction_date, user_id),
            )
            return self._insert(session, txn)

        txn = self._atomic(work)
        self._log_mutation("Transfer recorded", txn)
        return txn

    # ------------------------------------------------------------- corrections
    @as_result(logger)
    def update_transaction(
        self,
        transaction_id: int,
        changes: Mapping[str, Any],
        user_id: Optional[str] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Transaction:
        """Edit a transaction, applying only the balance difference of an amount change."""

        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be edited: {', '.join(sorted(unknown))}.",
                fields=sorted(unknown),
            )

        def work(session: Session) -> tuple[Transaction, list[_Leg]]:
            txn = self._load(session, transaction_id, expected_version)
            if txn.status == TransactionStatus.CANCELLED.value:
                raise InvalidStateError(
                    "Cancelled transactions cannot be edited.", transaction_id=transaction_id
                )

            values: dict[str, Any] = {}
            for key in ("description", "notes", "reference", "inventory_transaction_id"):
                if key in changes:
                    values[key] = changes[key] if changes[key] is not None else ""
            if "inventory_transaction_id" in values and not values["inventory_transaction_id"]:
                values["inventory_transaction_id"] = None
            if "category" in changes:
                values["category"] = self._category(txn.type, changes["category"])
            if "transaction_date" in changes:
                values["transaction_date"] = self._date(changes["transaction_date"])

            deltas: list[_Leg] = []
            if "amount" in changes:
                new_minor = _positive_minor(changes["amount"], txn.currency, "amount")
                if new_minor != txn.amount_minor:
                    new_to_minor = self._recomputed_counter(txn, new_minor)
                    before = self._legs(session, txn)
                    after = self._legs(session, txn, new_minor, new_to_minor)
                    deltas = [
                        _Leg(old.account_id, old.currency, new.minor - old.minor, old.needs_funds)
                        for old, new in zip(before, after)
                        if new.minor != old.minor
                    ]
                    values["amount_minor"] = new_minor
                    if new_to_minor is not None:
                        values["to_amount_minor"] = new_to_minor

            values["updated_at"] = self.clock()
            values["updated_by"] = user_id
            updated = self.transactions.compare_and_set(session, txn, values)
            if txn.status == TransactionStatus.COMPLETED.value:
                self._apply(session, deltas, user_id)
            else:
                deltas = []
            return updated, deltas

        updated, deltas = self._atomic(work)
        logger.info(
            "Transaction updated",
            extra={
                "transaction_number": updated.transaction_number,
                "fields": sorted(changes),
                "balance_deltas": [(d.account_id, d.currency, d.minor) for d in deltas],
                "user_id": user_id,
            },
        )
        return updated

    @as_result(logger)
    def complete_transaction(
        self,
        transaction_id: int,
        user_id: Optional[str] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Transaction:
        """Apply a PENDING transaction's balance effect and mark it COMPLETED."""

        def work(session: Session) -> Transaction:
            txn = self._load(session, transaction_id, expected_version)
            if txn.status != TransactionStatus.PENDING.value:
                raise InvalidStateError(
                    f"Only pending transactions can be completed (status: {txn.status}).",
                    transaction_id=transaction_id,
                )
            self._active_account(session, txn.account_id)
            if txn.to_account_id is not None:
                self._active_account(session, txn.to_account_id)
            updated = self.transactions.compare_and_set(
                session,
                txn,
                {
                    "status": TransactionStatus.COMPLETED.value,
                    "updated_at": self.clock(),
                    "updated_by": user_id,
                },
            )
            self._apply(session, self._legs(session, txn), user_id)
            return updated

        txn = self._atomic(work)
        self._log_mutation("Transaction completed", txn)
        return txn

    @as_result(logger)
    def cancel_transaction(
        self,
        transaction_id: int,
        user_id: Optional[str] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Transaction:
        """Reverse a COMPLETED transaction's effect; cancellation is terminal."""

        def work(session: Session) -> Transaction:
            txn = self._load(session, transaction_id, expected_version)
            if txn.status != TransactionStatus.COMPLETED.value:
                raise InvalidStateError(
                    f"Only completed transactions can be cancelled (status: {txn.status}).",
                    transaction_id=transaction_id,
                )
            now = self.clock()
            updated = self.transactions.compare_and_set(
                session,
                txn,
                {
                    "status": TransactionStatus.CANCELLED.value,
                    "cancelled_at": now,
                    "cancelled_by": user_id,
                    "updated_at": now,
                    "updated_by": user_id,
                },
            )
            self._apply(session, self._reversal(session, txn), user_id)
            return updated

        txn = self._atomic(work)
        self._log_mutation("Transaction cancelled", txn)
        return txn

    @as_result(logger)
    def delete_transaction(
        self,
        transaction_id: int,
        user_id: Optional[str] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> int:
        """Remove a transaction, first reversing its effect if it was COMPLETED."""

        def work(session: Session) -> Transaction:
            txn = self._load(session, transaction_id, expected_version)
            if txn.status == TransactionStatus.COMPLETED.value:
                self._apply(session, self._reversal(session, txn), user_id)
            self.transactions.delete(session, txn)
            return txn

        txn = self._atomic(work)
        self._log_mutation("Transaction deleted", txn, user_id=user_id)
        return transaction_id

    # ------------------------------------------------------------------ reads
    @as_result(logger)
    def get_transaction(self, transaction_id: int) -> Transaction:
        txn = self.transactions.get_by_id(transaction_id)
        if txn is None:
            raise NotFoundError("Transaction not found.", transaction_id=transaction_id)
        return txn

    @as_result(logger)
    def list_transactions(
        self, filters: Optional[LedgerFilters] = None, pagination: Optional[Pagination] = None
    ) -> TransactionPage:
        """Newest-first listing; transfers carry a direction when filtered by account."""

        filters = filters or LedgerFilters()
        pagination = pagination or Pagination()
        start = as_utc(filters.start_date) if filters.start_date else None
        end = as_utc(filters.end_date) if filters.end_date else None
        if start and end and start > end:
            raise ValidationError("start_date must not be after end_date.")
        rows, total = self.transactions.search(
            start_date=start,
            end_date=end,
            account_id=filters.account_id,
            transaction_type=filters.transaction_type or None,
            status=filters.status or None,
            currency=normalize_code(filters.currency) or None,
            category=filters.category or None,
            text=filters.text or None,
            limit=pagination.limit,
            offset=pagination.offset,
        )
        return TransactionPage(
            items=rows,
            total=total,
            page=max(1, pagination.page),
            per_page=pagination.limit,
            viewer_account_id=filters.account_id,
        )

    # ---------------------------------------------------------------- helpers
    def _create_simple(
        self,
        transaction_type: str,
        *,
        account_id: int,
        amount: Any,
        currency: Optional[str] = None,
        category: Optional[str] = None,
        description: str = "",
        notes: str = "",
        reference: str = "",
        transaction_date: Optional[datetime] = None,
        inventory_transaction_id: Optional[str] = None,
        status: str = TransactionStatus.COMPLETED.value,
        user_id: Optional[str] = None,
    ) -> Transaction:
        status = self._creation_status(status)
        category = self._category(transaction_type, category)

        def work(session: Session) -> Transaction:
            account = self._active_account(session, account_id)
            code = self._currency(currency or account.currency, "currency")
            self._require_support(account, code)
            txn = Transaction(
                type=transaction_type,
                status=status,
                category=category,
                account_id=account.id,
                currency=code,
                amount_minor=_positive_minor(amount, code, "amount"),
                inventory_transaction_id=inventory_transaction_id or None,
                **self._common(description, notes, reference, transaction_date, user_id),
            )
            return self._insert(session, txn)

        txn = self._atomic(work)
        label = "Income recorded" if transaction_type == TransactionType.INCOME.value else "Expense recorded"
        self._log_mutation(label, txn)
        return txn

    def _atomic(self, work: Callable[[Session], T]) -> T:
        """Run ``work`` in one unit of work, retrying transaction-number collisions."""

        for attempt in range(1, _NUMBER_ATTEMPTS + 1):
            try:
                with self.session_factory() as session:
                    return work(session)
            except IntegrityError:
                if attempt == _NUMBER_ATTEMPTS:
                    raise
                logger.warning("Unique constraint hit, retrying unit of work", extra={"attempt": attempt})
        raise RuntimeError("unreachable")  # pragma: no cover

    def _insert(self, session: Session, txn: Transaction) -> Transaction:
        txn.transaction_number = self.transactions.next_number(session, txn.type, self.clock())
        session.add(txn)
        session.flush()
        if txn.status == TransactionStatus.COMPLETED.value:
            self._apply(session, self._legs(session, txn), txn.created_by)
        return txn

    def _apply(self, session: Session, legs: list[_Leg], user_id: Optional[str]) -> None:
        touched: set[int] = set()
        for leg in legs:
            if not leg.minor:
                continue
            floor = 0 if leg.needs_funds and leg.minor < 0 else None
            self.accounts.adjust_balance(
                session, leg.account_id, leg.currency, leg.minor, floor_minor=floor
            )
            touched.add(leg.account_id)
        for account_id in sorted(touched):
            self.accounts.touch(session, account_id, user_id)

    def _legs(
        self,
        session: Session,
        txn: Transaction,
        amount_minor: Optional[int] = None,
        to_amount_minor: Optional[int] = None,
    ) -> list[_Leg]:
        """Signed balance effects of ``txn`` (optionally with replacement amounts)."""

        amount = txn.amount_minor if amount_minor is None else amount_minor
        to_amount = txn.to_amount_minor if to_amount_minor is None else to_amount_minor
        if txn.type == TransactionType.INCOME.value:
            return [_Leg(txn.account_id, txn.currency, amount, False)]
        if txn.type == TransactionType.EXPENSE.value:
            account = session.get(Account, txn.account_id)
            return [_Leg(txn.account_id, txn.currency, -amount, not self._overdraft_allowed(account))]
        if txn.type == TransactionType.TRANSFER.value:
            return [
                _Leg(txn.account_id, txn.currency, -amount, True),
                _Leg(txn.to_account_id, txn.to_currency, to_amount or 0, False),  # type: ignore[arg-type]
            ]
        if txn.type == TransactionType.EXCHANGE.value:
            return [
                _Leg(txn.account_id, txn.currency, -amount, True),
                _Leg(txn.account_id, txn.to_currency, to_amount or 0, False),  # type: ignore[arg-type]
            ]
        raise ValidationError(f"Unknown transaction type: {txn.type!r}.")

    def _reversal(self, session: Session, txn: Transaction) -> list[_Leg]:
        # Reversals are never refused for lack of funds
        return [
            _Leg(leg.account_id, leg.currency, -leg.minor, False)
            for leg in self._legs(session, txn)
        ]

    def _overdraft_allowed(self, account: Optional[Account]) -> bool:
        if account is not None and account.allow_overdraft is not None:
            return bool(account.allow_overdraft)
        return self.allow_expense_overdraft

    @staticmethod
    def _recomputed_counter(txn: Transaction, new_minor: int) -> Optional[int]:
        """Counter leg for a new debit amount, at the rate stored on the row.

        The counter leg moves by the converted difference, so a typed counter
        amount keeps its offset from ``rate × amount`` and reverting the debit
        restores it exactly.
        """

        if txn.type not in (TransactionType.TRANSFER.value, TransactionType.EXCHANGE.value):
            return None
        if txn.currency == txn.to_currency:
            return new_minor
        old_to = txn.to_amount_minor or 0
        if txn.exchange_rate:
            def convert(minor: int) -> int:
                return counter_amount_minor(minor, txn.currency, txn.to_currency, txn.exchange_rate)  # type: ignore[arg-type]

            new_to = old_to + convert(new_minor) - convert(txn.amount_minor)
        else:
            # Rows without a rate scale the counter leg proportionally
            new_to = round(old_to * new_minor / txn.amount_minor)
        if new_to <= 0:
            raise ValidationError("Converted amount rounds to zero.", field="amount")
        return new_to

    @staticmethod
    def _counter_leg(
        from_minor_value: int,
        from_code: str,
        to_code: str,
        to_amount: Any,
        exchange_rate: Any,
    ) -> tuple[int, float]:
        """Resolve the credited amount and the rate to store.

        A supplied rate is stored verbatim; without one it is derived as
        ``to_amount / from_amount``.
        """

        has_to = to_amount not in (None, "")
        has_rate = exchange_rate not in (None, "")
        if not has_to and not has_rate:
            raise ValidationError(
                "Either to_amount or exchange_rate is required.", field="exchange_rate"
            )
        rate = _rate(exchange_rate) if has_rate else None
        if has_to:
            to_minor_value = _positive_minor(to_amount, to_code, "to_amount")
            if rate is not None:
                expected = counter_amount_minor(from_minor_value, from_code, to_code, rate)
                tolerance = counter_tolerance_minor(from_minor_value, from_code, to_code, exchange_rate)
                if abs(to_minor_value - expected) > tolerance:
                    raise ValidationError(
                        "to_amount does not match from_amount at the given exchange rate.",
                        field="to_amount",
                        expected=from_minor(expected, to_code),
                    )
        else:
            to_minor_value = counter_amount_minor(from_minor_value, from_code, to_code, rate)  # type: ignore[arg-type]
            if to_minor_value <= 0:
                raise ValidationError("Converted amount rounds to zero.", field="to_amount")
        if rate is None:
            rate = from_minor(to_minor_value, to_code) / from_minor(from_minor_value, from_code)
        return to_minor_value, rate

    def _load(
        self, session: Session, transaction_id: int, expected_version: Optional[int]
    ) -> Transaction:
        txn = session.get(Transaction, transaction_id)
        if txn is None:
            raise NotFoundError("Transaction not found.", transaction_id=transaction_id)
        if expected_version is not None and expected_version != txn.version:
            raise ConcurrencyError(
                "The transaction was modified by someone else, reload and retry.",
                transaction_id=transaction_id,
                expected_version=expected_version,
                current_version=txn.version,
            )
        return txn

    def _active_account(self, session: Session, account_id: Optional[int]) -> Account:
        if account_id is None:
            raise ValidationError("Account is required.", field="account_id")
        account = self.accounts.lock(session, account_id)
        if account is None:
            raise NotFoundError("Account not found.", account_id=account_id)
        if not account.is_active:
            raise ValidationError("Account is not active.", account_id=account_id)
        return account

    @staticmethod
    def _require_support(account: Account, currency: str) -> None:
        if not account.supports(currency):
            raise ValidationError(
                f"Account {account.name!r} does not hold {currency}.",
                account_id=account.id,
                currency=currency,
            )

    @staticmethod
    def _currency(code: Optional[str], field: str) -> str:
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError(f"{field} is required.", field=field)
        if not is_known_currency(normalized):
            raise ValidationError(f"Unsupported currency: {code!r}.", field=field)
        return normalized

    @staticmethod
    def _category(transaction_type: str, category: Optional[str]) -> Optional[str]:
        if not category:
            return None
        allowed = get_categories_for_type(transaction_type)
        if allowed and category not in allowed:
            raise ValidationError(f"Unknown {transaction_type} category: {category!r}.", field="category")
        return category

    @staticmethod
    def _creation_status(status: Optional[str]) -> str:
        status = status or TransactionStatus.COMPLETED.value
        if status not in _CREATABLE_STATUSES:
            raise ValidationError(f"Transactions cannot be created as {status!r}.", field="status")
        return status

    @staticmethod
    def _date(value: Any) -> datetime:
        if isinstance(value, datetime):
            return as_utc(value)
        try:
            return as_utc(datetime.fromisoformat(str(value)))
        except ValueError as exc:
            raise ValidationError("Enter a valid date (YYYY-MM-DD).", field="transaction_date") from exc

    def _common(
        self,
        description: str,
        notes: str,
        reference: str,
        transaction_date: Any,
        user_id: Optional[str],
    ) -> dict[str, Any]:
        now = self.clock()
        return {
            "description": (description or "").strip(),
            "notes": notes or "",
            "reference": reference or "",
            "transaction_date": self._date(transaction_date) if transaction_date else now,
            "created_at": now,
            "created_by": user_id,
            "updated_at": now,
            "updated_by": user_id,
        }

    @staticmethod
    def _log_mutation(message: str, txn: Transaction, **extra: Any) -> None:
        logger.info(
            message,
            extra={
                "transaction_number": txn.transaction_number,
                "transaction_type": txn.type,
                "status": txn.status,
                "account_id": txn.account_id,
                "to_account_id": txn.to_account_id,
                "currency": txn.currency,
                "amount_minor": txn.amount_minor,
                "to_currency": txn.to_currency,
                "to_amount_minor": txn.to_amount_minor,
                **extra,
            },
        )


__all__ = [
    "LedgerFilters",
    "LedgerService",
    "Pagination",
    "TransactionPage",
    "counter_amount_minor",
    "counter_tolerance_minor",
]
