"""SQLModel implementation of Account repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, or_, update
from sqlmodel import Session, func, select

from ...domain.errors import InsufficientFundsError
from ...models.account import Account, AccountBalance
from ...models.transaction import Transaction
from ..database import SessionFactory

_EDITABLE_FIELDS = (
    "name",
    "account_type",
    "mode",
    "currency",
    "supported_currencies",
    "bank_name",
    "iban",
    "account_number",
    "branch_code",
    "description",
    "notes",
    "is_active",
    "is_default",
    "allow_overdraft",
    "updated_at",
    "updated_by",
    "deleted_at",
    "deleted_by",
)


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, account_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        with self.session_factory() as session:
            obj = session.get(Account, account_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(
        self,
        *,
        is_active: Optional[bool] = True,
        account_type: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> list[Account]:
        """List accounts, defaults first then by name."""
        with self.session_factory() as session:
            statement = select(Account)
            if is_active is not None:
                statement = statement.where(Account.is_active == is_active)
            if account_type:
                statement = statement.where(Account.account_type == account_type)
            statement = statement.order_by(Account.is_default.desc(), Account.name)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
        if currency:
            rows = [row for row in rows if row.supports(currency)]
        return rows

    def get_default(self, currency: str) -> Optional[Account]:
        """Return the active default account holding ``currency``."""
        for account in self.list_all(is_active=True):
            if account.is_default and account.supports(currency):
                return account
        return None

    def create(self, account: Account, initial_balances: dict[str, int]) -> Account:
        """Create a new account with its opening balances."""
        with self.session_factory() as session:
            if account.is_default:
                self._clear_default(session, account)
            session.add(account)
            for code, amount_minor in initial_balances.items():
                account.balances.append(
                    AccountBalance(currency=code, amount_minor=amount_minor, initial_minor=amount_minor)
                )
            session.commit()
            session.refresh(account)
            account_id = account.id
        return self.get_by_id(account_id)  # type: ignore[arg-type]

    def update(self, account: Account) -> Account:
        """Update an existing account; balances are left untouched."""
        with self.session_factory() as session:
            stored = session.get(Account, account.id)
            if stored is None:
                raise LookupError(f"Account {account.id} does not exist")
            if account.is_default and account.is_active:
                self._clear_default(session, account)
            # Copy column state only; balance rows belong to the ledger
            for field in _EDITABLE_FIELDS:
                setattr(stored, field, getattr(account, field))
            session.add(stored)
            session.commit()
        return self.get_by_id(account.id)  # type: ignore[arg-type]

    def delete(self, account_id: int) -> None:
        """Delete an account and its balance rows."""
        with self.session_factory() as session:
            account = session.get(Account, account_id)
            if account:
                session.delete(account)
                session.commit()

    def has_transactions(self, account_id: int, currency: Optional[str] = None) -> bool:
        """True when a transaction touches the account, or one of its ``currency`` balances."""
        if currency is None:
            touches = or_(Transaction.account_id == account_id, Transaction.to_account_id == account_id)
        else:
            # Exchanges credit to_currency on the same account
            touches = or_(
                and_(
                    Transaction.account_id == account_id,
                    or_(
                        Transaction.currency == currency,
                        and_(Transaction.to_account_id.is_(None), Transaction.to_currency == currency),  # type: ignore[union-attr]
                    ),
                ),
                and_(Transaction.to_account_id == account_id, Transaction.to_currency == currency),
            )
        with self.session_factory() as session:
            statement = select(func.count(Transaction.id)).where(touches)
            return bool(session.exec(statement).one())

    def lock(self, session: Session, account_id: int) -> Optional[Account]:
        """Load an account for update inside the caller's unit of work."""
        return session.get(Account, account_id, with_for_update=True)

    def adjust_balance(
        self,
        session: Session,
        account_id: int,
        currency: str,
        delta_minor: int,
        *,
        floor_minor: Optional[int] = None,
    ) -> int:
        """Add ``delta_minor`` in one UPDATE, honouring ``floor_minor`` if given.

        Raises:
            InsufficientFundsError: when the new balance would drop below the floor
        """
        statement = update(AccountBalance).where(
            AccountBalance.account_id == account_id,
            AccountBalance.currency == currency,
        )
        if floor_minor is not None:
            statement = statement.where(AccountBalance.amount_minor + delta_minor >= floor_minor)
        statement = statement.values(amount_minor=AccountBalance.amount_minor + delta_minor)

        result = session.connection().execute(statement)
        if result.rowcount:
            return self._reload_balance(session, account_id, currency).amount_minor

        existing = self._reload_balance(session, account_id, currency)
        if existing is not None:
            raise InsufficientFundsError(
                f"Insufficient {currency} balance.",
                account_id=account_id,
                currency=currency,
                available_minor=existing.amount_minor,
                requested_minor=-delta_minor,
            )
        if floor_minor is not None and delta_minor < floor_minor:
            raise InsufficientFundsError(
                f"Insufficient {currency} balance.",
                account_id=account_id,
                currency=currency,
                available_minor=0,
                requested_minor=-delta_minor,
            )
        row = AccountBalance(account_id=account_id, currency=currency, amount_minor=delta_minor)
        session.add(row)
        session.flush()
        return row.amount_minor

    def touch(self, session: Session, account_id: int, actor: Optional[str]) -> None:
        """Stamp ``updated_at``/``updated_by`` after a balance change."""
        session.connection().execute(
            update(Account)
            .where(Account.id == account_id)
            .values(updated_at=datetime.now(timezone.utc), updated_by=actor)
        )

    @staticmethod
    def _reload_balance(session: Session, account_id: int, currency: str) -> Optional[AccountBalance]:
        statement = (
            select(AccountBalance)
            .where(AccountBalance.account_id == account_id)
            .where(AccountBalance.currency == currency)
            .execution_options(populate_existing=True)
        )
        return session.exec(statement).first()

    @staticmethod
    def _clear_default(session: Session, account: Account) -> None:
        """Only one active default account per primary currency."""
        statement = (
            update(Account)
            .where(Account.is_default.is_(True))  # type: ignore[union-attr]
            .where(Account.currency == account.currency)
        )
        if account.id is not None:
            statement = statement.where(Account.id != account.id)
        session.connection().execute(statement.values(is_default=False))
