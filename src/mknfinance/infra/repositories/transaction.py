"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_, update
from sqlmodel import Session, func, select

from ...domain.errors import ConcurrencyError
from ...models.transaction import NUMBER_PREFIXES, Transaction, TransactionStatus
from ..database import SessionFactory


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = session.get(Transaction, transaction_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_number(self, transaction_number: str) -> Optional[Transaction]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Transaction).where(Transaction.transaction_number == transaction_number)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def search(
        self,
        *,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        account_id: Optional[int] = None,
        transaction_type: Optional[str] = None,
        status: Optional[str] = None,
        currency: Optional[str] = None,
        category: Optional[str] = None,
        text: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """Return a page of matching transactions (newest first) and the total count."""
        with self.session_factory() as session:
            statement = select(Transaction)
            count_statement = select(func.count(Transaction.id))

            conditions = []
            if start_date:
                conditions.append(Transaction.transaction_date >= start_date)
            if end_date:
                conditions.append(Transaction.transaction_date <= end_date)
            if account_id is not None:
                # Transfers show up on both legs
                conditions.append(
                    or_(Transaction.account_id == account_id, Transaction.to_account_id == account_id)
                )
            if transaction_type:
                conditions.append(Transaction.type == transaction_type)
            if status:
                conditions.append(Transaction.status == status)
            if currency:
                conditions.append(
                    or_(Transaction.currency == currency, Transaction.to_currency == currency)
                )
            if category:
                conditions.append(Transaction.category == category)
            if text:
                pattern = f"%{text.strip()}%"
                conditions.append(
                    or_(
                        Transaction.description.ilike(pattern),  # type: ignore[attr-defined]
                        Transaction.transaction_number.ilike(pattern),  # type: ignore[attr-defined]
                        Transaction.reference.ilike(pattern),  # type: ignore[attr-defined]
                        Transaction.notes.ilike(pattern),  # type: ignore[attr-defined]
                    )
                )

            for condition in conditions:
                statement = statement.where(condition)
                count_statement = count_statement.where(condition)

            total = int(session.exec(count_statement).one())
            statement = statement.order_by(
                Transaction.transaction_date.desc(), Transaction.id.desc()  # type: ignore
            ).offset(offset)
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows, total

    def list_completed_between(
        self, start_date: datetime, end_date: datetime, *, currency: Optional[str] = None
    ) -> list[Transaction]:
        """Completed transactions inside ``[start_date, end_date]``, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.status == TransactionStatus.COMPLETED.value)
                .where(Transaction.transaction_date >= start_date)
                .where(Transaction.transaction_date <= end_date)
            )
            if currency:
                statement = statement.where(Transaction.currency == currency)
            statement = statement.order_by(Transaction.transaction_date)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def next_number(self, session: Session, transaction_type: str, now: datetime) -> str:
        """Return the next ``PREFIX-YYYYMM-NNNN`` number for the month of ``now``."""
        prefix = f"{NUMBER_PREFIXES[transaction_type]}-{now:%Y%m}-"
        numbers = session.exec(
            select(Transaction.transaction_number).where(
                Transaction.transaction_number.startswith(prefix)  # type: ignore[attr-defined]
            )
        ).all()
        highest = 0
        for number in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:04d}"

    def compare_and_set(
        self, session: Session, transaction: Transaction, values: dict[str, Any]
    ) -> Transaction:
        """Apply ``values`` only if nobody bumped the version since ``transaction`` was read.

        Raises:
            ConcurrencyError: when the stored version no longer matches
        """
        expected = transaction.version
        result = session.connection().execute(
            update(Transaction)
            .where(Transaction.id == transaction.id)
            .where(Transaction.version == expected)
            .values(**values, version=expected + 1)
        )
        if not result.rowcount:
            raise ConcurrencyError(
                "The transaction was modified by someone else, reload and retry.",
                transaction_id=transaction.id,
                expected_version=expected,
            )
        refreshed = session.exec(
            select(Transaction)
            .where(Transaction.id == transaction.id)
            .execution_options(populate_existing=True)
        ).one()
        return refreshed

    def delete(self, session: Session, transaction: Transaction) -> None:
        """Delete the row if it still carries ``transaction.version``."""
        result = session.connection().execute(
            Transaction.__table__.delete()  # type: ignore[attr-defined]
            .where(Transaction.__table__.c.id == transaction.id)  # type: ignore[attr-defined]
            .where(Transaction.__table__.c.version == transaction.version)  # type: ignore[attr-defined]
        )
        if not result.rowcount:
            raise ConcurrencyError(
                "The transaction was modified by someone else, reload and retry.",
                transaction_id=transaction.id,
            )
