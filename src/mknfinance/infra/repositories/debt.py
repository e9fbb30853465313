"""SQLModel implementation of the receivable/payable repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from ...domain.errors import ConcurrencyError
from ...models.receivable import DEBT_PREFIXES, Debt, DebtPayment, DebtStatus
from ..database import SessionFactory

_OVERDUE_CANDIDATES = (DebtStatus.PENDING.value, DebtStatus.PARTIAL.value)


class SQLModelDebtRepository:
    """SQLModel-based receivable/payable repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, debt_id: int) -> Optional[Debt]:
        with self.session_factory() as session:
            obj = session.get(Debt, debt_id)
            if obj:
                session.expunge(obj)
            return obj

    def search(
        self,
        *,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        currency: Optional[str] = None,
        counterparty_type: Optional[str] = None,
        counterparty_id: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> list[Debt]:
        """Return matching debts, newest first."""
        with self.session_factory() as session:
            statement = select(Debt)
            if kind:
                statement = statement.where(Debt.kind == kind)
            if status:
                statement = statement.where(Debt.status == status)
            if currency:
                statement = statement.where(Debt.currency == currency)
            if counterparty_type:
                statement = statement.where(Debt.counterparty_type == counterparty_type)
            if counterparty_id:
                statement = statement.where(Debt.counterparty_id == counterparty_id)
            if company_id:
                statement = statement.where(Debt.company_id == company_id)
            statement = statement.order_by(Debt.created_at.desc(), Debt.id.desc())  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def payments_for(self, debt_id: int) -> list[DebtPayment]:
        """Payments of one debt, oldest first."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(DebtPayment)
                    .where(DebtPayment.debt_id == debt_id)
                    .order_by(DebtPayment.paid_at, DebtPayment.id)  # type: ignore
                ).all()
            )
            session.expunge_all()
            return rows

    def next_number(self, session: Session, kind: str, now: datetime) -> str:
        """Return the next ``PREFIX-YYYY-NNNN`` number for the year of ``now``."""
        prefix = f"{DEBT_PREFIXES[kind]}-{now:%Y}-"
        numbers = session.exec(
            select(Debt.debt_number).where(
                Debt.debt_number.startswith(prefix)  # type: ignore[attr-defined]
            )
        ).all()
        highest = 0
        for number in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:04d}"

    def compare_and_set(self, session: Session, debt: Debt, values: dict[str, Any]) -> Debt:
        """Apply ``values`` only if nobody bumped the version since ``debt`` was read.

        Raises:
            ConcurrencyError: when the stored version no longer matches
        """
        expected = debt.version
        result = session.connection().execute(
            update(Debt)
            .where(Debt.id == debt.id)
            .where(Debt.version == expected)
            .values(**values, version=expected + 1)
        )
        if not result.rowcount:
            raise ConcurrencyError(
                "The record was modified by someone else, reload and retry.",
                debt_id=debt.id,
                expected_version=expected,
            )
        return session.exec(
            select(Debt).where(Debt.id == debt.id).execution_options(populate_existing=True)
        ).one()

    def mark_overdue(self, session: Session, kind: str, now: datetime) -> int:
        """Move pending/partial debts of ``kind`` due before ``now`` to overdue."""
        result = session.connection().execute(
            update(Debt)
            .where(Debt.kind == kind)
            .where(Debt.status.in_(_OVERDUE_CANDIDATES))  # type: ignore[attr-defined]
            .where(Debt.due_date.is_not(None))  # type: ignore[union-attr]
            .where(Debt.due_date < now)  # type: ignore[operator]
            .values(status=DebtStatus.OVERDUE.value, updated_at=now, version=Debt.version + 1)
        )
        return int(result.rowcount or 0)

    def delete(self, session: Session, debt: Debt) -> None:
        """Delete the row and its payments if it still carries ``debt.version``."""
        session.connection().execute(delete(DebtPayment).where(DebtPayment.debt_id == debt.id))
        result = session.connection().execute(
            delete(Debt).where(Debt.id == debt.id).where(Debt.version == debt.version)
        )
        if not result.rowcount:
            raise ConcurrencyError(
                "The record was modified by someone else, reload and retry.",
                debt_id=debt.id,
            )
