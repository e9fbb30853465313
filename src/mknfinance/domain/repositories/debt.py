"""Receivable/payable repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from sqlmodel import Session

from ...models.receivable import Debt, DebtPayment


class DebtRepository(Protocol):
    """Repository for receivables, payables and their payments."""

    def get_by_id(self, debt_id: int) -> Optional[Debt]:
        ...

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
        """Matching debts, newest first."""
        ...

    def payments_for(self, debt_id: int) -> list[DebtPayment]:
        ...

    def next_number(self, session: Session, kind: str, now: datetime) -> str:
        """Return the next ``PREFIX-YYYY-NNNN`` number for a kind."""
        ...

    def compare_and_set(self, session: Session, debt: Debt, values: dict[str, Any]) -> Debt:
        """Write ``values`` only if the row still has ``debt.version``."""
        ...

    def mark_overdue(self, session: Session, kind: str, now: datetime) -> int:
        """Flag open debts due before ``now``; return how many changed."""
        ...

    def delete(self, session: Session, debt: Debt) -> None:
        ...
