"""Transaction repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from sqlmodel import Session

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for managing ledger transactions."""

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

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
        """Filtered listing plus total count."""
        ...

    def list_completed_between(
        self, start_date: datetime, end_date: datetime, *, currency: Optional[str] = None
    ) -> list[Transaction]:
        """Completed transactions inside ``[start_date, end_date]``."""
        ...

    def next_number(self, session: Session, transaction_type: str, now: datetime) -> str:
        """Return the next ``PREFIX-YYYYMM-NNNN`` number for a type."""
        ...

    def compare_and_set(
        self, session: Session, transaction: Transaction, values: dict[str, Any]
    ) -> Transaction:
        """Write ``values`` only if the row still has ``transaction.version``."""
        ...
