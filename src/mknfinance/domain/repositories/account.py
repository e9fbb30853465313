"""Account repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from sqlmodel import Session

from ...models.account import Account


class AccountRepository(Protocol):
    """Repository for managing account entities and their balances."""

    def get_by_id(self, account_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        ...

    def list_all(
        self,
        *,
        is_active: Optional[bool] = True,
        account_type: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> list[Account]:
        """List accounts matching the filters, ordered by name."""
        ...

    def get_default(self, currency: str) -> Optional[Account]:
        """Return the active default account for a currency."""
        ...

    def create(self, account: Account, initial_balances: dict[str, int]) -> Account:
        """Create an account with opening balances in minor units."""
        ...

    def update(self, account: Account) -> Account:
        """Persist non-balance fields of an existing account."""
        ...

    def delete(self, account_id: int) -> None:
        """Physically delete an account."""
        ...

    def has_transactions(self, account_id: int, currency: Optional[str] = None) -> bool:
        """Return True when any transaction references the account (in ``currency``)."""
        ...

    def lock(self, session: Session, account_id: int) -> Optional[Account]:
        """Load an account inside an open unit of work."""
        ...

    def adjust_balance(
        self,
        session: Session,
        account_id: int,
        currency: str,
        delta_minor: int,
        *,
        floor_minor: Optional[int] = None,
    ) -> int:
        """Atomically add ``delta_minor`` and return the new balance."""
        ...
