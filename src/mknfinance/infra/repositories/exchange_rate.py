"""SQLModel implementation of the exchange-rate cache and history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select

from ...models.exchange_rate import ExchangeRateCache, ExchangeRateSnapshot
from ..database import SessionFactory


class SQLModelExchangeRateRepository:
    """SQLModel-based exchange-rate repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_cached(self, base: str) -> Optional[ExchangeRateCache]:
        with self.session_factory() as session:
            obj = session.get(ExchangeRateCache, base)
            if obj:
                session.expunge(obj)
            return obj

    def store_cached(
        self, base: str, rates: dict[str, float], *, rate_date: Optional[str], source: str
    ) -> ExchangeRateCache:
        """Insert or replace the cached table for ``base``."""
        with self.session_factory() as session:
            obj = session.get(ExchangeRateCache, base)
            if obj is None:
                obj = ExchangeRateCache(base=base)
            obj.rates = dict(rates)
            obj.rate_date = rate_date
            obj.source = source
            obj.cached_at = datetime.now(timezone.utc)
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def add_snapshot(self, snapshot: ExchangeRateSnapshot) -> ExchangeRateSnapshot:
        with self.session_factory() as session:
            session.add(snapshot)
            session.commit()
            session.refresh(snapshot)
            session.expunge(snapshot)
            return snapshot

    def history(self, base: str, *, since: datetime, limit: int) -> list[ExchangeRateSnapshot]:
        """Snapshots for ``base`` created at or after ``since``, newest first."""
        with self.session_factory() as session:
            statement = (
                select(ExchangeRateSnapshot)
                .where(ExchangeRateSnapshot.base == base)
                .where(ExchangeRateSnapshot.created_at >= since)
                .order_by(ExchangeRateSnapshot.created_at.desc())  # type: ignore
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
