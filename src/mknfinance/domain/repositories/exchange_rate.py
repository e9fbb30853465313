"""Exchange-rate repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.exchange_rate import ExchangeRateCache, ExchangeRateSnapshot


class ExchangeRateRepository(Protocol):
    """Storage for cached rate tables and rate history."""

    def get_cached(self, base: str) -> Optional[ExchangeRateCache]:
        ...

    def store_cached(
        self, base: str, rates: dict[str, float], *, rate_date: Optional[str], source: str
    ) -> ExchangeRateCache:
        ...

    def add_snapshot(self, snapshot: ExchangeRateSnapshot) -> ExchangeRateSnapshot:
        ...

    def history(self, base: str, *, since: datetime, limit: int) -> list[ExchangeRateSnapshot]:
        ...
