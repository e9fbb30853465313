"""Exchange-rate cache and history tables."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ExchangeRateCache(SQLModel, table=True):
    """Latest rate table fetched for a base currency."""

    __tablename__: ClassVar[str] = "finance_exchange_cache"

    base: str = Field(primary_key=True, max_length=3)
    rates: dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    rate_date: Optional[str] = Field(default=None, max_length=16)
    source: str = Field(default="api", max_length=32)
    cached_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), nullable=False
    )


class ExchangeRateSnapshot(SQLModel, table=True):
    """Point-in-time copy of a rate table kept for history charts."""

    __tablename__: ClassVar[str] = "finance_exchange_rate"

    id: Optional[int] = Field(default=None, primary_key=True)
    base: str = Field(nullable=False, index=True, max_length=3)
    rates: dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    rate_date: Optional[str] = Field(default=None, max_length=16)
    source: str = Field(default="api", max_length=32)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )
