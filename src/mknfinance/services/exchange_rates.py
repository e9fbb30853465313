"""Exchange-rate provider backed by a public FX API and a database cache.

Rates are suggestions for the exchange and transfer forms. The rate that ends
up on a transaction is whatever the operator submits; nothing here touches
balances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

import requests

from ..constants.currencies import from_minor, is_known_currency, normalize_code, to_minor
from ..domain.errors import ExternalProviderError, ValidationError
from ..domain.results import as_result
from ..infra.repositories.exchange_rate import SQLModelExchangeRateRepository
from ..logging_config import get_logger
from ..models.exchange_rate import ExchangeRateSnapshot
from ..models.transaction import as_utc

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.exchangerate-api.com/v4/latest/{base}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RateQuote:
    """Suggested rate for one currency pair."""

    rate: Optional[float]
    source: str  # api | manual | same | error
    date: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"rate": self.rate, "source": self.source}
        if self.date:
            data["date"] = self.date
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class RateTable:
    """All rates quoted against ``base`` at one point in time."""

    base: str
    rates: dict[str, float]
    date: Optional[str]
    source: str
    fetched_at: datetime
    cached: bool = field(default=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "base": self.base,
            "rates": dict(self.rates),
            "date": self.date,
            "source": self.source,
            "fetched_at": self.fetched_at.isoformat(),
            "cached": self.cached,
        }


def format_exchange_rate(rate: float, from_currency: str, to_currency: str) -> str:
    """Return ``1 USD = 32.1500 TRY``."""

    return f"1 {from_currency} = {rate:.4f} {to_currency}"


def inverse_rate(rate: Optional[float]) -> float:
    return 1 / rate if rate and rate > 0 else 0.0


class ExchangeRateProvider:
    """Fetches, caches and snapshots FX rates."""

    def __init__(
        self,
        repository: SQLModelExchangeRateRepository,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        cache_ttl: float = 3600.0,
        http: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.api_url = api_url
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.http = http or requests.Session()
        self.clock = clock

    def fetch_rates(self, base: str) -> RateTable:
        """Return the rate table for ``base``, from cache while it is fresh.

        Raises:
            ExternalProviderError: the API failed and no fresh cache exists
        """

        code = normalize_code(base)
        cached = self.repository.get_cached(code)
        now = self.clock()
        if cached is not None and self.cache_ttl > 0:
            age = (now - as_utc(cached.cached_at)).total_seconds()
            if age < self.cache_ttl:
                return RateTable(
                    base=code,
                    rates=dict(cached.rates),
                    date=cached.rate_date,
                    source=cached.source,
                    fetched_at=as_utc(cached.cached_at),
                    cached=True,
                )

        payload = self._request(code)
        rates = {
            currency: float(rate)
            for currency, rate in payload["rates"].items()
            if is_known_currency(currency) and isinstance(rate, (int, float)) and rate > 0
        }
        rates[code] = 1.0
        date = payload.get("date")
        self.repository.store_cached(code, rates, rate_date=date, source="api")
        logger.info("Exchange rates refreshed", extra={"base": code, "date": date, "count": len(rates)})
        return RateTable(base=code, rates=rates, date=date, source="api", fetched_at=now)

    def fetch_exchange_rate(self, from_currency: str, to_currency: str) -> RateQuote:
        """Quote one pair; failures come back as ``source="error"`` and never raise."""

        from_code = normalize_code(from_currency)
        to_code = normalize_code(to_currency)
        if from_code == to_code:
            return RateQuote(rate=1.0, source="same")
        try:
            table = self.fetch_rates(from_code)
        except ExternalProviderError as exc:
            logger.warning(
                "Rate lookup failed, manual entry required",
                extra={"from_currency": from_code, "to_currency": to_code, "error": exc.message},
            )
            return RateQuote(rate=None, source="error", error=exc.message)
        rate = table.rates.get(to_code)
        if not rate:
            return RateQuote(rate=None, source="error", error=f"No rate available for {to_code}.")
        return RateQuote(rate=rate, source="api", date=table.date)

    @staticmethod
    def manual_quote(rate: Any) -> RateQuote:
        """Wrap an operator-entered rate so forms treat it like any other quote."""

        try:
            value = float(rate)
        except (TypeError, ValueError):
            return RateQuote(rate=None, source="error", error="Exchange rate must be a number.")
        if not value > 0:
            return RateQuote(rate=None, source="error", error="Exchange rate must be greater than zero.")
        return RateQuote(rate=value, source="manual")

    @as_result(logger)
    def get_rates(self, base: str) -> RateTable:
        return self.fetch_rates(self._currency(base))

    @as_result(logger)
    def convert_currency(self, amount: Any, from_currency: str, to_currency: str) -> dict[str, Any]:
        return self._convert(amount, self._currency(from_currency), self._currency(to_currency))

    @as_result(logger)
    def convert_balances_to_single(
        self, balances: Mapping[str, Any], target_currency: str
    ) -> dict[str, Any]:
        """Sum positive balances in ``target_currency``; pairs without a rate are listed as skipped."""

        target = self._currency(target_currency)
        total_minor = 0
        conversions: list[dict[str, Any]] = []
        skipped: list[str] = []
        for currency, amount in balances.items():
            code = normalize_code(currency)
            if not amount or float(amount) <= 0:
                continue
            try:
                converted = self._convert(amount, self._currency(code), target)
            except ExternalProviderError:
                skipped.append(code)
                continue
            total_minor += to_minor(converted["converted_amount"], target)
            conversions.append(
                {
                    "original": {"amount": float(amount), "currency": code},
                    "converted": converted["converted_amount"],
                    "rate": converted["rate"],
                }
            )
        return {
            "total": from_minor(total_minor, target),
            "target_currency": target,
            "conversions": conversions,
            "skipped": skipped,
        }

    @as_result(logger)
    def save_snapshot(self, base: str) -> ExchangeRateSnapshot:
        """Store the current rate table for ``base`` in the history."""

        table = self.fetch_rates(self._currency(base))
        snapshot = self.repository.add_snapshot(
            ExchangeRateSnapshot(
                base=table.base,
                rates=dict(table.rates),
                rate_date=table.date,
                source=table.source,
                created_at=self.clock(),
            )
        )
        logger.info("Rate snapshot saved", extra={"base": table.base, "snapshot_id": snapshot.id})
        return snapshot

    @as_result(logger)
    def get_rate_history(self, base: str, days: int = 30) -> list[ExchangeRateSnapshot]:
        if days <= 0:
            raise ValidationError("days must be positive.", days=days)
        since = as_utc(self.clock()) - timedelta(days=days)
        return self.repository.history(self._currency(base), since=since, limit=days)

    def _convert(self, amount: Any, from_code: str, to_code: str) -> dict[str, Any]:
        try:
            value = float(amount)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Amount must be a number.", amount=amount) from exc
        if from_code == to_code:
            return {
                "original_amount": value,
                "converted_amount": value,
                "rate": 1.0,
                "from_currency": from_code,
                "to_currency": to_code,
            }
        table = self.fetch_rates(from_code)
        rate = table.rates.get(to_code)
        if not rate:
            raise ExternalProviderError(f"No rate available for {to_code}.", currency=to_code)
        return {
            "original_amount": value,
            "converted_amount": from_minor(to_minor(value * rate, to_code), to_code),
            "rate": rate,
            "from_currency": from_code,
            "to_currency": to_code,
            "rate_date": table.date,
            "rate_source": table.source,
        }

    def _request(self, base: str) -> dict[str, Any]:
        url = self.api_url.format(base=base)
        try:
            response = self.http.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ExternalProviderError(f"Exchange-rate service unavailable: {exc}", base=base) from exc
        except ValueError as exc:
            raise ExternalProviderError("Exchange-rate service returned invalid JSON.", base=base) from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
            raise ExternalProviderError("Exchange-rate response has no rates.", base=base)
        return payload

    @staticmethod
    def _currency(code: Optional[str]) -> str:
        normalized = normalize_code(code)
        if not is_known_currency(normalized):
            raise ValidationError(f"Unsupported currency: {code!r}.", currency=code)
        return normalized


__all__ = [
    "DEFAULT_API_URL",
    "ExchangeRateProvider",
    "RateQuote",
    "RateTable",
    "format_exchange_rate",
    "inverse_rate",
]
