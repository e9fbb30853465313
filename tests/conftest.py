"""Pytest configuration and shared fixtures for the finance ledger tests.

Every test gets its own SQLite file under ``tmp_path`` and a stub HTTP session,
so nothing touches the real database or the FX API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import pytest
import requests

from mknfinance import create_app
from mknfinance.config import TestConfig
from mknfinance.constants.currencies import to_minor
from mknfinance.infra.database import bootstrap_database
from mknfinance.infra.repositories import (
    SQLModelAccountRepository,
    SQLModelDebtRepository,
    SQLModelExchangeRateRepository,
    SQLModelTransactionRepository,
)
from mknfinance.services.accounts import AccountService
from mknfinance.services.exchange_rates import ExchangeRateProvider
from mknfinance.services.ledger_service import LedgerService
from mknfinance.services.receivables import ReceivableService
from mknfinance.services.reports import ReportService

# Ledger clock used by service fixtures; transaction numbers land in 2024-03
NOW = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


# =============================================================================
# HTTP stubs
# =============================================================================


class StubResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload: Any = None, status_code: int = 200, invalid_json: bool = False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self) -> Any:
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class StubHTTP:
    """Records requested URLs and answers from ``responses`` keyed by base currency."""

    def __init__(self):
        self.responses: dict[str, StubResponse] = {}
        self.calls: list[str] = []
        self.error: Optional[Exception] = None

    def set_rates(self, base: str, rates: dict[str, float], date: str = "2024-03-15") -> None:
        self.responses[base] = StubResponse({"base": base, "date": date, "rates": rates})

    def get(self, url: str, timeout: float | None = None) -> StubResponse:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        base = url.rstrip("/").rsplit("/", 1)[-1]
        return self.responses.get(base, StubResponse(status_code=404))


@pytest.fixture
def stub_http() -> StubHTTP:
    return StubHTTP()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def finance_config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> TestConfig:
    """Test configuration pointing at an isolated SQLite file."""

    monkeypatch.setenv("MKN_FINANCE_DATA_DIR", str(tmp_path / "instance"))
    monkeypatch.setenv("MKN_FINANCE_DATABASE_URL", f"sqlite:///{tmp_path / 'finance.db'}")
    monkeypatch.delenv("MKN_FINANCE_ALLOW_EXPENSE_OVERDRAFT", raising=False)
    monkeypatch.delenv("MKN_FINANCE_EXTRA_CURRENCIES", raising=False)
    monkeypatch.delenv("MKN_FINANCE_DEFAULT_CURRENCY", raising=False)
    return TestConfig()


@pytest.fixture
def db(finance_config):
    """Yield ``(engine, session_factory)`` with the schema created."""

    engine, session_factory = bootstrap_database(finance_config)
    yield engine, session_factory
    engine.dispose()


@pytest.fixture
def session_factory(db):
    return db[1]


@pytest.fixture
def account_repo(session_factory) -> SQLModelAccountRepository:
    return SQLModelAccountRepository(session_factory)


@pytest.fixture
def transaction_repo(session_factory) -> SQLModelTransactionRepository:
    return SQLModelTransactionRepository(session_factory)


@pytest.fixture
def rate_repo(session_factory) -> SQLModelExchangeRateRepository:
    return SQLModelExchangeRateRepository(session_factory)


@pytest.fixture
def debt_repo(session_factory) -> SQLModelDebtRepository:
    return SQLModelDebtRepository(session_factory)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def account_service(account_repo) -> AccountService:
    return AccountService(account_repo, default_currency="TRY")


@pytest.fixture
def ledger(account_repo, transaction_repo, session_factory) -> LedgerService:
    return LedgerService(account_repo, transaction_repo, session_factory, clock=lambda: NOW)


@pytest.fixture
def strict_ledger(account_repo, transaction_repo, session_factory) -> LedgerService:
    """Ledger that refuses expenses beyond the available balance."""

    return LedgerService(
        account_repo,
        transaction_repo,
        session_factory,
        allow_expense_overdraft=False,
        clock=lambda: NOW,
    )


@pytest.fixture
def rate_provider(rate_repo, stub_http) -> ExchangeRateProvider:
    return ExchangeRateProvider(rate_repo, cache_ttl=3600, http=stub_http)


@pytest.fixture
def reports(transaction_repo) -> ReportService:
    return ReportService(transaction_repo, clock=lambda: NOW)


@pytest.fixture
def receivables(debt_repo, account_repo, session_factory) -> ReceivableService:
    return ReceivableService(debt_repo, account_repo, session_factory, clock=lambda: NOW)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(account_service):
    """Factory for creating accounts through the service layer.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    def _create_account(
        name: str = "Merkez Kasa",
        currency: str = "TRY",
        balance: float = 0,
        *,
        mode: str = "single",
        supported: Optional[list[str]] = None,
        balances: Optional[dict[str, float]] = None,
        **extra: Any,
    ):
        result = account_service.create_account(
            name=name,
            currency=currency,
            mode=mode,
            initial_balance=balance,
            supported_currencies=supported,
            initial_balances=balances,
            **extra,
        )
        assert result.success, result.error
        return result.data

    return _create_account


@pytest.fixture
def balance_of(account_repo):
    """Return a function reading an account's balance in minor units."""

    def _balance(account_id: int, currency: str) -> int:
        account = account_repo.get_by_id(account_id)
        assert account is not None
        return account.balance_minor(currency)

    return _balance


def minor(amount: float | str, currency: str = "TRY") -> int:
    return to_minor(amount, currency)


# =============================================================================
# Flask
# =============================================================================


@pytest.fixture
def app(finance_config, stub_http):
    app = create_app("testing", http=stub_http)
    yield app
    app.extensions["finance"].engine.dispose()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-User": "admin-7"}
