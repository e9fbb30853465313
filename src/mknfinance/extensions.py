"""Database and service wiring for the finance app."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests
from flask import Flask, current_app
from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelAccountRepository,
    SQLModelDebtRepository,
    SQLModelExchangeRateRepository,
    SQLModelTransactionRepository,
)
from .services.accounts import AccountService
from .services.exchange_rates import ExchangeRateProvider
from .services.ledger_service import LedgerService
from .services.receivables import ReceivableService
from .services.reports import ReportService

EXTENSION_KEY = "finance"


@dataclass
class FinanceContext:
    """Everything a request handler or CLI command needs to reach the ledger."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    accounts: AccountService
    ledger: LedgerService
    rates: ExchangeRateProvider
    reports: ReportService
    receivables: ReceivableService


def build_context(config: BaseConfig, *, http: Optional[requests.Session] = None) -> FinanceContext:
    """Create engine, schema, repositories and services from ``config``."""

    engine, session_factory = bootstrap_database(config)
    account_repo = SQLModelAccountRepository(session_factory)
    transaction_repo = SQLModelTransactionRepository(session_factory)
    rate_repo = SQLModelExchangeRateRepository(session_factory)
    return FinanceContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        accounts=AccountService(account_repo, default_currency=config.DEFAULT_CURRENCY),
        ledger=LedgerService(
            account_repo,
            transaction_repo,
            session_factory,
            allow_expense_overdraft=config.ALLOW_EXPENSE_OVERDRAFT,
        ),
        rates=ExchangeRateProvider(
            rate_repo,
            api_url=config.FX_API_URL,
            timeout=config.FX_TIMEOUT,
            cache_ttl=config.FX_CACHE_TTL,
            http=http,
        ),
        reports=ReportService(transaction_repo),
        receivables=ReceivableService(
            SQLModelDebtRepository(session_factory),
            account_repo,
            session_factory,
            default_currency=config.DEFAULT_CURRENCY,
        ),
    )


def init_db(app: Flask, *, http: Optional[requests.Session] = None) -> FinanceContext:
    """Initialize the engine and services using configuration from the app."""

    config: BaseConfig = app.config["FINANCE_CONFIG"]
    context = build_context(config, http=http)
    app.extensions[EXTENSION_KEY] = context
    return context


def get_finance() -> FinanceContext:
    """Return the services bound to the current Flask app."""

    return current_app.extensions[EXTENSION_KEY]
