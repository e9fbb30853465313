"""Finance services: ledger engine, account store, FX rates, reports and formatting."""

from .accounts import AccountService, get_balance
from .exchange_rates import ExchangeRateProvider, RateQuote, format_exchange_rate, inverse_rate
from .ledger_service import LedgerFilters, LedgerService, Pagination, TransactionPage
from .reports import ReportService

__all__ = [
    "AccountService",
    "ExchangeRateProvider",
    "LedgerFilters",
    "LedgerService",
    "Pagination",
    "RateQuote",
    "ReportService",
    "TransactionPage",
    "format_exchange_rate",
    "get_balance",
    "inverse_rate",
]
