"""Repository protocol definitions for domain layer."""

from .account import AccountRepository
from .debt import DebtRepository
from .exchange_rate import ExchangeRateRepository
from .transaction import TransactionRepository

__all__ = [
    "AccountRepository",
    "DebtRepository",
    "ExchangeRateRepository",
    "TransactionRepository",
]
