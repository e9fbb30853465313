"""SQLModel repository implementations."""

from .account import SQLModelAccountRepository
from .debt import SQLModelDebtRepository
from .exchange_rate import SQLModelExchangeRateRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelDebtRepository",
    "SQLModelExchangeRateRepository",
    "SQLModelTransactionRepository",
]
