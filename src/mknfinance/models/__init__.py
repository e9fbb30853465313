"""SQLModel table exports."""

from .account import Account, AccountBalance, AccountMode, AccountType
from .exchange_rate import ExchangeRateCache, ExchangeRateSnapshot
from .receivable import CounterpartyType, Debt, DebtKind, DebtPayment, DebtStatus, PaymentMethod
from .transaction import Transaction, TransactionStatus, TransactionType, TransferDirection, as_utc

__all__ = [
    "Account",
    "AccountBalance",
    "AccountMode",
    "AccountType",
    "CounterpartyType",
    "Debt",
    "DebtKind",
    "DebtPayment",
    "DebtStatus",
    "ExchangeRateCache",
    "ExchangeRateSnapshot",
    "PaymentMethod",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "TransferDirection",
    "as_utc",
]
