"""HTTP blueprints for the finance app."""

from . import accounts, exchange, receivables, transactions

__all__ = ["accounts", "exchange", "receivables", "transactions"]
