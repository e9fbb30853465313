"""Domain contracts: errors, result envelope and repository protocols."""

from .errors import (
    ConcurrencyError,
    ExternalProviderError,
    InsufficientFundsError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from .results import Result, as_result

__all__ = [
    "ConcurrencyError",
    "ExternalProviderError",
    "InsufficientFundsError",
    "InvalidStateError",
    "LedgerError",
    "NotFoundError",
    "Result",
    "ValidationError",
    "as_result",
]
