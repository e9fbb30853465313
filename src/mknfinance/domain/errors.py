"""Ledger error taxonomy.

Raised inside the finance core and converted into ``Result`` failures at the
service boundary; callers of the public service API never see these raised.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for expected, user-reportable ledger failures."""

    code = "ledger_error"

    def __init__(self, message: str, **details: object) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(LedgerError):
    """Malformed or out-of-range input."""

    code = "validation"


class NotFoundError(LedgerError):
    """Referenced account or transaction does not exist."""

    code = "not_found"


class InsufficientFundsError(LedgerError):
    """Debit would exceed the available balance in that currency."""

    code = "insufficient_funds"


class InvalidStateError(LedgerError):
    """Operation is not allowed in the transaction's current status."""

    code = "invalid_state"


class ConcurrencyError(LedgerError):
    """The row changed between read and write; the caller may retry."""

    code = "concurrency"


class ExternalProviderError(LedgerError):
    """The FX-rate provider failed or returned unusable data."""

    code = "external_provider"


__all__ = [
    "ConcurrencyError",
    "ExternalProviderError",
    "InsufficientFundsError",
    "InvalidStateError",
    "LedgerError",
    "NotFoundError",
    "ValidationError",
]
