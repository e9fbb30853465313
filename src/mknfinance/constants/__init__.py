"""Lookup tables for currencies and transaction categories."""

from . import categories, currencies

__all__ = ["categories", "currencies"]
