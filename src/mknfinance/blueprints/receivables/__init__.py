"""Receivables/payables blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("receivables", __name__, url_prefix="/finance/debts")

from . import routes  # noqa: E402,F401 - ensure routes get registered

__all__ = ["bp"]
