"""Ledger transaction routes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import request

from ...constants.currencies import TRY
from ...extensions import get_finance
from ...models.transaction import as_utc
from ..responses import admin_user_id, form_errors, request_payload, respond
from . import bp
from .forms import ExchangeForm, IncomeExpenseForm, LedgerFilterForm, TransactionUpdateForm, TransferForm


def _serialize(txn):
    return txn.to_dict()


def _expected_version() -> tuple[Optional[int], Optional[tuple]]:
    raw = request_payload().get("expected_version", request.args.get("expected_version"))
    if raw in (None, ""):
        return None, None
    try:
        return int(raw), None
    except (TypeError, ValueError):
        return None, form_errors({"expected_version": ["Version must be a whole number."]})


@bp.get("/")
def list_transactions():
    """Display ledger transactions with filters and pagination."""

    form = LedgerFilterForm.from_mapping(request.args)
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().ledger.list_transactions(form.filters, form.pagination)
    return respond(result, serializer=lambda page: page.to_dict())


@bp.get("/<int:transaction_id>")
def get_transaction(transaction_id: int):
    viewer = request.args.get("account_id", type=int)
    result = get_finance().ledger.get_transaction(transaction_id)
    return respond(result, serializer=lambda txn: txn.to_dict(viewer_account_id=viewer))


@bp.post("/income")
def create_income():
    form = IncomeExpenseForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().ledger.create_income(**form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=_serialize, status=201)


@bp.post("/expense")
def create_expense():
    form = IncomeExpenseForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().ledger.create_expense(**form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=_serialize, status=201)


@bp.post("/transfer")
def create_transfer():
    form = TransferForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().ledger.create_cross_transfer_transaction(
        **form.cleaned, user_id=admin_user_id()
    )
    return respond(result, serializer=_serialize, status=201)


@bp.post("/exchange")
def create_exchange():
    form = ExchangeForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().ledger.create_exchange_transaction(**form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=_serialize, status=201)


@bp.patch("/<int:transaction_id>")
def update_transaction(transaction_id: int):
    form = TransactionUpdateForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().ledger.update_transaction(
        transaction_id,
        form.changes,
        admin_user_id(),
        expected_version=form.expected_version,
    )
    return respond(result, serializer=_serialize)


@bp.post("/<int:transaction_id>/complete")
def complete_transaction(transaction_id: int):
    version, error = _expected_version()
    if error:
        return error
    result = get_finance().ledger.complete_transaction(
        transaction_id, admin_user_id(), expected_version=version
    )
    return respond(result, serializer=_serialize)


@bp.post("/<int:transaction_id>/cancel")
def cancel_transaction(transaction_id: int):
    version, error = _expected_version()
    if error:
        return error
    result = get_finance().ledger.cancel_transaction(
        transaction_id, admin_user_id(), expected_version=version
    )
    return respond(result, serializer=_serialize)


@bp.delete("/<int:transaction_id>")
def delete_transaction(transaction_id: int):
    version, error = _expected_version()
    if error:
        return error
    result = get_finance().ledger.delete_transaction(
        transaction_id, admin_user_id(), expected_version=version
    )
    return respond(result, serializer=lambda removed: {"id": removed})


def _parse_day(value: Optional[str], *, end: bool = False) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = as_utc(datetime.strptime(value, "%Y-%m-%d"))
    except ValueError:
        return None
    return parsed.replace(hour=23, minute=59, second=59, microsecond=999999) if end else parsed


@bp.get("/summary")
def summary():
    """Income/expense totals between ``start`` and ``end`` (YYYY-MM-DD)."""

    start = _parse_day(request.args.get("start"))
    end = _parse_day(request.args.get("end"), end=True)
    if start is None or end is None:
        return form_errors({"start": ["Provide start and end dates (YYYY-MM-DD)."]})
    result = get_finance().reports.income_expense_summary(
        start, end, request.args.get("currency") or None
    )
    return respond(result)


@bp.get("/trend")
def monthly_trend():
    year = request.args.get("year", type=int) or datetime.now().year
    currency = request.args.get("currency") or TRY
    return respond(get_finance().reports.monthly_trend(year, currency))


@bp.get("/stats")
def transaction_stats():
    return respond(get_finance().reports.transaction_stats())
