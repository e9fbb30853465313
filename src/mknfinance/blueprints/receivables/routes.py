"""Receivable and payable routes."""

from __future__ import annotations

from flask import request

from ...extensions import get_finance
from ...services.receivables import DebtFilters
from ..responses import admin_user_id, form_errors, request_payload, respond
from . import bp
from .forms import DebtForm, DebtUpdateForm, PaymentForm


def _serialize(debt):
    return debt.to_dict()


def _version_arg():
    raw = request.args.get("expected_version")
    if not raw:
        return None, None
    try:
        return int(raw), None
    except ValueError:
        return None, form_errors({"expected_version": ["Version must be a whole number."]})


@bp.get("/")
def list_debts():
    """List receivables and payables; filter with ``kind``, ``status`` and friends."""

    filters = DebtFilters(
        kind=request.args.get("kind") or None,
        status=request.args.get("status") or None,
        currency=request.args.get("currency") or None,
        counterparty_type=request.args.get("counterparty_type") or None,
        counterparty_id=request.args.get("counterparty_id") or None,
        company_id=request.args.get("company_id") or None,
    )
    result = get_finance().receivables.list_debts(filters)
    return respond(result, serializer=lambda debts: [debt.to_dict() for debt in debts])


@bp.post("/receivables")
def create_receivable():
    form = DebtForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().receivables.create_receivable(**form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=_serialize, status=201)


@bp.post("/payables")
def create_payable():
    form = DebtForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().receivables.create_payable(**form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=_serialize, status=201)


@bp.get("/<int:debt_id>")
def get_debt(debt_id: int):
    """One record with its payment history."""

    service = get_finance().receivables
    result = service.get_debt(debt_id)
    if not result.success:
        return respond(result)
    payments = service.get_payments(debt_id)
    return respond(payments, serializer=lambda rows: result.data.to_dict(rows))


@bp.patch("/<int:debt_id>")
def update_debt(debt_id: int):
    form = DebtUpdateForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().receivables.update_debt(
        debt_id, form.changes, admin_user_id(), expected_version=form.expected_version
    )
    return respond(result, serializer=_serialize)


@bp.post("/<int:debt_id>/payments")
def record_payment(debt_id: int):
    form = PaymentForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().receivables.record_payment(debt_id, **form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=_serialize, status=201)


@bp.post("/<int:debt_id>/cancel")
def cancel_debt(debt_id: int):
    version, error = _version_arg()
    if error:
        return error
    result = get_finance().receivables.cancel_debt(debt_id, admin_user_id(), expected_version=version)
    return respond(result, serializer=_serialize)


@bp.delete("/<int:debt_id>")
def delete_debt(debt_id: int):
    version, error = _version_arg()
    if error:
        return error
    result = get_finance().receivables.delete_debt(debt_id, admin_user_id(), expected_version=version)
    return respond(result, serializer=lambda removed: {"id": removed})


@bp.post("/check-overdue")
def check_overdue():
    return respond(get_finance().receivables.check_overdue(request.args.get("kind") or None))


@bp.get("/summary")
def summary():
    return respond(get_finance().receivables.get_summary())
