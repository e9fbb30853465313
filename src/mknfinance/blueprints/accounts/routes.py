"""Account routes."""

from __future__ import annotations

from flask import request

from ...constants.currencies import all_currencies, get_currency_info
from ...extensions import get_finance
from ..responses import admin_user_id, form_errors, request_payload, respond
from . import bp
from .forms import AccountForm, AccountUpdateForm


def _serialize_accounts(accounts):
    return [account.to_dict() for account in accounts]


def _is_active_filter():
    raw = request.args.get("is_active", "true").strip().lower()
    if raw in {"all", "any", ""}:
        return None
    return raw not in {"0", "false", "no"}


@bp.get("/")
def list_accounts():
    """List accounts, optionally filtered by type and currency."""

    result = get_finance().accounts.get_accounts(
        is_active=_is_active_filter(),
        account_type=request.args.get("type") or None,
        currency=request.args.get("currency") or None,
    )
    return respond(result, serializer=_serialize_accounts)


@bp.post("/")
def create_account():
    form = AccountForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().accounts.create_account(**form.cleaned, user_id=admin_user_id())
    return respond(result, serializer=lambda account: account.to_dict(), status=201)


@bp.get("/<int:account_id>")
def get_account(account_id: int):
    result = get_finance().accounts.get_account(account_id)
    return respond(result, serializer=lambda account: account.to_dict())


@bp.get("/<int:account_id>/balances")
def account_balances(account_id: int):
    return respond(get_finance().accounts.get_account_balances(account_id))


@bp.patch("/<int:account_id>")
def update_account(account_id: int):
    form = AccountUpdateForm.from_mapping(request_payload())
    if not form.validate():
        return form_errors(form.errors)
    result = get_finance().accounts.update_account(account_id, form.changes, admin_user_id())
    return respond(result, serializer=lambda account: account.to_dict())


@bp.delete("/<int:account_id>")
def delete_account(account_id: int):
    """Soft delete; pass ``?permanent=1`` to remove an unused account for good."""

    finance = get_finance()
    if request.args.get("permanent", "").lower() in {"1", "true", "yes"}:
        result = finance.accounts.permanent_delete_account(account_id)
        return respond(result, serializer=lambda removed: {"id": removed, "permanent": True})
    result = finance.accounts.delete_account(account_id, admin_user_id())
    return respond(result, serializer=lambda account: account.to_dict())


@bp.get("/totals")
def total_balance():
    return respond(get_finance().accounts.get_total_balance(request.args.get("currency") or None))


@bp.get("/stats")
def account_stats():
    return respond(get_finance().accounts.get_account_stats())


@bp.get("/default/<currency>")
def default_account(currency: str):
    result = get_finance().accounts.get_default_account(currency)
    return respond(result, serializer=lambda account: account.to_dict())


@bp.get("/currencies")
def currencies():
    """Registered currency codes with their display metadata."""

    data = []
    for code in all_currencies():
        info = get_currency_info(code)
        data.append({"code": code, "label": info.label, "symbol": info.symbol, "decimals": info.decimals})
    return {"success": True, "data": data}
