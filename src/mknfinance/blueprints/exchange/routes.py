"""Exchange-rate lookup and conversion routes."""

from __future__ import annotations

from flask import request

from ...extensions import get_finance
from ..responses import form_errors, request_payload, respond
from . import bp


def _serialize_snapshot(snapshot):
    return {
        "id": snapshot.id,
        "base": snapshot.base,
        "rates": dict(snapshot.rates),
        "rate_date": snapshot.rate_date,
        "source": snapshot.source,
        "created_at": snapshot.created_at.isoformat(),
    }


@bp.get("/quote")
def quote():
    """Suggested rate for one pair; ``rate`` is null when the operator must type it."""

    from_currency = request.args.get("from", "")
    to_currency = request.args.get("to", "")
    if not from_currency or not to_currency:
        return form_errors({"from": ["Provide both from and to currencies."]})
    data = get_finance().rates.fetch_exchange_rate(from_currency, to_currency)
    return {"success": True, "data": data.to_dict()}


@bp.get("/rates/<base>")
def rates(base: str):
    return respond(get_finance().rates.get_rates(base), serializer=lambda table: table.to_dict())


@bp.get("/convert")
def convert():
    result = get_finance().rates.convert_currency(
        request.args.get("amount", ""),
        request.args.get("from", ""),
        request.args.get("to", ""),
    )
    return respond(result)


@bp.post("/convert-balances")
def convert_balances():
    payload = request_payload()
    balances = payload.get("balances")
    if not isinstance(balances, dict):
        return form_errors({"balances": ["Provide balances as a currency to amount mapping."]})
    result = get_finance().rates.convert_balances_to_single(balances, payload.get("target_currency", ""))
    return respond(result)


@bp.post("/snapshots/<base>")
def save_snapshot(base: str):
    return respond(get_finance().rates.save_snapshot(base), serializer=_serialize_snapshot, status=201)


@bp.get("/history/<base>")
def history(base: str):
    days = request.args.get("days", default=30, type=int)
    result = get_finance().rates.get_rate_history(base, days)
    return respond(result, serializer=lambda rows: [_serialize_snapshot(row) for row in rows])
