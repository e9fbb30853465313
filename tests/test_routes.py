"""HTTP surface of the finance blueprints."""

from __future__ import annotations

import pytest


def _create_account(client, headers, **payload):
    body = {"name": "Kasa", "currency": "TRY", "initial_balance": "100"}
    body.update(payload)
    response = client.post("/finance/accounts/", json=body, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]


@pytest.fixture
def kasa(client, admin_headers):
    return _create_account(client, admin_headers)


def test_create_account_records_admin(client, admin_headers):
    data = _create_account(client, admin_headers, name="Ziraat", account_type="bank", is_default="true")

    assert data["name"] == "Ziraat"
    assert data["created_by"] == "admin-7"
    assert data["is_default"] is True
    assert data["balances"] == {"TRY": 100.0}


def test_create_multi_account_from_form_data(client, admin_headers):
    response = client.post(
        "/finance/accounts/",
        data={"name": "Döviz", "mode": "multi", "currency": "TRY", "supported_currencies": "TRY,USD"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.get_json()["data"]["supported_currencies"] == ["TRY", "USD"]


def test_create_account_validation_errors(client):
    response = client.post("/finance/accounts/", json={"currency": "XYZ", "initial_balance": "-5"})

    body = response.get_json()
    assert response.status_code == 400
    assert body["success"] is False
    assert body["code"] == "validation"
    assert set(body["fields"]) == {"name", "currency", "initial_balance"}


def test_account_listing_and_lookups(client, admin_headers, kasa):
    _create_account(client, admin_headers, name="Dolar", currency="USD", initial_balance="20")

    listing = client.get("/finance/accounts/?currency=USD").get_json()["data"]
    assert [a["name"] for a in listing] == ["Dolar"]

    totals = client.get("/finance/accounts/totals").get_json()["data"]
    assert totals == {"TRY": 100.0, "USD": 20.0}

    balances = client.get(f"/finance/accounts/{kasa['id']}/balances").get_json()["data"]
    assert balances["balances"] == {"TRY": 100.0}

    stats = client.get("/finance/accounts/stats").get_json()["data"]
    assert stats["total_accounts"] == 2

    assert client.get("/finance/accounts/default/TRY").status_code == 404
    assert client.get("/finance/accounts/999").status_code == 404

    codes = [c["code"] for c in client.get("/finance/accounts/currencies").get_json()["data"]]
    assert {"TRY", "USD", "EUR"} <= set(codes)


def test_update_and_delete_account(client, admin_headers, kasa):
    patched = client.patch(f"/finance/accounts/{kasa['id']}", json={"notes": "Ofis"}, headers=admin_headers)
    assert patched.status_code == 200
    assert patched.get_json()["data"]["updated_by"] == "admin-7"

    assert client.patch(f"/finance/accounts/{kasa['id']}", json={}).status_code == 400

    deleted = client.delete(f"/finance/accounts/{kasa['id']}", headers=admin_headers)
    assert deleted.get_json()["data"]["is_active"] is False
    assert client.delete(f"/finance/accounts/{kasa['id']}").status_code == 409

    removed = client.delete(f"/finance/accounts/{kasa['id']}?permanent=1")
    assert removed.get_json()["data"] == {"id": kasa["id"], "permanent": True}


def test_income_lifecycle(client, admin_headers, kasa):
    created = client.post(
        "/finance/transactions/income",
        json={"account_id": kasa["id"], "amount": "1000", "category": "sales"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    txn = created.get_json()["data"]
    assert txn["created_by"] == "admin-7"

    edited = client.patch(f"/finance/transactions/{txn['id']}", json={"amount": "700", "expected_version": 1})
    assert edited.status_code == 200
    balances = client.get(f"/finance/accounts/{kasa['id']}/balances").get_json()["data"]
    assert balances["balances"] == {"TRY": 800.0}

    stale = client.patch(f"/finance/transactions/{txn['id']}", json={"amount": "900", "expected_version": 1})
    assert stale.status_code == 409
    assert stale.get_json()["code"] == "concurrency"

    cancelled = client.post(f"/finance/transactions/{txn['id']}/cancel", json={"expected_version": 2})
    assert cancelled.status_code == 200
    assert cancelled.get_json()["data"]["status"] == "cancelled"

    frozen = client.patch(f"/finance/transactions/{txn['id']}", json={"notes": "geç"})
    assert frozen.status_code == 409
    assert frozen.get_json()["code"] == "invalid_state"

    deleted = client.delete(f"/finance/transactions/{txn['id']}")
    assert deleted.get_json()["data"] == {"id": txn["id"]}
    assert client.get(f"/finance/transactions/{txn['id']}").status_code == 404


def test_pending_expense_then_complete(client, kasa):
    created = client.post(
        "/finance/transactions/expense",
        json={"account_id": kasa["id"], "amount": "25,50", "status": "pending"},
    ).get_json()["data"]

    completed = client.post(f"/finance/transactions/{created['id']}/complete")

    assert completed.status_code == 200
    balances = client.get(f"/finance/accounts/{kasa['id']}/balances").get_json()["data"]
    assert balances["balances"] == {"TRY": 74.5}


def test_transfer_rejected_for_insufficient_funds(client, admin_headers, kasa):
    other = _create_account(client, admin_headers, name="Banka", initial_balance="0")

    response = client.post(
        "/finance/transactions/transfer",
        json={"from_account_id": kasa["id"], "to_account_id": other["id"], "from_amount": "5000"},
    )

    assert response.status_code == 422
    assert response.get_json()["code"] == "insufficient_funds"


def test_transfer_and_direction_in_listing(client, admin_headers, kasa):
    other = _create_account(client, admin_headers, name="Banka", initial_balance="0")
    response = client.post(
        "/finance/transactions/transfer",
        json={"from_account_id": kasa["id"], "to_account_id": other["id"], "from_amount": "40"},
    )
    assert response.status_code == 201

    listing = client.get(f"/finance/transactions/?account_id={other['id']}").get_json()["data"]
    assert listing["total"] == 1
    assert listing["items"][0]["transfer_direction"] == "in"


def test_exchange_requires_rate_or_amount(client, admin_headers):
    multi = _create_account(
        client, admin_headers, name="Döviz", mode="multi", supported_currencies=["TRY", "USD"],
        initial_balances={"TRY": 1000},
    )

    missing = client.post(
        "/finance/transactions/exchange",
        json={"account_id": multi["id"], "from_currency": "TRY", "to_currency": "USD", "from_amount": "100"},
    )
    assert missing.status_code == 400
    assert "exchange_rate" in missing.get_json()["fields"]

    same = client.post(
        "/finance/transactions/exchange",
        json={"account_id": multi["id"], "from_currency": "TRY", "to_currency": "TRY", "from_amount": "1",
              "exchange_rate": "1"},
    )
    assert same.status_code == 400

    done = client.post(
        "/finance/transactions/exchange",
        json={"account_id": multi["id"], "from_currency": "TRY", "to_currency": "USD", "from_amount": "100",
              "exchange_rate": "0.032"},
    )
    assert done.status_code == 201
    assert done.get_json()["data"]["to_amount"] == 3.2


def test_transaction_listing_filters(client, kasa):
    client.post("/finance/transactions/income", json={"account_id": kasa["id"], "amount": "5"})
    client.post("/finance/transactions/expense", json={"account_id": kasa["id"], "amount": "2"})

    incomes = client.get("/finance/transactions/?type=income").get_json()["data"]
    assert incomes["total"] == 1
    assert client.get("/finance/transactions/?type=refund").status_code == 400
    assert client.get("/finance/transactions/?page=2&per_page=1").get_json()["data"]["items"][0]["type"] == "income"


def test_report_endpoints(client, kasa):
    client.post("/finance/transactions/income", json={"account_id": kasa["id"], "amount": "5"})

    summary = client.get("/finance/transactions/summary?start=2000-01-01&end=2100-12-31")
    assert summary.status_code == 200
    assert summary.get_json()["data"]["total_income"] == {"TRY": 5.0}
    assert client.get("/finance/transactions/summary").status_code == 400

    trend = client.get("/finance/transactions/trend?year=2024").get_json()["data"]
    assert len(trend) == 12
    assert client.get("/finance/transactions/stats").status_code == 200


def test_exchange_rate_endpoints(client, stub_http):
    stub_http.set_rates("USD", {"TRY": 32.0, "EUR": 0.9})

    quote = client.get("/finance/exchange-rates/quote?from=USD&to=TRY").get_json()
    assert quote["data"] == {"rate": 32.0, "source": "api", "date": "2024-03-15"}

    failed = client.get("/finance/exchange-rates/quote?from=GBP&to=TRY")
    assert failed.status_code == 200
    assert failed.get_json()["data"]["source"] == "error"

    assert client.get("/finance/exchange-rates/rates/GBP").status_code == 502
    assert client.get("/finance/exchange-rates/rates/USD").get_json()["data"]["base"] == "USD"

    converted = client.get("/finance/exchange-rates/convert?amount=10&from=USD&to=TRY").get_json()["data"]
    assert converted["converted_amount"] == 320.0

    total = client.post(
        "/finance/exchange-rates/convert-balances",
        json={"balances": {"USD": 10, "TRY": 5}, "target_currency": "TRY"},
    ).get_json()["data"]
    assert total["total"] == 325.0

    snapshot = client.post("/finance/exchange-rates/snapshots/USD")
    assert snapshot.status_code == 201
    history = client.get("/finance/exchange-rates/history/USD?days=7").get_json()["data"]
    assert [row["id"] for row in history] == [snapshot.get_json()["data"]["id"]]


def test_unknown_route_uses_json_envelope(client):
    response = client.get("/finance/nowhere")

    assert response.status_code == 404
    assert response.get_json()["success"] is False
    assert response.get_json()["code"] == "not_found"


def test_receivable_and_payable_endpoints(client, admin_headers):
    created = client.post(
        "/finance/debts/receivables",
        json={"amount": "1000", "counterparty_name": "Acme", "due_date": "2020-01-01"},
        headers=admin_headers,
    )
    assert created.status_code == 201, created.get_json()
    receivable = created.get_json()["data"]
    assert receivable["debt_number"].startswith("ALC-")
    assert receivable["created_by"] == "admin-7"

    payable = client.post(
        "/finance/debts/payables", json={"amount": "300", "currency": "USD"}, headers=admin_headers
    ).get_json()["data"]
    assert payable["debt_number"].startswith("BRC-")
    assert payable["counterparty_type"] == "supplier"

    invalid = client.post(
        "/finance/debts/receivables", json={"amount": "-1", "currency": "XYZ", "counterparty_type": "alien"}
    )
    assert invalid.status_code == 400
    assert set(invalid.get_json()["fields"]) == {"amount", "currency", "counterparty_type"}

    paid = client.post(
        f"/finance/debts/{receivable['id']}/payments", json={"amount": "400", "method": "cash"}, headers=admin_headers
    )
    assert paid.status_code == 201
    assert paid.get_json()["data"]["paid_amount"] == 400.0
    assert paid.get_json()["data"]["status"] == "overdue"

    assert client.post(f"/finance/debts/{receivable['id']}/payments", json={"amount": "1", "method": "barter"}).status_code == 400
    overpaid = client.post(f"/finance/debts/{receivable['id']}/payments", json={"amount": "700"})
    assert overpaid.status_code == 400
    assert overpaid.get_json()["code"] == "validation"

    detail = client.get(f"/finance/debts/{receivable['id']}").get_json()["data"]
    assert [p["amount"] for p in detail["payments"]] == [400.0]

    assert client.patch(f"/finance/debts/{receivable['id']}", json={"notes": "Takip"}).status_code == 200
    assert client.patch(f"/finance/debts/{receivable['id']}", json={}).status_code == 400

    assert client.post("/finance/debts/check-overdue").get_json()["data"] == {"receivable": 0, "payable": 0}
    assert [d["id"] for d in client.get("/finance/debts/?kind=payable").get_json()["data"]] == [payable["id"]]

    summary = client.get("/finance/debts/summary").get_json()["data"]
    assert summary["receivables"]["overdue"] == {"TRY": 600.0}
    assert summary["payables"]["pending"] == {"USD": 300.0}

    cancelled = client.post(f"/finance/debts/{payable['id']}/cancel", headers=admin_headers)
    assert cancelled.get_json()["data"]["status"] == "cancelled"
    assert client.post(f"/finance/debts/{payable['id']}/cancel").status_code == 409

    assert client.delete(f"/finance/debts/{receivable['id']}").status_code == 409
    assert client.delete(f"/finance/debts/{receivable['id']}?expected_version=abc").status_code == 400
    assert client.get("/finance/debts/999").status_code == 404
