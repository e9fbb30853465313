"""Receivables and payables: numbering, payments, overdue flags and summary."""

from __future__ import annotations

from datetime import datetime, timezone

from mknfinance.models import as_utc
from mknfinance.services.receivables import DebtFilters


def test_create_receivable_and_payable(receivables):
    first = receivables.create_receivable(
        amount="1500.50",
        counterparty_name="  Acme Ltd ",
        counterparty_id="cust-1",
        order_number="SO-9",
        due_date="2024-04-01",
        user_id="admin-1",
    )
    second = receivables.create_receivable(amount=10)
    payable = receivables.create_payable(amount=300, currency="usd", counterparty_type="personnel")

    assert first.success, first.error
    debt = first.data
    assert debt.debt_number == "ALC-2024-0001"
    assert debt.kind == "receivable"
    assert debt.status == "pending"
    assert debt.counterparty_type == "customer"
    assert debt.counterparty_name == "Acme Ltd"
    assert debt.currency == "TRY"
    assert debt.amount == 1500.5
    assert debt.remaining_amount == 1500.5
    assert debt.created_by == "admin-1"
    assert as_utc(debt.due_date) == datetime(2024, 4, 1, tzinfo=timezone.utc)
    assert second.data.debt_number == "ALC-2024-0002"
    assert payable.data.debt_number == "BRC-2024-0001"
    assert payable.data.currency == "USD"
    assert payable.data.counterparty_type == "personnel"


def test_payable_defaults_to_supplier(receivables):
    assert receivables.create_payable(amount=5).data.counterparty_type == "supplier"


def test_create_validation(receivables):
    assert receivables.create_receivable(amount=0).code == "validation"
    assert receivables.create_receivable(amount="abc").code == "validation"
    assert receivables.create_receivable(amount=5, currency="XYZ").code == "validation"
    assert receivables.create_receivable(amount=5, counterparty_type="alien").code == "validation"
    assert receivables.create_receivable(amount=5, due_date="not a date").code == "validation"
    assert receivables.create_receivable(amount=5, colour="red").code == "validation"
    assert receivables.list_debts().data == []


def test_payments_move_receivable_to_collected(receivables):
    debt = receivables.create_receivable(amount=1000).data

    partial = receivables.record_payment(debt.id, amount=400, method="cash", note="Kasa", user_id="admin-2")
    assert partial.success, partial.error
    assert partial.data.status == "partial"
    assert partial.data.paid_amount == 400.0
    assert partial.data.remaining_amount == 600.0
    assert partial.data.updated_by == "admin-2"

    collected = receivables.record_payment(debt.id, amount=600).data
    assert collected.status == "collected"
    assert collected.remaining_amount == 0.0

    assert receivables.record_payment(debt.id, amount=1).code == "invalid_state"

    payments = receivables.get_payments(debt.id).data
    assert [p.amount_minor for p in payments] == [40000, 60000]
    assert payments[0].method == "cash"
    assert payments[1].method == "bank_transfer"
    assert payments[0].note == "Kasa"


def test_settled_payable_is_paid(receivables):
    debt = receivables.create_payable(amount=250).data

    assert receivables.record_payment(debt.id, amount=250).data.status == "paid"


def test_payment_cannot_exceed_remaining(receivables):
    debt = receivables.create_receivable(amount=1000).data

    result = receivables.record_payment(debt.id, amount=1000.01)

    assert result.code == "validation"
    assert receivables.get_debt(debt.id).data.paid_minor == 0
    assert receivables.get_payments(debt.id).data == []


def test_payment_validation(receivables, account_factory, account_service):
    debt = receivables.create_receivable(amount=100).data
    kasa = account_factory("Kasa")
    dolar = account_factory("Dolar", "USD")
    retired = account_factory("Eski")
    account_service.delete_account(retired.id)

    assert receivables.record_payment(debt.id, amount=10, method="barter").code == "validation"
    assert receivables.record_payment(debt.id, amount=0).code == "validation"
    assert receivables.record_payment(debt.id, amount=10, account_id=dolar.id).code == "validation"
    assert receivables.record_payment(debt.id, amount=10, account_id=retired.id).code == "validation"
    assert receivables.record_payment(debt.id, amount=10, account_id=999).code == "not_found"
    assert receivables.record_payment(12345, amount=10).code == "not_found"

    recorded = receivables.record_payment(debt.id, amount=10, account_id=kasa.id, paid_at="2024-03-10")
    assert recorded.success, recorded.error
    payment = receivables.get_payments(debt.id).data[0]
    assert payment.account_id == kasa.id
    assert as_utc(payment.paid_at) == datetime(2024, 3, 10, tzinfo=timezone.utc)


def test_payment_does_not_touch_account_balance(receivables, account_factory, balance_of):
    kasa = account_factory("Kasa", balance=50)
    debt = receivables.create_receivable(amount=100).data

    assert receivables.record_payment(debt.id, amount=100, account_id=kasa.id).success

    assert balance_of(kasa.id, "TRY") == 5000


def test_check_overdue_flags_open_debts_past_due(receivables):
    late = receivables.create_receivable(amount=100, due_date="2024-03-01").data
    late_payable = receivables.create_payable(amount=50, due_date="2024-03-10").data
    upcoming = receivables.create_receivable(amount=100, due_date="2024-04-01").data
    undated = receivables.create_receivable(amount=100).data

    counts = receivables.check_overdue()

    assert counts.data == {"receivable": 1, "payable": 1}
    assert receivables.get_debt(late.id).data.status == "overdue"
    assert receivables.get_debt(late_payable.id).data.status == "overdue"
    assert receivables.get_debt(upcoming.id).data.status == "pending"
    assert receivables.get_debt(undated.id).data.status == "pending"
    assert receivables.check_overdue().data == {"receivable": 0, "payable": 0}
    assert receivables.check_overdue("payable").data == {"payable": 0}
    assert receivables.check_overdue("loan").code == "validation"


def test_overdue_debt_stays_overdue_until_settled(receivables):
    debt = receivables.create_receivable(amount=100, due_date="2024-03-01").data
    receivables.check_overdue()

    assert receivables.record_payment(debt.id, amount=40).data.status == "overdue"
    assert receivables.record_payment(debt.id, amount=60).data.status == "collected"


def test_update_debt(receivables):
    debt = receivables.create_receivable(amount=100).data
    receivables.record_payment(debt.id, amount=100)

    reopened = receivables.update_debt(debt.id, {"amount": 150, "notes": " Ek fatura "}, "admin-3")
    assert reopened.success, reopened.error
    assert reopened.data.status == "partial"
    assert reopened.data.remaining_amount == 50.0
    assert reopened.data.notes == "Ek fatura"
    assert reopened.data.updated_by == "admin-3"

    late = receivables.update_debt(debt.id, {"due_date": "2024-03-01"}).data
    assert late.status == "overdue"
    cleared = receivables.update_debt(debt.id, {"due_date": None}).data
    assert cleared.status == "partial"
    assert cleared.due_date is None

    assert receivables.update_debt(debt.id, {"amount": 99}).code == "validation"
    assert receivables.update_debt(debt.id, {"paid_minor": 0}).code == "validation"
    assert receivables.update_debt(debt.id, {"counterparty_type": "alien"}).code == "validation"
    assert receivables.update_debt(999, {"notes": "x"}).code == "not_found"


def test_update_respects_expected_version(receivables):
    debt = receivables.create_receivable(amount=100).data

    assert receivables.update_debt(debt.id, {"notes": "a"}, expected_version=debt.version).success
    stale = receivables.update_debt(debt.id, {"notes": "b"}, expected_version=debt.version)

    assert stale.code == "concurrency"
    assert receivables.get_debt(debt.id).data.notes == "a"


def test_cancel_debt(receivables):
    debt = receivables.create_receivable(amount=100).data
    settled = receivables.create_payable(amount=10).data
    receivables.record_payment(settled.id, amount=10)

    cancelled = receivables.cancel_debt(debt.id, "admin-4").data

    assert cancelled.status == "cancelled"
    assert cancelled.updated_by == "admin-4"
    assert receivables.cancel_debt(debt.id).code == "invalid_state"
    assert receivables.record_payment(debt.id, amount=1).code == "invalid_state"
    assert receivables.update_debt(debt.id, {"notes": "x"}).code == "invalid_state"
    assert receivables.cancel_debt(settled.id).code == "invalid_state"


def test_delete_debt_without_payments_only(receivables):
    unpaid = receivables.create_receivable(amount=100).data
    paid = receivables.create_receivable(amount=100).data
    receivables.record_payment(paid.id, amount=10)

    assert receivables.delete_debt(unpaid.id).data == unpaid.id
    assert receivables.get_debt(unpaid.id).code == "not_found"
    assert receivables.delete_debt(paid.id).code == "invalid_state"
    assert receivables.get_debt(paid.id).success


def test_list_debts_filters(receivables):
    acme = receivables.create_receivable(amount=10, counterparty_id="cust-1", company_id="co-1").data
    other = receivables.create_receivable(amount=20, currency="EUR").data
    supplier = receivables.create_payable(amount=30, counterparty_id="sup-1").data
    receivables.record_payment(other.id, amount=5)

    everything = receivables.list_debts().data
    assert [d.id for d in everything] == [supplier.id, other.id, acme.id]

    def ids(**filters):
        return [d.id for d in receivables.list_debts(DebtFilters(**filters)).data]

    assert ids(kind="receivable") == [other.id, acme.id]
    assert ids(kind="payable") == [supplier.id]
    assert ids(status="partial") == [other.id]
    assert ids(currency="eur") == [other.id]
    assert ids(counterparty_id="cust-1") == [acme.id]
    assert ids(company_id="co-1") == [acme.id]
    assert ids(counterparty_type="supplier") == [supplier.id]
    assert receivables.list_debts(DebtFilters(kind="loan")).code == "validation"


def test_summary_per_currency(receivables):
    partial = receivables.create_receivable(amount=1000).data
    receivables.record_payment(partial.id, amount=400)
    receivables.create_receivable(amount=50, currency="USD", due_date="2024-03-01")
    dropped = receivables.create_receivable(amount=200).data
    receivables.cancel_debt(dropped.id)
    payable = receivables.create_payable(amount=300).data
    receivables.record_payment(payable.id, amount=300)
    receivables.check_overdue()

    summary = receivables.get_summary().data

    assert summary["receivables"] == {
        "total": {"TRY": 1000.0, "USD": 50.0},
        "collected": {"TRY": 400.0, "USD": 0.0},
        "pending": {"TRY": 600.0},
        "overdue": {"USD": 50.0},
        "count": 3,
    }
    assert summary["payables"] == {
        "total": {"TRY": 300.0},
        "paid": {"TRY": 300.0},
        "pending": {},
        "overdue": {},
        "count": 1,
    }


def test_to_dict_includes_payment_history(receivables):
    debt = receivables.create_receivable(amount=100).data
    receivables.record_payment(debt.id, amount=25, method="eft")

    stored = receivables.get_debt(debt.id).data
    data = stored.to_dict(receivables.get_payments(debt.id).data)

    assert data["paid_amount"] == 25.0
    assert data["remaining_amount"] == 75.0
    assert data["payments"][0]["amount"] == 25.0
    assert data["payments"][0]["method"] == "eft"
    assert "payments" not in stored.to_dict()
