"""Account store operations."""

from __future__ import annotations

from mknfinance.constants.currencies import all_currencies
from mknfinance.services.accounts import get_balance


def test_create_single_currency_account(account_service):
    result = account_service.create_account(
        name="  Ziraat Bankası ",
        account_type="bank",
        currency="try",
        initial_balance=1500.5,
        iban="tr12 0001 0000 0000 0000 0000 01",
        user_id="admin-1",
    )

    assert result.success, result.error
    account = result.data
    assert account.name == "Ziraat Bankası"
    assert account.currency == "TRY"
    assert account.supported_currencies == ["TRY"]
    assert account.iban == "TR120001000000000000000001"
    assert account.created_by == "admin-1"
    assert account.to_dict()["balances"] == {"TRY": 1500.5}
    assert get_balance(account, "USD") == 0.0


def test_create_multi_account_defaults_to_all_currencies(account_service):
    result = account_service.create_account(
        name="Döviz Kasası",
        mode="multi",
        currency="USD",
        initial_balances={"USD": 100, "EUR": 50},
    )

    account = result.data
    assert account.supported_currencies == all_currencies()
    assert account.balance_map()["USD"] == 100.0
    assert account.balance_map()["EUR"] == 50.0
    assert account.balance_map()["TRY"] == 0.0


def test_multi_account_inserts_primary_currency(account_service):
    result = account_service.create_account(
        name="Avro", mode="multi", currency="TRY", supported_currencies=["EUR"]
    )

    assert result.data.supported_currencies == ["TRY", "EUR"]


def test_multi_account_rejects_opening_balance_in_unsupported_currency(account_service):
    result = account_service.create_account(
        name="Avro", mode="multi", currency="EUR", supported_currencies=["EUR"], initial_balances={"USD": 5}
    )

    assert not result.success
    assert result.code == "validation"


def test_create_account_validation(account_service):
    assert account_service.create_account(name="  ").code == "validation"
    assert account_service.create_account(name="X", account_type="piggy").code == "validation"
    assert account_service.create_account(name="X", mode="triple").code == "validation"
    assert account_service.create_account(name="X", currency="XYZ").code == "validation"


def test_get_account_not_found(account_service):
    result = account_service.get_account(999)

    assert not result.success
    assert result.code == "not_found"


def test_get_account_balances_hides_zero(account_service, account_factory):
    account = account_factory("Döviz", mode="multi", supported=["TRY", "USD"], balances={"USD": 20})

    data = account_service.get_account_balances(account.id).data

    assert data["account_name"] == "Döviz"
    assert data["main_currency"] == "TRY"
    assert data["balances"] == {"USD": 20.0}
    assert data["all_balances"] == {"TRY": 0.0, "USD": 20.0}


def test_total_balance_covers_active_accounts(account_service, account_factory):
    account_factory("Kasa", balance=100)
    account_factory("Banka", balance=250.25)
    account_factory("Dolar", "USD", balance=10)
    retired = account_factory("Eski", balance=999)
    account_service.delete_account(retired.id)

    assert account_service.get_total_balance().data == {"TRY": 350.25, "USD": 10.0}
    assert account_service.get_total_balance("usd").data == {"USD": 10.0}


def test_account_stats(account_service, account_factory):
    account_factory("Kasa", account_type="cash", balance=10)
    account_factory("Banka", account_type="bank", balance=5)
    account_factory("Döviz", "USD", mode="multi", supported=["USD", "EUR"], balances={"EUR": 3})

    stats = account_service.get_account_stats().data

    assert stats["total_accounts"] == 3
    assert stats["by_type"] == {"cash": 1, "bank": 2}
    assert stats["by_currency"] == {"TRY": 2, "USD": 1}
    assert stats["by_mode"] == {"single": 2, "multi": 1}
    assert stats["total_balances"] == {"TRY": 15.0, "EUR": 3.0}


def test_default_account_lookup(account_service, account_factory):
    assert account_service.get_default_account().code == "not_found"

    default = account_factory("Ana Kasa", is_default=True)

    assert account_service.get_default_account().data.id == default.id
    assert account_service.get_default_account("USD").code == "not_found"


def test_update_account_fields(account_service, account_factory):
    account = account_factory("Kasa")

    result = account_service.update_account(
        account.id, {"name": "Merkez Kasa", "notes": "Ofis", "allow_overdraft": False}, "admin-2"
    )

    assert result.success, result.error
    assert result.data.name == "Merkez Kasa"
    assert result.data.allow_overdraft is False
    assert result.data.updated_by == "admin-2"


def test_update_account_rejects_unknown_and_balance_fields(account_service, account_factory):
    account = account_factory("Kasa", balance=10)

    result = account_service.update_account(account.id, {"currency": "USD"})

    assert result.code == "validation"
    assert "currency" in result.error


def test_single_account_cannot_change_currencies(account_service, account_factory):
    account = account_factory("Kasa")

    result = account_service.update_account(account.id, {"supported_currencies": ["TRY", "USD"]})

    assert result.code == "validation"


def test_currency_with_balance_cannot_be_removed(account_service, account_factory):
    account = account_factory("Döviz", mode="multi", supported=["TRY", "USD", "EUR"], balances={"USD": 1})

    blocked = account_service.update_account(account.id, {"supported_currencies": ["EUR"]})
    allowed = account_service.update_account(account.id, {"supported_currencies": ["USD"]})

    assert blocked.code == "validation"
    assert "USD" in blocked.error
    assert allowed.data.supported_currencies == ["TRY", "USD"]


def test_currency_used_by_transactions_cannot_be_removed(account_service, ledger, account_factory):
    account = account_factory("Döviz", mode="multi", supported=["TRY", "USD", "EUR"])
    income = ledger.create_income(account_id=account.id, amount=100, currency="USD").data
    ledger.create_expense(account_id=account.id, amount=100, currency="USD")

    blocked = account_service.update_account(account.id, {"supported_currencies": ["TRY"]})
    allowed = account_service.update_account(account.id, {"supported_currencies": ["TRY", "USD"]})

    assert blocked.code == "validation"
    assert "USD" in blocked.error
    assert "EUR" not in blocked.error
    assert allowed.data.supported_currencies == ["TRY", "USD"]

    assert ledger.cancel_transaction(income.id).success
    balances = account_service.get_account_balances(account.id).data
    assert balances["balances"] == {"USD": -100.0}
    assert account_service.get_total_balance("USD").data == {"USD": -100.0}


def test_update_cannot_retire_account(account_service, account_factory):
    account = account_factory("Kasa")

    result = account_service.update_account(account.id, {"is_active": False})

    assert result.code == "validation"
    assert account_service.get_account(account.id).data.is_active is True


def test_soft_delete(account_service, account_factory):
    account = account_factory("Kasa", is_default=True)

    result = account_service.delete_account(account.id, "admin-3")

    assert result.data.is_active is False
    assert result.data.is_default is False
    assert result.data.deleted_by == "admin-3"
    assert account_service.get_accounts().data == []
    assert len(account_service.get_accounts(is_active=None).data) == 1
    assert account_service.delete_account(account.id).code == "invalid_state"


def test_permanent_delete_requires_no_transactions(account_service, ledger, account_factory):
    used = account_factory("Kullanılan")
    unused = account_factory("Boş")
    assert ledger.create_income(account_id=used.id, amount=10).success

    assert account_service.permanent_delete_account(used.id).code == "invalid_state"
    assert account_service.permanent_delete_account(unused.id).data == unused.id
    assert account_service.get_account(unused.id).code == "not_found"
