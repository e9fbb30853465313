"""Income/expense reporting over completed ledger transactions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

from ..constants.currencies import TRY, from_minor, is_known_currency, normalize_code
from ..domain.errors import ValidationError
from ..domain.results import as_result
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.transaction import Transaction, TransactionType, as_utc

logger = get_logger(__name__)

_INCOME = TransactionType.INCOME.value
_EXPENSE = TransactionType.EXPENSE.value


def _to_amounts(totals: dict[str, int]) -> dict[str, float]:
    return {code: from_minor(minor, code) for code, minor in totals.items()}


def summarize(transactions: Iterable[Transaction]) -> dict[str, Any]:
    """Per-currency income, expense and net, plus per-category breakdowns.

    Transfers and exchanges move money between balances and are not counted.
    """

    income: dict[str, int] = {}
    expense: dict[str, int] = {}
    by_category: dict[str, dict[str, dict[str, int]]] = {_INCOME: {}, _EXPENSE: {}}
    count = 0
    for txn in transactions:
        if txn.type == _INCOME:
            bucket = income
        elif txn.type == _EXPENSE:
            bucket = expense
        else:
            continue
        count += 1
        bucket[txn.currency] = bucket.get(txn.currency, 0) + txn.amount_minor
        if txn.category:
            per_currency = by_category[txn.type].setdefault(txn.currency, {})
            per_currency[txn.category] = per_currency.get(txn.category, 0) + txn.amount_minor

    net = {
        code: income.get(code, 0) - expense.get(code, 0)
        for code in list(income) + [c for c in expense if c not in income]
    }
    return {
        "total_income": _to_amounts(income),
        "total_expense": _to_amounts(expense),
        "net_profit": _to_amounts(net),
        "by_category": {
            kind: {code: _to_amounts(cats) for code, cats in per_currency.items()}
            for kind, per_currency in by_category.items()
        },
        "transaction_count": count,
    }


class ReportService:
    """Read-only aggregates for the finance dashboard."""

    def __init__(
        self,
        transactions: SQLModelTransactionRepository,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.transactions = transactions
        self.clock = clock

    @as_result(logger)
    def income_expense_summary(
        self, start_date: datetime, end_date: datetime, currency: Optional[str] = None
    ) -> dict[str, Any]:
        start_date, end_date = as_utc(start_date), as_utc(end_date)
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date.")
        code = self._currency(currency) if currency else None
        rows = self.transactions.list_completed_between(start_date, end_date, currency=code)
        summary = summarize(rows)
        summary["start_date"] = start_date.isoformat()
        summary["end_date"] = end_date.isoformat()
        return summary

    @as_result(logger)
    def monthly_trend(self, year: int, currency: str = TRY) -> list[dict[str, Any]]:
        """Twelve ``{month, income, expense, net}`` rows for ``year`` in one currency."""

        code = self._currency(currency)
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
        months = [{"income": 0, "expense": 0} for _ in range(12)]
        for txn in self.transactions.list_completed_between(start, end, currency=code):
            if txn.type in (_INCOME, _EXPENSE):
                months[txn.transaction_date.month - 1][txn.type] += txn.amount_minor
        return [
            {
                "month": index + 1,
                "income": from_minor(row["income"], code),
                "expense": from_minor(row["expense"], code),
                "net": from_minor(row["income"] - row["expense"], code),
            }
            for index, row in enumerate(months)
        ]

    @as_result(logger)
    def transaction_stats(self) -> dict[str, Any]:
        """This month against last month."""

        now = as_utc(self.clock())
        this_start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
        next_start = datetime(now.year + (now.month == 12), now.month % 12 + 1, 1, tzinfo=timezone.utc)
        last_start = (this_start - timedelta(days=1)).replace(day=1)
        edge = timedelta(microseconds=1)
        return {
            "this_month": summarize(
                self.transactions.list_completed_between(this_start, next_start - edge)
            ),
            "last_month": summarize(
                self.transactions.list_completed_between(last_start, this_start - edge)
            ),
        }

    @staticmethod
    def _currency(code: Optional[str]) -> str:
        normalized = normalize_code(code)
        if not is_known_currency(normalized):
            raise ValidationError(f"Unsupported currency: {code!r}.", currency=code)
        return normalized


__all__ = ["ReportService", "summarize"]
