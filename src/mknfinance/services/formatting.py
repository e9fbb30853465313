"""Display formatting for amounts, dates and payroll periods (tr-TR conventions)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from ..constants.currencies import TRY, currency_decimals, get_currency_symbol

MONTH_NAMES = (
    "Ocak",
    "Şubat",
    "Mart",
    "Nisan",
    "Mayıs",
    "Haziran",
    "Temmuz",
    "Ağustos",
    "Eylül",
    "Ekim",
    "Kasım",
    "Aralık",
)

DateLike = Union[date, datetime, str, None]


def _group_tr(value: float, decimals: int) -> str:
    """Format a non-negative number with '.' thousands and ',' decimals."""

    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(amount: Optional[float], currency: str = TRY) -> str:
    """Return ``₺1.234,56`` style text; negatives render as ``-₺1.234,56``."""

    value = float(amount or 0)
    symbol = get_currency_symbol(currency)
    decimals = max(currency_decimals(currency), 2)
    body = _group_tr(abs(value), decimals)
    sign = "-" if value < 0 and body.strip("0.,") else ""
    return f"{sign}{symbol}{body}"


def format_currency_short(amount: Optional[float], currency: str = TRY) -> str:
    """Compact form used on dashboard cards (``₺1.5K``, ``$2.3M``)."""

    value = float(amount or 0)
    symbol = get_currency_symbol(currency)
    if value >= 1_000_000:
        return f"{symbol}{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{symbol}{value / 1_000:.1f}K"
    return f"{symbol}{value:.0f}"


def _coerce(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def format_date(value: DateLike) -> str:
    """``dd.mm.yyyy`` or ``-`` when there is no usable date."""

    parsed = _coerce(value)
    return parsed.strftime("%d.%m.%Y") if parsed else "-"


def format_datetime(value: DateLike) -> str:
    parsed = _coerce(value)
    return parsed.strftime("%d.%m.%Y %H:%M") if parsed else "-"


def format_period(year: int, month: int) -> str:
    """Return ``Ocak 2025`` for ``(2025, 1)``."""

    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return f"{MONTH_NAMES[month - 1]} {year}"


__all__ = [
    "MONTH_NAMES",
    "format_currency",
    "format_currency_short",
    "format_date",
    "format_datetime",
    "format_period",
]
