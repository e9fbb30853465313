"""
Currency lookup table shared by the ledger, reports and formatting helpers.

The table is configuration data: additional codes can be registered at start-up
(see ``BaseConfig.EXTRA_CURRENCIES``) without touching any other module.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


@dataclass(frozen=True, slots=True)
class CurrencyInfo:
    """Display metadata for a currency code."""

    code: str
    label: str
    symbol: str
    decimals: int = 2


TRY = "TRY"
USD = "USD"
EUR = "EUR"
GBP = "GBP"

_REGISTRY: dict[str, CurrencyInfo] = {
    TRY: CurrencyInfo(TRY, "Turkish Lira", "₺"),
    USD: CurrencyInfo(USD, "US Dollar", "$"),
    EUR: CurrencyInfo(EUR, "Euro", "€"),
    GBP: CurrencyInfo(GBP, "British Pound", "£"),
}


def register_currency(code: str, label: str, symbol: str, decimals: int = 2) -> CurrencyInfo:
    """Add or replace a currency definition."""

    normalized = normalize_code(code)
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError(f"Currency code must be three letters: {code!r}")
    if decimals < 0 or decimals > 6:
        raise ValueError("Currency decimals must be between 0 and 6.")
    info = CurrencyInfo(normalized, label or normalized, symbol or normalized, decimals)
    _REGISTRY[normalized] = info
    return info


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def all_currencies() -> list[str]:
    """Return every registered currency code in registration order."""

    return list(_REGISTRY.keys())


def is_known_currency(code: str | None) -> bool:
    return normalize_code(code) in _REGISTRY


def get_currency_info(code: str) -> CurrencyInfo | None:
    return _REGISTRY.get(normalize_code(code))


def get_currency_label(code: str) -> str:
    """Return the display label, falling back to the code itself."""

    info = get_currency_info(code)
    return info.label if info else code


def get_currency_symbol(code: str) -> str:
    """Return the display symbol, falling back to the code itself."""

    info = get_currency_info(code)
    return info.symbol if info else code


def currency_decimals(code: str) -> int:
    info = get_currency_info(code)
    return info.decimals if info else 2


def to_minor(amount: float | int | str | Decimal, currency: str) -> int:
    """Convert a display amount into integer minor units (half-up rounding)."""

    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    scale = Decimal(10) ** currency_decimals(currency)
    return int((value * scale).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor(minor: int | None, currency: str) -> float:
    """Convert integer minor units back into a display amount."""

    if not minor:
        return 0.0
    return minor / (10 ** currency_decimals(currency))


def empty_balances() -> dict[str, float]:
    return {code: 0.0 for code in _REGISTRY}


__all__ = [
    "CurrencyInfo",
    "EUR",
    "GBP",
    "TRY",
    "USD",
    "all_currencies",
    "currency_decimals",
    "empty_balances",
    "from_minor",
    "get_currency_info",
    "get_currency_label",
    "get_currency_symbol",
    "is_known_currency",
    "normalize_code",
    "register_currency",
    "to_minor",
]
