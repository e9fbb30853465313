"""Shared form validation helpers for the finance blueprints."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Optional

from ..constants.currencies import is_known_currency, normalize_code
from ..models.transaction import as_utc

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value)


@dataclass(slots=True)
class BaseForm:
    """Binds request data, validates it and collects per-field errors."""

    FIELDS: ClassVar[tuple[str, ...]] = ()

    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    raw_data: dict[str, Any] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]):
        """Create a form populated from request data."""

        form = cls()
        form.load(data)
        return form

    def load(self, data: Mapping[str, Any]) -> None:
        """Bind the known keys of ``data``; absent keys stay absent."""

        self.raw_data = {key: data.get(key) for key in self.FIELDS if key in data}

    def validate(self) -> bool:
        """Validate the bound data and populate typed attributes."""

        self.errors.clear()
        self._validate()
        return not self.errors

    def _validate(self) -> None:  # pragma: no cover - overridden
        raise NotImplementedError

    def has(self, key: str) -> bool:
        return key in self.raw_data

    def _text(self, key: str, *, label: str, required: bool = False, max_length: int = 255) -> str:
        value = _as_text(self.raw_data.get(key))
        if required and not value:
            self._add_error(key, f"{label} is required.")
        elif len(value) > max_length:
            self._add_error(key, f"{label} must be {max_length} characters or fewer.")
        return value

    def _amount(
        self, key: str, *, label: str, required: bool = True, allow_zero: bool = False
    ) -> Optional[float]:
        raw = _as_text(self.raw_data.get(key))
        if not raw:
            if required:
                self._add_error(key, f"{label} is required.")
            return None
        try:
            value = float(raw.replace(",", "."))
        except (TypeError, ValueError):
            self._add_error(key, f"Enter a valid number for {label.lower()}.")
            return None
        if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
            self._add_error(key, f"{label} must be greater than zero.")
            return None
        return value

    def _int(self, key: str, *, label: str, required: bool = False) -> Optional[int]:
        raw = _as_text(self.raw_data.get(key))
        if not raw:
            if required:
                self._add_error(key, f"{label} is required.")
            return None
        try:
            value = int(raw)
        except (TypeError, ValueError):
            self._add_error(key, f"{label} must be a whole number.")
            return None
        if value <= 0:
            self._add_error(key, f"{label} must be greater than zero.")
            return None
        return value

    def _currency(self, key: str, *, label: str, required: bool = False) -> Optional[str]:
        raw = _as_text(self.raw_data.get(key))
        if not raw:
            if required:
                self._add_error(key, f"{label} is required.")
            return None
        code = normalize_code(raw)
        if not is_known_currency(code):
            self._add_error(key, f"Unsupported currency: {raw}.")
            return None
        return code

    def _date(self, key: str, *, label: str) -> Optional[datetime]:
        raw = _as_text(self.raw_data.get(key))
        if not raw:
            return None
        try:
            if len(raw) == 10:
                return as_utc(datetime.strptime(raw, "%Y-%m-%d"))
            return as_utc(datetime.fromisoformat(raw))
        except ValueError:
            self._add_error(key, f"Enter a valid {label.lower()} (YYYY-MM-DD).")
            return None

    def _bool(self, key: str, *, label: str) -> Optional[bool]:
        value = self.raw_data.get(key)
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            return value
        lowered = _as_text(value).lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        self._add_error(key, f"{label} must be true or false.")
        return None

    def _add_error(self, field: str, message: str) -> None:
        """Accumulate validation errors for a specific field."""

        self.errors.setdefault(field, []).append(message)

    def _currency_list(self, key: str, *, label: str) -> list[str]:
        """Accept ``["USD", "EUR"]`` or ``"USD,EUR"``."""

        raw = self.raw_data.get(key)
        if raw is None or raw == "":
            return []
        if isinstance(raw, str):
            items: list[Any] = raw.split(",")
        elif isinstance(raw, (list, tuple)):
            items = list(raw)
        else:
            self._add_error(key, f"{label} must be a list of currency codes.")
            return []
        codes: list[str] = []
        for item in items:
            code = normalize_code(_as_text(item))
            if not is_known_currency(code):
                self._add_error(key, f"Unsupported currency: {_as_text(item)}.")
            elif code not in codes:
                codes.append(code)
        return codes
