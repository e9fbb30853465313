"""Application configuration objects and helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

ENV_PREFIX = "MKN_FINANCE_"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = _env(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "MKN Finance"
    DB_FILENAME = "mkn_finance.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}
    DEBUG = False
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = _env("SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = _env("DATABASE_URL") or self._build_sqlite_url()
        self.DEFAULT_CURRENCY = (_env("DEFAULT_CURRENCY", "TRY") or "TRY").upper()
        self.ALLOW_EXPENSE_OVERDRAFT = _env_bool("ALLOW_EXPENSE_OVERDRAFT", default=True)
        self.FX_API_URL = _env("FX_API_URL", "https://api.exchangerate-api.com/v4/latest/{base}")
        self.FX_TIMEOUT = _env_float("FX_TIMEOUT", 10.0)
        self.FX_CACHE_TTL = _env_float("FX_CACHE_TTL", 3600.0)
        self.EXTRA_CURRENCIES = self._parse_extra_currencies(_env("EXTRA_CURRENCIES"))
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError(f"{ENV_PREFIX}SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        base_path = Path(_env("DATA_DIR", "instance") or "instance").expanduser()
        path = base_path.resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    @staticmethod
    def _parse_extra_currencies(raw: str | None) -> dict[str, dict[str, Any]]:
        """Parse ``{"CHF": {"label": "Swiss Franc", "symbol": "Fr"}}`` style JSON."""

        if not raw or not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{ENV_PREFIX}EXTRA_CURRENCIES is not valid JSON") from exc
        if not isinstance(parsed, dict):
            raise ValueError(f"{ENV_PREFIX}EXTRA_CURRENCIES must be a JSON object")
        return {str(code).upper(): dict(meta or {}) for code, meta in parsed.items()}

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False, "timeout": 30}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; never reaches the FX API by default."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.FX_CACHE_TTL = 0.0
