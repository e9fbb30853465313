"""MKN finance ledger application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable, Optional

import requests
from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .constants.currencies import register_currency
from .logging_config import setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    yield "mknfinance.blueprints.accounts"
    yield "mknfinance.blueprints.transactions"
    yield "mknfinance.blueprints.exchange"
    yield "mknfinance.blueprints.receivables"


def _register_extra_currencies(config: BaseConfig) -> None:
    for code, meta in config.EXTRA_CURRENCIES.items():
        register_currency(
            code,
            str(meta.get("label", code)),
            str(meta.get("symbol", code)),
            int(meta.get("decimals", 2)),
        )


def create_app(config_name: str | None = None, *, http: Optional[requests.Session] = None) -> Flask:
    """Create and configure the Flask application instance.

    ``http`` replaces the ``requests`` session used for FX lookups, which lets
    tests run without network access.
    """

    app = Flask(__name__, instance_relative_config=True)
    config_cls = _resolve_config(config_name or app.config.get("ENV"))
    config_obj = config_cls()
    app.config.from_object(config_obj)
    app.config["FINANCE_CONFIG"] = config_obj

    _register_extra_currencies(config_obj)
    setup_logging(config_obj)
    _register_blueprints(app)

    from .blueprints.responses import register_error_handlers
    from .extensions import init_db

    register_error_handlers(app)
    init_db(app, http=http)
    _cli.init_app(app)
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
