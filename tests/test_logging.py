"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from mknfinance.logging_config import JSONFormatter, get_logger, setup_logging


def test_json_formatter():
    """JSONFormatter renders the standard fields plus extras."""
    formatter = JSONFormatter()
    record = logging.LogRecord(
        name="mknfinance.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Transaction %s",
        args=("INC-202403-0001",),
        exc_info=None,
    )
    record.transaction_type = "income"

    log_data = json.loads(formatter.format(record))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "mknfinance.test"
    assert log_data["message"] == "Transaction INC-202403-0001"
    assert log_data["line"] == 42
    assert log_data["extra"] == {"transaction_type": "income"}
    assert "timestamp" in log_data


def test_json_formatter_with_exception():
    formatter = JSONFormatter()
    try:
        raise ValueError("Test error")
    except ValueError:
        import sys

        exc_info = sys.exc_info()

    record = logging.LogRecord(
        name="mknfinance.test",
        level=logging.ERROR,
        pathname="test.py",
        lineno=7,
        msg="Error occurred",
        args=(),
        exc_info=exc_info,
    )

    log_data = json.loads(formatter.format(record))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging_writes_json_file(finance_config):
    logger = setup_logging(finance_config)

    assert logger.name == "mknfinance"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2

    get_logger("services.ledger_service").warning("Balance check", extra={"account_id": 3})
    for handler in logger.handlers:
        handler.flush()

    log_file = finance_config.DATA_DIR / "logs" / "mkn_finance.log"
    entries = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["message"] == "Balance check"
    assert entries[-1]["extra"]["account_id"] == 3


def test_get_logger_namespaces():
    assert get_logger("module1").name == "mknfinance.module1"
    assert get_logger("mknfinance.services.accounts").name == "mknfinance.services.accounts"


@pytest.mark.parametrize("dev_mode", [True, False])
def test_console_level_follows_dev_mode(finance_config, dev_mode):
    finance_config.DEV_MODE = dev_mode

    logger = setup_logging(finance_config)

    console = next(h for h in logger.handlers if not isinstance(h, logging.handlers.RotatingFileHandler))
    assert console.level == (logging.INFO if dev_mode else logging.WARNING)


def test_rejected_operation_is_logged(ledger, caplog):
    with caplog.at_level(logging.WARNING, logger="mknfinance"):
        result = ledger.get_transaction(404)

    assert result.code == "not_found"
    assert any("get_transaction rejected" in record.getMessage() for record in caplog.records)


def test_unexpected_error_becomes_store_error(ledger, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(ledger.transactions, "get_by_id", broken)

    with caplog.at_level(logging.ERROR, logger="mknfinance"):
        result = ledger.get_transaction(1)

    assert result.code == "store_error"
    assert "disk on fire" not in result.error
    assert any(record.exc_info for record in caplog.records)
