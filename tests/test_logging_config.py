"""Tests for structured logging setup."""
import json
import logging
import sys
import pytest
from decimal import Decimal

from core.config import Settings
from core.logging_config import JSONFormatter, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.payouts",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Payout approved: %s",
        args=("PAY-1-100",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extras():
    payload = json.loads(JSONFormatter().format(
        make_record(agent_id=100, payout_id=7, amount=Decimal("1.00"))
    ))

    assert payload["message"] == "Payout approved: PAY-1-100"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "services.payouts"
    assert payload["agent_id"] == 100
    assert payload["payout_id"] == 7
    # Only known context fields are copied
    assert "amount" not in payload
    assert "commission_id" not in payload


def test_json_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = make_record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in payload["exception"]


def test_log_level_normalized():
    assert Settings(log_level=" debug ").log_level == "DEBUG"


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_setup_logging_creates_files(tmp_path, restore_root_logger):
    config = Settings(log_dir=str(tmp_path / "logs"), log_level="warning")

    setup_logging(config)
    logging.getLogger("services.payouts").error("settlement failed", extra={"agent_id": 5})

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 3

    for handler in root.handlers:
        handler.flush()
    error_lines = (tmp_path / "logs" / "errors.log").read_text(encoding="utf-8").splitlines()
    entry = json.loads(error_lines[-1])
    assert entry["message"] == "settlement failed"
    assert entry["agent_id"] == 5
