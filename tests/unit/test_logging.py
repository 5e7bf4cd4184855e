"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from race_machine.runtime.logging import JsonFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="race_machine.engine.state_machine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="State %s",
        args=("entered",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_machine_fields() -> None:
    payload = json.loads(
        JsonFormatter().format(_record(machine="demo", state="start", winner="timeout"))
    )

    assert payload["level"] == "INFO"
    assert payload["logger"] == "race_machine.engine.state_machine"
    assert payload["message"] == "State entered"
    assert payload["machine"] == "demo"
    assert payload["state"] == "start"
    assert payload["extra"] == {"winner": "timeout"}


def test_json_formatter_without_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload
    assert "machine" not in payload


def test_json_formatter_renders_exceptions() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: boom" in payload["exception"]


@pytest.mark.usefixtures("restore_root_logging")
def test_configure_logging_installs_single_json_handler() -> None:
    configure_logging("debug")
    configure_logging("debug")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.DEBUG
