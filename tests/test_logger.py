from __future__ import annotations

import io
import json
import logging
from pathlib import Path

from familyaid.logger import JSONFormatter, StructuredLogger


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="familyaid.auth", level=logging.WARNING, pathname=__file__, lineno=1,
        msg="Login failed for %s", args=("admin",), exc_info=None,
    )
    record.__dict__.update(extra)
    return record


def test_formatter_writes_one_json_object() -> None:
    entry = json.loads(JSONFormatter().format(_record(event="LOGIN_FAILED", attempts=3)))

    assert entry["level"] == "WARNING"
    assert entry["logger"] == "familyaid.auth"
    assert entry["message"] == "Login failed for admin"
    assert entry["context"] == {"event": "LOGIN_FAILED", "attempts": 3}


def test_secret_fields_are_masked() -> None:
    entry = json.loads(JSONFormatter().format(_record(password="hunter2", Cookie="sid=abc")))

    assert entry["context"] == {"password": "***", "Cookie": "***"}


def test_record_without_extras_has_no_context() -> None:
    entry = json.loads(JSONFormatter().format(_record()))
    assert "context" not in entry


def test_logger_writes_to_given_stream(tmp_path: Path) -> None:
    stream = io.StringIO()
    log = StructuredLogger(
        name="familyaid.tests.stream",
        level="DEBUG",
        stream=stream,
        log_file=str(tmp_path / "stream.log"),
    )

    log.info("Identity resolved", extra={"user_id": "7"})

    entry = json.loads(stream.getvalue().splitlines()[-1])
    assert entry["message"] == "Identity resolved"
    assert entry["context"] == {"user_id": "7"}
    assert (tmp_path / "stream.log").exists()
