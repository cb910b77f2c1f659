"""
Structured JSON Logging Module.

One JSON object per line, to stdout and to a rotating log file.  The
client handles passwords and session cookies, so structured fields
whose names mark them as secrets are masked before anything is
written.

Usage::

    log = get_logger("familyaid.services")
    log.info("Login accepted", extra={"event": "LOGIN", "user_id": "7"})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, TextIO

_MASK: str = "***"

_SECRET_FIELDS: frozenset[str] = frozenset({
    "password",
    "current_password",
    "new_password",
    "confirm_password",
    "cookie",
    "set_cookie",
})

_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__
) | {"message", "asctime", "taskName"}


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """Render a record as ``{timestamp, level, logger, message, context?, exception?}``.

    ``context`` holds the fields passed through ``extra=``.  Scalars
    keep their JSON type; anything else is stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: _MASK if key.lower().replace("-", "_") in _SECRET_FIELDS else _json_value(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if context:
            entry["context"] = context

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """Injectable wrapper around a named ``logging.Logger``.

    Handlers are attached once per logger name; later instances with
    the same name share them.  File logging is optional: if the log
    file cannot be opened the logger keeps writing to the stream.

    Parameters
    ----------
    name:
        Dotted logger name.
    level:
        Level name or number; defaults to ``AppConfig.LOG_LEVEL``.
    stream:
        Console stream, ``sys.stdout`` by default.
    log_file:
        Rotating log file path; defaults to ``AppConfig.LOG_FILE``.
    """

    def __init__(
        self,
        name: str = "familyaid",
        level: Optional[int | str] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
    ) -> None:
        # Deferred so the environment is read on first use.
        from familyaid.config import get_config

        cfg = get_config()
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level if level is not None else cfg.LOG_LEVEL)

        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        console = logging.StreamHandler(stream or sys.stdout)
        console.setFormatter(formatter)
        self._logger.addHandler(console)

        path = Path(log_file or cfg.LOG_FILE)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(path),
                maxBytes=cfg.LOG_MAX_BYTES,
                backupCount=cfg.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Log file '%s' unavailable (%s); logging to console only.", path, exc,
            )
        else:
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args: object, **kwargs: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._logger.exception(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "familyaid") -> StructuredLogger:
    return StructuredLogger(name=name)
