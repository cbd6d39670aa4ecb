"""Log formatting and configuration for the ``tendril`` logger.

tendril logs through module loggers under the ``tendril`` namespace
(``logging.getLogger(__name__)``) and never configures logging on
import.  Test suites that want to see what the library does (which
members were instrumented, when the virtual clock moved) call
:func:`configure_logging` once, typically from ``conftest.py``::

    from tendril import Settings, configure_logging

    configure_logging(Settings().logging)

Two formats are available:

- ``text`` — ``timestamp [LEVEL] logger: message``.
- ``json`` — one JSON object per line (NDJSON), produced by
  :class:`JsonFormatter`, for CI systems that ingest structured logs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from tendril._settings import LoggingSettings

LOGGER_NAME = "tendril"

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_MEGABYTE = 1024 * 1024


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects (NDJSON).

    Each record produces a JSON object with these fields:

    - ``timestamp`` — ISO 8601, always UTC
    - ``level`` — Python log level name
    - ``logger`` — dotted logger name
    - ``message`` — the formatted log message
    - ``service`` — name of the test suite or tool emitting the log
    - ``exception`` — formatted traceback (only when present)
    - ``stack_info`` — stack trace (only when ``stack_info=True``)

    Args:
        service: Name included in every log line.
    """

    def __init__(self, *, service: str = LOGGER_NAME) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
        }

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


def configure_logging(
    settings: LoggingSettings | None = None,
    *,
    service: str = LOGGER_NAME,
) -> logging.Logger:
    """Attach handlers to the ``tendril`` logger according to *settings*.

    Handlers previously attached to the ``tendril`` logger are removed
    first, so calling this twice does not duplicate output.  A
    :class:`logging.StreamHandler` on ``stderr`` is always installed;
    when ``settings.file`` is set a
    :class:`~logging.handlers.RotatingFileHandler` is added as well.

    Args:
        settings: Logging configuration.  Defaults to
            ``LoggingSettings()``.
        service: Name passed to :class:`JsonFormatter`.

    Returns:
        The configured ``tendril`` logger.
    """
    settings = settings if settings is not None else LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if settings.format == "json":
        formatter: logging.Formatter = JsonFormatter(service=service)
    else:
        formatter = logging.Formatter(_TEXT_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if settings.file is not None:
        file_handler = RotatingFileHandler(
            settings.file,
            maxBytes=settings.max_file_size_mb * _MEGABYTE,
            backupCount=settings.backup_count,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(settings.level)
    return logger
