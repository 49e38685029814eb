"""structlog setup for the API process.

Console output in development, JSON lines elsewhere. Prompt text and raw
model output can be long; fields listed in ``_TRUNCATED_FIELDS`` are clipped
before rendering so a single provider reply cannot flood the log.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

from grocer.config import settings

_TRUNCATED_FIELDS = ("prompt", "raw", "response_text", "body")
_MAX_FIELD_CHARS = 200


def truncate_long_fields(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Clip prompt/response payload fields to ``_MAX_FIELD_CHARS``."""
    for field in _TRUNCATED_FIELDS:
        value = event_dict.get(field)
        if isinstance(value, str) and len(value) > _MAX_FIELD_CHARS:
            event_dict[field] = value[:_MAX_FIELD_CHARS] + f"...(+{len(value) - _MAX_FIELD_CHARS})"
    return event_dict


class _LogFileTee:
    """Mirror log lines to stdout and a file; drop the file on the first I/O error."""

    def __init__(self, file_path: str) -> None:
        self._file: IO[str] | None
        try:
            self._file = open(file_path, "a")  # noqa: SIM115
        except OSError as exc:
            print(f"WARNING: cannot open log file {file_path!r}: {exc}", file=sys.stderr)
            self._file = None

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        self._to_file("write", data)

    def flush(self) -> None:
        sys.stdout.flush()
        self._to_file("flush")

    def _to_file(self, op: str, *args: str) -> None:
        if self._file is None:
            return
        try:
            getattr(self._file, op)(*args)
            if op == "write":
                self._file.flush()
        except (OSError, ValueError):
            self._file = None
            print("WARNING: log file disabled after I/O error", file=sys.stderr)


def configure_logging() -> None:
    """Configure structlog once for the process."""
    renderer: Any = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )
    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)

    if settings.log_file:
        logger_factory = structlog.PrintLoggerFactory(file=_LogFileTee(settings.log_file))  # type: ignore[arg-type]
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            truncate_long_fields,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )
