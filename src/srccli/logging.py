"""Structured logging for srccli.

Diagnostics go to stderr so they never mix with command output on stdout.
The default level is WARNING; ``src --verbose`` switches to DEBUG and
``--json-logs`` swaps the plain formatter for :class:`JSONFormatter`.
There is no module-level logger: ``cli.main`` builds one and passes it to the
client and the command context.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, TextIO

from .errors import redact

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "exc_info",
    "exc_text",
    "stack_info",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        for k, v in record.__dict__.items():
            if k in _RESERVED or k.startswith("_") or k in entry:
                continue
            entry[k] = redact(v) if isinstance(v, str) else v
        return json.dumps(entry, default=str)


class StructuredLogger:
    def __init__(
        self,
        name: str = "srccli",
        json_logging: bool = False,
        level: str = "WARNING",
        stream: TextIO | None = None,
    ) -> None:
        # Unregistered logger: each instance keeps its own level and handler.
        self._logger = logging.Logger(name, getattr(logging, level.upper(), logging.WARNING))
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(
            JSONFormatter()
            if json_logging
            else logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        )
        self._logger.addHandler(handler)

    @property
    def level(self) -> int:
        return self._logger.level

    def log_operation(self, operation: str, **kw: Any) -> None:
        extra = {"operation": operation, **kw}
        self._logger.debug(f"Operation: {operation}", extra=extra)

    def log_request(
        self, method: str, url: str, status: int, duration_ms: float, **kw: Any
    ) -> None:
        extra = {
            "operation": "http_request",
            "method": method,
            "url": url,
            "status": status,
            "duration_ms": round(duration_ms, 2),
            **kw,
        }
        self._logger.debug(f"{method} {url} -> {status} ({duration_ms:.2f}ms)", extra=extra)

    def log_performance(self, operation: str, duration_ms: float, **kw: Any) -> None:
        extra = {"operation": operation, "duration_ms": round(duration_ms, 2), **kw}
        self._logger.debug(
            f"Performance: {operation} completed in {duration_ms:.2f}ms", extra=extra
        )

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:  # noqa: D401
        start = time.perf_counter()
        self.log_operation(f"{operation}_start", **kw)
        try:
            yield
        except Exception as exc:
            self.debug(f"operation {operation} failed", error=redact(str(exc)), **kw)
            raise
        self.log_performance(operation, (time.perf_counter() - start) * 1000, **kw)


__all__ = ["JSONFormatter", "StructuredLogger"]
