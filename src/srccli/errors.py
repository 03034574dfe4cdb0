"""Error taxonomy & redaction.

Every failure a command can hit is an exception from this module (or a
``requests`` exception) so that the runtime can turn it into an exit code and
a single user-facing line instead of a traceback.

Public API:
- CLIError and its subclasses (option parsing, usage, config, API)
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .options import Option

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]{8,}"),
    re.compile(r"(?i)(authorization[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+"),
    re.compile(r"(?i)(token[\"']?\s*[:=]\s*[\"']?)[A-Za-z0-9._~+/=-]{8,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVER_ERROR = 500


class CLIError(Exception):
    """Base class for failures that end a command with a message."""

    exit_code = 1


class UsageError(CLIError):
    """Wrong number or shape of command-line arguments."""

    exit_code = 2

    def __init__(self, message: str, help_text: str | None = None) -> None:
        super().__init__(message)
        self.help_text = help_text


class HelpRequested(CLIError):
    """Raised by ``-h/--help``; carries the text to print on stdout."""

    exit_code = 0

    def __init__(self, text: str) -> None:
        super().__init__("help requested")
        self.text = text


class ConfigError(CLIError):
    exit_code = 2


class DuplicateOptionError(ValueError):
    """Two options registered under the same short or long name.

    Raised while a command is being defined, not while parsing argv, so the
    runtime lets it propagate.
    """


class OptionError(UsageError):
    """Base class for errors raised while parsing options."""

    def __init__(self, message: str, option: Option | None = None) -> None:
        super().__init__(message)
        self.option = option


class UnknownOptionError(OptionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown option {name}")
        self.name = name


class MissingValueError(OptionError):
    def __init__(self, option: Option) -> None:
        super().__init__(f"option requires a value: {option.display_name}", option)


class TypeConversionError(OptionError):
    def __init__(self, option: Option, raw: str, type_name: str) -> None:
        super().__init__(
            f"cannot convert {raw!r} to {type_name} for {option.display_name}", option
        )
        self.raw = raw
        self.type_name = type_name


class ValidationFailedError(OptionError):
    def __init__(self, option: Option, cause: BaseException) -> None:
        super().__init__(f"validation failed for {option.display_name}: {cause}", option)
        self.cause = cause


class RequiredMissingError(OptionError):
    def __init__(self, option: Option) -> None:
        super().__init__(f"required option missing: {option.display_name}", option)


class APIError(CLIError):
    """Raised when the forge REST API returns an error or an unreadable body."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Mask bearer tokens and authorization values in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(lambda m: m.group(1) + _REDACTION_PLACEHOLDER, redacted)
    return redacted


def _classify_status(exc: APIError) -> ErrorInfo | None:
    status = exc.status
    if status is None:
        return None
    msg = redact(str(exc))
    name = exc.__class__.__name__
    details = {"status": status}
    if status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
        return ErrorInfo("api.auth", msg, name, details=details)
    if status == HTTP_NOT_FOUND:
        return ErrorInfo("api.not_found", msg, name, details=details)
    if status == HTTP_TOO_MANY_REQUESTS:
        return ErrorInfo("api.rate_limit", msg, name, transient=True, details=details)
    if status >= HTTP_SERVER_ERROR:
        return ErrorInfo("api.server", msg, name, transient=True, details=details)
    return ErrorInfo("api.client", msg, name, details=details)


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    - option / usage errors -> 'usage'
    - config errors -> 'config'
    - API errors -> 'api.*' by HTTP status
    - network-y keywords -> 'network', transient
    - fallback -> 'generic'
    """
    msg = str(exc) if exc else ""
    name = exc.__class__.__name__
    if isinstance(exc, ConfigError):
        return ErrorInfo("config", redact(msg), name)
    if isinstance(exc, UsageError):
        return ErrorInfo("usage", redact(msg), name)
    if isinstance(exc, APIError):
        info = _classify_status(exc)
        if info is not None:
            return info
        return ErrorInfo("api", redact(msg), name)
    low = msg.lower()
    if any(k in low for k in ("timeout", "timed out", "connection reset", "connection refused")):
        return ErrorInfo("network", redact(msg), name, transient=True)
    return ErrorInfo("generic", redact(msg), name)


__all__ = [
    "APIError",
    "CLIError",
    "ConfigError",
    "DuplicateOptionError",
    "ErrorInfo",
    "HelpRequested",
    "MissingValueError",
    "OptionError",
    "RequiredMissingError",
    "TypeConversionError",
    "UnknownOptionError",
    "UsageError",
    "ValidationFailedError",
    "classify_error",
    "redact",
]
