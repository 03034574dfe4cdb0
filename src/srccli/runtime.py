"""Runtime helpers shared by every ``src`` command."""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TextIO

import requests

from .config import ClientConfig
from .errors import CLIError, HelpRequested, OptionError, UsageError, classify_error, redact
from .logging import StructuredLogger
from .options import OptionParser, Validator
from .rest import SourceCraftClient
from .ux import print_error


@dataclass
class CommandContext:
    """Everything a command handler may touch; nothing is read from globals."""

    config: ClientConfig
    client: SourceCraftClient
    logger: StructuredLogger
    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)

    def echo(self, text: str = "") -> None:
        print(text, file=self.out)

    def page_hint(self, payload: dict[str, Any]) -> None:
        token = payload.get("next_page_token")
        if isinstance(token, str) and token:
            self.echo(f"Next page: --page-token {token}")


Handler = Callable[[CommandContext, list[str]], int | None]


@dataclass(frozen=True)
class Command:
    name: str
    usage: str
    summary: str
    run: Handler


class CommandParser(OptionParser):
    """OptionParser with a built-in ``-h/--help`` flag and positional checks."""

    def __init__(self, prog: str, usage: str = "") -> None:
        super().__init__(prog, usage)
        self.help_option = self.add_flag("h", "help", "Show this help")

    def parse_command(
        self, argv: Sequence[str], *, positionals: int = 0, optional: int = 0
    ) -> list[str]:
        """Parse ``argv`` and return exactly ``positionals + optional`` arguments.

        Missing optional arguments are returned as empty strings.
        """
        try:
            self.parse(argv)
        except OptionError as exc:
            if self._asks_for_help(argv):
                raise HelpRequested(self.help_text()) from None
            exc.help_text = self.help_text()
            raise
        if self.get_flag(self.help_option):
            raise HelpRequested(self.help_text())
        args = list(self.args)
        if len(args) < positionals:
            raise UsageError(
                f"{self.prog}: expected {positionals} argument(s), got {len(args)}",
                self.help_text(),
            )
        limit = positionals + optional
        if len(args) > limit:
            raise UsageError(
                f"{self.prog}: unexpected argument {args[limit]!r}", self.help_text()
            )
        return args + [""] * (limit - len(args))

    def _asks_for_help(self, argv: Sequence[str]) -> bool:
        """True when -h/--help sits where an option name is expected.

        Tokens consumed as option values do not count, so ``--set --help``
        stays a bad value rather than a help request.
        """
        tokens = list(argv)
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token == "--":
                return False
            if token.startswith("--"):
                name, sep, _ = token[2:].partition("=")
                if name == self.help_option.long:
                    return True
                opt = self._by_long.get(name)
                if opt is not None and opt.takes_value and not sep:
                    i += 1
            elif token.startswith("-") and token != "-":
                cluster = token[1:]
                for pos, letter in enumerate(cluster):
                    if letter == self.help_option.short:
                        return True
                    opt = self._by_short.get(letter)
                    if opt is not None and opt.takes_value:
                        if pos == len(cluster) - 1:
                            i += 1
                        break
            i += 1
        return False


def positive(values: list[str]) -> None:
    for value in values:
        if int(value) <= 0:
            raise ValueError(f"must be positive, got {value}")


def non_negative_number(values: list[str]) -> None:
    for value in values:
        if float(value) < 0:
            raise ValueError(f"must not be negative, got {value}")


def one_of(*choices: str) -> Validator:
    def _check(values: list[str]) -> None:
        for value in values:
            if value not in choices:
                raise ValueError(f"expected one of {', '.join(choices)}, got {value!r}")

    return _check


def key_value(values: list[str]) -> None:
    for value in values:
        key, sep, _ = value.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected key=value, got {value!r}")


def key_value_list(values: list[str]) -> None:
    """Like :func:`key_value`, but each comma-separated piece must be ``key=value``."""
    for value in values:
        key_value(value.split(","))


def parse_assignments(values: Sequence[str]) -> dict[str, str]:
    """``["title=Fix a, b"]`` -> ``{"title": "Fix a, b"}``; split on the first ``=`` only."""
    out: dict[str, str] = {}
    for value in values:
        key, _, val = value.partition("=")
        out[key.strip()] = val
    return out


def parse_pairs(values: Sequence[str]) -> dict[str, str]:
    """``["a=1", "b=2,c=3"]`` -> ``{"a": "1", "b": "2", "c": "3"}``."""
    out: dict[str, str] = {}
    for value in values:
        for pair in value.split(","):
            key, _, val = pair.partition("=")
            out[key.strip()] = val.strip()
    return out


def execute_command(name: str, handler: Handler, ctx: CommandContext, argv: list[str]) -> int:
    """Run a handler and convert expected failures into an exit code."""
    try:
        with ctx.logger.timed_operation(name):
            result = handler(ctx, argv)
    except HelpRequested as exc:
        print(exc.text, file=ctx.out)
        return exc.exit_code
    except UsageError as exc:
        print_error(str(exc), ctx.err)
        if exc.help_text:
            print(exc.help_text, file=ctx.err)
        return exc.exit_code
    except CLIError as exc:
        info = classify_error(exc)
        ctx.logger.debug("command failed", command=name, category=info.category)
        print_error(info.message, ctx.err)
        return exc.exit_code
    except requests.RequestException as exc:
        info = classify_error(exc)
        ctx.logger.debug("request failed", command=name, category=info.category)
        print_error(f"request failed: {redact(str(exc))}", ctx.err)
        return 1
    return int(result) if result is not None else 0


__all__ = [
    "Command",
    "CommandContext",
    "CommandParser",
    "execute_command",
    "key_value",
    "key_value_list",
    "non_negative_number",
    "one_of",
    "parse_assignments",
    "parse_pairs",
    "positive",
]
