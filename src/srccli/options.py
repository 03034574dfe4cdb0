"""Command-line option parser used by every ``src`` command.

Options are registered on an :class:`OptionParser` and come back as
:class:`Option` handles; values are read through the parser's typed accessors
using those handles rather than by name::

    parser = OptionParser("src issue list", "<org> <repo> [options]")
    size = parser.add_int("n", "page-size", "max items to list", default=30)
    labels = parser.add_string_list("l", "label", "filter by label")
    parser.parse(["acme", "widgets", "-n5", "--label", "bug"])
    parser.get_int(size)            # 5
    parser.get_string_list(labels)  # ["bug"]
    parser.args                     # ["acme", "widgets"]

Supported token shapes: ``--name value``, ``--name=value``, ``-n value``,
``-nvalue``, flag clusters ``-abc`` and the ``--`` terminator. Defaults are
applied after the scan, only to options that were not supplied, so
:meth:`OptionParser.was_supplied` can still tell an explicit value from a
fallback.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TextIO

from .errors import (
    DuplicateOptionError,
    MissingValueError,
    RequiredMissingError,
    TypeConversionError,
    UnknownOptionError,
    ValidationFailedError,
)

FLAG_MARKER = "true"
_NAME_COLUMN = 20

Validator = Callable[[list[str]], None]


class OptionKind(Enum):
    FLAG = "flag"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    STRING_LIST = "string_list"


_TYPE_ANNOTATIONS = {
    OptionKind.FLAG: "",
    OptionKind.STRING: " <string>",
    OptionKind.INT: " <int>",
    OptionKind.FLOAT: " <float>",
    OptionKind.STRING_LIST: " <value>...",
}


@dataclass(eq=False)
class Option:
    """A registered switch; ``present``/``values``/``explicit`` are parse results."""

    short: str = ""
    long: str = ""
    kind: OptionKind = OptionKind.FLAG
    required: bool = False
    default: Any = None
    help: str = ""
    validator: Validator | None = None
    present: bool = field(default=False, init=False)
    explicit: bool = field(default=False, init=False)
    values: list[str] = field(default_factory=list, init=False)

    @property
    def display_name(self) -> str:
        parts = []
        if self.short:
            parts.append(f"-{self.short}")
        if self.long:
            parts.append(f"--{self.long}")
        return "/".join(parts)

    @property
    def takes_value(self) -> bool:
        return self.kind is not OptionKind.FLAG


@dataclass
class _Slot:
    """Scratch parse state for one option; committed only when parsing succeeds."""

    present: bool = False
    explicit: bool = False
    values: list[str] = field(default_factory=list)
    validated: bool = False


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _default_values(opt: Option) -> list[str]:
    default = opt.default
    if default is None:
        return []
    if opt.kind is OptionKind.STRING_LIST:
        if isinstance(default, str):
            return [default]
        return [_stringify(v) for v in default]
    if opt.kind is OptionKind.FLAG:
        return [FLAG_MARKER] if default is True else []
    return [_stringify(default)]


def _format_default(opt: Option) -> str:
    default = opt.default
    if default is None:
        return ""
    if isinstance(default, (list, tuple)):
        rendered = "[" + " ".join(_stringify(v) for v in default) + "]"
    else:
        rendered = _stringify(default)
    return f" (default: {rendered})"


class OptionParser:
    """Registry of options plus a single left-to-right argv scanner.

    ``interspersed=False`` stops option recognition at the first positional
    token; that token and everything after it are kept verbatim in ``args``.
    The top-level ``src`` entry point uses this so global options can precede
    the resource name without swallowing the subcommand's own options.
    """

    def __init__(self, prog: str, usage: str = "", *, interspersed: bool = True) -> None:
        self.prog = prog
        self.usage = usage
        self.interspersed = interspersed
        self.args: list[str] = []
        self._order: list[Option] = []
        self._by_short: dict[str, Option] = {}
        self._by_long: dict[str, Option] = {}

    # ---- registration -------------------------------------------------
    def add_flag(
        self,
        short: str,
        long: str,
        help: str,
        default: bool | None = None,
        *,
        required: bool = False,
        validator: Validator | None = None,
    ) -> Option:
        return self._register(
            Option(short, long, OptionKind.FLAG, required, default, help, validator)
        )

    def add_string(
        self,
        short: str,
        long: str,
        help: str,
        default: str | None = None,
        *,
        required: bool = False,
        validator: Validator | None = None,
    ) -> Option:
        return self._register(
            Option(short, long, OptionKind.STRING, required, default, help, validator)
        )

    def add_int(
        self,
        short: str,
        long: str,
        help: str,
        default: int | None = None,
        *,
        required: bool = False,
        validator: Validator | None = None,
    ) -> Option:
        return self._register(
            Option(short, long, OptionKind.INT, required, default, help, validator)
        )

    def add_float(
        self,
        short: str,
        long: str,
        help: str,
        default: float | None = None,
        *,
        required: bool = False,
        validator: Validator | None = None,
    ) -> Option:
        return self._register(
            Option(short, long, OptionKind.FLOAT, required, default, help, validator)
        )

    def add_string_list(
        self,
        short: str,
        long: str,
        help: str,
        default: Iterable[str] | str | None = None,
        *,
        required: bool = False,
        validator: Validator | None = None,
    ) -> Option:
        if default is not None and not isinstance(default, str):
            default = list(default)
        return self._register(
            Option(short, long, OptionKind.STRING_LIST, required, default, help, validator)
        )

    def _register(self, opt: Option) -> Option:
        if not opt.short and not opt.long:
            raise ValueError("option needs a short or a long name")
        if opt.short and (len(opt.short) != 1 or opt.short == "-"):
            raise ValueError(f"short option name must be one character: {opt.short!r}")
        if opt.long and (opt.long.startswith("-") or "=" in opt.long):
            raise ValueError(f"invalid long option name: {opt.long!r}")
        if opt.short and opt.short in self._by_short:
            raise DuplicateOptionError(f"duplicate short option: {opt.short}")
        if opt.long and opt.long in self._by_long:
            raise DuplicateOptionError(f"duplicate long option: {opt.long}")
        if opt.short:
            self._by_short[opt.short] = opt
        if opt.long:
            self._by_long[opt.long] = opt
        self._order.append(opt)
        return opt

    @property
    def options(self) -> list[Option]:
        return list(self._order)

    # ---- parsing ------------------------------------------------------
    def parse(self, argv: Sequence[str]) -> None:
        """Scan ``argv`` and commit option state and positionals.

        Raises an :class:`~srccli.errors.OptionError` subclass on failure, in
        which case no registered option and ``args`` are left untouched.
        """
        tokens = list(argv)
        slots = {opt: _Slot() for opt in self._order}
        args: list[str] = []
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token == "--":
                args.extend(tokens[i + 1 :])
                break
            if token.startswith("--"):
                name, sep, value = token[2:].partition("=")
                opt = self._by_long.get(name)
                if opt is None:
                    raise UnknownOptionError(f"--{name}")
                i = self._consume(opt, slots[opt], value if sep else None, tokens, i)
                i += 1
                continue
            if token.startswith("-") and token != "-":
                cluster = token[1:]
                for pos, letter in enumerate(cluster):
                    opt = self._by_short.get(letter)
                    if opt is None:
                        raise UnknownOptionError(f"-{letter}")
                    if opt.takes_value and pos < len(cluster) - 1:
                        i = self._consume(opt, slots[opt], cluster[pos + 1 :], tokens, i)
                        break
                    i = self._consume(opt, slots[opt], None, tokens, i)
                i += 1
                continue
            if not self.interspersed:
                args.extend(tokens[i:])
                break
            args.append(token)
            i += 1

        self._post_validate(slots)

        for opt, slot in slots.items():
            opt.present = slot.present
            opt.explicit = slot.explicit
            opt.values = slot.values
        self.args = args

    def _consume(
        self,
        opt: Option,
        slot: _Slot,
        inline: str | None,
        tokens: list[str],
        index: int,
    ) -> int:
        """Record one occurrence of ``opt``; returns the index of the last token used."""
        slot.present = True
        slot.explicit = True
        if opt.kind is OptionKind.FLAG:
            slot.values = [FLAG_MARKER]
            slot.validated = False
            return index
        if inline is None:
            if index + 1 >= len(tokens):
                raise MissingValueError(opt)
            index += 1
            inline = tokens[index]
        if opt.kind is OptionKind.STRING_LIST:
            slot.values.append(inline)
        else:
            slot.values = [inline]
        self._validate(opt, slot)
        return index

    @staticmethod
    def _validate(opt: Option, slot: _Slot) -> None:
        if opt.validator is not None:
            try:
                opt.validator(list(slot.values))
            except Exception as exc:
                raise ValidationFailedError(opt, exc) from exc
        slot.validated = True

    def _post_validate(self, slots: dict[Option, _Slot]) -> None:
        for opt in self._order:
            slot = slots[opt]
            if not slot.present:
                if opt.required:
                    raise RequiredMissingError(opt)
                values = _default_values(opt)
                if values:
                    slot.values = values
                    slot.present = True
                    slot.validated = False
            if slot.present and not slot.validated:
                self._validate(opt, slot)

    # ---- typed accessors ---------------------------------------------
    def is_present(self, opt: Option) -> bool:
        return opt.present

    def was_supplied(self, opt: Option) -> bool:
        """True only when the option appeared in argv (defaults do not count)."""
        return opt.explicit

    def get_string(self, opt: Option) -> str:
        if opt.values:
            return opt.values[0]
        defaults = _default_values(opt)
        return defaults[0] if defaults else ""

    def get_string_list(self, opt: Option) -> list[str]:
        if opt.values:
            return list(opt.values)
        return _default_values(opt)

    def get_int(self, opt: Option) -> int:
        raw = self.get_string(opt)
        if not raw.strip():
            return 0
        try:
            return int(raw.strip(), 10)
        except ValueError as exc:
            raise TypeConversionError(opt, raw, "int") from exc

    def get_float(self, opt: Option) -> float:
        raw = self.get_string(opt)
        if not raw.strip():
            return 0.0
        try:
            return float(raw.strip())
        except ValueError as exc:
            raise TypeConversionError(opt, raw, "float") from exc

    def get_flag(self, opt: Option) -> bool:
        return opt.present and self.get_string(opt) == FLAG_MARKER

    # ---- help ---------------------------------------------------------
    def help_text(self) -> str:
        lines = [f"Usage: {self.prog} {self.usage.strip()}".rstrip(), "", "Options:"]
        for opt in sorted(self._order, key=lambda o: o.long):
            names = []
            if opt.short:
                names.append(f"-{opt.short}")
            if opt.long:
                names.append(f"--{opt.long}")
            name = ", ".join(names)
            required = " [required]" if opt.required else ""
            line = (
                f"  {name:<{_NAME_COLUMN}} "
                f"{_TYPE_ANNOTATIONS[opt.kind]}{_format_default(opt)}{required}"
            )
            lines.append(line.rstrip())
            if opt.help:
                lines.append(f"      {opt.help}")
        return "\n".join(lines)

    def print_help(self, stream: TextIO | None = None) -> None:
        print(self.help_text(), file=stream or sys.stdout)


__all__ = ["FLAG_MARKER", "Option", "OptionKind", "OptionParser", "Validator"]
