"""srccli command-line entry point.

Usage: ``src [global options] <resource> <command> [args]``

Resources:
  repo       -> list / view / create / fork repositories
  issue      -> list / view / create / update / close issues
  pr         -> list / view / create pull requests
  milestone  -> list / view / create milestones
  workflow   -> list / status / logs / run CI workflows
  stats      -> repository, user and security statistics
  report     -> prioritized security report

Global options are parsed up to the resource name; everything after it
belongs to the subcommand's own option parser.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TextIO

import requests

from . import __version__, issue, milestone, pulls, repo, stats, workflow
from .config import load_config
from .errors import ConfigError, OptionError
from .logging import StructuredLogger
from .options import Option, OptionParser
from .rest import SourceCraftClient
from .runtime import Command, CommandContext, execute_command
from .ux import print_error

PROG = "src"


@dataclass(frozen=True)
class Resource:
    name: str
    summary: str
    commands: dict[str, Command]


RESOURCES: dict[str, Resource] = {
    r.name: r
    for r in (
        Resource("repo", "Repositories", repo.COMMANDS),
        Resource("issue", "Issues", issue.COMMANDS),
        Resource("pr", "Pull requests", pulls.COMMANDS),
        Resource("milestone", "Milestones", milestone.COMMANDS),
        Resource("workflow", "CI workflows", workflow.COMMANDS),
        Resource("stats", "Statistics", stats.COMMANDS),
        Resource("report", "Reports", stats.REPORT_COMMANDS),
    )
}


@dataclass(frozen=True)
class _GlobalOptions:
    help: Option
    version: Option
    config: Option
    api_url: Option
    token: Option
    verbose: Option
    json_logs: Option


def _build_parser() -> tuple[OptionParser, _GlobalOptions]:
    p = OptionParser(PROG, "[global options] <resource> <command> [args]", interspersed=False)
    opts = _GlobalOptions(
        help=p.add_flag("h", "help", "Show this help"),
        version=p.add_flag("V", "version", "Print the version and exit"),
        config=p.add_string("c", "config", "Configuration file (env: SRCCLI_CONFIG)"),
        api_url=p.add_string("", "api-url", "API base URL (env: SRC_API_URL)"),
        token=p.add_string("", "token", "Personal access token (env: SRC_TOKEN)"),
        verbose=p.add_flag("v", "verbose", "Log HTTP requests and timings to stderr"),
        json_logs=p.add_flag("", "json-logs", "Emit logs as JSON lines"),
    )
    return p, opts


def _command_lines(resource: Resource) -> list[str]:
    lines = []
    for command in resource.commands.values():
        invocation = f"{resource.name} {command.name} {command.usage}"
        lines.append(f"  {invocation:<44}  {command.summary}")
    return lines


def general_help(parser: OptionParser) -> str:
    lines = [f"{PROG} - command-line client for SourceCraft", f"Version: {__version__}", ""]
    lines.append(parser.help_text())
    lines += ["", "Commands:"]
    for resource in RESOURCES.values():
        lines += _command_lines(resource)
    lines += ["", f"Run '{PROG} <resource> <command> --help' for command options."]
    return "\n".join(lines)


def resource_help(resource: Resource) -> str:
    lines = [f"{resource.summary} commands:"]
    lines += _command_lines(resource)
    lines += ["", f"Use '{PROG} {resource.name} <command> --help' for command-specific options."]
    return "\n".join(lines)


def main(
    argv: Sequence[str] | None = None,
    *,
    session: requests.Session | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    tokens = list(sys.argv[1:] if argv is None else argv)

    parser, opts = _build_parser()
    try:
        parser.parse(tokens)
    except OptionError as exc:
        print_error(str(exc), err)
        print(parser.help_text(), file=err)
        return exc.exit_code

    if parser.get_flag(opts.version):
        print(__version__, file=out)
        return 0
    rest = parser.args
    if parser.get_flag(opts.help) or (rest and rest[0] == "help" and len(rest) == 1):
        print(general_help(parser), file=out)
        return 0
    if not rest:
        print(general_help(parser), file=err)
        return 2
    if rest[0] == "help":
        rest = [rest[1], "help"]

    resource = RESOURCES.get(rest[0])
    if resource is None:
        print_error(f"unknown command: {rest[0]}", err)
        print(f"Run '{PROG} --help' to see the available commands.", file=err)
        return 2
    if len(rest) < 2:
        print_error(f"missing {resource.name} command", err)
        print(resource_help(resource), file=err)
        return 2
    if rest[1] in ("help", "-h", "--help"):
        print(resource_help(resource), file=out)
        return 0
    command = resource.commands.get(rest[1])
    if command is None:
        print_error(f"unknown {resource.name} command: {rest[1]}", err)
        print(resource_help(resource), file=err)
        return 2

    try:
        cfg = load_config(parser.get_string(opts.config) or None, environ=environ)
    except ConfigError as exc:
        print_error(str(exc), err)
        return exc.exit_code
    cfg = cfg.with_overrides(
        api_url=parser.get_string(opts.api_url) or None,
        token=parser.get_string(opts.token) or None,
        log_level="DEBUG" if parser.get_flag(opts.verbose) else None,
        json_logging=True if parser.get_flag(opts.json_logs) else None,
    )
    logger = StructuredLogger(json_logging=cfg.json_logging, level=cfg.log_level, stream=err)
    client = SourceCraftClient(cfg, session=session, logger=logger)
    ctx = CommandContext(config=cfg, client=client, logger=logger, out=out, err=err)
    return execute_command(f"{resource.name} {command.name}", command.run, ctx, rest[2:])


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
