"""``src milestone`` commands: list, view, create."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .render import (
    date_from,
    extract_items,
    first_string,
    first_text,
    indent,
    milestone_state_symbol,
    number_from,
    pretty_time,
    short_id,
    to_json,
)
from .runtime import Command, CommandContext, CommandParser
from .ux import print_header, print_success

DUE_KEYS = ("deadline", "due_date", "due")


def _iso_date(values: list[str]) -> None:
    for value in values:
        datetime.strptime(value, "%Y-%m-%d")


def _state(item: dict[str, Any]) -> str:
    return first_string(item.get("status"), item.get("state"), item.get("status_slug"))


def format_milestone_line(item: dict[str, Any]) -> str:
    due = date_from(item, *DUE_KEYS) or "no due date"
    ident = short_id(first_text(item.get("id")))
    return f"{ident} {milestone_state_symbol(_state(item))}  {due:<10}  {first_string(item.get('title'))}"


def list_milestones(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src milestone list", "<org> <repo>")
    org, repo = parser.parse_command(argv, positionals=2)
    payload = ctx.client.get(f"/repos/{org}/{repo}/milestones")
    items = extract_items(payload, "items", "data", "milestones")
    if items is None:
        ctx.echo(to_json(payload))
        return 0

    print_header(f"Milestones for {org}/{repo}", ctx.out)
    milestones = [item for item in items if isinstance(item, dict)]
    if not milestones:
        ctx.echo("(no milestones)")
    for item in milestones:
        ctx.echo(format_milestone_line(item))
    return 0


def view_milestone(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src milestone view", "<org> <repo> <id>")
    org, repo, milestone_id = parser.parse_command(argv, positionals=3)
    data = ctx.client.get(f"/repos/{org}/{repo}/milestones/{milestone_id}")

    ctx.echo(f"{first_string(data.get('title'))} ({_state(data).upper()})")
    ctx.echo(f"milestone {first_text(data.get('id'))}")
    ctx.echo()
    description = first_string(data.get("description"), data.get("body"))
    if description:
        ctx.echo(indent(description, 2))
        ctx.echo()

    created = first_string(data.get("created_at"), data.get("created"))
    updated = first_string(data.get("updated_at"), data.get("updated"))
    ctx.echo(f"Created: {pretty_time(created)}")
    if updated and updated != created:
        ctx.echo(f"Updated: {pretty_time(updated)}")
    due = date_from(data, *DUE_KEYS)
    if due:
        ctx.echo(f"Due: {due}")

    open_count = number_from(data.get("open_issues_count"))
    closed_count = number_from(data.get("closed_issues_count"))
    if open_count is not None and closed_count is not None:
        ctx.echo(f"Issues: {open_count} open, {closed_count} closed")
    elif open_count is not None:
        ctx.echo(f"Issues open: {open_count}")
    return 0


def create_milestone(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src milestone create", "<org> <repo> <title> [options]")
    description = parser.add_string("d", "description", "Milestone description")
    deadline = parser.add_string("", "deadline", "Due date (YYYY-MM-DD)", validator=_iso_date)
    org, repo, title = parser.parse_command(argv, positionals=3)

    body: dict[str, Any] = {"name": title}
    if parser.get_string(description):
        body["description"] = parser.get_string(description)
    if parser.get_string(deadline):
        body["deadline"] = parser.get_string(deadline)
    data = ctx.client.post(f"/repos/{org}/{repo}/milestones", body)
    print_success(f"Milestone created: {first_text(data.get('id'), data.get('slug')) or title}", ctx.out)
    return 0


COMMANDS = {
    "list": Command("list", "<org> <repo>", "List milestones", list_milestones),
    "view": Command("view", "<org> <repo> <id>", "Show milestone details", view_milestone),
    "create": Command("create", "<org> <repo> <title>", "Create a milestone", create_milestone),
}
