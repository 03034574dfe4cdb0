"""``src issue`` commands: list, view, create, update, close."""

from __future__ import annotations

import json
from typing import Any

from .errors import UsageError
from .render import (
    extract_items,
    first_string,
    first_text,
    indent,
    issue_state_symbol,
    join_labels,
    pretty_date,
    short_id,
    to_json,
    truncate,
)
from .runtime import (
    Command,
    CommandContext,
    CommandParser,
    key_value,
    one_of,
    parse_assignments,
    positive,
)
from .ux import print_header, print_success


def _person(value: Any) -> str:
    if not isinstance(value, dict):
        return ""
    return first_text(value.get("slug"), value.get("id"), value.get("name"))


def _state(item: dict[str, Any]) -> str:
    return first_string(item.get("status"), item.get("state"), item.get("status_slug"))


def list_issues(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src issue list", "[<org> <repo>] [options]")
    page_size = parser.add_int(
        "n", "page-size", "Items per page", default=ctx.config.page_size, validator=positive
    )
    filter_opt = parser.add_string("f", "filter", "Server-side filter expression")
    sort_by = parser.add_string("s", "sort-by", "Sort field")
    page_token = parser.add_string("t", "page-token", "Continuation token from a previous page")
    org, repo = parser.parse_command(argv, optional=2)
    if org and not repo:
        raise UsageError("src issue list: <repo> is required with <org>", parser.help_text())

    path = f"/repos/{org}/{repo}/issues" if org else "/me/issues"
    payload = ctx.client.get(
        path,
        params={
            "page_size": parser.get_int(page_size),
            "page_token": parser.get_string(page_token),
            "sort_by": parser.get_string(sort_by),
            "filter": parser.get_string(filter_opt),
        },
    )
    items = extract_items(payload, "issues", "data", "items")
    if items is None:
        ctx.echo(to_json(payload))
        return 0

    print_header(f"Issues  {org}/{repo}" if org else "Issues assigned to me", ctx.out)
    for item in items:
        if not isinstance(item, dict):
            continue
        extra = []
        assignee = _person(item.get("assignee"))
        if assignee:
            extra.append(f"assignee:{assignee}")
        labels = join_labels(item.get("labels"))
        if labels:
            extra.append(f"labels:{labels}")
        due = pretty_date(item.get("deadline"))
        if due:
            extra.append(f"due:{due}")
        suffix = " — " + ", ".join(extra) if extra else ""
        ident = short_id(first_text(item.get("id"), item.get("slug")))
        title = truncate(first_string(item.get("title")), 60)
        line = (
            f"{ident} {issue_state_symbol(_state(item))}  {title:<60}  "
            f"{pretty_date(item.get('updated_at'))}{suffix}"
        )
        ctx.echo(line.rstrip())
    if not items:
        ctx.echo("(no issues)")
    ctx.page_hint(payload)
    return 0


def view_issue(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src issue view", "<org> <repo> <id>")
    org, repo, issue_id = parser.parse_command(argv, positionals=3)
    data = ctx.client.get(f"/repos/{org}/{repo}/issues/{issue_id}")

    ctx.echo(first_string(data.get("title")))
    ctx.echo(f"issue {first_text(data.get('id'), data.get('slug'))}  {_state(data).upper()}")
    ctx.echo()

    meta = []
    milestone = data.get("milestone")
    for label, value in (
        ("author", _person(data.get("author"))),
        ("assignee", _person(data.get("assignee"))),
        ("priority", first_text(data.get("priority"))),
        ("milestone", first_text(milestone.get("slug"), milestone.get("id"))
         if isinstance(milestone, dict) else ""),
        ("labels", join_labels(data.get("labels"))),
        ("deadline", pretty_date(data.get("deadline"))),
        ("created", pretty_date(data.get("created_at"))),
        ("updated", pretty_date(data.get("updated_at"))),
    ):
        if value:
            meta.append(f"{label}:{value}")
    if meta:
        ctx.echo("  ".join(meta))
        ctx.echo()

    description = first_string(data.get("description"), data.get("body"))
    if description:
        ctx.echo(indent(description, 2))
        ctx.echo()
    linked = data.get("linked_prs")
    if isinstance(linked, list) and linked:
        ctx.echo(f"Linked PRs: {len(linked)}")
    if "comments_count" in data:
        ctx.echo(f"Comments: {first_text(data.get('comments_count')) or 0}")
    return 0


def create_issue(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src issue create", "<org> <repo> <title> [options]")
    description = parser.add_string("d", "description", "Issue description")
    visibility = parser.add_string(
        "", "visibility", "One of public|private", default="public",
        validator=one_of("public", "private"),
    )
    labels = parser.add_string_list("l", "label", "Label to attach (repeatable)")
    org, repo, title = parser.parse_command(argv, positionals=3)

    body: dict[str, Any] = {"title": title, "visibility": parser.get_string(visibility)}
    if parser.get_string(description):
        body["description"] = parser.get_string(description)
    if parser.get_string_list(labels):
        body["labels"] = parser.get_string_list(labels)
    data = ctx.client.post(f"/repos/{org}/{repo}/issues", body)

    ident = short_id(first_text(data.get("id")))
    slug = first_string(data.get("slug"))
    print_success(f"Issue created: {ident}/{slug}" if slug else f"Issue created: {ident}", ctx.out)
    ctx.echo(f"  Title     : {first_string(data.get('title'))}")
    created_description = first_string(data.get("description"))
    if created_description:
        ctx.echo(f"  Description: {truncate(created_description, 200)}")
    for label, value in (
        ("URL", first_string(data.get("html_url"), data.get("url"), data.get("web_url"))),
        ("Repo", f"{org}/{repo}"),
        ("Author", _person(data.get("author"))),
        ("Assignee", _person(data.get("assignee"))),
        ("Labels", join_labels(data.get("labels"))),
        ("Status", first_string(data.get("status"), data.get("state"))),
        ("Created", pretty_date(data.get("created_at"))),
    ):
        if value:
            ctx.echo(f"  {label:<10}: {value}")
    return 0


def update_issue(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src issue update", "<org> <repo> <id> [options]")
    sets = parser.add_string_list(
        "s", "set", "Field assignment key=value (repeatable)", validator=key_value
    )
    raw_json = parser.add_string("j", "json", "JSON object with fields to update")
    org, repo, issue_id = parser.parse_command(argv, positionals=3)

    fields: dict[str, Any] = {}
    if parser.get_string(raw_json):
        try:
            decoded = json.loads(parser.get_string(raw_json))
        except ValueError as exc:
            raise UsageError(f"--json is not valid JSON: {exc}") from exc
        if not isinstance(decoded, dict):
            raise UsageError("--json must be a JSON object")
        fields.update(decoded)
    fields.update(parse_assignments(parser.get_string_list(sets)))
    if not fields:
        raise UsageError("nothing to update: pass --set key=value or --json", parser.help_text())

    data = ctx.client.patch(f"/repos/{org}/{repo}/issues/{issue_id}", fields)
    ctx.echo(to_json(data))
    return 0


def close_issue(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src issue close", "<org> <repo> <id>")
    org, repo, issue_id = parser.parse_command(argv, positionals=3)
    data = ctx.client.patch(
        f"/repos/{org}/{repo}/issues/{issue_id}", {"status_slug": "closed"}
    )
    state = _state(data) or "closed"
    print_success(f"Issue {issue_id} {state}", ctx.out)
    return 0


COMMANDS = {
    "list": Command("list", "[<org> <repo>]", "List issues", list_issues),
    "view": Command("view", "<org> <repo> <id>", "Show issue details", view_issue),
    "create": Command("create", "<org> <repo> <title>", "Create an issue", create_issue),
    "update": Command("update", "<org> <repo> <id>", "Update issue fields", update_issue),
    "close": Command("close", "<org> <repo> <id>", "Close an issue", close_issue),
}
