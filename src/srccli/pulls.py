"""``src pr`` commands: list, view, create."""

from __future__ import annotations

from typing import Any

from .render import (
    extract_items,
    first_string,
    first_text,
    indent,
    pr_state_symbol,
    pretty_time,
    ref,
    short_id,
    to_text,
    truncate,
)
from .runtime import Command, CommandContext, CommandParser, one_of, positive
from .ux import print_header, print_success

PR_FILTERS = ("open", "closed", "merged", "all")


def _pr_ref(pr: dict[str, Any]) -> str:
    return "/".join(p for p in (to_text(pr.get("id")), to_text(pr.get("slug"))) if p)


def format_pr_line(pr: dict[str, Any]) -> str:
    source = first_string(pr.get("source_branch"))
    target = first_string(pr.get("target_branch"))
    extra = []
    if source or target:
        extra.append(f"{source}→{target}")
    author = ref(pr.get("author"), "slug", "id")
    if author:
        extra.append(f"by:{author}")
    updated = pretty_time(pr.get("updated_at"))
    if updated:
        extra.append(f"updated:{updated}")
    suffix = "  — " + "  ".join(extra) if extra else ""
    title = truncate(first_string(pr.get("title")), 70)
    state = pr_state_symbol(first_string(pr.get("status"), pr.get("state")))
    return f"{short_id(_pr_ref(pr))} {state}  {title:<70}{suffix}".rstrip()


def list_prs(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src pr list", "<org> <repo> [options]")
    page_size = parser.add_int(
        "n", "page-size", "Items per page", default=ctx.config.page_size, validator=positive
    )
    filter_opt = parser.add_string(
        "f", "filter", "State filter: open|closed|merged|all", validator=one_of(*PR_FILTERS)
    )
    page_token = parser.add_string("t", "page-token", "Continuation token from a previous page")
    org, repo = parser.parse_command(argv, positionals=2)

    payload = ctx.client.get(
        f"/repos/{org}/{repo}/pulls",
        params={
            "page_size": parser.get_int(page_size),
            "page_token": parser.get_string(page_token),
            "filter": parser.get_string(filter_opt),
        },
    )
    items = extract_items(payload, "pull_requests", "items", "data") or []

    print_header(f"Pull requests {org}/{repo}", ctx.out)
    prs = [item for item in items if isinstance(item, dict)]
    if not prs:
        ctx.echo("(no pull requests)")
    for pr in prs:
        ctx.echo(format_pr_line(pr))
    ctx.page_hint(payload)
    return 0


def view_pr(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src pr view", "<org> <repo> <id>")
    org, repo, pr_id = parser.parse_command(argv, positionals=3)
    data = ctx.client.get(f"/repos/{org}/{repo}/pulls/{pr_id}")

    ctx.echo(first_string(data.get("title")))
    ctx.echo(f"pr {_pr_ref(data)}  {first_string(data.get('status'), data.get('state')).upper()}")
    ctx.echo()

    source = first_string(data.get("source_branch"))
    target = first_string(data.get("target_branch"))
    meta = []
    for label, value in (
        ("author", ref(data.get("author"), "slug", "id")),
        ("branch", f"{source}→{target}" if source and target else ""),
        ("commits", first_text(data.get("commits_count"))),
        ("comments", first_text(data.get("comments_count"))),
        ("created", pretty_time(data.get("created_at"))),
        ("updated", pretty_time(data.get("updated_at"))),
    ):
        if value:
            meta.append(f"{label}:{value}")
    if meta:
        ctx.echo("  ".join(meta))
        ctx.echo()

    description = first_string(data.get("description"))
    if description:
        ctx.echo(indent(description, 2))
        ctx.echo()

    reviewers = data.get("reviewers")
    if isinstance(reviewers, list) and reviewers:
        ctx.echo("Reviewers:")
        for reviewer in reviewers:
            if isinstance(reviewer, dict):
                ctx.echo(
                    f"  - {ref(reviewer, 'slug', 'id')} ({first_string(reviewer.get('status'))})"
                )
            else:
                ctx.echo(f"  - {to_text(reviewer)}")
        ctx.echo()

    linked = data.get("linked_issues")
    if isinstance(linked, list) and linked:
        ctx.echo(f"Linked issues: {len(linked)}")
        ctx.echo()

    checks = data.get("checks")
    if isinstance(checks, dict) and checks:
        ctx.echo("Checks:")
        for name in sorted(checks):
            ctx.echo(f"  {name:<20} {to_text(checks[name])}")
        ctx.echo()
    return 0


def create_pr(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src pr create", "<org> <repo> <title> <source> <target> [options]")
    description = parser.add_string("d", "description", "Pull request description")
    silent = parser.add_flag("", "silent", "Do not notify reviewers")
    org, repo, title, source, target = parser.parse_command(argv, positionals=5)

    body: dict[str, Any] = {"title": title, "source_branch": source, "target_branch": target}
    if parser.get_string(description):
        body["description"] = parser.get_string(description)
    params = {"silent": "true"} if parser.get_flag(silent) else None
    data = ctx.client.post(f"/repos/{org}/{repo}/pulls", body, params=params)
    print_success(f"Pull request created: {_pr_ref(data)}", ctx.out)
    url = first_string(data.get("html_url"), data.get("web_url"), data.get("url"))
    if url:
        ctx.echo(f"  URL: {url}")
    return 0


COMMANDS = {
    "list": Command("list", "<org> <repo>", "List pull requests", list_prs),
    "view": Command("view", "<org> <repo> <id>", "Show pull request details", view_pr),
    "create": Command(
        "create", "<org> <repo> <title> <source> <target>", "Open a pull request", create_pr
    ),
}
