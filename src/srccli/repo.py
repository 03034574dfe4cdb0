"""``src repo`` commands: list, view, create, fork."""

from __future__ import annotations

from typing import Any

from .render import (
    extract_items,
    first_string,
    first_text,
    indent,
    pretty_time,
    ref,
    to_text,
    truncate,
    visibility_symbol,
)
from .runtime import Command, CommandContext, CommandParser, one_of, positive
from .ux import print_header, print_success

VISIBILITIES = ("public", "private", "internal")


def _repo_ref(repo: dict[str, Any]) -> str:
    return "/".join(p for p in (to_text(repo.get("id")), to_text(repo.get("slug"))) if p)


def _clone_urls(repo: dict[str, Any]) -> str:
    urls = repo.get("clone_url")
    if not isinstance(urls, dict):
        return ""
    return f"https: {to_text(urls.get('https'))}, ssh: {to_text(urls.get('ssh'))}"


def _language(value: Any) -> str:
    if isinstance(value, dict):
        return first_string(value.get("name"), value.get("slug"))
    return first_string(value)


def list_repos(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src repo list", "[org] [options]")
    page_size = parser.add_int(
        "n", "page-size", "Items per page", default=ctx.config.page_size, validator=positive
    )
    page_token = parser.add_string("t", "page-token", "Continuation token from a previous page")
    (org,) = parser.parse_command(argv, optional=1)

    path = f"/orgs/{org}/repos" if org else "/me/repos"
    payload = ctx.client.get(
        path,
        params={
            "page_size": parser.get_int(page_size),
            "page_token": parser.get_string(page_token),
        },
    )
    items = extract_items(payload, "items", "repositories", "data") or []

    print_header(f"Repositories for {org or 'me'}", ctx.out)
    for item in items:
        if not isinstance(item, dict):
            continue
        counters = item.get("counters")
        if not isinstance(counters, dict):
            counters = {}
        forks = first_text(counters.get("forks")) or "0"
        prs = first_text(counters.get("pull_requests")) or "0"
        issues = first_text(counters.get("issues")) or "0"
        name = to_text(item.get("name"))
        ctx.echo(
            f"{_repo_ref(item)} {visibility_symbol(to_text(item.get('visibility')))}  "
            f"{name:<20}  {_language(item.get('language'))}  "
            f"{pretty_time(item.get('last_updated'))}".rstrip()
        )
        ctx.echo(f"    ↳ forks:{forks}  prs:{prs}  issues:{issues}")
        description = to_text(item.get("description"))
        if description:
            ctx.echo(f"    {truncate(description, 80)}")
        ctx.echo()
    if not items:
        ctx.echo("(no repositories)")
    ctx.page_hint(payload)
    return 0


def view_repo(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src repo view", "<org> <repo>")
    org, repo = parser.parse_command(argv, positionals=2)
    data = ctx.client.get(f"/repos/{org}/{repo}")

    lang = _language(data.get("language"))
    description = to_text(data.get("description"))

    ctx.echo(to_text(data.get("name")))
    ctx.echo(f"repo {to_text(data.get('id'))}")
    ctx.echo()
    if description:
        ctx.echo(indent(description, 4))
        ctx.echo()
    ctx.echo(f"Visibility: {to_text(data.get('visibility'))}")
    ctx.echo(f"Language:   {lang}")
    ctx.echo(f"Default:    {to_text(data.get('default_branch'))}")
    ctx.echo(f"Updated:    {pretty_time(data.get('last_updated'))}")
    ctx.echo(f"Empty:      {to_text(data.get('is_empty'))}")
    parent = ref(data.get("organization"), "slug", "id")
    if parent:
        ctx.echo(f"Parent:     {parent}")
    clone = _clone_urls(data)
    if clone:
        ctx.echo(f"Clone:      {clone}")
    return 0


def create_repo(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src repo create", "<org> <name> [options]")
    description = parser.add_string("d", "description", "Repository description")
    visibility = parser.add_string(
        "", "visibility", "One of public|private|internal", default="public",
        validator=one_of(*VISIBILITIES),
    )
    default_branch = parser.add_string("b", "default-branch", "Default branch name")
    readme = parser.add_flag("", "readme", "Create an initial README")
    org, name = parser.parse_command(argv, positionals=2)

    body = {
        "name": name,
        "slug": name,
        "description": parser.get_string(description),
        "visibility": parser.get_string(visibility),
        "init_settings": {
            "default_branch": parser.get_string(default_branch),
            "create_readme": parser.get_flag(readme),
        },
    }
    data = ctx.client.post(f"/orgs/{org}/repos", body)

    print_success(f"Repository created: {_repo_ref(data)}", ctx.out)
    ctx.echo(f"  Name        : {truncate(to_text(data.get('name')), 60)}")
    created_description = to_text(data.get("description"))
    if created_description:
        ctx.echo(f"  Description : {truncate(created_description, 200)}")
    clone = _clone_urls(data)
    if clone:
        ctx.echo(f"  URL         : {clone}")
    ctx.echo(f"  Visibility  : {to_text(data.get('visibility'))}")
    branch = parser.get_string(default_branch)
    if branch:
        ctx.echo(f"  Default     : {branch}")
    for label, key in (("Created", "created_at"), ("Updated", "updated_at")):
        stamp = pretty_time(data.get(key))
        if stamp:
            ctx.echo(f"  {label:<12}: {stamp}")
    return 0


def fork_repo(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src repo fork", "<org> <repo> <new-slug> [options]")
    all_branches = parser.add_flag("", "all-branches", "Fork every branch, not only the default one")
    target_org = parser.add_string("o", "org", "Organization to fork into (default: source org)")
    org, repo, new_slug = parser.parse_command(argv, positionals=3)

    body = {
        "org_slug": parser.get_string(target_org) or org,
        "slug": new_slug,
        "default_branch_only": not parser.get_flag(all_branches),
    }
    data = ctx.client.post(f"/repos/{org}/{repo}/fork", body)
    print_success(f"Fork created: {_repo_ref(data) or new_slug}", ctx.out)
    clone = _clone_urls(data)
    if clone:
        ctx.echo(f"  URL         : {clone}")
    return 0


COMMANDS = {
    "list": Command("list", "[org]", "List repositories", list_repos),
    "view": Command("view", "<org> <repo>", "Show repository details", view_repo),
    "create": Command("create", "<org> <name>", "Create a repository", create_repo),
    "fork": Command("fork", "<org> <repo> <new-slug>", "Fork a repository", fork_repo),
}
