"""``src workflow`` commands: list, status, logs, run."""

from __future__ import annotations

from typing import Any

from .errors import HTTP_NOT_FOUND, APIError
from .render import (
    extract_items,
    first_string,
    first_text,
    pretty_time,
    ref,
    run_status_symbol,
    short_id,
    to_json,
    to_text,
    truncate,
)
from .rest import JsonObject
from .runtime import (
    Command,
    CommandContext,
    CommandParser,
    key_value_list,
    parse_pairs,
    positive,
)
from .ux import print_header, print_success

DEFAULT_RUN_LIMIT = 5


def _enabled(value: Any) -> str:
    if to_text(value).lower() in ("true", "enabled", "active"):
        return "enabled"
    return "disabled"


def last_run_summary(workflow: dict[str, Any]) -> str:
    last = workflow.get("last_run")
    if isinstance(last, dict):
        return (
            f"{short_id(first_text(last.get('id')))} "
            f"{run_status_symbol(first_string(last.get('status')))} "
            f"{pretty_time(last.get('started_at'))}"
        ).rstrip()
    return short_id(first_text(workflow.get("last_run_id")))


def list_workflows(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src workflow list", "<org> <repo>")
    org, repo = parser.parse_command(argv, positionals=2)
    payload = ctx.client.get(f"/repos/{org}/{repo}/ci_workflows")
    items = extract_items(payload, "workflows", "ci_workflows", "items", "data") or []

    print_header(f"Workflows {org}/{repo}", ctx.out)
    workflows = [item for item in items if isinstance(item, dict)]
    if not workflows:
        ctx.echo("(no workflows)")
    for wf in workflows:
        name = first_string(wf.get("name"), wf.get("slug"))
        line = (
            f"{short_id(first_text(wf.get('id'), wf.get('slug')))}  {name:<30}  "
            f"{_enabled(wf.get('enabled', wf.get('status')))}  {last_run_summary(wf)}"
        )
        ctx.echo(line.rstrip())
    return 0


def workflow_status(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src workflow status", "<org> <repo> <workflow> [options]")
    limit = parser.add_int(
        "n", "limit", "Number of runs to show", default=DEFAULT_RUN_LIMIT, validator=positive
    )
    org, repo, workflow_id = parser.parse_command(argv, positionals=3)
    payload = ctx.client.get(
        f"/repos/{org}/{repo}/ci_workflows/{workflow_id}/runs",
        params={"page_size": parser.get_int(limit)},
    )
    runs = [r for r in extract_items(payload, "runs", "items", "data") or [] if isinstance(r, dict)]
    if not runs:
        ctx.echo(f"No runs for workflow {workflow_id}")
        return 0

    print_header(f"Runs for workflow {workflow_id} ({org}/{repo})", ctx.out)
    for run in runs[: parser.get_int(limit)]:
        status = run_status_symbol(first_string(run.get("status")))
        conclusion = first_string(run.get("conclusion")).upper()
        ctx.echo(f"{short_id(first_text(run.get('id')))}  {status}  {conclusion}".rstrip())
        actor = truncate(ref(run.get("actor"), "slug", "id"), 20)
        ctx.echo(
            f"  by: {actor:<20}  started: {pretty_time(run.get('created_at'))}  "
            f"elapsed: {first_text(run.get('duration'))}".rstrip()
        )
        jobs = run.get("jobs")
        if isinstance(jobs, list) and jobs:
            ctx.echo(f"  jobs: {len(jobs)}")
        ctx.echo()
    return 0


def _fetch_logs(ctx: CommandContext, org: str, repo: str, run_id: str) -> JsonObject:
    """Try the known log endpoints in order; only 404 moves on to the next one."""
    candidates = (
        f"/repos/{org}/{repo}/ci_workflows/runs/{run_id}/logs",
        f"/repos/{org}/{repo}/ci_workflows/{run_id}/logs",
        f"/ci/runs/{run_id}/logs",
    )
    for path in candidates[:-1]:
        try:
            return ctx.client.get(path)
        except APIError as exc:
            if exc.status != HTTP_NOT_FOUND:
                raise
            ctx.logger.debug("log endpoint not found", path=path)
    return ctx.client.get(candidates[-1])


def workflow_logs(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src workflow logs", "<org> <repo> <run>")
    org, repo, run_id = parser.parse_command(argv, positionals=3)
    payload = _fetch_logs(ctx, org, repo, run_id)

    logs = payload.get("logs")
    if isinstance(logs, str) and logs:
        ctx.echo(logs.rstrip("\n"))
        return 0
    lines = payload.get("lines")
    if isinstance(lines, list) and lines:
        for line in lines:
            ctx.echo(first_text(line) if not isinstance(line, str) else line)
        return 0
    jobs = payload.get("jobs")
    if isinstance(jobs, list) and jobs:
        for job in jobs:
            if not isinstance(job, dict):
                continue
            ctx.echo(f"Job: {ref(job, 'name', 'id')}")
            for step in job.get("steps") or []:
                if not isinstance(step, dict):
                    continue
                ctx.echo(f"  Step: {ref(step, 'name', 'id')}")
                text = step.get("log")
                if isinstance(text, str) and text:
                    for line in text.rstrip("\n").split("\n"):
                        ctx.echo(f"    {line}")
            ctx.echo()
        return 0
    ctx.echo(to_json(payload))
    return 0


def workflow_run(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src workflow run", "<org> <repo> <workflow> [options]")
    inputs = parser.add_string_list(
        "i",
        "input",
        "Workflow input key=val; repeatable, commas allowed",
        validator=key_value_list,
    )
    branch = parser.add_string("b", "ref", "Branch or tag to run on")
    org, repo, workflow_id = parser.parse_command(argv, positionals=3)

    body: dict[str, Any] = {}
    pairs = parse_pairs(parser.get_string_list(inputs))
    if pairs:
        body["inputs"] = pairs
    if parser.get_string(branch):
        body["ref"] = parser.get_string(branch)
    data = ctx.client.post(f"/repos/{org}/{repo}/ci_workflows/{workflow_id}/trigger", body)

    print_success(f"Workflow {workflow_id} triggered", ctx.out)
    run_id = first_text(data.get("id"))
    if run_id:
        ctx.echo(f"  run id: {run_id}")
    status = first_string(data.get("status"))
    if status:
        ctx.echo(f"  status: {status}")
    return 0


COMMANDS = {
    "list": Command("list", "<org> <repo>", "List CI workflows", list_workflows),
    "status": Command("status", "<org> <repo> <workflow>", "Show recent runs", workflow_status),
    "logs": Command("logs", "<org> <repo> <run>", "Print run logs", workflow_logs),
    "run": Command("run", "<org> <repo> <workflow>", "Trigger a workflow", workflow_run),
}
