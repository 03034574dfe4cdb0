"""``src stats`` and ``src report`` commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .render import (
    first_string,
    first_text,
    float_from,
    indent,
    pretty_date,
    pretty_key,
    to_text,
    truncate,
)
from .runtime import Command, CommandContext, CommandParser, non_negative_number
from .ux import print_header, print_kv

SEVERITY_WEIGHTS = {"critical": 5.0, "high": 3.0, "medium": 1.5, "low": 0.5}
DEFAULT_SEVERITY_WEIGHT = 1.0


@dataclass
class Vulnerability:
    title: str
    severity: str
    package: str = ""
    version: str = ""
    description: str = ""
    score: float = 0.0
    fix_available: bool = False
    references: list[str] = field(default_factory=list)

    @property
    def priority(self) -> float:
        weight = SEVERITY_WEIGHTS.get(self.severity.lower(), DEFAULT_SEVERITY_WEIGHT)
        return weight * 10 + self.score

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> Vulnerability:
        fix = raw.get("fix_available")
        refs = raw.get("references")
        return cls(
            title=first_string(raw.get("title"), raw.get("name")),
            severity=first_string(raw.get("severity"), raw.get("level")),
            package=first_string(raw.get("package"), raw.get("pkg")),
            version=first_text(raw.get("version")),
            description=first_string(raw.get("description")),
            score=float_from(raw.get("score")),
            fix_available=fix if isinstance(fix, bool) else bool(first_text(raw.get("fix_version"))),
            references=[first_text(r) for r in refs] if isinstance(refs, list) else [],
        )


def collect_vulnerabilities(payload: dict[str, Any]) -> list[Vulnerability]:
    items = payload.get("vulnerabilities")
    if not isinstance(items, list):
        return []
    return [Vulnerability.from_payload(item) for item in items if isinstance(item, dict)]


def prioritize(
    vulns: list[Vulnerability], top: int = 0, min_score: float = 0.0
) -> list[Vulnerability]:
    """Highest priority first; ``top <= 0`` keeps everything above ``min_score``."""
    kept = [v for v in vulns if v.score >= min_score]
    kept.sort(key=lambda v: v.priority, reverse=True)
    if top > 0:
        kept = kept[:top]
    return kept


def repo_stats(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src stats repo", "<org> <repo>")
    org, repo = parser.parse_command(argv, positionals=2)
    data = ctx.client.get(f"/repos/{org}/{repo}/stats")

    ctx.echo(first_string(data.get("name"), data.get("slug")))
    ctx.echo(f"repo {first_text(data.get('id'), data.get('slug'))}")
    ctx.echo()
    description = first_string(data.get("description"))
    if description:
        ctx.echo(indent(description, 2))
        ctx.echo()
    ctx.echo(f"Language:   {first_string(data.get('language'))}")
    ctx.echo(f"Created:    {pretty_date(data.get('created_at') or data.get('created'))}")
    ctx.echo(f"Updated:    {pretty_date(data.get('last_updated') or data.get('updated_at'))}")
    ctx.echo()

    counters = data.get("counters")
    if isinstance(counters, dict):
        ctx.echo(
            f"Forks: {first_text(counters.get('forks'))}  "
            f"PRs: {first_text(counters.get('pull_requests'))}  "
            f"Issues: {first_text(counters.get('issues'))}  "
            f"Branches: {first_text(counters.get('branches'))}"
        )
    traffic = data.get("traffic")
    if isinstance(traffic, dict):
        ctx.echo()
        ctx.echo("Traffic")
        print_kv("Views", to_text(traffic.get("views")), ctx.out)
        print_kv("Clones", to_text(traffic.get("clones")), ctx.out)
        print_kv("Unique visitors", to_text(traffic.get("unique_visitors")), ctx.out)
    activity = data.get("activity")
    if isinstance(activity, dict):
        ctx.echo()
        ctx.echo("Activity (last period)")
        for key in sorted(activity):
            ctx.echo(f"  {pretty_key(key):<18} {to_text(activity[key])}")
    return 0


def user_stats(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src stats user", "<user>")
    (user,) = parser.parse_command(argv, positionals=1)
    data = ctx.client.get(f"/users/{user}/stats")

    ctx.echo(f"User: {first_text(data.get('user'), data.get('slug'), data.get('id')) or user}")
    ctx.echo()
    totals = data.get("totals")
    if isinstance(totals, dict):
        for label, key in (
            ("Repositories", "repos_count"),
            ("Commits", "commits_count"),
            ("Pull requests", "pull_requests_count"),
            ("Issues", "issues_count"),
        ):
            print_kv(label, to_text(totals.get(key)), ctx.out)
        ctx.echo()
    by_repo = data.get("by_repo")
    if isinstance(by_repo, list) and by_repo:
        ctx.echo("Top repositories by activity:")
        for entry in by_repo:
            if isinstance(entry, dict):
                name = first_string(entry.get("repo_name"), entry.get("repo_slug"))
                score = first_text(entry.get("score"), entry.get("activity_score"))
                ctx.echo(f"  {truncate(name, 30):<30} {score:>6}")
    return 0


def security_stats(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src stats security", "<org> <repo>")
    org, repo = parser.parse_command(argv, positionals=2)
    data = ctx.client.get(f"/repos/{org}/{repo}/security/stats")

    subject = first_text(data.get("repo"), data.get("slug"), data.get("id")) or f"{org}/{repo}"
    print_header(f"Security stats for {subject}", ctx.out)
    counts = data.get("counts")
    if isinstance(counts, dict):
        for severity in ("critical", "high", "medium", "low"):
            print_kv(severity.capitalize(), to_text(counts.get(severity)) or "0", ctx.out)
        ctx.echo()
    scanners = data.get("scanners")
    if isinstance(scanners, list) and scanners:
        ctx.echo("Scanners")
        for scanner in scanners:
            if isinstance(scanner, dict):
                ctx.echo(
                    f"  {first_string(scanner.get('name')):<20}  "
                    f"last_scan: {pretty_date(scanner.get('last_scan'))}  "
                    f"issues: {first_text(scanner.get('issues_count'))}"
                )
    return 0


def security_report(ctx: CommandContext, argv: list[str]) -> int:
    parser = CommandParser("src report security", "<org> <repo> [options]")
    top = parser.add_int("n", "top", "Show only the N highest-priority findings", default=10)
    min_score = parser.add_float(
        "m", "min-score", "Drop findings with a raw score below this", validator=non_negative_number
    )
    org, repo = parser.parse_command(argv, positionals=2)
    data = ctx.client.get(f"/repos/{org}/{repo}/security/report")

    subject = first_text(data.get("repo"), data.get("slug"), data.get("id")) or f"{org}/{repo}"
    print_header(f"Security report for {subject}", ctx.out)
    findings = prioritize(
        collect_vulnerabilities(data), parser.get_int(top), parser.get_float(min_score)
    )
    if not findings:
        ctx.echo("No findings")
        return 0

    ctx.echo(f"Top {len(findings)} prioritized risks")
    ctx.echo()
    for rank, vuln in enumerate(findings, start=1):
        ctx.echo(f"{rank:2d}) [{vuln.severity.upper()}] {vuln.title}")
        if vuln.package:
            ctx.echo(f"     pkg: {vuln.package}  version: {vuln.version}")
        if vuln.description:
            ctx.echo(indent(truncate(vuln.description, 200), 6))
        fix = "true" if vuln.fix_available else "false"
        ctx.echo(
            f"     score: {vuln.score:.2f}  fix_available: {fix}  "
            f"references: {len(vuln.references)}"
        )
        ctx.echo()
    return 0


COMMANDS = {
    "repo": Command("repo", "<org> <repo>", "Repository statistics", repo_stats),
    "user": Command("user", "<user>", "User activity statistics", user_stats),
    "security": Command("security", "<org> <repo>", "Security scan counters", security_stats),
}

REPORT_COMMANDS = {
    "security": Command(
        "security", "<org> <repo>", "Prioritized security findings", security_report
    ),
}
