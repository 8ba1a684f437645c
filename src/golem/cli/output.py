"""Shared output helpers for golem commands."""

import json
from pathlib import Path
from typing import Any, NoReturn

import click

from golem.artifacts.errors import format_error, sanitize_path
from golem.artifacts.models import FileSyncResult, SyncReport
from golem.cli.context import GolemContext


def info(ctx: GolemContext, message: str) -> None:
    """Echo informational output unless --quiet was given."""
    if not ctx.quiet:
        click.echo(message)


def warn(message: str) -> None:
    click.echo(click.style("⚠️  ", fg="yellow") + message, err=True)


def fail(
    ctx: GolemContext,
    message: str,
    context: dict[str, object],
    suggestion: str | None,
) -> NoReturn:
    """Print a formatted error to stderr and exit with code 1.

    Path values in context are shown relative to the home directory.
    """
    shown = {
        key: sanitize_path(value, ctx.home_dir) if isinstance(value, Path) else value
        for key, value in context.items()
    }
    click.echo(format_error(message, shown, suggestion), err=True)
    raise SystemExit(1)


def echo_json(data: dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def result_to_dict(result: FileSyncResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "source": str(result.source),
        "dest": str(result.dest),
        "outcome": result.outcome,
        "action": result.action,
    }
    if result.issue is not None:
        data["issue"] = {
            "type": result.issue.issue_type,
            "path": str(result.issue.path),
            "message": result.issue.message,
            "errno": result.issue.errno,
        }
    return data


def report_to_dict(report: SyncReport) -> dict[str, Any]:
    return {
        "success": report.success,
        "message": report.message,
        "version": report.version,
        "dry_run": report.dry_run,
        "results": [result_to_dict(r) for r in report.results],
    }


_OUTCOME_STYLES = {
    "installed": "green",
    "updated": "green",
    "skipped": "yellow",
    "blocked": "yellow",
    "rejected": "yellow",
    "failed": "red",
}


def display_report(ctx: GolemContext, report: SyncReport) -> None:
    """Print changed artifacts and the run summary.

    Unchanged artifacts are not listed. Problems are printed even with --quiet.
    """
    for result in report.results:
        if result.outcome == "unchanged":
            continue
        line = f"  {result.outcome:<9} {sanitize_path(result.dest, ctx.home_dir)}"
        styled = click.style(line, fg=_OUTCOME_STYLES.get(result.outcome))
        if result.issue is not None:
            click.echo(styled, err=True)
            click.echo(click.style(f"            {result.issue.message}", dim=True), err=True)
            continue
        info(ctx, styled)
        if result.outcome == "skipped":
            note = "            local edits kept, new version saved aside"
            info(ctx, click.style(note, dim=True))

    if report.success:
        info(ctx, click.style("✓ ", fg="green") + report.message)
    else:
        click.echo(click.style("❌ ", fg="red") + report.message, err=True)
