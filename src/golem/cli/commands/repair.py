"""Repair command: re-sync an unhealthy install root."""

from pathlib import Path

import click

from golem.artifacts.errors import ConfigError
from golem.artifacts.health import repair
from golem.cli.context import GolemContext
from golem.cli.output import display_report, echo_json, fail, info, report_to_dict


@click.command("repair")
@click.option(
    "--root",
    "install_root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="GOLEM_HOME",
    default=None,
    help="Install root to repair (env: GOLEM_HOME, default: ~/.golem)",
)
@click.option(
    "--source",
    "source_root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="GOLEM_SOURCE",
    default=None,
    help="Distribution root to re-sync from (env: GOLEM_SOURCE)",
)
@click.option("--dry-run", is_flag=True, help="Report issues without repairing")
@click.option("--confirm", "-y", "confirmed", is_flag=True, help="Apply the repair")
@click.option("--json", "as_json", is_flag=True, help="Output the result as JSON")
@click.pass_obj
def repair_cmd(
    ctx: GolemContext,
    install_root: Path | None,
    source_root: Path | None,
    dry_run: bool,
    confirmed: bool,
    as_json: bool,
) -> None:
    """Repair a missing, partial or corrupted install.

    Repair re-runs a normal sync from the distribution, so locally edited
    files are still preserved. Nothing changes without --confirm.

    Examples:

    \b
      # See what is wrong
      golem repair --dry-run

    \b
      # Re-sync from a distribution
      golem repair --source ./dist --confirm
    """
    root = ctx.resolve_install_root(install_root)

    try:
        result = repair(
            root,
            dry_run=dry_run,
            confirmed=confirmed,
            source_root=source_root,
            home_dir=ctx.home_dir,
        )
    except ConfigError as e:
        fail(ctx, str(e), {"config": e.config_path, "key": e.key}, "Fix the value in golem.toml")

    if as_json:
        data = {
            "issues": result.issues,
            "strategy": result.strategy,
            "applied": result.applied,
            "needs_confirmation": result.needs_confirmation,
            "message": result.message,
        }
        if result.sync_report is not None:
            data["sync"] = report_to_dict(result.sync_report)
        echo_json(data)
    else:
        for issue in result.issues:
            info(ctx, f"   - {issue}")
        if result.sync_report is not None:
            display_report(ctx, result.sync_report)
        else:
            info(ctx, result.message)

    if result.strategy == "resync" and not result.applied and not dry_run:
        raise SystemExit(1)
