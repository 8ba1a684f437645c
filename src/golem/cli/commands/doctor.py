"""Doctor command: diagnose the health of an install root.

Never modifies anything. Exits with code 1 when the install is not healthy.
"""

from pathlib import Path

import click

from golem.artifacts.errors import sanitize_path
from golem.artifacts.health import diagnose
from golem.artifacts.models import Diagnosis
from golem.cli.context import GolemContext
from golem.cli.output import echo_json, info


def _display_diagnosis(ctx: GolemContext, root: Path, diagnosis: Diagnosis) -> None:
    shown_root = sanitize_path(root, ctx.home_dir)
    if diagnosis.is_healthy:
        version = f" (v{diagnosis.version})" if diagnosis.version else ""
        info(ctx, click.style("✅ ", fg="green") + f"{shown_root} is healthy{version}")
    else:
        click.echo(click.style("❌ ", fg="red") + f"{shown_root} is {diagnosis.state}", err=True)
        for issue in diagnosis.issues:
            click.echo(f"   - {issue}", err=True)

    if diagnosis.pending_updates:
        info(ctx, "")
        info(ctx, f"{len(diagnosis.pending_updates)} pending update(s) to review:")
        for path in diagnosis.pending_updates:
            info(ctx, f"   {sanitize_path(path, ctx.home_dir)}")

    if not diagnosis.is_healthy or diagnosis.pending_updates:
        click.echo("")
        click.echo(click.style(diagnosis.suggestion, dim=True))


@click.command("doctor")
@click.option(
    "--root",
    "install_root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="GOLEM_HOME",
    default=None,
    help="Install root to inspect (env: GOLEM_HOME, default: ~/.golem)",
)
@click.option("--json", "as_json", is_flag=True, help="Output the diagnosis as JSON")
@click.pass_obj
def doctor_cmd(ctx: GolemContext, install_root: Path | None, as_json: bool) -> None:
    """Check an install root for missing or corrupted files.

    Checks for:

    \b
      - Install root and version marker
      - Required components (from state.toml, else bin, lib, templates)
      - Pending .new updates left next to locally edited files

    Examples:

    \b
      # Check the default install
      golem doctor
    """
    root = ctx.resolve_install_root(install_root)
    diagnosis = diagnose(root)

    if as_json:
        echo_json(
            {
                "state": diagnosis.state,
                "healthy": diagnosis.is_healthy,
                "version": diagnosis.version,
                "issues": diagnosis.issues,
                "pending_updates": [str(p) for p in diagnosis.pending_updates],
                "suggestion": diagnosis.suggestion,
            }
        )
    else:
        _display_diagnosis(ctx, root, diagnosis)

    if not diagnosis.is_healthy:
        raise SystemExit(1)
