"""Sync command: install or update a distribution into an install root."""

from pathlib import Path

import click

from golem.artifacts.errors import ConfigError
from golem.artifacts.sync import discover_components, sync_components
from golem.cli.context import GolemContext
from golem.cli.output import display_report, echo_json, fail, report_to_dict
from golem.config import load_install_config


@click.command("sync")
@click.option(
    "--source",
    "source_root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="GOLEM_SOURCE",
    required=True,
    help="Distribution root to sync from (env: GOLEM_SOURCE)",
)
@click.option(
    "--root",
    "install_root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="GOLEM_HOME",
    default=None,
    help="Install root to sync into (env: GOLEM_HOME, default: ~/.golem)",
)
@click.option(
    "--component",
    "components",
    multiple=True,
    help="Only sync this component (repeatable)",
)
@click.option("--dry-run", is_flag=True, help="Show what would change without writing")
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON")
@click.pass_obj
def sync_cmd(
    ctx: GolemContext,
    source_root: Path,
    install_root: Path | None,
    components: tuple[str, ...],
    dry_run: bool,
    as_json: bool,
) -> None:
    """Sync distribution components into the install root.

    Files edited locally are never overwritten: the new version is written
    next to them with a .new suffix. The first time an untouched file is
    updated, its previous content is kept with a .pre-golem suffix.

    Examples:

    \b
      # Install or update everything
      golem sync --source ./dist

    \b
      # Preview an update of two components
      golem sync --source ./dist --component bin --component lib --dry-run
    """
    root = ctx.resolve_install_root(install_root)

    try:
        config = load_install_config(source_root)
    except ConfigError as e:
        fail(
            ctx,
            str(e),
            {"config": e.config_path, "key": e.key},
            "Fix the value in golem.toml and re-run golem sync",
        )

    selected = list(components) if components else discover_components(source_root, config)
    report = sync_components(
        source_root,
        root,
        selected,
        dry_run=dry_run,
        home_dir=ctx.home_dir,
        config=config,
    )

    if as_json:
        echo_json(report_to_dict(report))
    else:
        display_report(ctx, report)

    if not report.success:
        raise SystemExit(1)
