"""Revert command: restore pristine backups and drop pending updates."""

from pathlib import Path

import click

from golem.artifacts.errors import sanitize_path
from golem.artifacts.revert import revert_tree
from golem.cli.context import GolemContext
from golem.cli.output import info, warn
from golem.config import default_install_config


@click.command("revert")
@click.option(
    "--root",
    "install_root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="GOLEM_HOME",
    default=None,
    help="Install root to revert (env: GOLEM_HOME, default: ~/.golem)",
)
@click.option("--confirm", "-y", "confirmed", is_flag=True, help="Apply the revert")
@click.option(
    "--force",
    is_flag=True,
    help="Also restore over files that differ from their backup (discards local edits)",
)
@click.pass_obj
def revert_cmd(
    ctx: GolemContext, install_root: Path | None, confirmed: bool, force: bool
) -> None:
    """Restore .pre-golem backups and delete .new pending updates.

    Without --confirm, only lists what would change. Files that differ from
    their backup are kept unless --force is given.

    Examples:

    \b
      # Preview
      golem revert

    \b
      # Restore backups
      golem revert --confirm
    """
    root = ctx.resolve_install_root(install_root)
    suffixes = default_install_config().suffixes
    result = revert_tree(root, suffixes=suffixes, dry_run=not confirmed, force=force)

    verb_restore = "Restored" if confirmed else "Would restore"
    verb_remove = "Removed" if confirmed else "Would remove"
    for path in result.restored:
        info(ctx, f"{verb_restore} {sanitize_path(path, ctx.home_dir)}")
    for path in result.removed_pending:
        info(ctx, f"{verb_remove} {sanitize_path(path, ctx.home_dir)}")
    for path in result.blocked:
        warn(f"Left symbolic link {sanitize_path(path, ctx.home_dir)} untouched")
    for path in result.kept:
        warn(
            f"Kept {sanitize_path(path, ctx.home_dir)}: it differs from its backup "
            "(use --force to restore it anyway)"
        )

    if not (result.restored or result.removed_pending or result.blocked or result.kept):
        info(ctx, "Nothing to revert")
    elif not confirmed:
        info(ctx, "")
        info(ctx, "Run with --confirm to apply.")
