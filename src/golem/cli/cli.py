import logging

import click

from golem.cli.commands.doctor import doctor_cmd
from golem.cli.commands.manifest_cmd import manifest_cmd
from golem.cli.commands.repair import repair_cmd
from golem.cli.commands.revert import revert_cmd
from golem.cli.commands.sync_cmd import sync_cmd
from golem.cli.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="golem-sync")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only print warnings and errors")
@click.pass_context
def cli(ctx: click.Context, debug: bool, quiet: bool) -> None:
    """Install and update golem distributions without clobbering local edits."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(quiet=quiet)


cli.add_command(doctor_cmd)
cli.add_command(manifest_cmd)
cli.add_command(repair_cmd)
cli.add_command(revert_cmd)
cli.add_command(sync_cmd)
