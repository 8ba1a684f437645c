"""Manifest command: generate the integrity manifest of a distribution."""

from pathlib import Path

import click

from golem.artifacts.errors import ConfigError, ManifestFormatError
from golem.artifacts.integrity import build_manifest, load_manifest, write_manifest
from golem.cli.context import GolemContext
from golem.cli.output import fail, info, warn
from golem.config import load_install_config


def _check_manifest(ctx: GolemContext, source_root: Path, manifest_name: str) -> None:
    manifest_path = source_root / manifest_name
    try:
        manifest = load_manifest(manifest_path)
    except ManifestFormatError as e:
        fail(ctx, str(e), {"manifest": e.manifest_path}, "Regenerate it with: golem manifest")
    if manifest is None:
        fail(
            ctx,
            "Integrity manifest not found",
            {"manifest": manifest_path},
            "Generate it with: golem manifest",
        )

    actual = build_manifest(source_root, manifest_name)
    expected = manifest.entries
    changed = sorted(k for k in actual if k in expected and actual[k] != expected[k])
    unlisted = sorted(k for k in actual if k not in expected)
    vanished = sorted(k for k in expected if k not in actual)

    for key in changed:
        warn(f"changed: {key}")
    for key in unlisted:
        warn(f"not in manifest: {key}")
    for key in vanished:
        warn(f"missing from distribution: {key}")

    if changed or unlisted or vanished:
        raise SystemExit(1)
    info(ctx, click.style("✓ ", fg="green") + f"{len(actual)} artifacts match {manifest_name}")


@click.command("manifest")
@click.option(
    "--source",
    "source_root",
    type=click.Path(path_type=Path, file_okay=False, exists=True),
    envvar="GOLEM_SOURCE",
    required=True,
    help="Distribution root (env: GOLEM_SOURCE)",
)
@click.option("--check", is_flag=True, help="Verify the existing manifest instead of writing it")
@click.pass_obj
def manifest_cmd(ctx: GolemContext, source_root: Path, check: bool) -> None:
    """Generate the integrity manifest for a distribution.

    Hashes every regular file under the distribution root with SHA-256,
    skipping symbolic links, VCS metadata and build directories.

    Examples:

    \b
      # Write dist/checksums.json
      golem manifest --source ./dist

    \b
      # Verify dist/checksums.json is current
      golem manifest --source ./dist --check
    """
    try:
        config = load_install_config(source_root)
    except ConfigError as e:
        fail(ctx, str(e), {"config": e.config_path, "key": e.key}, "Fix the value in golem.toml")

    if check:
        _check_manifest(ctx, source_root, config.manifest_name)
        return

    manifest_path = write_manifest(source_root, config.manifest_name)
    info(ctx, click.style("✓ ", fg="green") + f"Wrote {manifest_path}")
