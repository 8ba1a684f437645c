"""Sync distribution components from a source root to an install root."""

import logging
from datetime import UTC, datetime
from pathlib import Path

import tomli

from golem.artifacts.errors import ArtifactFilesystemError, ManifestFormatError
from golem.artifacts.integrity import IntegrityManifest, load_manifest
from golem.artifacts.models import FileSyncResult, InstallState, SyncIssue, SyncReport
from golem.artifacts.paths import (
    CONFIG_FILE_NAME,
    MANIFEST_EXCLUDED_DIRS,
    VERSION_MARKER_NAME,
    get_version_marker_path,
    is_unsafe_entry_name,
)
from golem.artifacts.state import (
    get_state_path,
    load_install_state,
    save_install_state,
    write_version_marker,
)
from golem.artifacts.tree_sync import SyncContext, iter_sync_tree, sync_entry
from golem.config import InstallConfig, load_install_config

logger = logging.getLogger(__name__)


def discover_components(source_root: Path, config: InstallConfig) -> list[str]:
    """List the components a full sync installs.

    Uses [distribution].components from golem.toml when set, otherwise every
    top-level entry of the distribution except its bookkeeping files and
    deny-listed directories.
    """
    if config.components:
        return list(config.components)
    if not source_root.is_dir():
        return []

    reserved = {CONFIG_FILE_NAME, VERSION_MARKER_NAME, config.manifest_name}
    return sorted(
        entry.name
        for entry in source_root.iterdir()
        if entry.name not in reserved and entry.name not in MANIFEST_EXCLUDED_DIRS
    )


def _load_manifest_for_run(
    source_root: Path, config: InstallConfig
) -> tuple[IntegrityManifest | None, str | None]:
    """Load the run's manifest, returning (manifest, error message)."""
    manifest_path = source_root / config.manifest_name
    try:
        manifest = load_manifest(manifest_path)
    except ManifestFormatError as e:
        return None, str(e)

    if manifest is None and config.require_manifest:
        return None, f"Integrity manifest not found at {manifest_path}"
    if manifest is None:
        logger.warning("No integrity manifest at %s; syncing without verification", manifest_path)
    return manifest, None


def _summarize(results: list[FileSyncResult], dry_run: bool) -> str:
    counts: dict[str, int] = {}
    for result in results:
        counts[result.outcome] = counts.get(result.outcome, 0) + 1
    parts = [f"{count} {outcome}" for outcome, count in sorted(counts.items())]
    prefix = "Dry run: would sync" if dry_run else "Synced"
    if not parts:
        return f"{prefix} 0 artifacts"
    return f"{prefix} {len(results)} artifacts ({', '.join(parts)})"


def _record_install(
    dest_root: Path,
    version: str | None,
    components: list[str],
    results: list[FileSyncResult],
) -> None:
    """Update the version marker and state.toml after a run with no failures.

    Nothing is rewritten when no artifact was installed or updated and the
    recorded version and components already match, so a repeated sync stays
    write-free even while pending updates wait for review.

    Raises:
        ArtifactFilesystemError: if the marker or state.toml is a symbolic link
            or cannot be written
    """
    if version is None:
        logger.warning("Distribution has no version; version marker not written")
        return

    marker = get_version_marker_path(dest_root)
    recorded = None
    if marker.is_file() and not marker.is_symlink():
        recorded = marker.read_text(encoding="utf-8", errors="replace").strip()
    if recorded != version:
        write_version_marker(dest_root, version)

    try:
        state = load_install_state(dest_root)
    except tomli.TOMLDecodeError:
        logger.warning("Replacing unreadable %s", get_state_path(dest_root))
        state = None

    changed = any(r.changed_destination for r in results)
    if (
        state is not None
        and not changed
        and state.version == version
        and state.components == list(components)
    ):
        return

    save_install_state(
        dest_root,
        InstallState(
            version=version,
            components=list(components),
            synced_at=datetime.now(UTC).isoformat(timespec="seconds"),
        ),
    )


def sync_components(
    source_root: Path,
    dest_root: Path,
    components: list[str],
    *,
    dry_run: bool,
    home_dir: Path,
    config: InstallConfig,
) -> SyncReport:
    """Synchronize the named components of a distribution into dest_root.

    Each component is a top-level file or directory of source_root and lands at
    the same relative path under dest_root. A component missing from the
    distribution is skipped. After a real (non-dry-run) sync with no failed
    artifacts, the version marker and state.toml are updated.

    Args:
        source_root: Distribution root (holds golem.toml and checksums.json)
        dest_root: Install root
        components: Component names to synchronize
        dry_run: Classify and report only, never write
        home_dir: Substituted for home placeholders in structured configs
        config: Distribution configuration

    Returns:
        SyncReport; success is False if the run could not start or any
        artifact failed
    """
    if not source_root.is_dir():
        return SyncReport(
            success=False,
            message=f"Distribution not found at {source_root}",
            dry_run=dry_run,
        )
    if dest_root.is_symlink():
        return SyncReport(
            success=False,
            message=f"Install root {dest_root} is a symbolic link; refusing to sync into it",
            dry_run=dry_run,
        )

    manifest, error = _load_manifest_for_run(source_root, config)
    if error is not None:
        return SyncReport(success=False, message=error, dry_run=dry_run)

    context = SyncContext(
        source_root=source_root,
        manifest=manifest,
        home_dir=home_dir,
        suffixes=config.suffixes,
        structured_suffixes=frozenset(config.structured_suffixes),
        dry_run=dry_run,
    )

    results: list[FileSyncResult] = []
    # Only components actually present in the distribution are recorded as installed
    synced_components: list[str] = []
    for name in components:
        source = source_root / name
        dest = dest_root / name

        if is_unsafe_entry_name(name):
            logger.warning("Rejecting unsafe component name %r", name)
            results.append(
                FileSyncResult(
                    source=source,
                    dest=dest,
                    outcome="rejected",
                    action=None,
                    dry_run=dry_run,
                    issue=SyncIssue(
                        issue_type="path-traversal-rejected",
                        path=source,
                        message=f"component name {name!r} could escape {dest_root}",
                    ),
                )
            )
            continue

        if source.is_file() and not source.is_symlink():
            results.append(sync_entry(source, dest, context))
            synced_components.append(name)
            continue

        if not source.exists() and not source.is_symlink():
            logger.debug("Component %s not in distribution, nothing to sync", name)
            continue

        if source.is_dir() and not source.is_symlink():
            synced_components.append(name)
        results.extend(iter_sync_tree(source, dest, context))

    failed = [r for r in results if r.outcome == "failed"]

    message = _summarize(results, dry_run)

    if not dry_run and not failed:
        try:
            _record_install(dest_root, config.version, synced_components, results)
        except (OSError, ArtifactFilesystemError) as e:
            return SyncReport(
                success=False,
                message=f"{message}; could not record install state: {e}",
                results=results,
                version=config.version,
                dry_run=dry_run,
            )

    if failed:
        message = f"{message}; {len(failed)} failed"

    return SyncReport(
        success=not failed,
        message=message,
        results=results,
        version=config.version,
        dry_run=dry_run,
    )


def sync_distribution(
    source_root: Path,
    dest_root: Path,
    *,
    dry_run: bool,
    home_dir: Path,
) -> SyncReport:
    """Synchronize every component of a distribution, reading its golem.toml."""
    config = load_install_config(source_root)
    components = discover_components(source_root, config)
    return sync_components(
        source_root,
        dest_root,
        components,
        dry_run=dry_run,
        home_dir=home_dir,
        config=config,
    )
