"""Mirror a distributed directory tree onto an install location.

The walk is a generator: each artifact's result is yielded as soon as it is
known, and a failure on one entry never stops the walk.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from golem.artifacts.config_sync import sync_config
from golem.artifacts.errors import ArtifactFilesystemError, IntegrityMismatchError
from golem.artifacts.file_sync import sync_file
from golem.artifacts.integrity import IntegrityManifest
from golem.artifacts.models import FileSyncResult, SyncIssue, SyncOutcome, SyncSuffixes
from golem.artifacts.paths import MANIFEST_EXCLUDED_DIRS, is_unsafe_entry_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncContext:
    """Everything a sync run needs besides the paths being synchronized.

    Attributes:
        source_root: Distribution root; manifest keys are relative to it
        manifest: Integrity manifest, or None to synchronize without the gate
        home_dir: Substituted for home placeholders in structured configs
        suffixes: Reserved backup / pending-update suffixes
        structured_suffixes: File suffixes synchronized as JSON documents
        dry_run: Classify and report only, never write
        excluded_dirs: Directory names never shipped; the same deny-list the
            manifest is built with, so the walk and the manifest agree
    """

    source_root: Path
    manifest: IntegrityManifest | None
    home_dir: Path
    suffixes: SyncSuffixes
    structured_suffixes: frozenset[str]
    dry_run: bool
    excluded_dirs: frozenset[str] = MANIFEST_EXCLUDED_DIRS


def _issue_result(
    source: Path,
    dest: Path,
    outcome: SyncOutcome,
    issue: SyncIssue,
    dry_run: bool,
) -> FileSyncResult:
    return FileSyncResult(
        source=source,
        dest=dest,
        outcome=outcome,
        action=None,
        dry_run=dry_run,
        issue=issue,
    )


def _symlink_blocked(source: Path, dest: Path, link: Path, dry_run: bool) -> FileSyncResult:
    logger.warning("Skipping symbolic link: %s", link)
    return _issue_result(
        source,
        dest,
        "blocked",
        SyncIssue(
            issue_type="symlink-blocked",
            path=link,
            message=f"{link} is a symbolic link; links are never copied or followed",
        ),
        dry_run,
    )


def _wrap_os_error(e: OSError, fallback: Path) -> ArtifactFilesystemError:
    return ArtifactFilesystemError(Path(e.filename or fallback), e.errno, e.strerror or str(e))


def _filesystem_failure(
    source: Path, dest: Path, e: ArtifactFilesystemError, dry_run: bool
) -> FileSyncResult:
    logger.warning("%s", e)
    return _issue_result(
        source,
        dest,
        "failed",
        SyncIssue(issue_type="filesystem-error", path=e.path, message=e.reason, errno=e.errno),
        dry_run,
    )


def sync_entry(source_path: Path, dest_path: Path, context: SyncContext) -> FileSyncResult:
    """Synchronize one regular file, converting per-artifact errors into results.

    Files whose suffix is listed in context.structured_suffixes go through the
    structured-config synchronizer, everything else is copied as raw bytes.
    """
    try:
        if source_path.is_symlink():
            return _symlink_blocked(source_path, dest_path, source_path, context.dry_run)

        expected_digest = None
        if context.manifest is not None:
            key = source_path.relative_to(context.source_root).as_posix()
            expected_digest = context.manifest.require_digest(key)

        if source_path.suffix in context.structured_suffixes:
            return sync_config(
                source_path,
                dest_path,
                expected_digest=expected_digest,
                home_dir=context.home_dir,
                suffixes=context.suffixes,
                dry_run=context.dry_run,
            )
        return sync_file(
            source_path,
            dest_path,
            expected_digest=expected_digest,
            suffixes=context.suffixes,
            dry_run=context.dry_run,
        )
    except IntegrityMismatchError as e:
        logger.warning("Refusing to install %s: %s", source_path, e)
        return _issue_result(
            source_path,
            dest_path,
            "failed",
            SyncIssue(issue_type="integrity-mismatch", path=source_path, message=str(e)),
            context.dry_run,
        )
    except ArtifactFilesystemError as e:
        return _filesystem_failure(source_path, dest_path, e, context.dry_run)
    except OSError as e:
        return _filesystem_failure(
            source_path, dest_path, _wrap_os_error(e, source_path), context.dry_run
        )


def iter_sync_tree(
    source_dir: Path,
    dest_dir: Path,
    context: SyncContext,
) -> Iterator[FileSyncResult]:
    """Recursively synchronize every regular file under source_dir into dest_dir.

    - A missing source directory yields nothing
    - Entry names with '..' or a path separator are rejected
    - Symbolic links, in the source tree or as destination directories, are blocked
    - Deny-listed directories are left out, exactly as the manifest leaves them out
    - Anything that is neither a directory nor a regular file is rejected
    """
    if source_dir.is_symlink():
        yield _symlink_blocked(source_dir, dest_dir, source_dir, context.dry_run)
        return
    if not source_dir.is_dir():
        return
    if dest_dir.is_symlink():
        yield _symlink_blocked(source_dir, dest_dir, dest_dir, context.dry_run)
        return

    try:
        if not context.dry_run:
            dest_dir.mkdir(parents=True, exist_ok=True)
        entries = sorted(source_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        yield _filesystem_failure(
            source_dir,
            dest_dir,
            _wrap_os_error(e, dest_dir),
            context.dry_run,
        )
        return

    for entry in entries:
        target = dest_dir / entry.name

        if is_unsafe_entry_name(entry.name):
            logger.warning("Rejecting unsafe entry name %r in %s", entry.name, source_dir)
            yield _issue_result(
                entry,
                target,
                "rejected",
                SyncIssue(
                    issue_type="path-traversal-rejected",
                    path=entry,
                    message=f"entry name {entry.name!r} could escape {dest_dir}",
                ),
                context.dry_run,
            )
            continue

        if entry.is_symlink():
            yield _symlink_blocked(entry, target, entry, context.dry_run)
            continue

        if entry.is_dir() and entry.name in context.excluded_dirs:
            logger.debug("Skipping non-distributable directory %s", entry)
            continue

        if entry.is_dir():
            yield from iter_sync_tree(entry, target, context)
            continue

        if entry.is_file():
            yield sync_entry(entry, target, context)
            continue

        yield _issue_result(
            entry,
            target,
            "rejected",
            SyncIssue(
                issue_type="not-regular-file",
                path=entry,
                message=f"{entry} is not a regular file",
            ),
            context.dry_run,
        )


def sync_tree(source_dir: Path, dest_dir: Path, context: SyncContext) -> list[FileSyncResult]:
    """Synchronize a tree eagerly, returning every per-artifact result."""
    return list(iter_sync_tree(source_dir, dest_dir, context))
