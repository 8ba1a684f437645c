"""Undo synchronization side effects inside an install location.

Restores pristine backups over the files they were taken from and removes
pending-update siblings. A destination whose content no longer matches its
backup may hold local edits, so it is kept unless the caller forces the
restore. Destinations that have become symbolic links are always left alone.
"""

import logging
import os
from pathlib import Path

from golem.artifacts.integrity import compute_file_digest
from golem.artifacts.models import RevertResult, SyncSuffixes

logger = logging.getLogger(__name__)


def _iter_files(root: Path) -> list[Path]:
    """Regular files under root, without following directory links."""
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        current = Path(dirpath)
        for filename in sorted(filenames):
            path = current / filename
            if path.is_file() and not path.is_symlink():
                files.append(path)
    return files


def find_pending_updates(root: Path, suffixes: SyncSuffixes) -> list[Path]:
    """List pending-update siblings waiting for the user to review them."""
    if not root.is_dir():
        return []
    return [p for p in _iter_files(root) if p.name.endswith(suffixes.pending)]


def find_backups(root: Path, suffixes: SyncSuffixes) -> list[Path]:
    """List pristine backups taken by earlier synchronization runs."""
    if not root.is_dir():
        return []
    return [p for p in _iter_files(root) if p.name.endswith(suffixes.backup)]


def revert_tree(
    root: Path, *, suffixes: SyncSuffixes, dry_run: bool, force: bool = False
) -> RevertResult:
    """Restore pristine backups and drop pending updates under root.

    Args:
        root: Install location to revert
        suffixes: Reserved backup / pending-update suffixes
        dry_run: Report what would change without touching anything
        force: Also restore over destinations that differ from their backup

    Returns:
        RevertResult listing restored destinations, removed pending files,
        destinations left alone because they are symbolic links and
        destinations kept because they differ from their backup
    """
    restored: list[Path] = []
    removed_pending: list[Path] = []
    blocked: list[Path] = []
    kept: list[Path] = []

    for backup in find_backups(root, suffixes):
        dest = backup.with_name(backup.name[: -len(suffixes.backup)])
        if dest.is_symlink():
            logger.warning("Not restoring %s over symbolic link %s", backup, dest)
            blocked.append(dest)
            continue
        dest_digest = compute_file_digest(dest)
        if not force and dest_digest is not None and dest_digest != compute_file_digest(backup):
            logger.warning("Keeping %s: it differs from its backup %s", dest, backup)
            kept.append(dest)
            continue
        if not dry_run:
            # os.replace moves the link-free backup over the destination in one step
            os.replace(backup, dest)
        logger.debug("Restored %s", dest)
        restored.append(dest)

    for pending in find_pending_updates(root, suffixes):
        if not dry_run:
            pending.unlink()
        logger.debug("Removed %s", pending)
        removed_pending.append(pending)

    return RevertResult(
        restored=restored,
        removed_pending=removed_pending,
        blocked=blocked,
        kept=kept,
        dry_run=dry_run,
    )
