"""Apply a classified change to a single destination file.

Side effects are confined to the destination itself, its pristine backup
sibling (created at most once, ever) and its pending-update sibling
(rewritten on every skip). Symbolic links are never written through: the
destination is checked for a link immediately before it is opened, and the
open itself uses O_NOFOLLOW where the platform has it.
"""

import errno
import logging
import os
import stat
from pathlib import Path

from golem.artifacts.classify import classify_change
from golem.artifacts.errors import ArtifactFilesystemError
from golem.artifacts.integrity import compute_digest, require_verified
from golem.artifacts.models import (
    FileSyncResult,
    SyncAction,
    SyncIssue,
    SyncOutcome,
    SyncSuffixes,
)
from golem.artifacts.paths import get_backup_path, get_pending_path

logger = logging.getLogger(__name__)

_O_NOFOLLOW = getattr(os, "O_NOFOLLOW", 0)

# Outcome reported for each action that writes (or would write) something
_ACTION_OUTCOMES: dict[SyncAction, SyncOutcome] = {
    "install": "installed",
    "unchanged": "unchanged",
    "update": "updated",
    "backup-and-update": "updated",
    "skip": "skipped",
}


def _filesystem_error(path: Path, e: OSError) -> ArtifactFilesystemError:
    return ArtifactFilesystemError(path, e.errno, e.strerror or str(e))


def read_artifact_bytes(path: Path) -> bytes:
    """Read an artifact's raw bytes.

    Raises:
        ArtifactFilesystemError: if the file cannot be read
    """
    try:
        return path.read_bytes()
    except OSError as e:
        raise _filesystem_error(path, e) from e


def read_file_mode(path: Path) -> int:
    """Permission bits of a source artifact, so executables stay executable."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except OSError as e:
        raise _filesystem_error(path, e) from e


def _is_symlink(path: Path) -> bool:
    try:
        return path.is_symlink()
    except OSError as e:
        raise _filesystem_error(path, e) from e


def _existing_digest(path: Path) -> str | None:
    """Digest of whatever regular file occupies path, None if nothing does."""
    try:
        exists = path.exists()
        is_dir = exists and path.is_dir()
    except OSError as e:
        raise _filesystem_error(path, e) from e
    if not exists:
        return None
    if is_dir:
        raise ArtifactFilesystemError(path, errno.EISDIR, "expected a file, found a directory")
    return compute_digest(read_artifact_bytes(path))


def _write_bytes(path: Path, content: bytes, mode: int, exclusive: bool) -> bool:
    """Write content to path without ever following a link.

    With exclusive=True the file must not exist yet; this is how backups are
    guaranteed to be written only once.

    Returns:
        False if path turned out to be a symbolic link (nothing was written)

    Raises:
        ArtifactFilesystemError: for any other OS error
    """
    if _is_symlink(path):
        return False

    flags = os.O_WRONLY | os.O_CREAT | _O_NOFOLLOW
    flags |= os.O_EXCL if exclusive else os.O_TRUNC
    try:
        fd = os.open(path, flags, mode)
    except OSError as e:
        # O_NOFOLLOW reports a link swapped in since the check above as ELOOP
        if e.errno == errno.ELOOP:
            return False
        raise _filesystem_error(path, e) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            if hasattr(os, "fchmod"):
                os.fchmod(f.fileno(), mode)
    except OSError as e:
        raise _filesystem_error(path, e) from e
    return True


def write_bookkeeping_file(path: Path, content: bytes) -> None:
    """Replace a file golem owns outright (version marker, state.toml).

    Raises:
        ArtifactFilesystemError: if path is a symbolic link or the write fails
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise _filesystem_error(path.parent, e) from e
    if not _write_bytes(path, content, 0o644, exclusive=False):
        raise ArtifactFilesystemError(
            path, errno.ELOOP, "is a symbolic link; refusing to write through it"
        )


def _blocked(
    source_path: Path,
    link_path: Path,
    dest_path: Path,
    action: SyncAction | None,
    dry_run: bool,
) -> FileSyncResult:
    logger.warning("Refusing to write through symbolic link: %s", link_path)
    return FileSyncResult(
        source=source_path,
        dest=dest_path,
        outcome="blocked",
        action=action,
        dry_run=dry_run,
        issue=SyncIssue(
            issue_type="symlink-blocked",
            path=link_path,
            message=f"{link_path} is a symbolic link; not following it",
        ),
    )


def apply_content(
    content: bytes,
    *,
    source_path: Path,
    dest_path: Path,
    mode: int,
    suffixes: SyncSuffixes,
    dry_run: bool,
) -> FileSyncResult:
    """Classify dest_path against content and apply the resulting action.

    Args:
        content: Bytes to install (already verified and, for structured
            configs, already canonicalized)
        source_path: Where content came from, for reporting
        dest_path: Destination file
        mode: Permission bits for written files
        suffixes: Reserved backup / pending-update suffixes
        dry_run: Classify and report only, never write

    Raises:
        ArtifactFilesystemError: if reading the destination or writing fails
    """
    backup_path = get_backup_path(dest_path, suffixes)
    pending_path = get_pending_path(dest_path, suffixes)

    if _is_symlink(dest_path):
        return _blocked(source_path, dest_path, dest_path, None, dry_run)
    if _is_symlink(backup_path):
        return _blocked(source_path, backup_path, dest_path, None, dry_run)

    source_hash = compute_digest(content)
    dest_hash = _existing_digest(dest_path)
    backup_hash = _existing_digest(backup_path)

    action = classify_change(source_hash, dest_hash, backup_hash)
    logger.debug("%s: %s", dest_path, action)

    if action == "skip" and _is_symlink(pending_path):
        return _blocked(source_path, pending_path, dest_path, action, dry_run)

    result = FileSyncResult(
        source=source_path,
        dest=dest_path,
        outcome=_ACTION_OUTCOMES[action],
        action=action,
        dry_run=dry_run,
    )

    if dry_run or action == "unchanged":
        return result

    if action == "install":
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _filesystem_error(dest_path.parent, e) from e
        # The installed bytes are the pristine copy later runs compare against
        if backup_hash is None and not _write_bytes(backup_path, content, mode, exclusive=True):
            return _blocked(source_path, backup_path, dest_path, action, dry_run)
        written = _write_bytes(dest_path, content, mode, exclusive=False)
        target = dest_path
    elif action == "update":
        written = _write_bytes(dest_path, content, mode, exclusive=False)
        target = dest_path
    elif action == "backup-and-update":
        # The pristine copy must be safely on disk before the destination changes
        pristine = read_artifact_bytes(dest_path)
        pristine_mode = read_file_mode(dest_path)
        if not _write_bytes(backup_path, pristine, pristine_mode, exclusive=True):
            return _blocked(source_path, backup_path, dest_path, action, dry_run)
        written = _write_bytes(dest_path, content, mode, exclusive=False)
        target = dest_path
    else:
        logger.info("Keeping user-modified %s; new version written to %s", dest_path, pending_path)
        written = _write_bytes(pending_path, content, mode, exclusive=False)
        target = pending_path

    if not written:
        return _blocked(source_path, target, dest_path, action, dry_run)
    return result


def sync_file(
    source_path: Path,
    dest_path: Path,
    *,
    expected_digest: str | None,
    suffixes: SyncSuffixes,
    dry_run: bool,
) -> FileSyncResult:
    """Synchronize one file from the distribution to its destination.

    Args:
        source_path: Distributed artifact
        dest_path: Installed location
        expected_digest: Manifest digest of the artifact, or None to skip the
            integrity gate
        suffixes: Reserved backup / pending-update suffixes
        dry_run: Classify and report only, never write

    Returns:
        FileSyncResult with outcome installed, unchanged, updated, skipped or blocked

    Raises:
        IntegrityMismatchError: if the source bytes do not match expected_digest;
            nothing has been written
        ArtifactFilesystemError: if reading or writing fails
    """
    if _is_symlink(dest_path):
        return _blocked(source_path, dest_path, dest_path, None, dry_run)

    content = read_artifact_bytes(source_path)
    require_verified(content, expected_digest, source_path)

    return apply_content(
        content,
        source_path=source_path,
        dest_path=dest_path,
        mode=read_file_mode(source_path),
        suffixes=suffixes,
        dry_run=dry_run,
    )
