"""Decide how to synchronize one destination from its three content hashes."""

from golem.artifacts.models import SyncAction


def classify_change(
    source_hash: str,
    dest_hash: str | None,
    backup_hash: str | None,
) -> SyncAction:
    """Classify a destination against the newly distributed content.

    Logic:
    - dest_hash is None → install
    - source_hash == dest_hash → unchanged
    - no backup yet → backup-and-update (the current file becomes the pristine copy)
    - backup matches dest → update (the user has not touched the file)
    - backup differs from dest → skip (the user edited the file; never overwrite it)
    """
    if dest_hash is None:
        return "install"

    if source_hash == dest_hash:
        return "unchanged"

    if backup_hash is None:
        return "backup-and-update"

    if backup_hash == dest_hash:
        return "update"

    return "skip"
