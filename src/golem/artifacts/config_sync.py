"""Synchronize structured JSON configuration documents.

Distributed settings files carry authoring-time annotation keys ("// ..."),
and may reference the invoking user's home directory through ${HOME} or
$HOME. Both are resolved here, and the document is re-serialized in a
canonical form before hashing so that formatting-only differences between
package builds never look like content changes. The canonical bytes then go
through the same classification as any other file.
"""

import json
import logging
import re
from dataclasses import replace
from pathlib import Path

from golem.artifacts.file_sync import apply_content, read_artifact_bytes, read_file_mode
from golem.artifacts.integrity import require_verified
from golem.artifacts.models import FileSyncResult, SyncIssue, SyncSuffixes

logger = logging.getLogger(__name__)

ANNOTATION_PREFIX = "//"

# ${HOME} or a bare $HOME that is not the start of a longer name such as $HOMEBREW
_HOME_PLACEHOLDER = re.compile(r"\$\{HOME\}|\$HOME(?![A-Za-z0-9_])")


def strip_annotations(value: object) -> object:
    """Remove annotation keys from dicts, recursing through dicts and lists.

    Primitives are returned unchanged.
    """
    if isinstance(value, dict):
        return {
            key: strip_annotations(item)
            for key, item in value.items()
            if not key.startswith(ANNOTATION_PREFIX)
        }
    if isinstance(value, list):
        return [strip_annotations(item) for item in value]
    return value


def resolve_home_placeholders(value: object, home_dir: Path) -> object:
    """Substitute home-directory placeholders in every string key and value."""
    home = str(home_dir)
    if isinstance(value, str):
        return _HOME_PLACEHOLDER.sub(lambda _match: home, value)
    if isinstance(value, dict):
        return {
            resolve_home_placeholders(key, home_dir): resolve_home_placeholders(item, home_dir)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [resolve_home_placeholders(item, home_dir) for item in value]
    return value


def canonicalize(document: object) -> bytes:
    """Serialize a document in canonical form.

    Sorted keys, two-space indentation, non-ASCII characters kept as-is and a
    trailing newline. Parsing and canonicalizing the output again yields the
    same bytes.
    """
    text = json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def prepare_config(content: bytes, home_dir: Path) -> bytes:
    """Turn distributed config bytes into installable canonical bytes.

    Raises:
        ValueError: if content is not UTF-8 encoded JSON (json.JSONDecodeError
            and UnicodeDecodeError are both ValueError subclasses)
    """
    document = json.loads(content.decode("utf-8"))
    cleaned = strip_annotations(document)
    resolved = resolve_home_placeholders(cleaned, home_dir)
    return canonicalize(resolved)


def sync_config(
    source_path: Path,
    dest_path: Path,
    *,
    expected_digest: str | None,
    home_dir: Path,
    suffixes: SyncSuffixes,
    dry_run: bool,
) -> FileSyncResult:
    """Synchronize a JSON configuration document.

    The integrity gate applies to the raw distributed bytes. If the document
    does not parse, it is synchronized as opaque bytes instead and the result
    carries a parse-failure issue.

    Raises:
        IntegrityMismatchError: if the raw source bytes do not match expected_digest
        ArtifactFilesystemError: if reading or writing fails
    """
    raw = read_artifact_bytes(source_path)
    require_verified(raw, expected_digest, source_path)
    mode = read_file_mode(source_path)

    try:
        content = prepare_config(raw, home_dir)
    except ValueError as e:
        logger.warning("Could not parse %s as JSON, syncing it verbatim: %s", source_path, e)
        result = apply_content(
            raw,
            source_path=source_path,
            dest_path=dest_path,
            mode=mode,
            suffixes=suffixes,
            dry_run=dry_run,
        )
        if result.issue is not None:
            return result
        return replace(
            result,
            issue=SyncIssue(
                issue_type="parse-failure",
                path=source_path,
                message=f"not valid JSON, synced as opaque bytes: {e}",
            ),
        )

    return apply_content(
        content,
        source_path=source_path,
        dest_path=dest_path,
        mode=mode,
        suffixes=suffixes,
        dry_run=dry_run,
    )
