"""SHA-256 integrity manifest for distributed artifacts.

The manifest is generated once per package build and maps every artifact's
POSIX-style relative path to the SHA-256 digest of its raw bytes. Digests are
never computed over decoded text so line-ending conversions cannot make two
platforms disagree.
"""

import hashlib
import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from golem.artifacts.errors import IntegrityMismatchError, ManifestFormatError
from golem.artifacts.paths import MANIFEST_EXCLUDED_DIRS, MANIFEST_FILE_NAME

logger = logging.getLogger(__name__)

_DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def compute_digest(content: bytes) -> str:
    """Compute the lowercase hex SHA-256 digest of raw bytes."""
    return hashlib.sha256(content).hexdigest()


def compute_file_digest(path: Path) -> str | None:
    """Compute the digest of a file's bytes, or None if the file does not exist."""
    if not path.is_file():
        return None
    return compute_digest(path.read_bytes())


def verify_digest(content: bytes, expected_digest: str) -> bool:
    """Check raw bytes against an expected digest."""
    return compute_digest(content) == expected_digest


def require_verified(content: bytes, expected_digest: str | None, artifact_path: Path) -> None:
    """Gate an artifact's bytes on its manifest digest.

    A None expected_digest means the caller synchronizes without a manifest.

    Raises:
        IntegrityMismatchError: if the content does not hash to expected_digest
    """
    if expected_digest is None:
        return
    actual = compute_digest(content)
    if actual != expected_digest:
        logger.warning("Integrity mismatch for %s", artifact_path)
        raise IntegrityMismatchError(artifact_path, expected_digest, actual)


@dataclass(frozen=True)
class IntegrityManifest:
    """Relative path -> digest mapping loaded from checksums.json."""

    path: Path
    entries: dict[str, str]

    def require_digest(self, relative_path: str) -> str:
        """Return the expected digest for an artifact.

        Raises:
            IntegrityMismatchError: if the artifact is not listed. An artifact
                that the build never manifested cannot be trusted either.
        """
        expected = self.entries.get(relative_path)
        if expected is None:
            raise IntegrityMismatchError(
                Path(relative_path),
                expected_digest=None,
                actual_digest="",
                suggestion="Regenerate the manifest with 'golem manifest'",
            )
        return expected


def build_manifest(
    root_dir: Path,
    manifest_name: str = MANIFEST_FILE_NAME,
    excluded_dirs: frozenset[str] = MANIFEST_EXCLUDED_DIRS,
) -> dict[str, str]:
    """Walk root_dir and digest every regular file.

    Deny-listed directory names are skipped at any depth, symbolic links are
    never followed, and the manifest file at the root is left out so that
    regenerating it is stable. Unreadable files are left out of the manifest
    rather than failing the build.

    Returns:
        Mapping of POSIX relative path to digest, in sorted path order
    """
    manifest: dict[str, str] = {}
    if not root_dir.is_dir():
        return manifest

    for dirpath, dirnames, filenames in os.walk(root_dir):
        # Prune in place so os.walk never descends into excluded directories
        dirnames[:] = sorted(d for d in dirnames if d not in excluded_dirs)
        current = Path(dirpath)
        for filename in sorted(filenames):
            file_path = current / filename
            relative = file_path.relative_to(root_dir).as_posix()
            if relative == manifest_name:
                continue
            if file_path.is_symlink() or not file_path.is_file():
                continue
            try:
                content = file_path.read_bytes()
            except OSError as e:
                logger.debug("Excluding unreadable file %s from manifest: %s", file_path, e)
                continue
            manifest[relative] = compute_digest(content)

    return dict(sorted(manifest.items()))


def write_manifest(root_dir: Path, manifest_name: str = MANIFEST_FILE_NAME) -> Path:
    """Generate the manifest for root_dir and write it at the root.

    Returns:
        Path of the written manifest file
    """
    manifest = build_manifest(root_dir, manifest_name)
    manifest_path = root_dir / manifest_name
    text = json.dumps(manifest, indent=2, sort_keys=True) + "\n"
    manifest_path.write_text(text, encoding="utf-8")
    logger.debug("Wrote %d manifest entries to %s", len(manifest), manifest_path)
    return manifest_path


def load_manifest(manifest_path: Path) -> IntegrityManifest | None:
    """Load checksums.json.

    Returns None if the file does not exist.

    Raises:
        ManifestFormatError: if the file is not a JSON object mapping
            relative paths to 64-character lowercase hex digests
    """
    if not manifest_path.exists():
        return None

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestFormatError(manifest_path, f"not valid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ManifestFormatError(manifest_path, "top-level value must be an object")

    entries: dict[str, str] = {}
    for relative_path, digest in data.items():
        if not isinstance(digest, str) or _DIGEST_PATTERN.match(digest) is None:
            raise ManifestFormatError(manifest_path, f"invalid digest for {relative_path!r}")
        entries[relative_path] = digest

    return IntegrityManifest(path=manifest_path, entries=entries)
