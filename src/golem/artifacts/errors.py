"""Exceptions raised at artifact granularity, plus error message formatting."""

import json
from pathlib import Path


class IntegrityMismatchError(Exception):
    """Artifact content does not match the integrity manifest.

    Raised before anything is written for the artifact. The tree walker
    catches it, reports the artifact as failed and moves on to the next one.
    """

    def __init__(
        self,
        artifact_path: Path,
        expected_digest: str | None,
        actual_digest: str,
        suggestion: str = "Reinstall the distribution or regenerate its manifest",
    ) -> None:
        self.artifact_path = artifact_path
        self.expected_digest = expected_digest
        self.actual_digest = actual_digest
        self.suggestion = suggestion
        if expected_digest is None:
            detail = "artifact is not listed in the integrity manifest"
        else:
            detail = f"expected sha256 {expected_digest}, got {actual_digest}"
        super().__init__(f"Integrity check failed for {artifact_path}: {detail}\n{suggestion}")


class ArtifactFilesystemError(Exception):
    """A filesystem operation failed for one artifact (permission denied, disk full...)."""

    def __init__(self, path: Path, errno: int | None, reason: str) -> None:
        self.path = path
        self.errno = errno
        self.reason = reason
        super().__init__(f"Filesystem error on {path}: {reason} (errno={errno})")


class ManifestFormatError(Exception):
    """The integrity manifest exists but is not a path -> sha256 mapping."""

    def __init__(self, manifest_path: Path, reason: str) -> None:
        self.manifest_path = manifest_path
        self.reason = reason
        super().__init__(f"Malformed integrity manifest {manifest_path}: {reason}")


class ConfigError(Exception):
    """golem.toml holds a value of the wrong type."""

    def __init__(self, config_path: Path, key: str, expected: str) -> None:
        self.config_path = config_path
        self.key = key
        super().__init__(f"Invalid value for '{key}' in {config_path}: expected {expected}")


def sanitize_path(path: Path | str, home: Path) -> str:
    """Replace the home directory prefix with ~ so messages don't leak user paths."""
    path = Path(path)
    if not path.is_relative_to(home):
        return str(path)
    relative = path.relative_to(home)
    if relative == Path("."):
        return "~"
    return str(Path("~") / relative)


def format_error(message: str, context: dict[str, object], suggestion: str | None) -> str:
    """Render an error message with its context and a suggested fix.

    Example:
        Error: Templates missing

        Context:
          installRootExists: true

        Suggested fix:
          Run: golem repair --confirm
    """
    parts = [f"Error: {message}"]

    if context:
        parts.append("\nContext:")
        for key, value in context.items():
            parts.append(f"  {key}: {json.dumps(value, default=str)}")

    if suggestion:
        parts.append("\nSuggested fix:")
        parts.append(f"  {suggestion}")

    return "\n".join(parts)
