"""Reserved file names and sibling paths used by the sync engine.

Depends only on the models module so every other module can import it.
"""

from pathlib import Path

from golem.artifacts.models import SyncSuffixes

VERSION_MARKER_NAME = "version"
STATE_FILE_NAME = "state.toml"
MANIFEST_FILE_NAME = "checksums.json"
CONFIG_FILE_NAME = "golem.toml"

DEFAULT_BACKUP_SUFFIX = ".pre-golem"
DEFAULT_PENDING_SUFFIX = ".new"
DEFAULT_SUFFIXES = SyncSuffixes(backup=DEFAULT_BACKUP_SUFFIX, pending=DEFAULT_PENDING_SUFFIX)

# Required component paths when an install root carries no state.toml
DEFAULT_REQUIRED_COMPONENTS: tuple[str, ...] = ("bin", "lib", "templates")

# Directory names never walked when building a manifest: VCS metadata,
# dependency and build caches, and golem's own runtime state.
MANIFEST_EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        "__pycache__",
        ".venv",
        "dist",
        "build",
        ".golem",
        ".claude",
    }
)


def get_default_install_root() -> Path:
    """Default install root (~/.golem) when GOLEM_HOME is not set."""
    return Path.home() / ".golem"


def get_version_marker_path(install_root: Path) -> Path:
    return install_root / VERSION_MARKER_NAME


def get_backup_path(dest_path: Path, suffixes: SyncSuffixes) -> Path:
    """Pristine backup sibling of a destination file."""
    return dest_path.with_name(dest_path.name + suffixes.backup)


def get_pending_path(dest_path: Path, suffixes: SyncSuffixes) -> Path:
    """Pending update sibling written when the destination was edited by the user."""
    return dest_path.with_name(dest_path.name + suffixes.pending)


def is_unsafe_entry_name(name: str) -> bool:
    """Check if a directory entry name could escape its parent directory.

    Rejects parent-directory references and any embedded path separator,
    including the Windows separator on POSIX hosts.
    """
    if ".." in name:
        return True
    return "/" in name or "\\" in name
