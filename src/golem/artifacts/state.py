"""State file I/O for <install_root>/state.toml and the version marker."""

from pathlib import Path

import tomli
import tomli_w

from golem.artifacts.file_sync import write_bookkeeping_file
from golem.artifacts.models import InstallState
from golem.artifacts.paths import STATE_FILE_NAME, get_version_marker_path


def get_state_path(install_root: Path) -> Path:
    """Get path to state.toml file."""
    return install_root / STATE_FILE_NAME


def load_install_state(install_root: Path) -> InstallState | None:
    """Load state from state.toml.

    Returns None if the file does not exist or lacks an [install] table.
    """
    path = get_state_path(install_root)
    if not path.exists():
        return None
    with open(path, "rb") as f:
        data = tomli.load(f)
    install = data.get("install")
    if not isinstance(install, dict):
        return None
    return InstallState(
        version=str(install.get("version", "")),
        components=[str(c) for c in install.get("components", [])],
        synced_at=str(install.get("synced_at", "")),
    )


def save_install_state(install_root: Path, state: InstallState) -> None:
    """Save state to state.toml, never writing through a symbolic link."""
    data = {
        "install": {
            "version": state.version,
            "components": state.components,
            "synced_at": state.synced_at,
        }
    }
    write_bookkeeping_file(get_state_path(install_root), tomli_w.dumps(data).encode("utf-8"))


def write_version_marker(install_root: Path, version: str) -> None:
    """Write the single-line version marker, never through a symbolic link."""
    write_bookkeeping_file(get_version_marker_path(install_root), f"{version}\n".encode())
