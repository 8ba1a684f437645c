"""Fixtures shared by golem unit tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from golem.artifacts.integrity import write_manifest

DistributionFactory = Callable[..., Path]


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Stand-in home directory substituted for ${HOME} placeholders."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Install root location; not created, so first syncs are fresh installs."""
    return tmp_path / "install"


@pytest.fixture
def make_distribution(tmp_path: Path) -> DistributionFactory:
    """Build (or rebuild, as a new release) a distribution with its manifest.

    Files are given as relative path -> text or bytes. Calling the factory again
    overwrites the listed files, bumps the version and regenerates the manifest,
    like shipping a new release of the same distribution.
    """
    root = tmp_path / "dist"

    def _make(files: dict[str, str | bytes], version: str = "1.0.0") -> Path:
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        (root / "golem.toml").write_text(
            f'[distribution]\nversion = "{version}"\n', encoding="utf-8"
        )
        write_manifest(root)
        return root

    return _make
