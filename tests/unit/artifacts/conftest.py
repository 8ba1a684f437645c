"""Fixtures for artifacts tests."""

from pathlib import Path

import pytest

from golem.artifacts.models import SyncSuffixes
from golem.artifacts.paths import DEFAULT_SUFFIXES


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Alias for tmp_path with semantic meaning as a working directory.

    Tests that use 'tmp_project' lay out their own source and destination
    trees under it.
    """
    return tmp_path


@pytest.fixture
def suffixes() -> SyncSuffixes:
    """The default .pre-golem / .new sibling suffixes."""
    return DEFAULT_SUFFIXES
