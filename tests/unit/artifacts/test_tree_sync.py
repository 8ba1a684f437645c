"""Tests for recursive tree synchronization."""

import errno
import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from golem.artifacts.file_sync import sync_file
from golem.artifacts.integrity import IntegrityManifest, build_manifest, compute_digest
from golem.artifacts.models import FileSyncResult, SyncSuffixes
from golem.artifacts.tree_sync import SyncContext, iter_sync_tree, sync_tree


def _context(
    source_root: Path,
    home_dir: Path,
    suffixes: SyncSuffixes,
    manifest: IntegrityManifest | None = None,
    dry_run: bool = False,
) -> SyncContext:
    return SyncContext(
        source_root=source_root,
        manifest=manifest,
        home_dir=home_dir,
        suffixes=suffixes,
        structured_suffixes=frozenset({".json"}),
        dry_run=dry_run,
    )


def _manifest_for(source_root: Path) -> IntegrityManifest:
    return IntegrityManifest(
        path=source_root / "checksums.json", entries=build_manifest(source_root)
    )


def _make_tree(root: Path) -> None:
    (root / "templates" / "nested").mkdir(parents=True)
    (root / "templates" / "a.md").write_text("a", encoding="utf-8")
    (root / "templates" / "nested" / "b.md").write_text("b", encoding="utf-8")


def test_mirrors_nested_regular_files(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    dest = tmp_project / "install" / "templates"

    results = sync_tree(source_root / "templates", dest, _context(source_root, home_dir, suffixes))

    assert [r.outcome for r in results] == ["installed", "installed"]
    assert (dest / "a.md").read_text(encoding="utf-8") == "a"
    assert (dest / "nested" / "b.md").read_text(encoding="utf-8") == "b"


def test_missing_source_directory_is_a_no_op(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    dest = tmp_project / "install" / "hooks"

    results = sync_tree(tmp_project / "absent", dest, _context(tmp_project, home_dir, suffixes))

    assert results == []
    assert not dest.exists()


def test_symlink_entries_are_blocked_not_copied(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    outside = tmp_project / "outside.txt"
    outside.write_text("secret", encoding="utf-8")
    (source_root / "templates" / "link.md").symlink_to(outside)
    dest = tmp_project / "install" / "templates"

    results = sync_tree(source_root / "templates", dest, _context(source_root, home_dir, suffixes))

    blocked = [r for r in results if r.outcome == "blocked"]
    assert len(blocked) == 1
    assert blocked[0].issue is not None
    assert blocked[0].issue.issue_type == "symlink-blocked"
    assert not (dest / "link.md").exists()
    assert (dest / "a.md").exists()


@pytest.mark.parametrize("name", ["..hidden", "a..b", "back\\slash"])
def test_unsafe_entry_names_are_rejected(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes, name: str
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    (source_root / "templates" / name).write_text("x", encoding="utf-8")
    dest = tmp_project / "install" / "templates"

    results = sync_tree(source_root / "templates", dest, _context(source_root, home_dir, suffixes))

    rejected = [r for r in results if r.outcome == "rejected"]
    assert len(rejected) == 1
    assert rejected[0].issue is not None
    assert rejected[0].issue.issue_type == "path-traversal-rejected"
    assert not (dest / name).exists()
    assert sum(1 for r in results if r.outcome == "installed") == 2


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")
def test_special_files_are_rejected(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    os.mkfifo(source_root / "templates" / "pipe")
    dest = tmp_project / "install" / "templates"

    results = sync_tree(source_root / "templates", dest, _context(source_root, home_dir, suffixes))

    rejected = [r for r in results if r.outcome == "rejected"]
    assert len(rejected) == 1
    assert rejected[0].issue is not None
    assert rejected[0].issue.issue_type == "not-regular-file"


def test_symlinked_destination_directory_is_blocked(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    elsewhere = tmp_project / "elsewhere"
    elsewhere.mkdir()
    (tmp_project / "install").mkdir()
    dest = tmp_project / "install" / "templates"
    dest.symlink_to(elsewhere)

    results = sync_tree(source_root / "templates", dest, _context(source_root, home_dir, suffixes))

    assert [r.outcome for r in results] == ["blocked"]
    assert list(elsewhere.iterdir()) == []


def test_one_corrupted_artifact_does_not_stop_the_walk(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    manifest = _manifest_for(source_root)
    (source_root / "templates" / "a.md").write_text("tampered", encoding="utf-8")
    dest = tmp_project / "install" / "templates"

    results = sync_tree(
        source_root / "templates", dest, _context(source_root, home_dir, suffixes, manifest)
    )

    by_name = {r.source.name: r for r in results}
    assert by_name["a.md"].outcome == "failed"
    assert by_name["a.md"].issue is not None
    assert by_name["a.md"].issue.issue_type == "integrity-mismatch"
    assert by_name["b.md"].outcome == "installed"
    assert not (dest / "a.md").exists()


def test_unlisted_artifact_fails_integrity_gate(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    manifest = IntegrityManifest(
        path=source_root / "checksums.json",
        entries={"templates/a.md": compute_digest(b"a")},
    )
    dest = tmp_project / "install" / "templates"

    results = sync_tree(
        source_root / "templates", dest, _context(source_root, home_dir, suffixes, manifest)
    )

    assert [(r.source.name, r.outcome) for r in results] == [
        ("a.md", "installed"),
        ("b.md", "failed"),
    ]


def test_json_files_use_the_structured_synchronizer(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    (source_root / "hooks").mkdir(parents=True)
    (source_root / "hooks" / "hooks.json").write_text(
        '{"// note": "x", "dir": "$HOME"}', encoding="utf-8"
    )
    dest = tmp_project / "install" / "hooks"

    sync_tree(source_root / "hooks", dest, _context(source_root, home_dir, suffixes))

    assert (dest / "hooks.json").read_text(encoding="utf-8") == f'{{\n  "dir": "{home_dir}"\n}}\n'


def test_walk_is_lazy(tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes) -> None:
    """Nothing is written until the caller pulls results."""
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    dest = tmp_project / "install" / "templates"

    context = _context(source_root, home_dir, suffixes)
    walk = iter_sync_tree(source_root / "templates", dest, context)
    assert not dest.exists()

    first = next(walk)
    assert first.outcome == "installed"
    assert (dest / "a.md").exists()
    assert not (dest / "nested").exists()


def test_dry_run_creates_nothing(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    dest = tmp_project / "install" / "templates"

    results = sync_tree(
        source_root / "templates", dest, _context(source_root, home_dir, suffixes, dry_run=True)
    )

    assert [r.outcome for r in results] == ["installed", "installed"]
    assert not dest.exists()


def test_deny_listed_directories_are_not_walked(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    (source_root / "templates" / "node_modules").mkdir()
    (source_root / "templates" / "node_modules" / "dep.js").write_text("x", encoding="utf-8")
    manifest = _manifest_for(source_root)
    dest = tmp_project / "install" / "templates"

    results = sync_tree(
        source_root / "templates", dest, _context(source_root, home_dir, suffixes, manifest)
    )

    assert [(r.source.name, r.outcome) for r in results] == [
        ("a.md", "installed"),
        ("b.md", "installed"),
    ]
    assert not (dest / "node_modules").exists()


def test_unexpected_os_error_becomes_a_failed_result(
    tmp_project: Path, home_dir: Path, suffixes: SyncSuffixes
) -> None:
    source_root = tmp_project / "dist"
    _make_tree(source_root)
    dest = tmp_project / "install" / "templates"

    def flaky_sync_file(source_path: Path, dest_path: Path, **kwargs: Any) -> FileSyncResult:
        if source_path.name == "a.md":
            raise PermissionError(errno.EACCES, "Permission denied", str(dest_path))
        return sync_file(source_path, dest_path, **kwargs)

    with patch("golem.artifacts.tree_sync.sync_file", side_effect=flaky_sync_file):
        results = sync_tree(
            source_root / "templates", dest, _context(source_root, home_dir, suffixes)
        )

    assert [r.outcome for r in results] == ["failed", "installed"]
    issue = results[0].issue
    assert issue is not None
    assert issue.issue_type == "filesystem-error"
    assert issue.errno == errno.EACCES
    assert issue.path == dest / "a.md"
