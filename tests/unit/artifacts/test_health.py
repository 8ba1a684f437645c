"""Tests for install health diagnosis and repair."""

from collections.abc import Callable
from pathlib import Path

from golem.artifacts.health import diagnose, repair, suggest_fix
from golem.artifacts.models import InstallState
from golem.artifacts.state import save_install_state
from golem.artifacts.sync import sync_distribution

DistributionFactory = Callable[..., Path]


def _healthy_layout(root: Path, version: str = "1.0.0") -> None:
    for name in ("bin", "lib", "templates"):
        (root / name).mkdir(parents=True)
    (root / "version").write_text(version + "\n", encoding="utf-8")


def test_missing_install_root(tmp_path: Path) -> None:
    diagnosis = diagnose(tmp_path / "absent")

    assert diagnosis.state == "missing"
    assert not diagnosis.is_healthy
    assert "golem sync" in diagnosis.suggestion


def test_healthy_install(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)

    diagnosis = diagnose(tmp_path)

    assert diagnosis.state == "healthy"
    assert diagnosis.issues == []
    assert diagnosis.version == "1.0.0"


def test_empty_version_marker_is_corrupted(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "version").write_text("  \n", encoding="utf-8")

    diagnosis = diagnose(tmp_path)

    assert diagnosis.state == "corrupted"
    assert diagnosis.version is None
    assert "repair" in diagnosis.suggestion


def test_unreadable_version_marker_is_corrupted(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "version").unlink()
    (tmp_path / "version").mkdir()

    assert diagnose(tmp_path).state == "corrupted"


def test_binary_version_marker_is_corrupted(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "version").write_bytes(b"\xff\xfe\x00")

    assert diagnose(tmp_path).state == "corrupted"


def test_missing_version_marker_is_partial(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "version").unlink()

    diagnosis = diagnose(tmp_path)

    assert diagnosis.state == "partial"
    assert diagnosis.issues == ["Version marker is missing"]


def test_missing_required_component_is_partial(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "templates").rmdir()

    diagnosis = diagnose(tmp_path)

    assert diagnosis.state == "partial"
    assert diagnosis.issues == ["Required component 'templates' is missing"]


def test_required_components_come_from_state(tmp_path: Path) -> None:
    (tmp_path / "hooks").mkdir(parents=True)
    (tmp_path / "version").write_text("1.0.0\n", encoding="utf-8")
    save_install_state(
        tmp_path,
        InstallState(version="1.0.0", components=["hooks"], synced_at="2026-01-01T00:00:00+00:00"),
    )

    assert diagnose(tmp_path).state == "healthy"

    (tmp_path / "hooks").rmdir()
    assert diagnose(tmp_path).issues == ["Required component 'hooks' is missing"]


def test_explicit_required_components(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)

    diagnosis = diagnose(tmp_path, required_components=["bin", "docs"])

    assert diagnosis.issues == ["Required component 'docs' is missing"]


def test_unreadable_state_is_reported_not_raised(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "state.toml").write_text("this is [not toml", encoding="utf-8")

    diagnosis = diagnose(tmp_path)

    assert diagnosis.state == "partial"
    assert diagnosis.issues[0].startswith("state.toml is unreadable")


def test_pending_updates_are_informational(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    pending = tmp_path / "lib" / "util.sh.new"
    pending.write_text("new", encoding="utf-8")

    diagnosis = diagnose(tmp_path)

    assert diagnosis.state == "healthy"
    assert diagnosis.pending_updates == [pending]
    assert "pending update" in diagnosis.suggestion


def test_suggest_fix_covers_every_state() -> None:
    assert "golem sync" in suggest_fix("missing")
    assert "golem repair --confirm" in suggest_fix("corrupted")
    assert "golem repair --confirm" in suggest_fix("partial")
    assert suggest_fix("healthy") == "No action needed"


def test_repair_healthy_install_does_nothing(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)

    result = repair(tmp_path, dry_run=False, confirmed=True, source_root=None, home_dir=tmp_path)

    assert result.strategy == "none"
    assert not result.applied
    assert result.issues == []


def test_repair_requires_confirmation(tmp_path: Path) -> None:
    install_root = tmp_path / "install"

    result = repair(
        install_root, dry_run=False, confirmed=False, source_root=None, home_dir=tmp_path
    )

    assert result.strategy == "resync"
    assert result.needs_confirmation
    assert not result.applied
    assert not install_root.exists()


def test_repair_dry_run_reports_issues(tmp_path: Path) -> None:
    _healthy_layout(tmp_path)
    (tmp_path / "lib").rmdir()

    result = repair(tmp_path, dry_run=True, confirmed=True, source_root=None, home_dir=tmp_path)

    assert result.strategy == "resync"
    assert not result.applied
    assert not result.needs_confirmation
    assert result.issues == ["Required component 'lib' is missing"]
    assert not (tmp_path / "lib").exists()


def test_repair_without_distribution_is_not_applied(tmp_path: Path) -> None:
    result = repair(
        tmp_path / "install", dry_run=False, confirmed=True, source_root=None, home_dir=tmp_path
    )

    assert not result.applied
    assert "--source" in result.message


def test_confirmed_repair_resyncs(
    make_distribution: DistributionFactory, install_root: Path, home_dir: Path
) -> None:
    source = make_distribution(
        {"bin/golem": "x", "lib/util.sh": "u", "templates/a.md": "a"}, version="3.0.0"
    )
    sync_distribution(source, install_root, dry_run=False, home_dir=home_dir)
    (install_root / "templates" / "a.md").unlink()
    (install_root / "templates" / "a.md.pre-golem").unlink()
    (install_root / "templates").rmdir()
    (install_root / "version").write_text("", encoding="utf-8")
    assert diagnose(install_root).state == "corrupted"

    result = repair(
        install_root, dry_run=False, confirmed=True, source_root=source, home_dir=home_dir
    )

    assert result.applied
    assert result.sync_report is not None
    assert result.sync_report.count("installed") == 1
    assert diagnose(install_root).state == "healthy"
    assert (install_root / "version").read_text(encoding="utf-8") == "3.0.0\n"
