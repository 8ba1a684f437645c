"""Health diagnosis and repair for an install root."""

import logging
from pathlib import Path

import tomli

from golem.artifacts.models import Diagnosis, HealthState, RepairResult, SyncSuffixes
from golem.artifacts.paths import (
    DEFAULT_REQUIRED_COMPONENTS,
    DEFAULT_SUFFIXES,
    get_version_marker_path,
)
from golem.artifacts.revert import find_pending_updates
from golem.artifacts.state import get_state_path, load_install_state
from golem.artifacts.sync import sync_distribution

logger = logging.getLogger(__name__)


def _read_version_marker(install_root: Path) -> tuple[str | None, str | None]:
    """Read the version marker, returning (version, problem).

    problem is "missing" when the marker is absent and "corrupted" when it is
    empty or unreadable.
    """
    marker = get_version_marker_path(install_root)
    if not marker.exists() and not marker.is_symlink():
        return None, "missing"
    try:
        version = marker.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read version marker %s: %s", marker, e)
        return None, "corrupted"
    if not version:
        return None, "corrupted"
    return version, None


def _required_components(
    install_root: Path, required_components: list[str] | None, issues: list[str]
) -> list[str]:
    if required_components is not None:
        return required_components
    try:
        state = load_install_state(install_root)
    except (OSError, tomli.TOMLDecodeError) as e:
        issues.append(f"{get_state_path(install_root).name} is unreadable: {e}")
        state = None
    if state is not None and state.components:
        return state.components
    return list(DEFAULT_REQUIRED_COMPONENTS)


def suggest_fix(state: HealthState) -> str:
    """Map a health state to the command that resolves it."""
    if state == "missing":
        return "Run: golem sync --source <distribution> to install"
    if state == "corrupted":
        return "Version marker is corrupted. Run: golem repair --confirm --source <distribution>"
    if state == "partial":
        return "Partial installation detected. Run: golem repair --confirm --source <distribution>"
    return "No action needed"


def diagnose(
    install_root: Path,
    required_components: list[str] | None = None,
    suffixes: SyncSuffixes = DEFAULT_SUFFIXES,
) -> Diagnosis:
    """Classify the health of an install root without modifying it.

    Classification:
    - missing: the install root does not exist
    - corrupted: the version marker is empty or unreadable
    - partial: the version marker or a required component is absent
    - healthy: otherwise

    Required components come from required_components when given, else from
    the components recorded in state.toml, else the defaults. Pending updates
    left by earlier syncs are listed for information and never affect the state.

    Args:
        install_root: Install root to inspect
        required_components: Override for the component paths that must exist
        suffixes: Reserved suffixes used to find pending updates

    Returns:
        Diagnosis with the state, human-readable issues and a suggested fix
    """
    if not install_root.exists():
        return Diagnosis(
            state="missing",
            issues=[f"Install root {install_root} does not exist"],
            version=None,
            pending_updates=[],
            suggestion=suggest_fix("missing"),
        )

    issues: list[str] = []
    version, marker_problem = _read_version_marker(install_root)
    if marker_problem == "missing":
        issues.append("Version marker is missing")
    elif marker_problem == "corrupted":
        issues.append("Version marker is empty or unreadable")

    for name in _required_components(install_root, required_components, issues):
        if not (install_root / name).exists():
            issues.append(f"Required component '{name}' is missing")

    state: HealthState
    if marker_problem == "corrupted":
        state = "corrupted"
    elif issues:
        state = "partial"
    else:
        state = "healthy"

    pending = find_pending_updates(install_root, suffixes)
    suggestion = suggest_fix(state)
    if state == "healthy" and pending:
        suggestion = f"Review {len(pending)} pending update(s) and merge them by hand"

    return Diagnosis(
        state=state,
        issues=issues,
        version=version,
        pending_updates=pending,
        suggestion=suggestion,
    )


def repair(
    install_root: Path,
    *,
    dry_run: bool,
    confirmed: bool,
    source_root: Path | None,
    home_dir: Path,
) -> RepairResult:
    """Repair an unhealthy install root by re-synchronizing the distribution.

    Nothing is modified unless confirmed is True and dry_run is False. The
    re-sync goes through the normal synchronization pipeline, so user edits
    are still preserved as pending updates rather than overwritten.

    Raises:
        ConfigError: if the distribution's golem.toml is invalid
    """
    diagnosis = diagnose(install_root)
    if diagnosis.is_healthy:
        return RepairResult(
            issues=[],
            strategy="none",
            applied=False,
            needs_confirmation=False,
            message="No issues detected. Install is healthy.",
        )

    issues = diagnosis.issues
    if dry_run:
        return RepairResult(
            issues=issues,
            strategy="resync",
            applied=False,
            needs_confirmation=False,
            message=f"Found {len(issues)} issue(s). Would re-sync {install_root}.",
        )

    if not confirmed:
        return RepairResult(
            issues=issues,
            strategy="resync",
            applied=False,
            needs_confirmation=True,
            message="Repair requires confirmation. Run with --confirm to proceed.",
        )

    if source_root is None:
        return RepairResult(
            issues=issues,
            strategy="resync",
            applied=False,
            needs_confirmation=False,
            message="No distribution to re-sync from. Pass --source or set GOLEM_SOURCE.",
        )

    logger.info("Repairing %s from %s", install_root, source_root)
    report = sync_distribution(source_root, install_root, dry_run=False, home_dir=home_dir)
    return RepairResult(
        issues=issues,
        strategy="resync",
        applied=report.success,
        needs_confirmation=False,
        message=report.message,
        sync_report=report,
    )
