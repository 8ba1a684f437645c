"""Data models for artifact synchronization."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# Decision taken for one destination given its three hashes
SyncAction = Literal["install", "unchanged", "update", "skip", "backup-and-update"]

# What actually happened (or would happen, in a dry run) to one artifact
SyncOutcome = Literal[
    "installed",
    "unchanged",
    "updated",
    "skipped",
    "blocked",
    "rejected",
    "failed",
]

SyncIssueType = Literal[
    "integrity-mismatch",
    "symlink-blocked",
    "parse-failure",
    "path-traversal-rejected",
    "filesystem-error",
    "not-regular-file",
]

HealthState = Literal["healthy", "missing", "corrupted", "partial"]

RepairStrategy = Literal["none", "resync"]


@dataclass(frozen=True)
class SyncSuffixes:
    """Reserved sibling suffixes used next to every destination file."""

    backup: str
    pending: str


@dataclass(frozen=True)
class SyncIssue:
    """A reportable problem attached to a single artifact."""

    issue_type: SyncIssueType
    path: Path
    message: str
    # OS error code for filesystem errors, None otherwise
    errno: int | None = None


@dataclass(frozen=True)
class FileSyncResult:
    """Result of synchronizing one artifact."""

    source: Path
    dest: Path
    outcome: SyncOutcome
    action: SyncAction | None
    dry_run: bool
    issue: SyncIssue | None = None

    @property
    def changed_destination(self) -> bool:
        """True when the destination itself was (or would be) installed or overwritten."""
        return self.outcome in ("installed", "updated")


@dataclass(frozen=True)
class SyncReport:
    """Aggregate result of a synchronization run."""

    success: bool
    message: str
    results: list[FileSyncResult] = field(default_factory=list)
    version: str | None = None
    dry_run: bool = False

    @property
    def issues(self) -> list[SyncIssue]:
        return [r.issue for r in self.results if r.issue is not None]

    @property
    def failed(self) -> list[FileSyncResult]:
        return [r for r in self.results if r.outcome == "failed"]

    def count(self, outcome: SyncOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)


@dataclass(frozen=True)
class InstallState:
    """State stored in state.toml under the install root."""

    version: str
    components: list[str]
    synced_at: str


@dataclass(frozen=True)
class Diagnosis:
    """Read-only health classification of an install root."""

    state: HealthState
    issues: list[str]
    version: str | None
    pending_updates: list[Path]
    suggestion: str

    @property
    def is_healthy(self) -> bool:
        return self.state == "healthy"


@dataclass(frozen=True)
class RepairResult:
    """Result of a repair request."""

    issues: list[str]
    strategy: RepairStrategy
    applied: bool
    needs_confirmation: bool
    message: str
    sync_report: SyncReport | None = None


@dataclass(frozen=True)
class RevertResult:
    """Result of reverting synchronized files back to their pristine backups."""

    restored: list[Path]
    removed_pending: list[Path]
    blocked: list[Path]
    # Destinations that differ from their backup and were not forced
    kept: list[Path]
    dry_run: bool
