"""Data models for sync operations.

This module defines the data models shared by the sync components: the
version stamp applied to pages, contributor records, the persisted sync
ledger, the change set reported by change detection and the per-run
SyncResult. All models use dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Dict, List, Optional

# Fingerprint recorded for pages whose deletion has already been reported
DELETED_FINGERPRINT = "deleted"


class SyncPhase(Enum):
    """States of the SyncEngine state machine.

    Idle -> DetectingChanges -> ProcessingPages -> CommittingLedger -> Done,
    with Failed reachable from any non-idle state on a fatal error.
    """
    IDLE = "idle"
    DETECTING_CHANGES = "detecting_changes"
    PROCESSING_PAGES = "processing_pages"
    COMMITTING_LEDGER = "committing_ledger"
    DONE = "done"
    FAILED = "failed"


class VersionPolicy(Enum):
    """How the version counter advances during a sync run.

    - PER_RUN: all pages of a run share one counter value (ledger + 1)
    - PER_PAGE: each successfully processed page takes the next value
    """
    PER_RUN = "per-run"
    PER_PAGE = "per-page"


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC timestamp with second precision."""
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class VersionStamp:
    """Version metadata applied to every page touched by a sync run.

    Attributes:
        counter: Project-wide sync counter
        timestamp: ISO 8601 UTC timestamp of the run

    Example:
        >>> VersionStamp(counter=1, timestamp="2024-01-15T10:30:00Z")
    """
    counter: int
    timestamp: str

    @classmethod
    def following(cls, counter: int, moment: datetime) -> "VersionStamp":
        """Build the stamp that follows `counter`, taken at `moment`."""
        return cls(counter=counter + 1, timestamp=format_timestamp(moment))


@dataclass(frozen=True)
class ContributorRecord:
    """A known (or anonymous) contributor.

    Attributes:
        name: Display name, also the title of the contributor's page
        identifier: Stable unique identifier (e-mail, or the name when no
            e-mail is configured)
        registered: False for contributors missing from the registry
    """
    name: str
    identifier: str
    registered: bool = True

    @classmethod
    def anonymous(cls, identifier: str) -> "ContributorRecord":
        """Record for an identifier the registry does not know."""
        return cls(name=identifier, identifier=identifier, registered=False)


@dataclass
class SyncLedger:
    """Project-level sync state tracked in .svlmd/ledger.yaml.

    Attributes:
        reference: Commit SHA the last sync corresponds to (None if never
            synced or the repository had no commits)
        version: Version counter of the last completed sync (0 if never)
        synced_at: ISO 8601 timestamp of the last completed sync
        fingerprints: Dict mapping page path to the sha256 of the content the
            engine last wrote, or DELETED_FINGERPRINT for reported deletions

    Example:
        >>> ledger = SyncLedger()  # Never synced
        >>> ledger = SyncLedger(reference="a1b2c3", version=4)
    """
    reference: Optional[str] = None
    version: int = 0
    synced_at: Optional[str] = None
    fingerprints: Dict[str, str] = field(default_factory=dict)


@dataclass
class ChangeSet:
    """Pages changed since the ledger's reference point.

    Attributes:
        added: New page paths (untracked, added, or all pages on first sync)
        modified: Page paths modified since the reference point
        deleted: Page paths deleted since the reference point
    """
    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    @property
    def changed(self) -> List[str]:
        """Pages that exist and need processing, in path order."""
        return sorted(set(self.added) | set(self.modified))

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.deleted)


@dataclass(frozen=True)
class PageFailure:
    """A page that could not be processed.

    Attributes:
        path: Page path
        reason: Human-readable failure reason
    """
    path: str
    reason: str


@dataclass
class SyncResult:
    """Outcome of one sync run, reported to the caller then discarded.

    Attributes:
        changed: Page paths detected as changed (added or modified)
        updated: Page paths successfully stamped and written
        failed: Pages that failed, with reasons
        deleted: Page paths deleted since the last sync
        added: Subset of `changed` that are new pages
        stamp: Version stamp of the run (None if the run failed early)
        contributor: Contributor the pages were stamped for
        phase: Final state of the engine
        ledger_committed: True if the ledger was advanced
        written: Extra engine-owned pages written (release notes)
        warnings: Non-fatal problems worth reporting
    """
    changed: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    failed: List[PageFailure] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    stamp: Optional[VersionStamp] = None
    contributor: Optional[ContributorRecord] = None
    phase: SyncPhase = SyncPhase.IDLE
    ledger_committed: bool = False
    written: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    @property
    def failed_paths(self) -> List[str]:
        return [failure.path for failure in self.failed]
