"""Sync engine: change detection, property reconciliation and the ledger."""

from svlmd.sync.change_detector import ChangeDetector
from svlmd.sync.contributors import ContributorRegistry
from svlmd.sync.engine import SyncEngine
from svlmd.sync.errors import (
    ContributorRegistryError,
    LedgerError,
    LedgerFilesystemError,
    ReleaseNotesError,
    SyncEngineError,
)
from svlmd.sync.ledger import LedgerManager
from svlmd.sync.models import (
    ChangeSet,
    ContributorRecord,
    PageFailure,
    SyncLedger,
    SyncPhase,
    SyncResult,
    VersionPolicy,
    VersionStamp,
)
from svlmd.sync.reconciler import PropertyReconciler
from svlmd.sync.release_notes import ProjectVersion, ReleaseNotes

__all__ = [
    # Errors
    'ContributorRegistryError',
    'LedgerError',
    'LedgerFilesystemError',
    'ReleaseNotesError',
    'SyncEngineError',
    # Models
    'ChangeSet',
    'ContributorRecord',
    'PageFailure',
    'ProjectVersion',
    'SyncLedger',
    'SyncPhase',
    'SyncResult',
    'VersionPolicy',
    'VersionStamp',
    # Components
    'ChangeDetector',
    'ContributorRegistry',
    'LedgerManager',
    'PropertyReconciler',
    'ReleaseNotes',
    'SyncEngine',
]
