"""Sync engine orchestration.

This module provides the SyncEngine class that drives one sync run end to
end: load the ledger, detect changed pages, stamp their property blocks,
write them back, record release notes and commit the ledger.

The run is a small state machine:

    Idle -> DetectingChanges -> ProcessingPages -> CommittingLedger -> Done
                       \\______________\\__________________\\____-> Failed

Per-page problems (unreadable or binary pages, write failures) are
collected in the SyncResult and never stop the run. Backend and ledger
failures are fatal: the engine moves to Failed and re-raises, and the
ledger on disk keeps its previous content.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, UTC
from typing import Callable, Dict, List, Optional, Tuple

from svlmd.errors import SvlmdError
from svlmd.git_integration.git_repository import GitRepository
from svlmd.pages.errors import PageError
from svlmd.pages.models import Page
from svlmd.pages.store import PageStore, fingerprint_bytes
from svlmd.sync.change_detector import ChangeDetector
from svlmd.sync.contributors import ContributorRegistry
from svlmd.sync.errors import ReleaseNotesError
from svlmd.sync.ledger import LedgerManager
from svlmd.sync.models import (
    DELETED_FINGERPRINT,
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
from svlmd.sync.release_notes import ReleaseNotes

logger = logging.getLogger(__name__)

# (path, parsed page, failure reason)
PageLoad = Tuple[str, Optional[Page], Optional[str]]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SyncEngine:
    """Runs the page metadata sync for one project.

    All collaborators can be injected for testing; by default they are
    built from the project root.

    Example:
        >>> engine = SyncEngine("/path/to/project", "alice@example.com")
        >>> result = engine.run()
        >>> print(f"Updated {len(result.updated)} page(s)")
    """

    def __init__(
        self,
        root: str,
        contributor_identifier: str,
        store: Optional[PageStore] = None,
        repository: Optional[GitRepository] = None,
        change_detector: Optional[ChangeDetector] = None,
        registry: Optional[ContributorRegistry] = None,
        release_notes: Optional[ReleaseNotes] = None,
        ledger_path: Optional[str] = None,
        version_policy: VersionPolicy = VersionPolicy.PER_RUN,
        record_release_notes: bool = True,
        max_workers: int = 1,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize sync engine.

        Args:
            root: Project root directory
            contributor_identifier: Identifier of the contributor running the sync
            store: Page store (optional)
            repository: Git backend (optional)
            change_detector: Change detector (optional)
            registry: Contributor registry (optional, empty by default)
            release_notes: Release notes writer (optional)
            ledger_path: Ledger file (defaults to <root>/.svlmd/ledger.yaml)
            version_policy: Whether the counter advances per run or per page
            record_release_notes: Update the release page during full syncs
            max_workers: Threads used to read and parse pages (1 = sequential)
            clock: Source of the current time
        """
        self.root = os.path.abspath(root)
        self.contributor_identifier = contributor_identifier
        self.store = store or PageStore(self.root)
        self.repository = repository or GitRepository(self.root)
        self.change_detector = change_detector or ChangeDetector(self.repository, self.store)
        self.registry = registry if registry is not None else ContributorRegistry()
        self.release_notes = release_notes or ReleaseNotes(self.store, self.root)
        self.ledger_path = ledger_path or os.path.join(self.root, LedgerManager.DEFAULT_LEDGER_FILE)
        self.version_policy = version_policy
        self.record_release_notes = record_release_notes
        self.max_workers = max(1, max_workers)
        self.clock = clock
        self._phase = SyncPhase.IDLE

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    def _transition(self, phase: SyncPhase, result: SyncResult) -> None:
        logger.debug(f"Sync phase: {self._phase.value} -> {phase.value}")
        self._phase = phase
        result.phase = phase

    def run(self, version_only: bool = False) -> SyncResult:
        """Execute one sync run.

        Args:
            version_only: Only record the change set in the release notes;
                page properties and the ledger are left untouched

        Returns:
            SyncResult describing changed, updated and failed pages

        Raises:
            BackendError: If change detection fails (nothing is written)
            LedgerError, LedgerFilesystemError: If the ledger cannot be read
                or committed
        """
        result = SyncResult()
        self._phase = SyncPhase.IDLE

        try:
            ledger = LedgerManager.load(self.ledger_path)
            logger.info(
                f"Ledger at version {ledger.version}, "
                f"last synced {ledger.synced_at or 'never'}"
            )

            self._transition(SyncPhase.DETECTING_CHANGES, result)
            changes = self.change_detector.detect_changes(ledger.reference, ledger.fingerprints)
            head = self.repository.get_head_sha()
            result.changed = changes.changed
            result.added = list(changes.added)
            result.deleted = list(changes.deleted)

            if version_only:
                self._record_release_notes(changes, result, fingerprints=None)
                self._transition(SyncPhase.DONE, result)
                return result

            self._transition(SyncPhase.PROCESSING_PAGES, result)
            fingerprints = dict(ledger.fingerprints)
            counter = self._process_pages(changes, ledger, fingerprints, result)

            if self.record_release_notes:
                self._record_release_notes(changes, result, fingerprints)

            if result.updated or not changes.changed:
                self._transition(SyncPhase.COMMITTING_LEDGER, result)
                for path in changes.deleted:
                    fingerprints[path] = DELETED_FINGERPRINT
                self._prune_tombstones(fingerprints, head)
                new_ledger = SyncLedger(
                    reference=head,
                    version=counter,
                    synced_at=result.stamp.timestamp,
                    fingerprints=fingerprints,
                )
                LedgerManager.save(self.ledger_path, new_ledger)
                result.ledger_committed = True
                logger.info(f"Ledger advanced to version {counter}")
            else:
                message = "No page could be updated - ledger not advanced"
                logger.warning(message)
                result.warnings.append(message)

            self._transition(SyncPhase.DONE, result)
            return result

        except SvlmdError as e:
            logger.error(f"Sync failed during {self._phase.value}: {e}")
            self._transition(SyncPhase.FAILED, result)
            raise

    def _prune_tombstones(self, fingerprints: Dict[str, str], head: Optional[str]) -> None:
        """Drop tombstones for paths that no longer exist at the new reference.

        A deletion committed at `head` can never show up in a later diff, so
        its tombstone has nothing left to suppress.
        """
        tombstones = [path for path, value in fingerprints.items() if value == DELETED_FINGERPRINT]
        if not tombstones or head is None:
            return
        present = set(self.repository.paths_at(head, self.store.pages_dir))
        for path in tombstones:
            if path not in present:
                del fingerprints[path]
                logger.debug(f"Deletion of {path} is committed - tombstone dropped")

    def _resolve_contributor(self) -> ContributorRecord:
        record = self.registry.lookup(self.contributor_identifier)
        if record is None:
            logger.warning(
                f"Contributor '{self.contributor_identifier}' is not registered - "
                f"recording the raw identifier"
            )
            return ContributorRecord.anonymous(self.contributor_identifier)
        return record

    def _process_pages(
        self,
        changes: ChangeSet,
        ledger: SyncLedger,
        fingerprints: Dict[str, str],
        result: SyncResult,
    ) -> int:
        """Stamp and write every changed page.

        Returns:
            The version counter to commit
        """
        contributor = self._resolve_contributor()
        result.contributor = contributor

        moment = self.clock()
        base = ledger.version
        stamp = VersionStamp.following(base, moment)
        result.stamp = stamp
        counter = base

        # Phase one: read and parse (independent, may run in parallel)
        loads = self._load_pages(changes.changed)

        # Phase two: reconcile and write, single-threaded, in path order
        for path, page, reason in loads:
            if page is None:
                logger.warning(f"Skipping {path}: {reason}")
                result.failed.append(PageFailure(path, reason))
                fingerprints.pop(path, None)
                continue

            if self.version_policy is VersionPolicy.PER_PAGE:
                stamp = VersionStamp.following(counter, moment)

            properties = PropertyReconciler.reconcile(page.properties, contributor, stamp)
            updated = page.with_properties(properties)

            try:
                data = self.store.write(updated)
            except PageError as e:
                logger.warning(f"Failed to write {path}: {e}")
                result.failed.append(PageFailure(path, str(e)))
                fingerprints.pop(path, None)
                continue

            fingerprints[path] = fingerprint_bytes(data)
            result.updated.append(path)
            counter = stamp.counter
            logger.info(f"Updated {path} (version {stamp.counter})")

        # The ledger advances at least once per completed run
        return max(counter, base + 1)

    def _load_pages(self, paths: List[str]) -> List[PageLoad]:
        if self.max_workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                loads = list(pool.map(self._load_page, paths))
        else:
            loads = [self._load_page(path) for path in paths]
        return sorted(loads, key=lambda load: load[0])

    def _load_page(self, path: str) -> PageLoad:
        try:
            return path, self.store.read(path), None
        except PageError as e:
            return path, None, str(e)

    def _record_release_notes(
        self,
        changes: ChangeSet,
        result: SyncResult,
        fingerprints: Optional[Dict[str, str]],
    ) -> None:
        """Record the change set on the release page; failures become warnings."""
        try:
            written = self.release_notes.record(changes, today=self.clock().date())
        except (ReleaseNotesError, PageError) as e:
            logger.warning(f"Release notes not updated: {e}")
            result.warnings.append(f"Release notes not updated: {e}")
            return

        result.written.extend(written)
        if fingerprints is not None:
            for path in written:
                digest = self.store.fingerprint(path)
                if digest is not None:
                    fingerprints[path] = digest
