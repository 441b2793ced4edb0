"""Change detection for page sync.

This module implements git-based change detection. It asks the git backend
which files changed between the ledger's reference commit and the working
tree, keeps the page files among them, and drops pages the previous sync
already accounts for:

- pages whose content hash equals the ledger fingerprint (the engine wrote
  exactly this content and nobody has touched it since)
- pages whose only difference from the reference commit is in the
  sync-owned `last-modified-*` properties
- deletions that were already reported by an earlier run

Without these filters, a rerun right after a sync would report every page
the sync just stamped as changed again.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence

from svlmd.git_integration.git_repository import GitRepository
from svlmd.git_integration.models import PathStatus
from svlmd.pages.errors import PageError
from svlmd.pages.parser import PageParser
from svlmd.pages.store import PageStore
from svlmd.sync.models import DELETED_FINGERPRINT, ChangeSet
from svlmd.sync.reconciler import PropertyReconciler

logger = logging.getLogger(__name__)

DEFAULT_PAGE_EXTENSIONS = (".md",)


class ChangeDetector:
    """Lists pages modified since the last recorded sync point.

    Example:
        >>> detector = ChangeDetector(GitRepository(root), PageStore(root))
        >>> changes = detector.detect_changes(ledger.reference, ledger.fingerprints)
        >>> print(f"Changed: {len(changes.changed)}")
    """

    def __init__(
        self,
        repository: GitRepository,
        store: PageStore,
        extensions: Sequence[str] = DEFAULT_PAGE_EXTENSIONS,
    ):
        """Initialize change detector.

        Args:
            repository: Git backend for the project
            store: Page store (gives the pages directory and file access)
            extensions: Recognized page file extensions
        """
        self.repository = repository
        self.store = store
        self.extensions = tuple(ext.lower() for ext in extensions)

    def is_page_path(self, path: str) -> bool:
        """Return True if `path` is a page file under the pages directory."""
        prefix = f"{self.store.pages_dir}/"
        return path.startswith(prefix) and path.lower().endswith(self.extensions)

    def detect_changes(
        self,
        since_ref: Optional[str],
        fingerprints: Optional[Dict[str, str]] = None,
    ) -> ChangeSet:
        """Detect pages added, modified or deleted since `since_ref`.

        On the first sync (no reference point), or when the reference commit
        no longer exists, every existing page file is treated as added.

        Args:
            since_ref: Commit SHA of the last sync, or None
            fingerprints: Ledger fingerprints from the last sync

        Returns:
            ChangeSet with sorted path lists

        Raises:
            BackendError: If any git query fails
        """
        fingerprints = fingerprints or {}
        self.repository.ensure_repository()

        if since_ref and not self.repository.ref_exists(since_ref):
            logger.warning(
                f"Last synced commit {since_ref[:8]} is not in the repository "
                f"(history rewritten?) - treating all pages as changed"
            )
            since_ref = None

        added = set()
        modified = set()
        deleted = set()

        if since_ref is None:
            logger.info("No reference point - treating every page as changed")
            candidates = self.repository.tracked_paths(self.store.pages_dir)
            candidates += self.repository.untracked_paths(self.store.pages_dir)
            added.update(path for path in candidates if self.is_page_path(path) and self.store.exists(path))
        else:
            for change in self.repository.changed_paths(since_ref, self.store.pages_dir):
                if not self.is_page_path(change.path):
                    continue
                if change.status is PathStatus.ADDED:
                    added.add(change.path)
                elif change.status is PathStatus.MODIFIED:
                    modified.add(change.path)
                else:
                    deleted.add(change.path)
            for path in self.repository.untracked_paths(self.store.pages_dir):
                if self.is_page_path(path):
                    added.add(path)

        # A path deleted and re-added (rename back) exists again
        deleted -= added | modified
        deleted = {path for path in deleted if not self.store.exists(path)}

        added = set(self._unsynced(added, fingerprints, None))
        modified = set(self._unsynced(modified, fingerprints, since_ref))
        deleted = {path for path in deleted if fingerprints.get(path) != DELETED_FINGERPRINT}

        result = ChangeSet(
            added=sorted(added),
            modified=sorted(modified),
            deleted=sorted(deleted),
        )
        logger.info(
            f"Detected {len(result.added)} added, {len(result.modified)} modified, "
            f"{len(result.deleted)} deleted page(s)"
        )
        return result

    def _unsynced(
        self,
        paths: Iterable[str],
        fingerprints: Dict[str, str],
        since_ref: Optional[str],
    ) -> Iterable[str]:
        """Yield the paths that carry changes the last sync does not account for."""
        for path in paths:
            digest = self.store.fingerprint(path)
            if digest is not None and fingerprints.get(path) == digest:
                logger.debug(f"{path}: unchanged since last sync")
                continue
            if since_ref and self._is_metadata_only_change(path, since_ref):
                logger.debug(f"{path}: only sync metadata changed")
                continue
            yield path

    def _is_metadata_only_change(self, path: str, since_ref: str) -> bool:
        """Return True if `path` differs from `since_ref` only in sync-owned properties."""
        previous = self.repository.show_file(since_ref, path)
        if previous is None:
            return False
        try:
            old_page = PageParser.parse(path, previous)
            new_page = self.store.read(path)
        except PageError:
            # Let the engine report the page
            return False

        if old_page.content != new_page.content:
            return False
        return (
            PropertyReconciler.user_properties(old_page.properties)
            == PropertyReconciler.user_properties(new_page.properties)
        )
