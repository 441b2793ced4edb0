"""Property reconciliation for synced pages.

The sync engine owns a small, fixed set of page properties, all sharing the
reserved `last-modified-` prefix. Everything else in a page's property block
belongs to its authors and is passed through untouched.
"""

from typing import Dict, Mapping

from svlmd.sync.models import ContributorRecord, VersionStamp

SYSTEM_KEY_PREFIX = "last-modified-"

LAST_MODIFIED_BY = "last-modified-by"
LAST_MODIFIED_VERSION = "last-modified-version"
LAST_MODIFIED_AT = "last-modified-at"

# Order in which missing system keys are appended
SYSTEM_KEYS = (LAST_MODIFIED_BY, LAST_MODIFIED_VERSION, LAST_MODIFIED_AT)


class PropertyReconciler:
    """Computes the property set of a page after a sync.

    User keys keep their values and relative order. System keys are
    upserted: a key already present keeps its position, a missing key is
    appended after all existing keys. Reconciling twice with the same
    contributor and stamp gives the same result.

    Example:
        >>> PropertyReconciler.reconcile(
        ...     {"title": "Foo"},
        ...     ContributorRecord("Alice", "alice@example.com"),
        ...     VersionStamp(1, "2024-01-15T10:30:00Z"),
        ... )
        {'title': 'Foo', 'last-modified-by': 'alice@example.com',
         'last-modified-version': '1', 'last-modified-at': '2024-01-15T10:30:00Z'}
    """

    @staticmethod
    def is_system_key(key: str) -> bool:
        """Return True if `key` is in the namespace owned by the sync engine."""
        return key.startswith(SYSTEM_KEY_PREFIX)

    @staticmethod
    def system_values(contributor: ContributorRecord, stamp: VersionStamp) -> Dict[str, str]:
        return {
            LAST_MODIFIED_BY: contributor.identifier,
            LAST_MODIFIED_VERSION: str(stamp.counter),
            LAST_MODIFIED_AT: stamp.timestamp,
        }

    @classmethod
    def reconcile(
        cls,
        old_properties: Mapping[str, str],
        contributor: ContributorRecord,
        stamp: VersionStamp,
    ) -> Dict[str, str]:
        """Return the new property mapping for a page.

        Args:
            old_properties: Current ordered properties of the page
            contributor: Contributor performing the sync
            stamp: Version stamp of the sync run

        Returns:
            New ordered property mapping
        """
        new_properties = dict(old_properties)
        # dict assignment keeps the position of existing keys
        new_properties.update(cls.system_values(contributor, stamp))
        return new_properties

    @classmethod
    def user_properties(cls, properties: Mapping[str, str]) -> Dict[str, str]:
        """Return only the user-owned properties, in order."""
        return {key: value for key, value in properties.items() if not cls.is_system_key(key)}
