"""Contributor registry.

This module keeps track of the people who sync pages. The registry is
append-only: records are never removed, and re-registering an identifier
only replaces its display name while keeping its first-seen position.

Registry file structure (.svlmd/contributors.yaml):
    contributors:
      - identifier: "alice@example.com"
        name: "Alice"
"""

import logging
from typing import Dict, Iterator, List, Optional

import yaml

from svlmd.pages.store import write_atomic
from svlmd.sync.errors import ContributorRegistryError
from svlmd.sync.models import ContributorRecord

logger = logging.getLogger(__name__)


class ContributorRegistry:
    """Ordered, append-only set of ContributorRecord keyed by identifier.

    Example:
        >>> registry = ContributorRegistry()
        >>> registry.register("Alice", "alice@example.com")
        >>> registry.lookup("alice@example.com").name
        'Alice'
        >>> registry.lookup("bob@example.com") is None
        True
    """

    DEFAULT_REGISTRY_FILE = '.svlmd/contributors.yaml'

    def __init__(self, records: Optional[List[ContributorRecord]] = None):
        self._records: List[ContributorRecord] = []
        self._index: Dict[str, int] = {}
        for record in records or []:
            self.register(record.name, record.identifier)

    def register(self, name: str, identifier: str) -> ContributorRecord:
        """Register a contributor, or rename an already known one.

        Args:
            name: Display name
            identifier: Stable unique identifier (e-mail or name)

        Returns:
            The stored record

        Raises:
            ContributorRegistryError: If name or identifier is empty
        """
        name = (name or "").strip()
        identifier = (identifier or "").strip()
        if not identifier:
            raise ContributorRegistryError("Contributor identifier cannot be empty")
        if not name:
            raise ContributorRegistryError(f"Contributor name cannot be empty (identifier: {identifier})")

        record = ContributorRecord(name=name, identifier=identifier)
        position = self._index.get(identifier)
        if position is None:
            self._index[identifier] = len(self._records)
            self._records.append(record)
            logger.debug(f"Registered contributor {identifier}")
        elif self._records[position].name != name:
            self._records[position] = record
            logger.debug(f"Renamed contributor {identifier} to {name}")
        return self._records[self._index[identifier]]

    def lookup(self, identifier: str) -> Optional[ContributorRecord]:
        """Return the record for `identifier`, or None if unknown."""
        position = self._index.get((identifier or "").strip())
        if position is None:
            return None
        return self._records[position]

    @property
    def records(self) -> List[ContributorRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ContributorRecord]:
        return iter(list(self._records))

    @classmethod
    def load(cls, registry_path: str) -> "ContributorRegistry":
        """Load the registry from a YAML file.

        A missing or empty file yields an empty registry.

        Raises:
            ContributorRegistryError: If the file cannot be read or is malformed
        """
        try:
            with open(registry_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return cls()
        except OSError as e:
            raise ContributorRegistryError(str(e), registry_path)

        if not content.strip():
            return cls()

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ContributorRegistryError(f"Invalid YAML syntax: {e}", registry_path)

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ContributorRegistryError(
                f"Registry must be a YAML dictionary, got {type(data).__name__}",
                registry_path,
            )

        entries = data.get('contributors') or []
        if not isinstance(entries, list):
            raise ContributorRegistryError(
                f"Field 'contributors' must be a list, got {type(entries).__name__}",
                registry_path,
            )

        registry = cls()
        for entry in entries:
            if not isinstance(entry, dict):
                raise ContributorRegistryError(
                    f"Contributor entries must be dictionaries, got {type(entry).__name__}",
                    registry_path,
                )
            registry.register(str(entry.get('name') or ''), str(entry.get('identifier') or ''))
        return registry

    def save(self, registry_path: str) -> None:
        """Atomically save the registry to a YAML file.

        Raises:
            ContributorRegistryError: If the file cannot be written
        """
        data = {
            'contributors': [
                {'identifier': record.identifier, 'name': record.name}
                for record in self._records
            ]
        }
        yaml_str = yaml.safe_dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        try:
            write_atomic(registry_path, yaml_str.encode('utf-8'))
        except OSError as e:
            raise ContributorRegistryError(f"Failed to write registry: {e}", registry_path)
