"""Sync ledger loading and saving.

This module handles the persisted ledger that records the last completed
sync: the commit it corresponds to, the version counter and the page
fingerprints. The ledger is read at the start of every sync and replaced
atomically at the end of a successful one, so a crash mid-write leaves the
previous ledger intact.

The schema is additive: keys unknown to this version are ignored on load.
"""

import logging
from typing import Any, Dict

import yaml

from svlmd.pages.store import write_atomic
from svlmd.sync.errors import LedgerError, LedgerFilesystemError
from svlmd.sync.models import SyncLedger

logger = logging.getLogger(__name__)


class LedgerManager:
    """Handles ledger file loading, validation, and atomic saving.

    Ledger file structure:
        reference: "3f2a..."            # commit sha, or null
        version: 4
        synced_at: "2024-01-15T10:30:00Z"
        fingerprints:
          pages/foo.md: "9b1c..."

    If the file is missing or empty, a fresh ledger (version 0, no
    reference point) is returned.
    """

    DEFAULT_LEDGER_FILE = '.svlmd/ledger.yaml'

    @classmethod
    def load(cls, ledger_path: str) -> SyncLedger:
        """Load and parse the ledger from a YAML file.

        Args:
            ledger_path: Path to the YAML ledger file

        Returns:
            SyncLedger object

        Raises:
            LedgerFilesystemError: If the file exists but cannot be read
            LedgerError: If the file content is invalid
        """
        try:
            with open(ledger_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            logger.debug(f"No ledger at {ledger_path}, starting fresh")
            return SyncLedger()
        except PermissionError:
            raise LedgerFilesystemError(ledger_path, 'read', 'Permission denied')
        except OSError as e:
            raise LedgerFilesystemError(ledger_path, 'read', str(e))

        if not content.strip():
            return SyncLedger()

        try:
            ledger_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise LedgerError(f"Invalid YAML syntax: {str(e)}")

        if ledger_dict is None:
            return SyncLedger()

        if not isinstance(ledger_dict, dict):
            raise LedgerError(
                f"Ledger must be a YAML dictionary, got {type(ledger_dict).__name__}"
            )

        return cls._parse_ledger(ledger_dict)

    @classmethod
    def save(cls, ledger_path: str, ledger: SyncLedger) -> None:
        """Atomically save the ledger to a YAML file.

        Args:
            ledger_path: Path to the YAML ledger file
            ledger: SyncLedger to save

        Raises:
            LedgerFilesystemError: If the file cannot be written
        """
        ledger_dict = {
            'reference': ledger.reference,
            'version': ledger.version,
            'synced_at': ledger.synced_at,
            'fingerprints': dict(sorted(ledger.fingerprints.items())),
        }

        yaml_str = yaml.safe_dump(
            ledger_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        try:
            write_atomic(ledger_path, yaml_str.encode('utf-8'))
        except PermissionError:
            raise LedgerFilesystemError(ledger_path, 'write', 'Permission denied')
        except OSError as e:
            raise LedgerFilesystemError(ledger_path, 'write', str(e))

        logger.debug(f"Saved ledger version {ledger.version} to {ledger_path}")

    @classmethod
    def _parse_ledger(cls, ledger_dict: Dict[str, Any]) -> SyncLedger:
        """Parse and validate a ledger dictionary.

        Raises:
            LedgerError: If a known field has the wrong type
        """
        reference = ledger_dict.get('reference')
        if reference is not None:
            if not isinstance(reference, str):
                raise LedgerError(
                    f"Field 'reference' must be a string (commit id), got {type(reference).__name__}",
                    'reference'
                )
            reference = reference.strip() or None

        version = ledger_dict.get('version', 0)
        if version is None:
            version = 0
        if isinstance(version, bool) or not isinstance(version, int):
            raise LedgerError(
                f"Field 'version' must be an integer, got {type(version).__name__}",
                'version'
            )
        if version < 0:
            raise LedgerError("Field 'version' cannot be negative", 'version')

        synced_at = ledger_dict.get('synced_at')
        if synced_at is not None and not isinstance(synced_at, str):
            raise LedgerError(
                f"Field 'synced_at' must be a string (ISO 8601 timestamp), got {type(synced_at).__name__}",
                'synced_at'
            )

        fingerprints = ledger_dict.get('fingerprints') or {}
        if not isinstance(fingerprints, dict):
            raise LedgerError(
                f"Field 'fingerprints' must be a dictionary, got {type(fingerprints).__name__}",
                'fingerprints'
            )
        for path, digest in fingerprints.items():
            if not isinstance(path, str) or not isinstance(digest, str):
                raise LedgerError(
                    "Field 'fingerprints' keys and values must be strings",
                    'fingerprints'
                )

        return SyncLedger(
            reference=reference,
            version=version,
            synced_at=synced_at,
            fingerprints=dict(fingerprints),
        )
