"""Typed exception hierarchy for sync errors.

Ledger errors are fatal for a run (the ledger must never be left half
written). Registry and release-notes errors are reported but do not stop
page processing.
"""

from typing import Optional

from svlmd.errors import SvlmdError


class SyncEngineError(SvlmdError):
    """Base exception for all sync engine errors."""
    pass


class LedgerError(SyncEngineError):
    """Raised when the ledger file content is invalid."""

    def __init__(self, message: str, ledger_field: Optional[str] = None):
        if ledger_field:
            full_message = f"Ledger error in field '{ledger_field}': {message}"
        else:
            full_message = f"Ledger error: {message}"
        super().__init__(full_message)
        self.ledger_field = ledger_field
        self.original_message = message


class LedgerFilesystemError(SyncEngineError):
    """Raised when the ledger file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Ledger file operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ContributorRegistryError(SyncEngineError):
    """Raised when the contributor registry is invalid or cannot be saved."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        if file_path:
            message = f"Contributor registry error in {file_path}: {message}"
        else:
            message = f"Contributor registry error: {message}"
        super().__init__(message)
        self.file_path = file_path


class ReleaseNotesError(SyncEngineError):
    """Raised when the project version file is missing or invalid."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"Release notes error for {file_path}: {message}")
        self.file_path = file_path
        self.message = message
