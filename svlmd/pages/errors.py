"""Typed exception hierarchy for page handling errors.

This module defines the exceptions raised while reading, parsing and
writing Logseq page files. Both are recoverable at the page level: the
sync engine records them against the page and moves on.
"""

from typing import Optional

from svlmd.errors import SvlmdError


class PageError(SvlmdError):
    """Base exception for all page-related errors."""
    pass


class ParseError(PageError):
    """Raised when a page file is not valid text (binary, bad encoding)."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"Parse error in {file_path}: {message}")
        self.file_path = file_path
        self.message = message


class PageIOError(PageError):
    """Raised when reading or writing a page file fails."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Page operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
