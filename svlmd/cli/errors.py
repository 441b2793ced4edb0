"""Typed exception hierarchy for CLI-related errors.

This module defines the exceptions raised by the command line shell.
All exceptions inherit from CLIError and carry enough context to tell
the user which file or setting needs attention.
"""

from typing import Optional

from svlmd.errors import SvlmdError


class CLIError(SvlmdError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError):
    """Raised when the project configuration is invalid or incomplete."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Config error in field '{config_field}': {message}"
        else:
            full_message = f"Config error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ConfigNotFoundError(CLIError):
    """Raised when configuration file is not found."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path}"
        )
        self.config_path = config_path


class InitError(CLIError):
    """Raised when initialization fails."""

    def __init__(self, message: str):
        super().__init__(message)
