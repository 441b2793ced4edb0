"""Data models for CLI operations.

This module defines the exit codes and the project configuration used by
the command line shell. All models use dataclasses, following the patterns
of the sync package models.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional

from svlmd.pages.store import DEFAULT_PAGES_DIR
from svlmd.sync.models import VersionPolicy
from svlmd.sync.release_notes import DEFAULT_VERSION_FILE


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Sync completed (possibly with per-page warnings)
    - GENERAL_ERROR (1): Unexpected or uncategorized error
    - CONFIG_ERROR (2): Missing or invalid configuration
    - BACKEND_ERROR (3): Version-control query failed
    - LEDGER_ERROR (4): Ledger could not be read or committed
    - NO_PAGES_UPDATED (5): Every changed page failed; ledger not advanced

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIG_ERROR = 2
    BACKEND_ERROR = 3
    LEDGER_ERROR = 4
    NO_PAGES_UPDATED = 5


@dataclass
class ContributorConfig:
    """The contributor running syncs from this checkout.

    Attributes:
        name: Display name (also the contributor page title)
        email: E-mail address (optional)
    """
    name: str
    email: Optional[str] = None

    @property
    def identifier(self) -> str:
        """Stable identifier: the e-mail when set, otherwise the name."""
        return self.email or self.name


@dataclass
class ProjectConfig:
    """Project configuration stored in .svlmd/config.yaml.

    Attributes:
        contributor: Contributor running the sync (None until configured)
        pages_dir: Pages directory relative to the project root
        page_extensions: File extensions recognized as pages
        version_file: Project version file relative to the project root
        version_policy: Whether the counter advances per run or per page
        release_notes: Record changed pages on the release page during sync
        max_workers: Threads used to read and parse pages

    Example:
        >>> config = ProjectConfig(contributor=ContributorConfig("Alice", "alice@example.com"))
    """
    contributor: Optional[ContributorConfig] = None
    pages_dir: str = DEFAULT_PAGES_DIR
    page_extensions: List[str] = field(default_factory=lambda: [".md"])
    version_file: str = DEFAULT_VERSION_FILE
    version_policy: VersionPolicy = VersionPolicy.PER_RUN
    release_notes: bool = True
    max_workers: int = 1
