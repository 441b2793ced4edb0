"""Data models for git integration.

Dataclasses describing what the git backend reports about paths in the
working tree.
"""

from dataclasses import dataclass
from enum import Enum


class PathStatus(Enum):
    """Change status of a path relative to a reference commit."""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class PathChange:
    """A single path reported by `git diff --name-status`.

    Attributes:
        path: Path relative to the project root
        status: How the path changed since the reference commit
    """
    path: str
    status: PathStatus
