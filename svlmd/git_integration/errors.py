"""Typed exception hierarchy for version-control backend errors.

This module defines the exceptions raised by the git integration module.
A backend failure is fatal for a sync run: the engine aborts before any
page or ledger is touched.
"""

from svlmd.errors import SvlmdError


class BackendError(SvlmdError):
    """Raised when a version-control query fails.

    Attributes:
        repo_path: Path to the repository
        message: Error description
        git_output: Backend stderr output, if any
    """

    def __init__(self, repo_path: str, message: str, git_output: str = ""):
        super().__init__(f"Version control error at {repo_path}: {message}")
        self.repo_path = repo_path
        self.message = message
        self.git_output = git_output


class GitRepositoryError(BackendError):
    """Raised when a git command fails or git is unavailable."""
    pass
