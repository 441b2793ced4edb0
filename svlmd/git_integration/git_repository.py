"""Git backend for change detection.

This module provides the GitRepository class, a thin read-only wrapper
around the git command line. It answers the questions the sync engine asks
of version control: which files changed between a commit and the working
tree, which files are untracked, what HEAD points at, and what a file looked
like at a given commit.

All commands run through subprocess with a timeout and NUL-separated output
(-z) so paths with spaces or non-ASCII characters are returned verbatim.
"""

import logging
import os
import subprocess
from typing import List, Optional

from svlmd.git_integration.errors import GitRepositoryError
from svlmd.git_integration.models import PathChange, PathStatus

logger = logging.getLogger(__name__)

# Git command timeout in seconds
GIT_TIMEOUT = 10


class GitRepository:
    """Read-only access to the git repository holding the pages.

    The repository path is the project root. It may be a subdirectory of
    the git work tree; every path returned is relative to the project root.

    Example:
        >>> repo = GitRepository("/path/to/project")
        >>> repo.ensure_repository()
        >>> head = repo.get_head_sha()
        >>> changes = repo.changed_paths(head, "pages")
    """

    def __init__(self, repo_path: str, allow_detached: bool = False):
        """Initialize git repository wrapper.

        Args:
            repo_path: Project root inside a git work tree
            allow_detached: Accept a detached HEAD instead of failing
        """
        self.repo_path = os.path.abspath(repo_path)
        self.allow_detached = allow_detached

    def _run(self, args: List[str], check: bool = True, binary: bool = False) -> subprocess.CompletedProcess:
        """Run a git command in the repository.

        Args:
            args: Arguments after "git"
            check: Raise GitRepositoryError on a non-zero exit code
            binary: Return stdout as raw bytes (no decoding or newline
                translation)

        Returns:
            Completed process with text output, or bytes when `binary`

        Raises:
            GitRepositoryError: If git is missing, times out, or fails (when check)
        """
        command = ["git", *args]
        logger.debug(f"Running: {' '.join(command)}")

        if binary:
            output_options = {}
        else:
            output_options = {"text": True, "encoding": "utf-8", "errors": "surrogateescape"}

        try:
            result = subprocess.run(
                command,
                cwd=self.repo_path,
                capture_output=True,
                timeout=GIT_TIMEOUT,
                **output_options,
            )
        except subprocess.TimeoutExpired:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"git {args[0]} timed out after {GIT_TIMEOUT} seconds",
            )
        except FileNotFoundError:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Git command not found. Please install git.",
            )
        except NotADirectoryError:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Repository path is not a directory",
            )

        if check and result.returncode != 0:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"git {args[0]} failed",
                git_output=_decode(result.stderr).strip(),
            )

        return result

    def ensure_repository(self) -> None:
        """Verify the project is inside a usable git work tree.

        Raises:
            GitRepositoryError: If this is not a repository, or HEAD is
                detached and detached state is not allowed
        """
        if not os.path.isdir(self.repo_path):
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Repository path does not exist",
            )

        result = self._run(["rev-parse", "--is-inside-work-tree"], check=False)
        if result.returncode != 0 or result.stdout.strip() != "true":
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Not a git repository",
                git_output=result.stderr.strip(),
            )

        if not self.allow_detached and self.is_detached():
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="HEAD is detached; check out a branch before syncing",
            )

    def is_detached(self) -> bool:
        """Return True if HEAD does not point at a branch."""
        result = self._run(["symbolic-ref", "-q", "HEAD"], check=False)
        return result.returncode != 0

    def get_head_sha(self) -> Optional[str]:
        """Get the current HEAD commit SHA.

        Returns:
            Full commit SHA, or None if the branch has no commits yet
        """
        result = self._run(["rev-parse", "--verify", "-q", "HEAD"], check=False)
        if result.returncode != 0:
            logger.debug("HEAD has no commits yet")
            return None
        return result.stdout.strip()

    def ref_exists(self, ref: str) -> bool:
        """Return True if `ref` names a commit in this repository."""
        result = self._run(["cat-file", "-e", f"{ref}^{{commit}}"], check=False)
        return result.returncode == 0

    def changed_paths(self, since_ref: str, pathspec: str = ".") -> List[PathChange]:
        """List paths changed between a commit and the working tree.

        Covers tracked files only (staged and unstaged changes). Renames are
        reported as a deletion of the old path and a modification of the
        new path.

        Args:
            since_ref: Commit to compare against
            pathspec: Restrict the diff to this path

        Returns:
            List of PathChange

        Raises:
            GitRepositoryError: If the diff fails
        """
        result = self._run([
            "diff", "--name-status", "-M", "-z", "--no-color", "--relative",
            since_ref, "--", pathspec,
        ])
        return self._parse_name_status(result.stdout)

    @staticmethod
    def _parse_name_status(output: str) -> List[PathChange]:
        fields = output.split("\0")
        changes: List[PathChange] = []
        index = 0
        while index < len(fields):
            code = fields[index]
            if not code:
                index += 1
                continue
            kind = code[0]
            if kind in ("R", "C"):
                old_path, new_path = fields[index + 1], fields[index + 2]
                index += 3
                if kind == "R":
                    changes.append(PathChange(old_path, PathStatus.DELETED))
                    changes.append(PathChange(new_path, PathStatus.MODIFIED))
                else:
                    changes.append(PathChange(new_path, PathStatus.ADDED))
                continue

            path = fields[index + 1]
            index += 2
            if kind == "A":
                changes.append(PathChange(path, PathStatus.ADDED))
            elif kind == "D":
                changes.append(PathChange(path, PathStatus.DELETED))
            else:
                # M, T (type change), U (unmerged)
                changes.append(PathChange(path, PathStatus.MODIFIED))
        return changes

    def untracked_paths(self, pathspec: str = ".") -> List[str]:
        """List untracked, non-ignored files under `pathspec`."""
        result = self._run(["ls-files", "--others", "--exclude-standard", "-z", "--", pathspec])
        return [path for path in result.stdout.split("\0") if path]

    def tracked_paths(self, pathspec: str = ".") -> List[str]:
        """List files tracked in the index under `pathspec`."""
        result = self._run(["ls-files", "-z", "--", pathspec])
        return [path for path in result.stdout.split("\0") if path]

    def paths_at(self, ref: str, pathspec: str = ".") -> List[str]:
        """List files present in commit `ref` under `pathspec`."""
        result = self._run(["ls-tree", "-r", "-z", "--name-only", ref, "--", pathspec])
        return [path for path in result.stdout.split("\0") if path]

    def show_file(self, ref: str, path: str) -> Optional[bytes]:
        """Read a file's content as of a commit.

        Args:
            ref: Commit reference
            path: Path relative to the project root

        Returns:
            Raw file content, or None if the file did not exist at that commit
        """
        result = self._run(["show", f"{ref}:./{path}"], check=False, binary=True)
        if result.returncode != 0:
            logger.debug(f"File {path} not found at {ref[:8]}")
            return None
        return result.stdout


def _decode(output) -> str:
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output or ""
