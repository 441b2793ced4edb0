"""Page file storage under the project's pages directory.

This module provides the PageStore class, which reads and writes page
files relative to the project root. Writes go through a temporary file in
the target directory followed by an atomic rename, so an interrupted write
never leaves a truncated page behind.
"""

import hashlib
import logging
import os
import stat
import tempfile
from typing import Optional

from .errors import PageIOError
from .models import Page
from .naming import PageNaming, PAGE_EXTENSION
from .parser import PageParser

logger = logging.getLogger(__name__)

DEFAULT_PAGES_DIR = "pages"


def write_atomic(file_path: str, data: bytes) -> None:
    """Write bytes to a file atomically.

    The data is written to a temporary file in the same directory, flushed
    to disk and renamed over the destination. The destination keeps its
    permission bits; a new file gets the default mode for the current umask.

    Args:
        file_path: Destination path
        data: Bytes to write

    Raises:
        OSError: If any step fails; the temporary file is removed
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        dir=directory,
        prefix=f".{os.path.basename(file_path)}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_path, _target_mode(file_path))
        os.replace(temp_path, file_path)
    except BaseException:
        try:
            os.remove(temp_path)
        except OSError as cleanup_error:
            logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
        raise


def _target_mode(file_path: str) -> int:
    """Return the permission bits the written file should end up with."""
    try:
        return stat.S_IMODE(os.stat(file_path).st_mode)
    except FileNotFoundError:
        # mkstemp creates 0600 files; new files follow the umask instead
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def fingerprint_bytes(data: bytes) -> str:
    """Return the sha256 hex digest used to fingerprint page content."""
    return hashlib.sha256(data).hexdigest()


class PageStore:
    """Reads and writes Logseq page files for one project.

    Paths handed to and returned by the store are relative to the project
    root and use forward slashes (e.g. "pages/foo.md"), matching the paths
    reported by git.

    Example:
        >>> store = PageStore("/path/to/project")
        >>> page = store.read("pages/foo.md")
        >>> store.write(page)
    """

    def __init__(
        self,
        root: str,
        pages_dir: str = DEFAULT_PAGES_DIR,
        extension: str = PAGE_EXTENSION,
    ):
        """Initialize page store.

        Args:
            root: Project root directory
            pages_dir: Pages directory relative to the root
            extension: Extension used for pages created by the engine
        """
        self.root = os.path.abspath(root)
        self.pages_dir = pages_dir.strip("/")
        self.extension = extension

    def path_for_title(self, title: str) -> str:
        """Return the relative path of the page with the given title."""
        return f"{self.pages_dir}/{PageNaming.title_to_filename(title, self.extension)}"

    def absolute(self, rel_path: str) -> str:
        """Return the absolute filesystem path for a relative page path."""
        return os.path.join(self.root, *rel_path.split("/"))

    def exists(self, rel_path: str) -> bool:
        return os.path.isfile(self.absolute(rel_path))

    def title_exists(self, title: str) -> bool:
        return self.exists(self.path_for_title(title))

    def read_raw(self, rel_path: str) -> bytes:
        """Read the raw bytes of a page file.

        Raises:
            PageIOError: If the file cannot be read
        """
        try:
            with open(self.absolute(rel_path), "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise PageIOError(rel_path, "read", "File not found")
        except PermissionError:
            raise PageIOError(rel_path, "read", "Permission denied")
        except OSError as e:
            raise PageIOError(rel_path, "read", str(e))

    def read(self, rel_path: str) -> Page:
        """Read and parse a page file.

        Raises:
            PageIOError: If the file cannot be read
            ParseError: If the file is not valid text
        """
        return PageParser.parse(rel_path, self.read_raw(rel_path))

    def write(self, page: Page) -> bytes:
        """Serialize and atomically write a page.

        Args:
            page: Page to write (its path decides the destination)

        Returns:
            The bytes written

        Raises:
            PageIOError: If the file cannot be written
        """
        data = PageParser.serialize(page).encode("utf-8")
        try:
            write_atomic(self.absolute(page.path), data)
        except PermissionError:
            raise PageIOError(page.path, "write", "Permission denied")
        except OSError as e:
            raise PageIOError(page.path, "write", str(e))

        logger.debug(f"Wrote page {page.path} ({len(data)} bytes)")
        return data

    def fingerprint(self, rel_path: str) -> Optional[str]:
        """Return the content fingerprint of a page file, or None if missing."""
        try:
            return fingerprint_bytes(self.read_raw(rel_path))
        except PageIOError:
            return None
