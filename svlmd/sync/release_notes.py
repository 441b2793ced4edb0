"""Release notes: the per-version changelog page.

The project version lives in `version.txt` (first line, semantic version).
For version 1.4.2 the engine maintains the page `1.4.2` with the outline:

    - # Summary
    -
    - # Changed Pages
        - ## [[1.4.2-rc.1]]
            - ### Added
                - [[New Page]]
            - ### Modified
                - [[Edited Page]]
            - ### Deleted
                - [[Old Page]]

Each sync merges its change set into the newest entry when that entry is
for the same full version, and starts a new entry otherwise. A `Version`
tag page is created alongside so the release pages share a tag.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Set, Tuple

from svlmd.pages.models import OutlineBlock, Page
from svlmd.pages.naming import PageNaming
from svlmd.pages.parser import PageParser
from svlmd.pages.store import PageStore
from svlmd.sync.errors import ReleaseNotesError
from svlmd.sync.models import ChangeSet

logger = logging.getLogger(__name__)

DEFAULT_VERSION_FILE = "version.txt"

VERSION_PATTERN = re.compile(
    r'^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$'
)

CHANGED_PAGES_HEADING = "# Changed Pages"
SUMMARY_HEADING = "# Summary"
ENTRY_PREFIX = "## [["
SECTIONS = ("Added", "Modified", "Deleted")

VERSION_TAG_PAGE = "Version"


@dataclass(frozen=True)
class ProjectVersion:
    """A semantic version read from the project's version file."""
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "ProjectVersion":
        """Parse `MAJOR.MINOR.PATCH[-pre][+build]`.

        Raises:
            ValueError: If `text` is not a semantic version
        """
        match = VERSION_PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"'{text.strip()}' is not a semantic version")
        major, minor, patch, prerelease, build = match.groups()
        return cls(int(major), int(minor), int(patch), prerelease, build)

    @property
    def page_title(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        text = self.page_title
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


class ReleaseNotes:
    """Maintains the changelog page for the current project version.

    Example:
        >>> notes = ReleaseNotes(PageStore(root), root)
        >>> written = notes.record(change_set)
    """

    def __init__(self, store: PageStore, root: str, version_file: str = DEFAULT_VERSION_FILE):
        self.store = store
        self.version_path = os.path.join(root, version_file)

    def read_version(self) -> Optional[ProjectVersion]:
        """Read the project version.

        Returns:
            ProjectVersion, or None if the version file does not exist

        Raises:
            ReleaseNotesError: If the file cannot be read or is invalid
        """
        try:
            with open(self.version_path, 'r', encoding='utf-8') as f:
                first_line = f.readline()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ReleaseNotesError(self.version_path, str(e))

        try:
            return ProjectVersion.parse(first_line)
        except ValueError as e:
            raise ReleaseNotesError(self.version_path, f"Failed to parse version: {e}")

    def record(self, changes: ChangeSet, today: Optional[date] = None) -> List[str]:
        """Merge a change set into the release page of the current version.

        Args:
            changes: Pages added, modified and deleted in this run
            today: Release date for a newly created page (defaults to today)

        Returns:
            Paths of the pages written (empty if nothing changed)

        Raises:
            ReleaseNotesError: If the version file is invalid
            PageIOError: If a page cannot be read or written
            ParseError: If the existing release page is not valid text
        """
        version = self.read_version()
        if version is None:
            logger.debug(f"No version file at {self.version_path} - skipping release notes")
            return []

        logger.info(f"Found version: {version}")
        today = today or date.today()
        written: List[str] = []

        release_path = self.store.path_for_title(version.page_title)
        if self.store.exists(release_path):
            page = self.store.read(release_path)
            original = PageParser.serialize(page)
        else:
            page = self._new_release_page(release_path, today)
            original = None

        outline = PageParser.outline(page)
        new_outline = self._merge_entry(outline, str(version), changes, exclude={release_path})
        if new_outline is not None:
            page.blocks = _leading_blank_lines(page.blocks) + PageParser.render_outline(new_outline, page.newline)

        if PageParser.serialize(page) != original:
            self.store.write(page)
            written.append(release_path)
            logger.info(f"Updated release page {release_path}")

        tag_path = self.store.path_for_title(VERSION_TAG_PAGE)
        if not self.store.exists(tag_path):
            tag_page = Page(path=tag_path).with_properties({
                "icon": "🏷️",
                "exclude-from-graph-view": "true",
            })
            self.store.write(tag_page)
            written.append(tag_path)

        return written

    def _new_release_page(self, path: str, today: date) -> Page:
        page = Page(path=path).with_properties({
            "tags": "Version",
            "released-date": today.strftime("%Y-%m-%d"),
        })
        # Blank line between the property block and the outline
        page.blocks = [page.newline] + PageParser.render_outline([
            OutlineBlock(SUMMARY_HEADING, 0),
            OutlineBlock("", 0),
            OutlineBlock(CHANGED_PAGES_HEADING, 0),
        ])
        return page

    def _merge_entry(
        self,
        outline: List[OutlineBlock],
        full_version: str,
        changes: ChangeSet,
        exclude: Set[str],
    ) -> Optional[List[OutlineBlock]]:
        """Return the outline with this run's changes merged in.

        Returns None when there is nothing to record and no entry exists.
        """
        blocks = list(outline)
        heading = f"{ENTRY_PREFIX}{full_version}]]"

        section_index = next(
            (i for i, block in enumerate(blocks)
             if block.level == 0 and block.text == CHANGED_PAGES_HEADING),
            None,
        )
        if section_index is None:
            blocks.append(OutlineBlock(CHANGED_PAGES_HEADING, 0))
            section_index = len(blocks) - 1

        sections: Dict[str, Set[str]] = {name: set() for name in SECTIONS}
        start, end = self._latest_entry(blocks, section_index)
        has_entry = start is not None and blocks[start].text == heading
        if has_entry:
            current = None
            for block in blocks[start + 1:end]:
                if block.level == 2 and block.text.startswith("### "):
                    name = block.text[4:].strip()
                    current = name if name in sections else None
                elif block.level == 3 and block.text.startswith("[[") and current:
                    sections[current].add(block.text)
            del blocks[start:end]

        new_links = {
            "Added": changes.added,
            "Modified": changes.modified,
            "Deleted": changes.deleted,
        }
        for name, paths in new_links.items():
            for path in paths:
                if path not in exclude:
                    sections[name].add(f"[[{PageNaming.filename_to_title(path)}]]")

        if not has_entry and not any(sections.values()):
            return None

        entry = [OutlineBlock(heading, 1)]
        for name in SECTIONS:
            if sections[name]:
                entry.append(OutlineBlock(f"### {name}", 2))
                entry.extend(OutlineBlock(link, 3) for link in sorted(sections[name]))

        blocks[section_index + 1:section_index + 1] = entry
        return blocks

    @staticmethod
    def _latest_entry(blocks: List[OutlineBlock], section_index: int) -> Tuple[Optional[int], int]:
        """Locate the newest version entry under the changed-pages heading.

        Returns:
            (start, end) block indexes of the entry; start is None if the
            section has no entry yet
        """
        start = None
        for i in range(section_index + 1, len(blocks)):
            block = blocks[i]
            if block.level == 0:
                break
            if block.level == 1 and block.text.startswith(ENTRY_PREFIX):
                start = i
                break
        if start is None:
            return None, section_index + 1

        end = start + 1
        while end < len(blocks):
            block = blocks[end]
            if block.level == 0 or (block.level == 1 and block.text.startswith(ENTRY_PREFIX)):
                break
            end += 1
        return start, end


def _leading_blank_lines(lines: List[str]) -> List[str]:
    """Blank lines before the first outline block, kept when the outline is re-rendered."""
    leading = []
    for line in lines:
        if line.strip():
            break
        leading.append(line)
    return leading
