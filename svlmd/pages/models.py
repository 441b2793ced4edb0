"""Data models for Logseq pages.

This module defines the in-memory representation of a page file: its
leading property block and its content blocks. All models use dataclasses,
following the patterns of the rest of the package.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping


@dataclass(frozen=True)
class PropertyLine:
    """A single line of a page's property block.

    The raw text (including its line ending) is kept so that an untouched
    property block serializes back to the exact original bytes.

    Attributes:
        key: Property key (text before "::", stripped)
        value: Property value (text after "::", stripped)
        raw: The original line, line ending included
        well_formed: False for property-like lines whose key does not follow
            the Logseq key syntax; such lines are passed through verbatim

    Example:
        >>> line = PropertyLine("title", "Foo", "title:: Foo\\n")
    """
    key: str
    value: str
    raw: str
    well_formed: bool = True


@dataclass(frozen=True)
class OutlineBlock:
    """One bullet of a page outline.

    Attributes:
        text: Bullet text without indentation and "- " marker
        level: Indentation level (0 = top-level bullet)
    """
    text: str
    level: int = 0


@dataclass
class Page:
    """A Logseq page file.

    Attributes:
        path: Page path relative to the project root (stable, unique key)
        property_lines: Ordered lines of the leading property block
        blocks: Remaining raw content lines, opaque to the sync engine
        bom: True if the file started with a UTF-8 byte order mark
        newline: Dominant line ending, used for lines the engine adds

    Example:
        >>> page = PageParser.parse("pages/foo.md", "title:: Foo\\n\\nHello")
        >>> page.properties
        {'title': 'Foo'}
    """
    path: str
    property_lines: List[PropertyLine] = field(default_factory=list)
    blocks: List[str] = field(default_factory=list)
    bom: bool = False
    newline: str = "\n"

    @property
    def properties(self) -> Dict[str, str]:
        """Ordered key -> value view of the property block."""
        return {line.key: line.value for line in self.property_lines}

    @property
    def content(self) -> str:
        """Content of the page after the property block."""
        return "".join(self.blocks)

    def with_properties(self, properties: Mapping[str, str]) -> "Page":
        """Return a copy of this page whose property block follows `properties`.

        Lines whose key and value are unchanged keep their raw text; changed
        values are rewritten; keys missing from `properties` are dropped;
        new keys are appended after the existing ones. Content blocks are
        shared unchanged.

        A key that appears on several lines keeps all of them verbatim while
        its value is unchanged. Setting a new value collapses it to one line
        at the position of the first occurrence.

        Args:
            properties: Ordered mapping of the desired properties

        Returns:
            New Page instance
        """
        lines: List[PropertyLine] = []
        seen = set()
        current = self.properties
        changed = {key for key, value in properties.items() if current.get(key) != value}

        for line in self.property_lines:
            if line.key not in properties:
                continue
            if line.key not in changed:
                seen.add(line.key)
                lines.append(line)
                continue
            if line.key in seen:
                continue
            seen.add(line.key)
            value = properties[line.key]
            if value == line.value:
                lines.append(line)
            else:
                lines.append(self._make_line(line.key, value, _line_ending(line.raw)))

        for key, value in properties.items():
            if key not in seen:
                seen.add(key)
                lines.append(self._make_line(key, value, self.newline))

        # Every property line but the last must be terminated; the last one
        # only needs a terminator when content follows.
        for index, line in enumerate(lines):
            is_last = index == len(lines) - 1
            if not _line_ending(line.raw) and (not is_last or self.blocks):
                lines[index] = replace(line, raw=line.raw + self.newline)

        return replace(self, property_lines=lines, blocks=list(self.blocks))

    @staticmethod
    def _make_line(key: str, value: str, ending: str) -> PropertyLine:
        return PropertyLine(key=key, value=value, raw=f"{key}:: {value}{ending}")


def _line_ending(raw: str) -> str:
    if raw.endswith("\r\n"):
        return "\r\n"
    if raw.endswith("\n"):
        return "\n"
    return ""
