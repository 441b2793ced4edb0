"""Logseq page parsing and serialization.

This module splits a page file into its leading property block and its
content. A property block is a run of `key:: value` lines at the top of the
file; the first line that does not have that shape starts the content.

Serialization is the left inverse of parsing: for any text,
``PageParser.serialize(PageParser.parse(path, text)) == text``. Property
lines keep their raw text, so only properties the engine actually changes
are rewritten.
"""

import re
from typing import List, Union

from .errors import ParseError
from .models import OutlineBlock, Page, PropertyLine

BOM = "\ufeff"

# Logseq property keys: letters, digits, underscore and hyphen
PROPERTY_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_\-]+$')

PROPERTY_SEPARATOR = "::"

# Lines split on "\n" only, endings kept
LINE_PATTERN = re.compile(r"[^\n]*\n|[^\n]+$")

# Outline indentation written by the engine
INDENT = "    "
BULLET = "- "


class PageParser:
    """Converts raw page text to and from the Page model.

    A line belongs to the property block when it does not start with
    whitespace, a bullet ("-") or a heading ("#") and contains "::".
    Lines whose key is not a valid Logseq key are still kept in the
    property block (marked not well-formed) rather than discarded.

    Example:
        >>> page = PageParser.parse("pages/foo.md", "title:: Foo\\n\\nHello")
        >>> page.properties
        {'title': 'Foo'}
        >>> PageParser.serialize(page)
        'title:: Foo\\n\\nHello'
    """

    @classmethod
    def parse(cls, path: str, raw: Union[bytes, str]) -> Page:
        """Parse raw page content into a Page.

        Args:
            path: Page path (used as the page key and in error messages)
            raw: File content as bytes or already-decoded text

        Returns:
            Page with property lines and content blocks

        Raises:
            ParseError: If the content is not valid UTF-8 text
        """
        if isinstance(raw, bytes):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(path, f"Not valid UTF-8 text: {e}")
        else:
            text = raw

        if "\x00" in text:
            raise ParseError(path, "Binary content (NUL byte) is not a page")

        bom = text.startswith(BOM)
        if bom:
            text = text[len(BOM):]

        lines = LINE_PATTERN.findall(text)
        property_lines: List[PropertyLine] = []
        index = 0
        while index < len(lines):
            prop = cls._parse_property_line(lines[index])
            if prop is None:
                break
            property_lines.append(prop)
            index += 1

        return Page(
            path=path,
            property_lines=property_lines,
            blocks=lines[index:],
            bom=bom,
            newline=cls._detect_newline(text),
        )

    @classmethod
    def serialize(cls, page: Page) -> str:
        """Serialize a Page back to raw text.

        Args:
            page: Page to serialize

        Returns:
            Page text, byte-identical to the parsed input for untouched pages
        """
        prefix = BOM if page.bom else ""
        return prefix + "".join(line.raw for line in page.property_lines) + "".join(page.blocks)

    @classmethod
    def _parse_property_line(cls, raw: str):
        text = raw.rstrip("\r\n")
        if not text or text[0].isspace() or text[0] in "-#":
            return None
        if PROPERTY_SEPARATOR not in text:
            return None

        key, _, value = text.partition(PROPERTY_SEPARATOR)
        return PropertyLine(
            key=key.strip(),
            value=value.strip(),
            raw=raw,
            well_formed=bool(PROPERTY_KEY_PATTERN.match(key)),
        )

    @staticmethod
    def _detect_newline(text: str) -> str:
        position = text.find("\n")
        if position > 0 and text[position - 1] == "\r":
            return "\r\n"
        return "\n"

    @classmethod
    def outline(cls, page: Page) -> List[OutlineBlock]:
        """Read the page content as an outline of bullets.

        Indentation is counted in tabs or groups of four spaces. Blank lines
        are skipped.

        Args:
            page: Page whose content is read

        Returns:
            Ordered list of OutlineBlock
        """
        blocks: List[OutlineBlock] = []
        for raw in page.blocks:
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue
            stripped = line.lstrip(" \t")
            leading = line[:len(line) - len(stripped)]
            level = leading.count("\t") + leading.count(" ") // len(INDENT)
            if stripped.startswith(BULLET):
                stripped = stripped[len(BULLET):]
            elif stripped == "-":
                stripped = ""
            blocks.append(OutlineBlock(text=stripped, level=level))
        return blocks

    @classmethod
    def render_outline(cls, blocks: List[OutlineBlock], newline: str = "\n") -> List[str]:
        """Render outline bullets as raw content lines.

        Args:
            blocks: Bullets to render
            newline: Line ending to use

        Returns:
            List of raw lines, each terminated by `newline`
        """
        return [
            f"{INDENT * block.level}{BULLET}{block.text}".rstrip() + newline
            for block in blocks
        ]
