"""Logseq page model, property-block parser and page file store."""

from svlmd.pages.errors import PageError, PageIOError, ParseError
from svlmd.pages.models import OutlineBlock, Page, PropertyLine
from svlmd.pages.naming import PageNaming
from svlmd.pages.parser import PageParser
from svlmd.pages.store import PageStore, fingerprint_bytes, write_atomic

__all__ = [
    # Errors
    'PageError',
    'PageIOError',
    'ParseError',
    # Models
    'OutlineBlock',
    'Page',
    'PropertyLine',
    # Components
    'PageNaming',
    'PageParser',
    'PageStore',
    'fingerprint_bytes',
    'write_atomic',
]
