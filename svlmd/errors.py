"""Root of the svlmd exception hierarchy.

Every package defines its own errors module; all exceptions raised by the
tool derive from SvlmdError so callers can catch application errors in one
place.
"""


class SvlmdError(Exception):
    """Base exception for all svlmd errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass
