"""Exceptions raised by penpath.

Editing operations never raise for unusual input; they return the original
value instead. Only decoding structurally malformed persisted data raises.
"""


class PenPathError(Exception):
    """Base class for all penpath errors."""


class PathDataError(PenPathError, ValueError):
    """Raised when persisted path data cannot be decoded."""
