"""
Error types raised by bibscout.
"""

from typing import Any


class BibScoutError(Exception):
    """Base class for bibscout errors."""


class SourceError(BibScoutError):
    """A single source failed to answer a query.

    Contained per source by the aggregator: it never aborts sibling
    sources or the session.
    """

    def __init__(self, source: Any, cause: BaseException):
        self.source = source
        self.cause = cause
        label = getattr(source, "label", str(source))
        super().__init__(f"{label} request failed: {cause}")


class MalformedRecordError(BibScoutError, ValueError):
    """A record reached citation synthesis without a title or year."""
