"""
Data model shared by all sources.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple


class Source(str, Enum):
    """External bibliographic search services."""

    ARXIV = "arxiv"
    CROSSREF = "crossref"
    DBLP = "dblp"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Source.ARXIV: "arXiv",
    Source.CROSSREF: "Crossref",
    Source.DBLP: "DBLP",
}

UNKNOWN_YEAR = "????"


@dataclass(frozen=True)
class CanonicalRecord:
    """
    Source-agnostic bibliographic record.

    Created by a source adapter from one raw item of that source's
    response and never mutated afterwards.

    Attributes:
        source: Provenance tag
        title: Whitespace-collapsed title
        authors: Authors in "Surname" or "Surname, Given" form, source order
        year: Four digits, or "????" when no date was recoverable
        identifier: arXiv eprint id, DOI, or DBLP DOI/URL (may be empty)
        venue: Journal or conference name, if the source gave one
    """

    source: Source
    title: str
    authors: Tuple[str, ...] = field(default_factory=tuple)
    year: str = UNKNOWN_YEAR
    identifier: str = ""
    venue: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "source": self.source.value,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "identifier": self.identifier,
            "venue": self.venue,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalRecord":
        """Rebuild a record from the output of to_dict()."""
        return cls(
            source=Source(data["source"]),
            title=data.get("title", ""),
            authors=tuple(data.get("authors") or ()),
            year=data.get("year", UNKNOWN_YEAR),
            identifier=data.get("identifier", ""),
            venue=data.get("venue"),
        )

    def summary(self) -> str:
        """One-line description for pickers: authors, year and source."""
        return f"{', '.join(self.authors)} ({self.year}) [{self.source.label}]"


class Citation(NamedTuple):
    """Citation key plus the formatted BibTeX entry."""

    key: str
    text: str
