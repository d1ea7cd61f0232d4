"""
External bibliographic sources for bibscout.

Provides direct API access to:
- arXiv (via the arxiv library, Atom feed)
- Crossref (REST API, JSON)
- DBLP (publication search API, JSON)

Every source maps its own response shape onto CanonicalRecord.
"""

from .arxiv import ArXivSource
from .base import ExternalSource
from .crossref import CrossrefSource
from .dblp import DblpSource

__all__ = [
    "ExternalSource",
    "ArXivSource",
    "CrossrefSource",
    "DblpSource",
]
