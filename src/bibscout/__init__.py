"""
bibscout - Multi-source citation search with BibTeX export.

Provides three layers:
A) Sources - arXiv, Crossref and DBLP adapters producing canonical records
B) Aggregator - concurrent fan-out with progressive, failure-tolerant merging
C) Citations - deterministic citation keys, BibTeX entries and .bib storage
"""

__version__ = "0.1.0"

from .aggregator import Aggregator, SearchSession
from .bibtex import synthesize
from .errors import MalformedRecordError, SourceError
from .models import CanonicalRecord, Citation, Source
from .workflows import CitationWorkflows

__all__ = [
    "Aggregator",
    "SearchSession",
    "CanonicalRecord",
    "Citation",
    "Source",
    "SourceError",
    "MalformedRecordError",
    "synthesize",
    "CitationWorkflows",
]
