"""
Citation Workflows - High-level orchestration for the surfaces.

Combines multi-source search with citation synthesis and .bib storage:
- search: Query arXiv, DBLP and Crossref concurrently → summary dict
- cite: Selected record → citation key + BibTeX entry
- add_citation: Selected record → BibTeX entry appended to a .bib file
"""

import logging
from collections import Counter
from typing import Any, Dict, Optional

from .aggregator import Aggregator
from .bibfile import BibliographyStore
from .bibtex import synthesize
from .errors import MalformedRecordError
from .models import CanonicalRecord

logger = logging.getLogger(__name__)


class CitationWorkflows:
    """
    Orchestrates search, selection and storage of citations.

    Results are returned as plain dicts so the stdio and HTTP surfaces
    can serialize them directly.
    """

    def __init__(
        self,
        aggregator: Optional[Aggregator] = None,
        store: Optional[BibliographyStore] = None,
    ):
        """Initialize workflows.

        Args:
            aggregator: Aggregator instance (created with defaults if not provided)
            store: BibliographyStore instance (created with defaults if not provided)
        """
        self.aggregator = aggregator or Aggregator()
        self.store = store or BibliographyStore()

    async def search(self, query: str, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Search every source and wait until all of them settled.

        Args:
            query: Search query
            limit: Per-source result limit

        Returns:
            Summary dict with:
                - query: The trimmed query
                - count: Number of records
                - results: Record dicts in merge order
                - errors: One message per failed source
                - source_counts: Records per source
        """
        query = (query or "").strip()
        if not query:
            return {"status": "error", "error": "Query must not be empty"}

        session = await self.aggregator.search_all(query, limit=limit)
        results = session.results
        source_counts = Counter(r.source.value for r in results)
        logger.info(f"Found {len(results)} records for '{query}': {dict(source_counts)}")

        return {
            "status": "success",
            "query": query,
            "count": len(results),
            "results": [r.to_dict() for r in results],
            "errors": [str(e) for e in session.errors],
            "source_counts": dict(source_counts),
        }

    def cite(self, record: CanonicalRecord) -> Dict[str, Any]:
        """Citation key and BibTeX entry for a selected record."""
        try:
            key, text = synthesize(record)
        except MalformedRecordError as e:
            logger.error(f"Cannot cite record: {e}")
            return {"status": "error", "error": str(e)}
        return {"status": "success", "key": key, "bibtex": text}

    def add_citation(
        self,
        record: CanonicalRecord,
        bib_file: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Append the BibTeX entry for a selected record to a .bib file.

        Args:
            record: Record chosen from a search result list
            bib_file: Target file; required when the workspace holds several

        Returns:
            Status dict with key, bib_file and a message
        """
        citation = self.cite(record)
        if citation["status"] != "success":
            return citation

        key = citation["key"]
        try:
            path = self.store.append(citation["bibtex"], target=bib_file)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to update .bib file: {e}")
            return {"status": "error", "key": key, "error": str(e)}

        relative = self.store.relative(path)
        return {
            "status": "success",
            "key": key,
            "bib_file": relative,
            "bibtex": citation["bibtex"],
            "message": f"Added {key} to {relative}",
        }
