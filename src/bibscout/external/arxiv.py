"""
arXiv source.

Implements arXiv API access using the arxiv Python library, configured
so that one search issues a single Atom feed request with no retries.
"""

import asyncio
import itertools
import logging
import re
from typing import List

import arxiv

from ..models import UNKNOWN_YEAR, CanonicalRecord, Source
from ..normalize import canonical_author, collapse_whitespace
from .base import ExternalSource

logger = logging.getLogger(__name__)

_VERSION_SUFFIX = re.compile(r"v\d+$")


class ArXivSource(ExternalSource):
    """
    arXiv API client implementing ExternalSource interface.

    The arxiv library is synchronous; the request runs in a worker thread
    so it does not block sibling sources.
    """

    source = Source.ARXIV

    def _client(self, limit: int) -> arxiv.Client:
        """Client whose first page holds all limit results, so one request suffices."""
        return arxiv.Client(page_size=limit, delay_seconds=0, num_retries=0)

    async def _fetch(self, query: str, limit: int) -> List[arxiv.Result]:
        if limit < 1:
            return []
        search = arxiv.Search(query=f"all:{query}", max_results=limit)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._collect, search, limit)

    def _collect(self, search: arxiv.Search, limit: int) -> List[arxiv.Result]:
        client = self._client(limit)
        return list(itertools.islice(client.results(search), limit))

    def normalize_paper(self, raw_paper: arxiv.Result) -> CanonicalRecord:
        """
        Convert arxiv.Result to a CanonicalRecord.

        The identifier is the eprint id from the entry URL with its
        version suffix removed ("2103.15348v2" -> "2103.15348").
        """
        full_id = raw_paper.entry_id.split("/abs/")[-1]
        published = raw_paper.published
        return CanonicalRecord(
            source=self.source,
            title=collapse_whitespace(raw_paper.title) or "(untitled)",
            authors=tuple(canonical_author(author.name) for author in raw_paper.authors),
            year=f"{published.year:04d}" if published else UNKNOWN_YEAR,
            identifier=_VERSION_SUFFIX.sub("", full_id),
        )
