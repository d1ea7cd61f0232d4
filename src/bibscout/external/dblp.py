"""
DBLP source.

Queries the DBLP publication search API:
    GET https://dblp.org/search/publ/api?q={q}&h={limit}&format=json

Each hit nests its metadata under "info". "authors.author" is a single
object for one-author papers and a list otherwise; author names and
venues may carry "0001"-style disambiguation counters.
"""

import logging
from typing import Any, Dict, List, Optional, TypedDict, Union

import httpx

from ..models import CanonicalRecord, Source
from ..normalize import canonical_author, collapse_whitespace, normalize_venue, normalize_year
from .base import ExternalSource, default_timeout

logger = logging.getLogger(__name__)

API_URL = "https://dblp.org/search/publ/api"

DblpAuthor = Union[str, Dict[str, Any]]


class DblpInfo(TypedDict, total=False):
    """The subset of a DBLP hit's "info" object that is read."""

    title: str
    authors: Dict[str, Union[DblpAuthor, List[DblpAuthor]]]
    year: str
    doi: str
    url: str
    venue: Union[str, List[str]]
    journal: str
    booktitle: str
    type: str


class DblpSource(ExternalSource):
    """Client for the DBLP publication search API."""

    source = Source.DBLP

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize DBLP client.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout if timeout is not None else default_timeout()
        self._http: Optional[httpx.AsyncClient] = None

    async def _client(self) -> httpx.AsyncClient:
        """Lazily create the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def _fetch(self, query: str, limit: int) -> List[DblpInfo]:
        client = await self._client()
        resp = await client.get(API_URL, params={"q": query, "h": limit, "format": "json"})
        resp.raise_for_status()

        data = resp.json()
        hits = ((data.get("result") or {}).get("hits") or {}).get("hit") or []
        if isinstance(hits, dict):
            hits = [hits]
        return [hit.get("info") or {} for hit in hits]

    def normalize_paper(self, raw_paper: DblpInfo) -> CanonicalRecord:
        """Normalize a DBLP hit "info" object to a CanonicalRecord."""
        raw_authors = (raw_paper.get("authors") or {}).get("author") or []
        if not isinstance(raw_authors, list):
            raw_authors = [raw_authors]

        title = collapse_whitespace(raw_paper.get("title") or "").rstrip(".")

        return CanonicalRecord(
            source=self.source,
            title=title or "(untitled)",
            authors=tuple(canonical_author(a) for a in raw_authors),
            year=normalize_year(raw_paper.get("year")),
            identifier=raw_paper.get("doi") or raw_paper.get("url") or "",
            venue=self._venue(raw_paper),
        )

    def _venue(self, raw_paper: DblpInfo) -> Optional[str]:
        """First of venue, journal, booktitle, then the publication type."""
        for field_name in ("venue", "journal", "booktitle"):
            venue = normalize_venue(raw_paper.get(field_name))
            if venue:
                return venue
        pub_type = raw_paper.get("type")
        return normalize_venue(pub_type.replace("_", " ")) if pub_type else None
