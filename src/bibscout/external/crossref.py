"""
Crossref source.

Queries the Crossref REST API works endpoint:
    GET https://api.crossref.org/works?query={q}&rows={limit}

Authors arrive as structured family/given pairs (or a bare "name" for
organisations), dates as nested "date-parts" lists.
"""

import logging
import os
from typing import Any, Dict, List, Optional, TypedDict

import httpx

from ..models import UNKNOWN_YEAR, CanonicalRecord, Source
from ..normalize import canonical_author, collapse_whitespace, normalize_venue, normalize_year
from .base import ExternalSource, default_timeout

logger = logging.getLogger(__name__)

API_URL = "https://api.crossref.org/works"


class CrossrefWork(TypedDict, total=False):
    """The subset of a Crossref work item that is read."""

    title: List[str]
    author: List[Dict[str, Any]]
    issued: Dict[str, Any]
    created: Dict[str, Any]
    DOI: str
    # plus "container-title": List[str]


class CrossrefSource(ExternalSource):
    """Client for the Crossref works search API."""

    source = Source.CROSSREF

    def __init__(self, timeout: Optional[float] = None, mailto: Optional[str] = None):
        """
        Initialize Crossref client.

        Args:
            timeout: HTTP request timeout in seconds
            mailto: Contact address for Crossref's polite pool
                (from env BIBSCOUT_MAILTO)
        """
        self.timeout = timeout if timeout is not None else default_timeout()
        self.mailto = mailto or os.getenv("BIBSCOUT_MAILTO")
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

    async def _fetch(self, query: str, limit: int) -> List[CrossrefWork]:
        client = await self._client()
        params: Dict[str, Any] = {"query": query, "rows": limit}
        if self.mailto:
            params["mailto"] = self.mailto

        resp = await client.get(API_URL, params=params)
        resp.raise_for_status()

        data = resp.json()
        return (data.get("message") or {}).get("items") or []

    def normalize_paper(self, raw_paper: CrossrefWork) -> CanonicalRecord:
        """Normalize a Crossref work item to a CanonicalRecord."""
        titles = raw_paper.get("title") or []
        title = collapse_whitespace(titles[0]) if titles else ""

        return CanonicalRecord(
            source=self.source,
            title=title or "(untitled)",
            authors=tuple(canonical_author(a) for a in raw_paper.get("author") or []),
            year=self._year(raw_paper),
            identifier=raw_paper.get("DOI") or "",
            venue=normalize_venue(raw_paper.get("container-title")),
        )

    def _year(self, raw_paper: CrossrefWork) -> str:
        """Year from "issued", falling back to "created"."""
        for field_name in ("issued", "created"):
            date_parts = (raw_paper.get(field_name) or {}).get("date-parts") or [[]]
            if date_parts and date_parts[0] and date_parts[0][0] is not None:
                return normalize_year(date_parts[0][0])
        return UNKNOWN_YEAR
