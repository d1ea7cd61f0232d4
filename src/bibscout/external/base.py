"""
Abstract base class for external bibliographic sources.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, List

from ..errors import SourceError
from ..models import CanonicalRecord, Source

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def default_timeout() -> float:
    """HTTP timeout in seconds (env BIBSCOUT_HTTP_TIMEOUT, default 30)."""
    return float(os.getenv("BIBSCOUT_HTTP_TIMEOUT", DEFAULT_TIMEOUT))


class ExternalSource(ABC):
    """
    Abstract interface for external bibliographic sources.

    All sources (arXiv, Crossref, DBLP) implement this interface so the
    aggregator can fan out to them uniformly. Subclasses provide the one
    outbound request (_fetch) and the per-item mapping (normalize_paper);
    search() ties them together and turns every failure into SourceError.
    """

    source: Source

    async def search(self, query: str, limit: int = 20) -> List[CanonicalRecord]:
        """
        Search the service.

        Args:
            query: Non-empty, already trimmed query string
            limit: Number of raw items requested from the service

        Returns:
            Canonical records in the order the service returned them

        Raises:
            SourceError: On network failure, non-2xx status or a payload
                that cannot be parsed
        """
        logger.info(f"Searching {self.source.label}: query={query!r}, limit={limit}")

        try:
            raw_items = await self._fetch(query, limit)
            records = [self.normalize_paper(raw) for raw in raw_items]
        except SourceError:
            raise
        except Exception as e:
            raise SourceError(self.source, e) from e

        logger.info(f"Found {len(records)} {self.source.label} records")
        return records

    @abstractmethod
    async def _fetch(self, query: str, limit: int) -> List[Any]:
        """Issue exactly one request and return the raw items."""

    @abstractmethod
    def normalize_paper(self, raw_paper: Any) -> CanonicalRecord:
        """
        Normalize one source-specific item to a CanonicalRecord.

        Subclasses route author, venue and date fields through
        bibscout.normalize.
        """

    async def close(self) -> None:
        """Release network resources held by the source."""
