"""
Multi-source aggregation.

Fans one query out to every configured source at once and merges each
source's batch into a shared, append-only result list as soon as that
source settles:

- search(): start a session and return it immediately
- search_all(): start a session and wait until every source has settled

Cross-source order follows completion order and is not deterministic;
within one source's batch the source's own order is kept.
"""

import asyncio
import logging
import os
from typing import AsyncIterator, Callable, List, NamedTuple, Optional, Sequence

from .errors import SourceError
from .external import ArXivSource, CrossrefSource, DblpSource, ExternalSource
from .models import CanonicalRecord

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20

UpdateCallback = Callable[[List[CanonicalRecord], bool], None]
ErrorCallback = Callable[[SourceError], None]


class SessionUpdate(NamedTuple):
    """One settle event: the merged results and, for a failed source, its error."""

    results: List[CanonicalRecord]
    aggregating: bool
    error: Optional[SourceError] = None


def default_sources() -> List[ExternalSource]:
    """The three built-in sources: arXiv, DBLP and Crossref."""
    return [ArXivSource(), DblpSource(), CrossrefSource()]


class SearchSession:
    """
    State of one query's aggregation.

    The result list only grows while sources are pending and is frozen
    once the last one settles. An abandoned session lets in-flight calls
    finish but drops whatever they return.
    """

    def __init__(
        self,
        query: str,
        sources: Sequence[ExternalSource],
        limit: int = DEFAULT_LIMIT,
        on_update: Optional[UpdateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.query = query
        self.limit = limit
        self.sources = list(sources)
        self.on_update = on_update
        self.on_error = on_error

        self.errors: List[SourceError] = []
        self._results: List[CanonicalRecord] = []
        self._pending = len(self.sources)
        self._abandoned = False
        self._lock = asyncio.Lock()
        self._done = asyncio.Event()
        self._tasks: List[asyncio.Task] = []
        self._listeners: List[asyncio.Queue] = []

    @property
    def results(self) -> List[CanonicalRecord]:
        """Snapshot of the records merged so far."""
        return list(self._results)

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def aggregating(self) -> bool:
        """True until every source has settled."""
        return self._pending > 0

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    def start(self) -> "SearchSession":
        """Issue every source call without waiting for any of them."""
        if self._tasks:
            raise RuntimeError("Search session already started")

        logger.info(f"Searching {len(self.sources)} sources for {self.query!r}")
        if not self.sources:
            self._done.set()
        for source in self.sources:
            self._tasks.append(asyncio.create_task(self._run(source)))
        return self

    async def wait(self) -> List[CanonicalRecord]:
        """Wait until all sources settled (or the session was abandoned)."""
        await self._done.wait()
        return self.results

    def abandon(self) -> None:
        """Stop observing the session; outstanding calls are not awaited."""
        if self._abandoned:
            return
        logger.info(f"Session for {self.query!r} abandoned with {self._pending} pending")
        self._abandoned = True
        self._done.set()
        for queue in self._listeners:
            queue.put_nowait(None)

    def updates(self) -> AsyncIterator[SessionUpdate]:
        """
        Iterate over a SessionUpdate after every settle event.

        The listener is registered when updates() is called, not on first
        iteration, so no event between the two is missed. Iteration ends
        after the event that completes the session, or on abandon.
        """
        queue: asyncio.Queue = asyncio.Queue()
        if self._abandoned:
            queue.put_nowait(None)
        elif not self.aggregating:
            queue.put_nowait(SessionUpdate(self.results, False))
        else:
            self._listeners.append(queue)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[SessionUpdate]:
        try:
            while True:
                event = await queue.get()
                if event is None:
                    return
                yield event
                if not event.aggregating:
                    return
        finally:
            if queue in self._listeners:
                self._listeners.remove(queue)

    async def _run(self, source: ExternalSource) -> None:
        try:
            records = await source.search(self.query, self.limit)
        except SourceError as e:
            await self._settle(source, [], e)
        except Exception as e:
            await self._settle(source, [], SourceError(source.source, e))
        else:
            await self._settle(source, records, None)

    async def _settle(
        self,
        source: ExternalSource,
        records: List[CanonicalRecord],
        error: Optional[SourceError],
    ) -> None:
        async with self._lock:
            if self._abandoned:
                logger.debug(f"Discarding {source.source.label} results for abandoned session")
                return

            if error is None:
                self._results.extend(records)
            else:
                self.errors.append(error)
            self._pending -= 1

            snapshot = self.results
            aggregating = self.aggregating
            if not aggregating:
                self._done.set()
                logger.info(
                    f"Search for {self.query!r} complete: {len(snapshot)} results, "
                    f"{len(self.errors)} failed sources"
                )

            if error is not None:
                logger.warning(str(error))
                self._notify(self.on_error, error)
            self._notify(self.on_update, snapshot, aggregating)
            update = SessionUpdate(snapshot, aggregating, error)
            for queue in self._listeners:
                queue.put_nowait(update)

    def _notify(self, callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Search session callback failed: {e}")


class Aggregator:
    """
    Runs all configured sources concurrently against the same query.

    Each call to search() creates a fresh SearchSession; sessions are
    never reused across queries.
    """

    def __init__(
        self,
        sources: Optional[Sequence[ExternalSource]] = None,
        limit: Optional[int] = None,
    ):
        """Initialize aggregator.

        Args:
            sources: Sources to query (default: arXiv, DBLP, Crossref)
            limit: Per-source result limit (from env BIBSCOUT_RESULT_LIMIT, default 20)
        """
        self.sources = list(sources) if sources is not None else default_sources()
        if limit is None:
            limit = int(os.getenv("BIBSCOUT_RESULT_LIMIT", DEFAULT_LIMIT))
        self.limit = limit

    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        on_update: Optional[UpdateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> SearchSession:
        """
        Start a search session. Must be called from a running event loop.

        Args:
            query: Non-empty, already trimmed query string
            limit: Per-source result limit for this session
            on_update: Called with (results, aggregating) after every settle
            on_error: Called with the SourceError of each failed source

        Returns:
            The started SearchSession
        """
        session = SearchSession(
            query,
            self.sources,
            limit=limit if limit is not None else self.limit,
            on_update=on_update,
            on_error=on_error,
        )
        return session.start()

    async def search_all(self, query: str, limit: Optional[int] = None) -> SearchSession:
        """Start a search session and wait for every source to settle."""
        session = self.search(query, limit=limit)
        await session.wait()
        return session

    async def close(self) -> None:
        """Close all sources."""
        for source in self.sources:
            await source.close()
