#!/usr/bin/env python3
"""
HTTP Server for bibscout.

Exposes the same functionality as the MCP server via REST API.
Uses the existing aggregator and workflows layers.

Usage:
    uvicorn bibscout.http_server:app --host 0.0.0.0 --port 8000

Or directly:
    python -m bibscout.http_server
"""

import json
import os
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from . import __version__
from .bibtex import synthesize
from .errors import MalformedRecordError
from .models import CanonicalRecord, Source
from .workflows import CitationWorkflows

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Global instance (initialized at startup)
workflows: Optional[CitationWorkflows] = None


class RecordIn(BaseModel):
    """A record selected from a search result list."""

    source: Source
    title: str
    authors: List[str] = Field(default_factory=list)
    year: str
    identifier: str = ""
    venue: Optional[str] = None

    def to_record(self) -> CanonicalRecord:
        return CanonicalRecord.from_dict(self.model_dump(mode="json"))


class CitationIn(BaseModel):
    record: RecordIn
    bib_file: Optional[str] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared instances at startup."""
    global workflows

    workflows = CitationWorkflows()
    logger.info("bibscout HTTP Server initialized")

    yield

    await workflows.aggregator.close()
    logger.info("bibscout HTTP Server shutting down")


app = FastAPI(
    title="bibscout HTTP API",
    description="REST API for multi-source citation search and BibTeX export",
    version=__version__,
    lifespan=lifespan,
)


# =============================================================================
# Health
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "bibscout-http",
    }


# =============================================================================
# Search
# =============================================================================

@app.get("/api/search")
async def search(
    query: str = Query(..., description="Search query"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum results per source"),
):
    """Search every source and return once all of them settled."""
    try:
        result = await workflows.search(query, limit=limit)
    except Exception as e:
        logger.error(f"Search error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    if result["status"] != "success":
        raise HTTPException(status_code=400, detail=result["error"])
    return result


@app.get("/api/search/stream")
async def search_stream(
    query: str = Query(..., description="Search query"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum results per source"),
):
    """
    Stream results as NDJSON while sources settle.

    One line per merge event: {"results": [...], "aggregating": bool}.
    A failed source adds an {"error": "..."} line just before its event.
    """
    query = query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query must not be empty")

    session = workflows.aggregator.search(query, limit=limit)
    updates = session.updates()

    async def events():
        try:
            async for update in updates:
                if update.error is not None:
                    yield json.dumps({"error": str(update.error)}) + "\n"
                yield json.dumps({
                    "results": [r.to_dict() for r in update.results],
                    "aggregating": update.aggregating,
                }) + "\n"
        finally:
            if session.aggregating:
                session.abandon()

    return StreamingResponse(events(), media_type="application/x-ndjson")


# =============================================================================
# Citations
# =============================================================================

@app.post("/api/cite")
async def cite(record: RecordIn):
    """Citation key and BibTeX entry for a selected record."""
    try:
        key, text = synthesize(record.to_record())
    except MalformedRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"key": key, "bibtex": text}


@app.post("/api/citations")
async def add_citation(body: CitationIn):
    """Append the BibTeX entry for a selected record to a .bib file."""
    try:
        result = workflows.add_citation(body.record.to_record(), bib_file=body.bib_file)
    except Exception as e:
        logger.error(f"Add citation error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    if result["status"] != "success":
        raise HTTPException(status_code=400, detail=result["error"])
    return result


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
