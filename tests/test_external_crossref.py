"""
Tests for Crossref external source client.
"""

import httpx
import pytest

from bibscout.errors import SourceError
from bibscout.external.crossref import CrossrefSource
from bibscout.models import Source

WORKS = {
    "status": "ok",
    "message": {
        "items": [
            {
                "DOI": "10.1038/nature14539",
                "title": ["Deep\n learning"],
                "author": [
                    {"given": "Yann", "family": "LeCun", "sequence": "first"},
                    {"given": "Yoshua", "family": "Bengio"},
                    {"name": "Google Brain Team"},
                ],
                "issued": {"date-parts": [[2015, 5, 27]]},
                "container-title": ["Nature"],
            },
            {
                "DOI": "10.1000/untitled",
                "created": {"date-parts": [[2019, 1, 1]]},
                "issued": {"date-parts": [[None]]},
            },
            {},
        ]
    },
}


def make_source(handler):
    """Crossref source backed by a mock transport."""
    source = CrossrefSource(timeout=5.0, mailto="team@example.org")
    source._http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return source


@pytest.mark.asyncio
async def test_search():
    """Test basic Crossref search and normalization."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=WORKS)

    source = make_source(handler)
    results = await source.search("deep learning", 20)
    await source.close()

    assert len(requests) == 1
    params = requests[0].url.params
    assert params["query"] == "deep learning"
    assert params["rows"] == "20"
    assert params["mailto"] == "team@example.org"

    assert len(results) == 3
    paper = results[0]
    assert paper.source == Source.CROSSREF
    assert paper.title == "Deep learning"
    assert paper.authors == ("LeCun, Yann", "Bengio, Yoshua", "Google Brain Team")
    assert paper.year == "2015"
    assert paper.identifier == "10.1038/nature14539"
    assert paper.venue == "Nature"


@pytest.mark.asyncio
async def test_search_fallbacks():
    """Test missing title, authors, venue and dates."""
    source = make_source(lambda request: httpx.Response(200, json=WORKS))
    results = await source.search("deep learning", 20)
    await source.close()

    untitled = results[1]
    assert untitled.title == "(untitled)"
    assert untitled.authors == ()
    assert untitled.year == "2019"
    assert untitled.venue is None

    empty = results[2]
    assert empty.year == "????"
    assert empty.identifier == ""


@pytest.mark.asyncio
async def test_search_without_items():
    """Test a response without message.items."""
    source = make_source(lambda request: httpx.Response(200, json={"status": "ok"}))
    assert await source.search("nothing", 5) == []
    await source.close()


@pytest.mark.asyncio
async def test_http_error_raises_source_error():
    """Test non-2xx responses."""
    source = make_source(lambda request: httpx.Response(429, text="rate limited"))

    with pytest.raises(SourceError) as exc_info:
        await source.search("deep learning", 5)
    await source.close()

    assert exc_info.value.source == Source.CROSSREF
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_malformed_payload_raises_source_error():
    """Test unparseable responses."""
    source = make_source(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(SourceError):
        await source.search("deep learning", 5)
    await source.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 25, 500])
async def test_one_request_sized_to_limit(limit):
    """Test that every search issues exactly one request for limit rows."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=WORKS)

    source = make_source(handler)
    await source.search("deep learning", limit)
    await source.search("graph networks", limit)
    await source.close()

    assert [r.url.params["rows"] for r in requests] == [str(limit), str(limit)]
    assert [r.url.params["query"] for r in requests] == ["deep learning", "graph networks"]


@pytest.mark.asyncio
async def test_failure_is_not_retried():
    """Test that a failing request is issued once."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(503)

    source = make_source(handler)
    with pytest.raises(SourceError):
        await source.search("deep learning", 5)
    await source.close()

    assert len(requests) == 1
