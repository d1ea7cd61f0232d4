"""Tests for the JSON-RPC stdio server."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from bibscout.models import CanonicalRecord, Source
from bibscout.server import BibScoutServer

RECORD = CanonicalRecord(
    source=Source.ARXIV,
    title="Diffusion Models Beat GANs",
    authors=("Tong, Alex",),
    year="2024",
    identifier="2401.00001",
)


@pytest.fixture
def server():
    """Server with mocked workflows."""
    workflows = MagicMock()
    workflows.search = AsyncMock(return_value={
        "status": "success",
        "query": "diffusion",
        "count": 1,
        "results": [RECORD.to_dict()],
        "errors": [],
        "source_counts": {"arxiv": 1},
    })
    workflows.cite.return_value = {"status": "success", "key": "tong2024diffusion"}
    workflows.add_citation.return_value = {"status": "success", "key": "tong2024diffusion"}
    return BibScoutServer(workflows=workflows)


def tool_call(name, arguments, request_id=1):
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


def tool_result(response):
    return json.loads(json.loads(response)["result"]["content"][0]["text"])


class TestBibScoutServer:
    """Test JSON-RPC handling."""

    @pytest.mark.asyncio
    async def test_initialize(self, server):
        response = json.loads(await server.process_request(
            {"jsonrpc": "2.0", "id": 1, "method": "initialize"}
        ))

        assert response["id"] == 1
        assert response["result"]["serverInfo"]["name"] == "bibscout"

    @pytest.mark.asyncio
    async def test_tools_list(self, server):
        response = json.loads(await server.process_request(
            {"jsonrpc": "2.0", "id": 2, "method": "tools/list"}
        ))

        names = [tool["name"] for tool in response["result"]["tools"]]
        assert names == ["search_citations", "format_citation", "add_citation"]

    @pytest.mark.asyncio
    async def test_notification_has_no_response(self, server):
        assert await server.process_request(
            {"jsonrpc": "2.0", "method": "notifications/initialized"}
        ) is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        response = json.loads(await server.process_request(
            {"jsonrpc": "2.0", "id": 3, "method": "resources/list"}
        ))

        assert response["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_search_then_add(self, server):
        result = tool_result(await server.process_request(
            tool_call("search_citations", {"query": "diffusion", "limit": 5})
        ))

        server.workflows.search.assert_awaited_once_with("diffusion", 5)
        assert result["results"][0]["index"] == 0
        assert server.last_results == [RECORD]

        result = tool_result(await server.process_request(
            tool_call("add_citation", {"index": 0, "bib_file": "refs.bib"}, request_id=2)
        ))

        server.workflows.add_citation.assert_called_once_with(RECORD, "refs.bib")
        assert result["key"] == "tong2024diffusion"

    @pytest.mark.asyncio
    async def test_format_citation(self, server):
        server.last_results = [RECORD]

        result = tool_result(await server.process_request(
            tool_call("format_citation", {"index": 0})
        ))

        server.workflows.cite.assert_called_once_with(RECORD)
        assert result["status"] == "success"

    @pytest.mark.asyncio
    async def test_index_out_of_range(self, server):
        response = json.loads(await server.process_request(
            tool_call("format_citation", {"index": 4})
        ))

        assert response["error"]["code"] == -32603
        assert "No search result at index 4" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        response = json.loads(await server.process_request(tool_call("pubmed_search", {})))

        assert response["error"]["code"] == -32603
        assert "Unknown tool" in response["error"]["message"]
