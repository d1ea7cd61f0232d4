"""
MCP Server for bibscout.

Exposes citation search and BibTeX export as MCP tools.
Implements JSON-RPC 2.0 protocol over stdio.
"""

import asyncio
import json
import sys
import logging
from typing import Any, List, Optional

from . import __version__
from .models import CanonicalRecord
from .workflows import CitationWorkflows

logger = logging.getLogger(__name__)


class BibScoutServer:
    """MCP Server exposing citation search tools."""

    def __init__(self, workflows: Optional[CitationWorkflows] = None):
        """Initialize MCP server with workflows."""
        self.workflows = workflows or CitationWorkflows()
        self.last_results: List[CanonicalRecord] = []
        logger.info("bibscout MCP Server initialized")

    def get_tools(self) -> list:
        """Return list of available tools."""
        return [
            {
                "name": "search_citations",
                "description": "Search arXiv, DBLP and Crossref for papers to cite",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search query (e.g., 'diffusion models, Wang 2025')",
                        },
                        "limit": {
                            "type": "integer",
                            "description": "Maximum results per source (default: 20)",
                            "default": 20,
                        },
                    },
                    "required": ["query"],
                },
            },
            {
                "name": "format_citation",
                "description": "Get citation key and BibTeX entry for a search result",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "index": {
                            "type": "integer",
                            "description": "Index in the last search_citations result list",
                        }
                    },
                    "required": ["index"],
                },
            },
            {
                "name": "add_citation",
                "description": "Append the BibTeX entry for a search result to a .bib file",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "index": {
                            "type": "integer",
                            "description": "Index in the last search_citations result list",
                        },
                        "bib_file": {
                            "type": "string",
                            "description": "Target .bib file (required if several exist)",
                        },
                    },
                    "required": ["index"],
                },
            },
        ]

    def make_response(
        self,
        request_id: Any,
        result: Optional[dict] = None,
        error: Optional[dict] = None,
    ) -> str:
        """Create JSON-RPC 2.0 response."""
        response = {"jsonrpc": "2.0"}

        if request_id is not None and request_id != "":
            response["id"] = request_id

        if error:
            response["error"] = error
        elif result is not None:
            response["result"] = result

        return json.dumps(response)

    def handle_initialize(self, request_id: Any) -> str:
        """Handle initialize request."""
        return self.make_response(
            request_id,
            result={
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "bibscout", "version": __version__},
            },
        )

    def handle_tools_list(self, request_id: Any) -> str:
        """Handle tools/list request."""
        return self.make_response(request_id, result={"tools": self.get_tools()})

    async def handle_tools_call(
        self, request_id: Any, tool_name: str, arguments: dict
    ) -> str:
        """Handle tools/call request."""
        try:
            result_data = await self._dispatch_tool(tool_name, arguments)
            return self.make_response(
                request_id,
                result={"content": [{"type": "text", "text": json.dumps(result_data, indent=2)}]},
            )
        except Exception as e:
            logger.error(f"Error calling tool {tool_name}: {e}")
            return self.make_response(
                request_id, error={"code": -32603, "message": f"Internal error: {str(e)}"}
            )

    async def _dispatch_tool(self, tool_name: str, arguments: dict) -> Any:
        """Dispatch tool call to appropriate handler."""
        if tool_name == "search_citations":
            result = await self.workflows.search(
                arguments.get("query", ""), arguments.get("limit")
            )
            if result["status"] == "success":
                self.last_results = [
                    CanonicalRecord.from_dict(r) for r in result["results"]
                ]
                for index, record in enumerate(result["results"]):
                    record["index"] = index
            return result
        elif tool_name == "format_citation":
            return self.workflows.cite(self._selected(arguments))
        elif tool_name == "add_citation":
            return self.workflows.add_citation(
                self._selected(arguments), arguments.get("bib_file")
            )
        else:
            raise ValueError(f"Unknown tool: {tool_name}")

    def _selected(self, arguments: dict) -> CanonicalRecord:
        """Record picked from the last search by index."""
        index = arguments.get("index")
        if not isinstance(index, int) or not 0 <= index < len(self.last_results):
            raise ValueError(
                f"No search result at index {index!r} "
                f"({len(self.last_results)} results available)"
            )
        return self.last_results[index]

    async def process_request(self, request: dict) -> Optional[str]:
        """Process a JSON-RPC request."""
        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params", {})

        logger.debug(f"Processing: method={method}, id={request_id}")

        # Notifications (no response)
        if request_id is None:
            if method == "notifications/initialized":
                logger.debug("Received initialized notification")
            return None

        if method == "initialize":
            return self.handle_initialize(request_id)
        elif method == "tools/list":
            return self.handle_tools_list(request_id)
        elif method == "tools/call":
            return await self.handle_tools_call(
                request_id, params.get("name"), params.get("arguments", {})
            )
        else:
            return self.make_response(
                request_id, error={"code": -32601, "message": f"Method not found: {method}"}
            )


async def serve(server: BibScoutServer) -> None:
    """Read JSON-RPC requests from stdin until EOF."""
    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                logger.info("EOF, shutting down")
                break

            try:
                request = json.loads(line)
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON: {e}")
                print(json.dumps({
                    "jsonrpc": "2.0",
                    "error": {"code": -32700, "message": "Parse error"},
                }))
                sys.stdout.flush()
                continue

            response = await server.process_request(request)
            if response is not None:
                print(response)
                sys.stdout.flush()
    finally:
        await server.workflows.aggregator.close()


def main():
    """Run MCP server over stdio."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    server = BibScoutServer()
    logger.info("Starting bibscout MCP Server")

    try:
        asyncio.run(serve(server))
    except KeyboardInterrupt:
        logger.info("Shutting down (SIGINT)")
        sys.exit(0)


if __name__ == "__main__":
    main()
