"""MCP server exposing fragrance search tools."""
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from fragrance_search.catalog_store import CatalogStore
from fragrance_search.config import get_config
from fragrance_search.log import configure_logging
from fragrance_search.models import CatalogRecord, SearchOptions
from fragrance_search.service import SearchService, create_search_service

logger = logging.getLogger(__name__)

SERVER_NAME = "fragrance-search-mcp"


def _json_content(payload: Any) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2))]


def _error_content(message: str) -> List[TextContent]:
    return [TextContent(type="text", text=f"Error: {message}")]


async def search_fragrances_tool(service: SearchService, query: str, options: Dict[str, Any]) -> List[TextContent]:
    """Tool handler for search_fragrances.

    Args:
        service: Search service
        query: Search query string
        options: Raw tool arguments other than the query

    Returns:
        List of TextContent with the search response as JSON
    """
    response = await service.search(query, SearchOptions.from_mapping(options))
    return _json_content(response.to_dict())


async def autocomplete_fragrances_tool(service: SearchService, query: str, limit: int) -> List[TextContent]:
    suggestions = await service.autocomplete(query, limit)
    return _json_content(suggestions)


async def index_fragrances_tool(service: SearchService, records: List[Dict[str, Any]]) -> List[TextContent]:
    """Tool handler for index_fragrances.

    Args:
        service: Search service
        records: Records to index; empty means the current snapshot

    Returns:
        List of TextContent with the number of indexed documents
    """
    if not service.remote_enabled:
        return _json_content({"indexed": 0, "message": "No remote search engine configured"})

    catalog_records = [CatalogRecord.from_mapping(record) for record in records]
    indexed = await service.index_fragrances(catalog_records)
    return _json_content({"indexed": indexed})


def create_server(service: SearchService) -> Server:
    """Create and configure the MCP server.

    Args:
        service: Initialized search service the tools delegate to

    Returns:
        Configured Server instance
    """
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search_fragrances",
                description="Search the fragrance catalog with typo-tolerant fuzzy matching. Returns ranked results with a 0-1 score, match type and spelling suggestions.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Fragrance name, brand or nickname"
                        },
                        "limit": {
                            "type": "integer",
                            "description": "Maximum number of results"
                        },
                        "offset": {
                            "type": "integer",
                            "description": "Number of results to skip"
                        },
                        "threshold": {
                            "type": "number",
                            "description": "Fuzzy match threshold (0 = exact only, default 0.4)"
                        },
                        "include_metadata": {
                            "type": "boolean",
                            "description": "Include search pipeline metadata"
                        },
                        "force_refresh": {
                            "type": "boolean",
                            "description": "Bypass the result cache"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="autocomplete_fragrances",
                description="Suggest fragrances whose name or brand contains the typed text, formatted '<name> by <brand>'.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Partial text, at least 2 characters"
                        },
                        "limit": {
                            "type": "integer",
                            "description": "Maximum number of suggestions (default 10)"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="index_fragrances",
                description="Push fragrances into the remote search engine. Without records, the current catalog snapshot is indexed.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "records": {
                            "type": "array",
                            "description": "Fragrance records with id, name, brand and optional year, concentration, rating, popularity, verified",
                            "items": {"type": "object"}
                        }
                    }
                }
            ),
            Tool(
                name="clear_search_cache",
                description="Drop every cached search and autocomplete result.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="get_search_cache_stats",
                description="Return cache hits, misses and the number of live keys.",
                inputSchema={"type": "object", "properties": {}}
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}

        if name == "search_fragrances":
            query = arguments.get("query", "")
            if not query:
                return _error_content("'query' parameter is required")
            options = {key: value for key, value in arguments.items() if key != "query"}
            return await search_fragrances_tool(service, query, options)
        elif name == "autocomplete_fragrances":
            query = arguments.get("query", "")
            if not query:
                return _error_content("'query' parameter is required")
            return await autocomplete_fragrances_tool(service, query, int(arguments.get("limit") or 10))
        elif name == "index_fragrances":
            return await index_fragrances_tool(service, arguments.get("records") or [])
        elif name == "clear_search_cache":
            service.clear_cache()
            return _json_content({"cleared": True})
        elif name == "get_search_cache_stats":
            return _json_content(asdict(service.get_cache_stats()))
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Main entry point for the MCP server."""
    config = get_config()
    configure_logging(config.log_level)

    store = CatalogStore(config.catalog_db_path)
    await store.initialize()

    service = create_search_service(store, config)
    await service.initialize()
    logger.info("Fragrance search ready (remote engine %s)", "enabled" if service.remote_enabled else "disabled")

    server = create_server(service)
    try:
        async with stdio_server() as (read_stream, write_stream):
            initialization_options = server.create_initialization_options()
            await server.run(read_stream, write_stream, initialization_options)
    finally:
        await service.shutdown()
        await store.close()
