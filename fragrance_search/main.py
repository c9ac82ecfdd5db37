"""Main entry point for the fragrance search MCP server."""
import asyncio

from fragrance_search.server import main


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
