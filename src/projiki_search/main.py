"""Main entry point for the projiki-search MCP server."""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from fastmcp import FastMCP

from projiki_search.config import Config
from projiki_search.history import SearchHistory
from projiki_search.records import JsonRecordStore
from projiki_search.refresh import RefreshManager
from projiki_search.service import SearchService
from projiki_search.tools import register_tools

logger = logging.getLogger(__name__)


def create_service(config: Config) -> SearchService:
    """Create a search service over the configured Projiki data directory."""
    history = SearchHistory(config.history_file, limit=config.history_limit)
    history.load()
    return SearchService(
        JsonRecordStore(config.root),
        stale_after=config.stale_after,
        history=history,
    )


def create_server(config: Config) -> FastMCP:
    """Create and configure the MCP server with all components.

    The index is built lazily: the first query finds it stale and rebuilds.

    Args:
        config: Configuration instance with all settings.
    """
    mcp = FastMCP(
        name="projiki-search",
        instructions=(
            "projiki-search searches a Projiki workspace of projects and their tasks, "
            "notes, snippets and ideas. Use the search tool with optional filters, "
            "and list_facets to discover available tags, statuses and projects."
        ),
    )

    logger.info("Using Projiki data at %s", config.root)
    service = create_service(config)

    refresher: RefreshManager | None = None
    if config.refresh_interval > 0:
        refresher = RefreshManager(service, config.refresh_interval)
        logger.info("Background refresh enabled")
    else:
        logger.info("Background refresh disabled, rebuilding on stale queries")

    logger.info("Registering search tools...")
    register_tools(mcp, service, refresher)

    logger.info("Server configured successfully")
    return mcp


def main() -> None:
    """Main function - starts the MCP server."""
    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="projiki-search - MCP search server for Projiki")
    parser.add_argument("--root", type=Path, help="Projiki data directory (overrides PROJIKI_ROOT)")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides PROJIKI_PORT)")
    parser.add_argument(
        "--refresh-interval",
        type=int,
        help="Seconds between background rebuilds, 0 to disable",
    )
    args = parser.parse_args()

    config = Config.from_env()
    overrides = {}
    if args.root is not None:
        overrides["root"] = args.root.expanduser()
    if args.port is not None:
        overrides["port"] = args.port
    if args.refresh_interval is not None:
        overrides["refresh_interval"] = args.refresh_interval
    config = dataclasses.replace(config, **overrides)

    logger.info("=" * 50)
    logger.info("projiki-search starting...")
    logger.info("  ROOT:        %s", config.root)
    logger.info("  PORT:        %s", config.port)
    logger.info("  STALE_AFTER: %ss", config.stale_after)
    logger.info("  REFRESH:     %s", config.refresh_interval or "disabled")
    logger.info("=" * 50)

    try:
        mcp = create_server(config)
        logger.info("Starting MCP server on port %s...", config.port)
        mcp.run(transport="sse", host="127.0.0.1", port=config.port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)


if __name__ == "__main__":
    main()
