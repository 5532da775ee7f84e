"""FastMCP server entrypoint for tube_json."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tube_json.cli import build_engine
from tube_json.config import Settings
from tube_json.logging_utils import configure_logging
from tube_json.normalize import info_item_map, stream_info_map


def create_server() -> Any:
    """Create and configure the FastMCP server instance."""

    try:
        from mcp.server.fastmcp import FastMCP
    except ImportError as exc:  # pragma: no cover
        raise ImportError(
            "mcp is required. Install dependencies with `pip install -e .`."
        ) from exc

    settings = Settings()
    configure_logging(settings.log_level)
    engine = build_engine(settings)

    mcp = FastMCP("tube-json")

    @mcp.tool()
    def get_stream_info(url_or_id: str) -> Dict[str, Any]:
        """Fetch full metadata and stream lists for a video id or URL."""

        return stream_info_map(engine.get_stream_info(url_or_id))

    @mcp.tool()
    def search(
        query: str,
        content_filters: Optional[List[str]] = None,
        sort_filter: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Search the platform.

        content_filters: one of all, videos, channels, playlists, movies
        (only the first entry is applied).
        sort_filter: relevance, rating, upload_date or view_count.
        """

        items = engine.search(query, content_filters, sort_filter)
        return [info_item_map(item) for item in items]

    return mcp


def run() -> None:
    """Run the MCP server with stdio transport."""

    mcp = create_server()
    mcp.run()
