"""MCP server for the WMS sync engine: tool registration."""

from __future__ import annotations

from fastmcp import FastMCP

from .resources import (
    connection,
    items,
    orders,
    receiving,
)
from .utils.logging import setup_logging

setup_logging()


def create_mcp_server(auth=None):
    """Create and configure the FastMCP server with all WMS tools.

    Args:
        auth: Optional auth provider passed through to FastMCP
    """
    mcp = FastMCP("wms-sync-server", auth=auth)

    # -- Tools: connection --------------------------------------------------
    mcp.tool()(connection.wms_test_connection)
    mcp.tool()(connection.wms_clear_token_cache)

    # -- Tools: collections -------------------------------------------------
    mcp.tool()(items.wms_sync_items)
    mcp.tool()(items.wms_inventory_page)

    # -- Tools: orders ------------------------------------------------------
    mcp.tool()(orders.wms_get_order)
    mcp.tool()(orders.wms_create_order)

    # -- Tools: receiving ---------------------------------------------------
    mcp.tool()(receiving.wms_preview_receiving)
    mcp.tool()(receiving.wms_send_receiving)

    return mcp


# Default server instance for stdio transport
server = create_mcp_server()
