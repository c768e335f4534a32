"""Stdio transport entry point for the WMS sync server.

Usage:
    python -m wms_sync_server.stdio_server

Environment Variables (credentials, optional per call):
    WMS_CLIENT_ID, WMS_CLIENT_SECRET, WMS_USER_LOGIN_ID,
    WMS_FACILITY_ID, WMS_CUSTOMER_ID

Environment Variables (optional):
    WMS_BASE_URL - API base URL (defaults to https://secure-wms.com/)
    WMS_AUTH_URL - Token endpoint (defaults to <base>AuthServer/api/Token)
    WMS_PAGE_SIZE, WMS_MAX_PAGES - Pagination defaults
    WMS_LOG_LEVEL - Logging level (default: INFO)
    WMS_LOG_FILE - Log file path with rotation
"""

from .server import server


def main():
    """Run the MCP server over stdio."""
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
