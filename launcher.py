"""ABOUTME: AFP news MCP server launcher - picks the transport from the environment.

stdio is the default. For HTTP transports, uvicorn.Config is patched so the
server binds to the configured HOST and PORT instead of 127.0.0.1:8000.
"""

import logging
import sys

from pydantic_settings import BaseSettings

# Setup logging early
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HTTP_TRANSPORTS = {"streamable-http", "http"}


class LauncherConfig(BaseSettings):
    """Launcher configuration from environment (MCP_TRANSPORT, HOST, PORT)."""

    mcp_transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def resolve_transport(value: str) -> str:
    """Map MCP_TRANSPORT to a FastMCP transport name.

    Raises:
        ValueError: If the transport is not supported
    """
    transport = (value or "stdio").strip().lower()
    if transport == "stdio":
        return "stdio"
    if transport in HTTP_TRANSPORTS:
        return "streamable-http"
    raise ValueError(f"Unsupported MCP_TRANSPORT: {value} (expected stdio, streamable-http or http)")


def run_server(transport: str = "stdio", host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run the AFP news MCP server.

    Args:
        transport: "stdio" or "streamable-http"
        host: Host to bind to for HTTP (default: 0.0.0.0)
        port: Port to bind to for HTTP (default: 8000)
    """
    try:
        from afp_news import server as afp_server
    except ImportError as e:
        logger.error(f"Failed to import afp_news server: {e}")
        sys.exit(1)

    mcp_instance = afp_server.get_mcp()

    if transport == "stdio":
        logger.info("Starting afpnews MCP server (transport: stdio)")
        mcp_instance.run(transport="stdio")
        return

    # Must be patched before FastMCP creates its uvicorn.Config
    import uvicorn
    original_init = uvicorn.Config.__init__

    def patched_init(self, *args, **kwargs):
        kwargs["host"] = host
        kwargs["port"] = port
        logger.info(f"Patched uvicorn.Config - binding to {host}:{port}")
        return original_init(self, *args, **kwargs)

    uvicorn.Config.__init__ = patched_init

    try:
        logger.info(f"Starting afpnews MCP server on {host}:{port} (transport: {transport})")
        mcp_instance.run(transport=transport)
    finally:
        uvicorn.Config.__init__ = original_init


if __name__ == "__main__":
    config = LauncherConfig()
    try:
        transport = resolve_transport(config.mcp_transport)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)

    run_server(transport, config.host, config.port)
