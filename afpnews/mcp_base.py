"""ABOUTME: Base class for the AFP news MCP server with common initialization and logging patterns.

Uses the official MCP SDK (modelcontextprotocol/python-sdk) FastMCP server.
"""

import logging
import os
from typing import Any, Dict, Optional
from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent


def setup_logging(logger_name: str, level: Optional[int] = None) -> logging.Logger:
    """Configure logging for an MCP server.

    Args:
        logger_name: Name of the logger (typically __name__)
        level: Logging level. If None, reads LOG_LEVEL from the environment
               (default: INFO)

    Returns:
        Configured logger instance
    """
    if level is None:
        level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level)
    return logging.getLogger(logger_name)


class MCPServerBase:
    """Base class for MCP servers with common patterns.

    Provides:
    - Standard MCP server initialization
    - Consistent logging setup
    - Tool start/complete/error logging helpers
    """

    def __init__(self, server_name: str, instructions: Optional[str] = None):
        """Initialize MCP server base.

        Args:
            server_name: Name of the MCP server (e.g., "afpnews")
            instructions: Optional server instructions sent to clients
        """
        self.server_name = server_name
        self.mcp = FastMCP(server_name, instructions=instructions)
        self.logger = setup_logging(server_name)

    def get_logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self.logger

    def get_mcp(self) -> FastMCP:
        """Get the FastMCP server instance.

        Returns:
            FastMCP server for tool, prompt and resource registration
        """
        return self.mcp

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Note: For HTTP deployment, use launcher.py which binds to the
        configured host and port.

        Args:
            transport: Transport protocol ("stdio", "streamable-http", "sse")
        """
        self.mcp.run(transport=transport)

    def create_success_result(
        self,
        content: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> CallToolResult:
        """Create a single-block success result.

        Args:
            content: The response text to return
            metadata: Optional metadata dictionary

        Returns:
            CallToolResult with one text block

        Examples:
            >>> result = server.create_success_result("No results found.")
            >>> result = server.create_success_result("Subscription deleted", {"name": "daily"})
        """
        text_content = TextContent(type="text", text=content)
        if metadata:
            return CallToolResult(content=[text_content], metadata=metadata)
        return CallToolResult(content=[text_content])

    def log_tool_start(self, tool_name: str, **params) -> None:
        """Log tool invocation with parameters.

        Parameters whose value is None are omitted.

        Examples:
            >>> server.log_tool_start("afp_search_articles", query="climate", size=10)
        """
        shown = {k: v for k, v in params.items() if v is not None}
        if shown:
            param_str = ", ".join(f"{k}={v}" for k, v in shown.items())
            self.logger.info(f"{tool_name} started: {param_str}")
        else:
            self.logger.info(f"{tool_name} started")

    def log_tool_complete(self, tool_name: str, **metrics) -> None:
        """Log tool completion with execution metrics.

        Examples:
            >>> server.log_tool_complete("afp_search_articles", results=10, truncated=False)
        """
        if metrics:
            metric_str = ", ".join(f"{k}={v}" for k, v in metrics.items())
            self.logger.info(f"{tool_name} completed: {metric_str}")
        else:
            self.logger.info(f"{tool_name} completed")

    def log_tool_error(
        self,
        tool_name: str,
        error_code: str,
        error_message: str,
        **context
    ) -> None:
        """Log tool error with context.

        Examples:
            >>> server.log_tool_error("afp_get_article", "not_found", "Not found", uno="BAD")
        """
        context_str = ", ".join(f"{k}={v}" for k, v in context.items()) if context else ""
        if context_str:
            self.logger.error(f"{tool_name} error [{error_code}]: {error_message} ({context_str})")
        else:
            self.logger.error(f"{tool_name} error [{error_code}]: {error_message}")
