"""ABOUTME: Shared infrastructure of the AFP news MCP server."""

from .mcp_base import MCPServerBase, setup_logging
from .error_handling import (
    # Error code constants
    ERROR_VALIDATION_FAILED,
    ERROR_MISSING_PARAMETER,
    ERROR_TIMEOUT,
    ERROR_NETWORK_ERROR,
    ERROR_UPSTREAM_FAILED,
    ERROR_AUTH_FAILED,
    ERROR_BACKEND_INIT,
    ERROR_NOT_FOUND,
    ERROR_RATE_LIMITED,
    # Error creation functions
    create_error_result,
    create_validation_error,
    create_missing_parameter_error,
    create_upstream_error,
)
from .truncation import CHARACTER_LIMIT, TRUNCATION_HINT, truncate_blocks, truncate_to_limit

__all__ = [
    "MCPServerBase",
    "setup_logging",
    # Error code constants
    "ERROR_VALIDATION_FAILED",
    "ERROR_MISSING_PARAMETER",
    "ERROR_TIMEOUT",
    "ERROR_NETWORK_ERROR",
    "ERROR_UPSTREAM_FAILED",
    "ERROR_AUTH_FAILED",
    "ERROR_BACKEND_INIT",
    "ERROR_NOT_FOUND",
    "ERROR_RATE_LIMITED",
    # Error creation functions
    "create_error_result",
    "create_validation_error",
    "create_missing_parameter_error",
    "create_upstream_error",
    # Truncation
    "CHARACTER_LIMIT",
    "TRUNCATION_HINT",
    "truncate_blocks",
    "truncate_to_limit",
]
