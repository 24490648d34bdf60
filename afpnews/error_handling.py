"""ABOUTME: Shared error handling utilities for the AFP news MCP tools.

Provides standardized error codes and error result creation functions so every
tool reports failures the same way: a CallToolResult with isError=True and a
human-readable message that names what was being done and how to fix it.
"""

from typing import Optional, Dict, Any

import httpx
from mcp.types import TextContent, CallToolResult

from .http_utils import interpret_http_error


# =============================================================================
# Error Code Constants
# =============================================================================

# Input validation errors
ERROR_VALIDATION_FAILED: str = "validation_failed"
ERROR_MISSING_PARAMETER: str = "missing_parameter"

# Upstream errors
ERROR_TIMEOUT: str = "timeout"
ERROR_NETWORK_ERROR: str = "network_error"
ERROR_UPSTREAM_FAILED: str = "upstream_failed"
ERROR_AUTH_FAILED: str = "auth_failed"
ERROR_BACKEND_INIT: str = "backend_init_failed"

# Resource errors
ERROR_NOT_FOUND: str = "not_found"
ERROR_RATE_LIMITED: str = "rate_limited"


# =============================================================================
# Main Error Creation Function
# =============================================================================

def create_error_result(
    error_message: str,
    error_code: str,
    error_type: str = "error",
    additional_metadata: Optional[Dict[str, Any]] = None
) -> CallToolResult:
    """Create standardized error CallToolResult.

    This is the main error creation function used by all tools.
    Use the convenience wrapper functions below for common error types.

    Args:
        error_message: Human-readable error message for users and LLMs
        error_code: Machine-readable error code (use ERROR_* constants)
        error_type: Error category/type (e.g., "validation_error", "upstream_error")
        additional_metadata: Additional context for debugging (optional)

    Returns:
        CallToolResult with standardized error format

    Example:
        result = create_error_result(
            error_message="Missing required parameter: facet",
            error_code=ERROR_MISSING_PARAMETER,
            error_type="validation_error",
        )
    """
    metadata = {
        "error_type": error_type,
        "error_code": error_code,
    }

    if additional_metadata:
        metadata.update(additional_metadata)

    return CallToolResult(
        content=[TextContent(type="text", text=f"Error: {error_message}")],
        isError=True,
        metadata=metadata
    )


# =============================================================================
# Convenience Wrapper Functions
# =============================================================================

def create_validation_error(
    field_name: str,
    error_message: str,
    field_value: Any = None
) -> CallToolResult:
    """Create a validation error for invalid input fields.

    Args:
        field_name: Name of the field that failed validation
        error_message: Human-readable description of the validation failure
        field_value: The invalid value that was provided (optional, for debugging)

    Returns:
        CallToolResult with validation error

    Example:
        return create_validation_error(
            field_name="size",
            error_message="size must be between 1 and 1000",
            field_value=size
        )
    """
    metadata = {"field_name": field_name}
    if field_value is not None:
        metadata["field_value"] = field_value

    return create_error_result(
        error_message=f"{field_name}: {error_message}",
        error_code=ERROR_VALIDATION_FAILED,
        error_type="validation_error",
        additional_metadata=metadata
    )


def create_missing_parameter_error(
    field_name: str,
    hint: str
) -> CallToolResult:
    """Create an error for a required parameter that was not supplied.

    Example:
        return create_missing_parameter_error(
            "facet", "Alternatively, use preset: 'trending-topics'."
        )
    """
    return create_error_result(
        error_message=f"Missing required parameter: {field_name}. {hint}",
        error_code=ERROR_MISSING_PARAMETER,
        error_type="validation_error",
        additional_metadata={"field_name": field_name}
    )


def describe_exception(error: BaseException) -> str:
    """Return the human-readable reason carried by an exception."""
    message = str(error)
    return message if message else error.__class__.__name__


def upstream_error_code(error: BaseException) -> str:
    """Map an upstream exception to a machine-readable error code.

    HTTP status errors are classified by status code, timeouts and transport
    failures get their own codes, anything else is an upstream failure.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
    if status_code is not None:
        return interpret_http_error(status_code)
    if isinstance(error, httpx.TimeoutException):
        return ERROR_TIMEOUT
    if isinstance(error, httpx.TransportError):
        return ERROR_NETWORK_ERROR
    return ERROR_UPSTREAM_FAILED


def format_error_message(context: str, error: BaseException, hint: str) -> str:
    """Build "{context}: {reason}. {hint}" for upstream failures."""
    return f"{context}: {describe_exception(error)}. {hint}"


def create_upstream_error(
    context: str,
    error: BaseException,
    hint: str,
    additional_metadata: Optional[Dict[str, Any]] = None
) -> CallToolResult:
    """Create an error for a failed call to the AFP API.

    Args:
        context: What the tool was doing (e.g., 'fetching article "X"')
        error: The exception raised by the upstream client
        hint: Remediation hint for the caller
        additional_metadata: Extra debugging context (optional)

    Returns:
        CallToolResult whose text reads "Error: {context}: {reason}. {hint}"

    Example:
        return create_upstream_error(
            context='fetching article "BAD"',
            error=exc,
            hint="Verify the UNO identifier is correct."
        )
    """
    metadata = {"context": context}
    retry_after = getattr(error, "retry_after", None)
    if retry_after is not None:
        metadata["retry_after_seconds"] = retry_after
    if additional_metadata:
        metadata.update(additional_metadata)

    return create_error_result(
        error_message=format_error_message(context, error, hint),
        error_code=upstream_error_code(error),
        error_type="upstream_error",
        additional_metadata=metadata
    )
