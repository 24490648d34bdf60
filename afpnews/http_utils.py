"""ABOUTME: HTTP client utilities for the AFP API client - status mapping and error extraction."""

from typing import Optional
import httpx

# Constants
DEFAULT_HTTP_TIMEOUT = 30.0


class HTTPStatusCodes:
    """Helper methods for HTTP status code checks."""

    @staticmethod
    def is_rate_limit(status_code: int) -> bool:
        """True if status code is 429 (Too Many Requests)."""
        return status_code == 429

    @staticmethod
    def is_auth_error(status_code: int) -> bool:
        """True if status code is 401 (Unauthorized) or 403 (Forbidden)."""
        return status_code in (401, 403)

    @staticmethod
    def is_not_found(status_code: int) -> bool:
        """True if status code is 404 (Not Found)."""
        return status_code == 404

    @staticmethod
    def is_server_error(status_code: int) -> bool:
        """True if status code is in range 500-599."""
        return 500 <= status_code < 600


def interpret_http_error(status_code: int) -> str:
    """Map HTTP status code to MCP error code."""
    if HTTPStatusCodes.is_rate_limit(status_code):
        return "rate_limited"
    elif HTTPStatusCodes.is_auth_error(status_code):
        return "auth_failed"
    elif HTTPStatusCodes.is_not_found(status_code):
        return "not_found"
    elif HTTPStatusCodes.is_server_error(status_code):
        return "upstream_failed"
    else:
        return "network_error"


def extract_error_message(response: httpx.Response) -> str:
    """Extract a readable error message from an AFP API error response.

    The API reports failures as {"error": {"code": ..., "message": ...}} or as
    an OAuth {"error": ..., "error_description": ...} body. Falls back to the
    HTTP reason phrase.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("error_description"):
            return str(data["error_description"])
        if isinstance(error, str) and error:
            return error

    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


def get_retry_after_seconds(response: httpx.Response) -> Optional[int]:
    """Extract Retry-After header from response."""
    retry_after = response.headers.get("retry-after")
    if retry_after:
        try:
            return int(retry_after)
        except ValueError:
            return None
    return None


__all__ = [
    "DEFAULT_HTTP_TIMEOUT",
    "HTTPStatusCodes",
    "interpret_http_error",
    "extract_error_message",
    "get_retry_after_seconds",
]
