"""ABOUTME: Backend factory for instantiating the AFP news backend.

Resolves configuration from the environment and builds the backend the MCP
tools talk to, allowing runtime selection of the implementation.
"""

import logging
import os
from typing import Mapping, Optional

from .auth import resolve_auth_config
from .backend import NewsBackend
from .client import ApiCoreClient

# Configure logging
logger = logging.getLogger(__name__)


def get_news_backend(
    backend_type: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    **kwargs
) -> NewsBackend:
    """Create and return a news backend instance.

    Args:
        backend_type: Type of backend to create. If None, reads from NEWS_BACKEND
                     environment variable. Default: "apicore"
        env: Environment mapping to read configuration from (default: os.environ)
        **kwargs: Additional arguments to pass to backend constructor

    Returns:
        NewsBackend instance

    Raises:
        ValueError: If backend_type is unknown or auth configuration is missing
    """
    env = os.environ if env is None else env

    if backend_type is None:
        backend_type = env.get("NEWS_BACKEND", "apicore").lower()

    logger.info(f"Creating news backend: {backend_type}")

    if backend_type == "apicore":
        return ApiCoreClient(resolve_auth_config(env), **kwargs)

    raise ValueError(f"Unknown news backend: {backend_type}. Supported: apicore")
