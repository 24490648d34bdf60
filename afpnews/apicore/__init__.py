"""ABOUTME: AFP news backend infrastructure - interfaces, client, auth and factory."""

from .auth import ApiCoreConfig, AuthConfig, CredentialsAuth, TokenAuth, resolve_auth_config
from .backend import Document, FacetResult, NewsBackend, SearchResponse
from .client import ApiCoreClient, ApiCoreError
from .factory import get_news_backend

__all__ = [
    "ApiCoreClient",
    "ApiCoreConfig",
    "ApiCoreError",
    "AuthConfig",
    "CredentialsAuth",
    "Document",
    "FacetResult",
    "NewsBackend",
    "SearchResponse",
    "TokenAuth",
    "get_news_backend",
    "resolve_auth_config",
]
