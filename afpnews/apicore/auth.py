"""ABOUTME: Authentication configuration for the AFP API client.

Two explicit variants: full credentials (API key + username/password, used to
obtain an OAuth token) or an already issued access token. The caller picks the
variant; the client never sniffs the shape of its configuration.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Union

DEFAULT_BASE_URL = "https://afp-apicore-prod.afp.com"


@dataclass(frozen=True)
class CredentialsAuth:
    """Password-grant authentication.

    Attributes:
        api_key: Base64 client credentials sent as HTTP Basic authorization
        username: AFP account username
        password: AFP account password
    """
    api_key: str
    username: str
    password: str


@dataclass(frozen=True)
class TokenAuth:
    """Pre-issued OAuth token.

    Attributes:
        access_token: Bearer token
        refresh_token: Refresh token (optional, needs api_key to be used)
        api_key: Client credentials for refreshing (optional)
    """
    access_token: str
    refresh_token: Optional[str] = None
    api_key: Optional[str] = None


AuthConfig = Union[CredentialsAuth, TokenAuth]


@dataclass(frozen=True)
class ApiCoreConfig:
    """Resolved client configuration."""
    auth: AuthConfig
    base_url: str = DEFAULT_BASE_URL


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_auth_config(env: Mapping[str, str]) -> ApiCoreConfig:
    """Resolve the client configuration from environment variables.

    APICORE_ACCESS_TOKEN selects token authentication; otherwise
    APICORE_API_KEY, APICORE_USERNAME and APICORE_PASSWORD are all required.
    APICORE_BASE_URL is optional and trimmed.

    Args:
        env: Environment mapping (usually os.environ)

    Returns:
        ApiCoreConfig with the selected auth variant

    Raises:
        ValueError: If neither variant is fully configured
    """
    base_url = _clean(env.get("APICORE_BASE_URL")) or DEFAULT_BASE_URL
    api_key = _clean(env.get("APICORE_API_KEY"))

    access_token = _clean(env.get("APICORE_ACCESS_TOKEN"))
    if access_token:
        auth: AuthConfig = TokenAuth(
            access_token=access_token,
            refresh_token=_clean(env.get("APICORE_REFRESH_TOKEN")),
            api_key=api_key,
        )
        return ApiCoreConfig(auth=auth, base_url=base_url.rstrip("/"))

    username = _clean(env.get("APICORE_USERNAME"))
    password = env.get("APICORE_PASSWORD") or None
    if not (api_key and username and password):
        raise ValueError(
            "Missing auth configuration. Provide APICORE_API_KEY, APICORE_USERNAME "
            "and APICORE_PASSWORD, or APICORE_ACCESS_TOKEN."
        )

    return ApiCoreConfig(
        auth=CredentialsAuth(api_key=api_key, username=username, password=password),
        base_url=base_url.rstrip("/"),
    )
