"""
AFP APICore backend implementation.

Implements the NewsBackend interface over the AFP APICore REST API with httpx:
OAuth token handling, request building for search/list queries, and
conversion of API documents into Document objects.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..http_utils import DEFAULT_HTTP_TIMEOUT, extract_error_message, get_retry_after_seconds
from .auth import ApiCoreConfig, CredentialsAuth, TokenAuth
from .backend import Document, NewsBackend, SearchResponse

# Configure logging
logger = logging.getLogger(__name__)

# Keys of a search request that are not facet filters
SEARCH_CONTROL_KEYS = frozenset({
    "query", "size", "sortOrder", "startAt", "dateFrom", "dateTo",
})

# Refresh the token this many seconds before it expires
TOKEN_EXPIRY_MARGIN_SECONDS = 30


class ApiCoreError(Exception):
    """Raised when the AFP API answers with an error or an unexpected payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


@dataclass
class _Token:
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None

    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at - TOKEN_EXPIRY_MARGIN_SECONDS


def build_query(filters: dict) -> dict:
    """Convert facet filters into an APICore boolean query.

    Values may be scalars, lists, or {"in": [...]} / {"exclude": [...]}
    objects. "langs" is accepted as an alias of "lang".

    Example:
        >>> build_query({"lang": ["fr"], "genreid": {"exclude": ["afpattribute:Agenda"]}})
        {'and': [{'name': 'lang', 'in': ['fr']}, {'name': 'genreid', 'exclude': ['afpattribute:Agenda']}]}
    """
    clauses = []
    query = filters.get("query")
    if query:
        clauses.append({"name": "all", "contains": [query]})

    for key, value in filters.items():
        if value is None or key in SEARCH_CONTROL_KEYS:
            continue
        name = "lang" if key == "langs" else key
        if isinstance(value, dict):
            clauses.append({"name": name, **{k: v for k, v in value.items() if v is not None}})
        elif isinstance(value, (list, tuple)):
            clauses.append({"name": name, "in": list(value)})
        else:
            clauses.append({"name": name, "in": [value]})

    return {"and": clauses}


def build_date_range(filters: dict) -> dict:
    """Build the dateRange object from dateFrom/dateTo (absolute or relative like now-1d)."""
    date_range = {}
    if filters.get("dateFrom"):
        date_range["from"] = filters["dateFrom"]
    if filters.get("dateTo"):
        date_range["to"] = filters["dateTo"]
    return date_range


def build_search_body(request: dict, fields: list[str]) -> dict:
    """Build the JSON body of a search call from a flat request mapping."""
    body: dict[str, Any] = {
        "sortOrder": request.get("sortOrder") or "desc",
        "sortField": "published",
        "maxRows": request.get("size") or 10,
        "startAt": request.get("startAt") or 0,
        "query": build_query(request),
        "fields": list(fields),
    }
    date_range = build_date_range(request)
    if date_range:
        body["dateRange"] = date_range
    return body


class ApiCoreClient(NewsBackend):
    """AFP APICore backend.

    Authenticates lazily on the first call, refreshes the token when it
    expires, and opens one short-lived httpx.AsyncClient per request.
    """

    def __init__(self, config: ApiCoreConfig, timeout: float = DEFAULT_HTTP_TIMEOUT):
        """Initialize the client.

        Args:
            config: Resolved configuration (auth variant and base URL)
            timeout: Per-request timeout in seconds
        """
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.timeout = timeout
        self._token_lock = asyncio.Lock()
        self._token: Optional[_Token] = None

        if isinstance(config.auth, TokenAuth):
            self._token = _Token(
                access_token=config.auth.access_token,
                refresh_token=config.auth.refresh_token,
            )

        logger.info(f"ApiCoreClient initialized ({self.base_url})")

    @property
    def name(self) -> str:
        """Backend name."""
        return "apicore"

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def _request_token(self, api_key: str, form: dict) -> _Token:
        headers = {
            "Authorization": f"Basic {api_key}",
            "Accept": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(f"{self.base_url}/oauth/token", data=form, headers=headers)

        if response.is_error:
            raise ApiCoreError(
                f"Authentication failed: {extract_error_message(response)}",
                status_code=response.status_code,
            )

        data = response.json()
        expires_in = data.get("expires_in")
        return _Token(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=time.time() + float(expires_in) if expires_in else None,
        )

    async def authenticate(self) -> str:
        """Return a valid access token, requesting or refreshing one if needed."""
        async with self._token_lock:
            if self._token is not None and not self._token.is_expired():
                return self._token.access_token

            auth = self.config.auth
            api_key = auth.api_key

            if self._token is not None and self._token.refresh_token and api_key:
                logger.info("Refreshing AFP access token")
                self._token = await self._request_token(api_key, {
                    "grant_type": "refresh_token",
                    "refresh_token": self._token.refresh_token,
                })
            elif isinstance(auth, CredentialsAuth):
                logger.info(f"Authenticating to AFP APICore as {auth.username}")
                self._token = await self._request_token(auth.api_key, {
                    "grant_type": "password",
                    "username": auth.username,
                    "password": auth.password,
                })
            else:
                raise ApiCoreError("Access token expired and no refresh credentials are configured", 401)

            return self._token.access_token

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None
    ) -> Any:
        token = await self.authenticate()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url} params={params}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(method, url, params=params, json=json_body, headers=headers)

        if response.is_error:
            raise ApiCoreError(
                extract_error_message(response),
                status_code=response.status_code,
                retry_after=get_retry_after_seconds(response),
            )

        try:
            return response.json()
        except ValueError as e:
            raise ApiCoreError(f"Invalid JSON response from {path}") from e

    @staticmethod
    def _unwrap(data: Any) -> Any:
        if isinstance(data, dict) and "response" in data:
            return data["response"]
        return data

    def _search_response(self, data: Any) -> SearchResponse:
        payload = self._unwrap(data)
        if not isinstance(payload, dict):
            raise ApiCoreError("Unexpected search response format")
        docs = payload.get("docs") or []
        return SearchResponse(
            documents=[Document.from_api(doc) for doc in docs],
            count=int(payload.get("numFound", len(docs))),
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def search(self, request: dict, fields: list[str]) -> SearchResponse:
        """Search AFP documents.

        Args:
            request: Flat request mapping (query, size, sortOrder, startAt,
                     dateFrom, dateTo and facet filters)
            fields: Document fields to return

        Returns:
            SearchResponse with the requested page and the total count

        Raises:
            ApiCoreError: If the API reports an error
            httpx.HTTPError: On transport failures
        """
        body = build_search_body(request, fields)
        logger.info(f"AFP search: size={body['maxRows']} startAt={body['startAt']}")
        data = await self._request("POST", "/v1/api/search", params={"wt": "g2"}, json_body=body)
        return self._search_response(data)

    async def get(self, uno: str) -> Document:
        """Fetch one document by UNO."""
        logger.info(f"AFP get: {uno}")
        data = await self._request("GET", f"/v1/api/get/{uno}", params={"wt": "g2"})
        response = self._search_response(data)
        if not response.documents:
            raise ApiCoreError(f"Document not found: {uno}", status_code=404)
        return response.documents[0]

    async def mlt(self, uno: str, lang: str, size: Optional[int] = None) -> SearchResponse:
        """Find documents similar to the given UNO."""
        params: dict[str, Any] = {"uno": uno, "lang": lang, "wt": "g2"}
        if size is not None:
            params["size"] = size
        logger.info(f"AFP mlt: {uno} lang={lang} size={size}")
        data = await self._request("GET", "/v1/api/mlt", params=params)
        return self._search_response(data)

    async def list_facet(self, facet: str, params: dict, size: Optional[int] = None) -> Any:
        """List values of a facet with their document counts."""
        body: dict[str, Any] = {"query": build_query(params)}
        date_range = build_date_range(params)
        if date_range:
            body["dateRange"] = date_range
        query_params: dict[str, Any] = {"wt": "g2"}
        if size is not None:
            query_params["size"] = size

        logger.info(f"AFP list: facet={facet} size={size}")
        data = await self._request("POST", f"/v1/api/list/{facet}", params=query_params, json_body=body)
        payload = self._unwrap(data)
        if isinstance(payload, dict) and "topics" in payload:
            return payload["topics"]
        return payload

    # ------------------------------------------------------------------
    # Notification center
    # ------------------------------------------------------------------

    async def list_services(self) -> list[dict]:
        data = await self._request("GET", "/notification/api/service/list")
        payload = self._unwrap(data)
        if isinstance(payload, dict):
            return payload.get("services") or []
        return payload or []

    async def register_service(self, name: str, service_type: str, datas: dict) -> Any:
        logger.info(f"Registering notification service {name} ({service_type})")
        data = await self._request(
            "POST",
            "/notification/api/service/add",
            params={"service": name, "type": service_type},
            json_body=datas,
        )
        return self._unwrap(data)

    async def delete_service(self, name: str) -> Any:
        logger.info(f"Deleting notification service {name}")
        data = await self._request("DELETE", "/notification/api/service/delete", params={"service": name})
        return self._unwrap(data)

    async def add_subscription(self, name: str, service: str, params: dict) -> Any:
        logger.info(f"Adding subscription {name} to {service}")
        data = await self._request(
            "POST",
            "/notification/api/subscription/add",
            params={"name": name, "service": service},
            json_body={"query": build_query(params)},
        )
        payload = self._unwrap(data)
        if isinstance(payload, dict) and "identifier" in payload:
            return payload["identifier"]
        return payload

    async def subscriptions_in_service(self, service: str) -> list[dict]:
        data = await self._request("GET", "/notification/api/subscription/list", params={"service": service})
        payload = self._unwrap(data)
        if isinstance(payload, dict):
            return payload.get("subscriptions") or []
        return payload or []

    async def delete_subscription(self, service: str, name: str) -> Any:
        logger.info(f"Deleting subscription {name} from {service}")
        data = await self._request(
            "DELETE",
            "/notification/api/subscription/delete",
            params={"service": service, "name": name},
        )
        return self._unwrap(data)

    async def close(self):
        """Nothing to release: connections are opened per request."""
        logger.debug("ApiCoreClient closed")
