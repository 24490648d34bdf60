"""ABOUTME: Abstract interface for the AFP news backend.

Defines the NewsBackend interface the MCP tools talk to, along with the
standardized data classes for documents, search responses and facet values.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union


@dataclass
class Document:
    """One AFP article as returned by the search and get endpoints.

    Attributes:
        uno: Unique AFP identifier, e.g. newsml.afp.com.20260222T090659Z.doc-98hu39e
        headline: Article headline
        published: Publication timestamp (ISO-8601)
        lang: Language code (e.g. "fr")
        genre: Genre label (e.g. "Papier général")
        paragraphs: Article body, one entry per paragraph (API field "news")
        status: Editorial status (optional)
        signal: Signal flag such as "update" (optional)
        advisory: Advisory note such as "CORRECTION" (optional)
        country: Country code(s) (optional)
        city: Dateline city (optional)
        slug: Topic tags (optional)
        product: Product type, e.g. "news", "photo" (optional)
        revision: Revision number (optional)
        created: Creation timestamp (optional)
        afpshortid: Short identifier (optional, derivable from the UNO)
    """
    uno: str
    headline: str = ""
    published: Optional[str] = None
    lang: Optional[str] = None
    genre: Optional[str] = None
    paragraphs: list[str] = field(default_factory=list)
    status: Optional[str] = None
    signal: Optional[str] = None
    advisory: Optional[str] = None
    country: Optional[Union[str, list[str]]] = None
    city: Optional[str] = None
    slug: list[str] = field(default_factory=list)
    product: Optional[str] = None
    revision: Optional[int] = None
    created: Optional[str] = None
    afpshortid: Optional[str] = None

    @property
    def short_id(self) -> Optional[str]:
        """Short id, falling back to the segment after "doc-" in the UNO."""
        if self.afpshortid:
            return self.afpshortid
        _, sep, tail = self.uno.rpartition("doc-")
        return tail if sep and tail else None

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "Document":
        """Build a Document from a loosely typed API document."""
        news = raw.get("news") or []
        if isinstance(news, str):
            news = [news]

        slug = raw.get("slug") or []
        if isinstance(slug, str):
            slug = [slug]

        revision = raw.get("revision")
        if isinstance(revision, str) and revision.isdigit():
            revision = int(revision)
        elif not isinstance(revision, int):
            revision = None

        return cls(
            uno=str(raw["uno"]),
            headline=str(raw.get("headline") or ""),
            published=_optional_str(raw.get("published")),
            lang=_optional_str(raw.get("lang")),
            genre=_optional_str(raw.get("genre")),
            paragraphs=[str(p) for p in news],
            status=_optional_str(raw.get("status")),
            signal=_optional_str(raw.get("signal")),
            advisory=_optional_str(raw.get("advisory")),
            country=raw.get("country") or None,
            city=_optional_str(raw.get("city")),
            slug=[str(s) for s in slug],
            product=_optional_str(raw.get("product")),
            revision=revision,
            created=_optional_str(raw.get("created")),
            afpshortid=_optional_str(raw.get("afpshortid")),
        )


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class SearchResponse:
    """Documents returned by a search or similar-article query.

    Attributes:
        documents: Documents of the requested page
        count: Total number of matching documents (may exceed len(documents))
    """
    documents: list[Document]
    count: int


@dataclass
class FacetResult:
    """One facet value and its document count."""
    name: str
    count: int


class NewsBackend(ABC):
    """Abstract interface for the AFP news API.

    The MCP tools only depend on this interface, which keeps them testable
    against an in-memory fake.
    """

    @abstractmethod
    async def search(self, request: dict, fields: list[str]) -> SearchResponse:
        """Search documents.

        Args:
            request: Query parameters (query, size, sortOrder, startAt, and
                     facet filters such as lang, product, genreid, country)
            fields: Document fields to return

        Raises:
            Exception: If the search fails (auth, network, API error)
        """

    @abstractmethod
    async def get(self, uno: str) -> Document:
        """Fetch a single document by UNO."""

    @abstractmethod
    async def mlt(self, uno: str, lang: str, size: Optional[int] = None) -> SearchResponse:
        """Find documents similar to the one identified by UNO."""

    @abstractmethod
    async def list_facet(self, facet: str, params: dict, size: Optional[int] = None) -> Any:
        """List facet values with counts.

        Returns either a list of {name|key, count} mappings or a mapping
        holding that list under "keywords".
        """

    @abstractmethod
    async def list_services(self) -> list[dict]:
        """List notification services of the account."""

    @abstractmethod
    async def register_service(self, name: str, service_type: str, datas: dict) -> Any:
        """Register a notification service."""

    @abstractmethod
    async def delete_service(self, name: str) -> Any:
        """Delete a notification service."""

    @abstractmethod
    async def add_subscription(self, name: str, service: str, params: dict) -> Any:
        """Add a notification subscription to a service."""

    @abstractmethod
    async def subscriptions_in_service(self, service: str) -> list[dict]:
        """List the subscriptions attached to a service."""

    @abstractmethod
    async def delete_subscription(self, service: str, name: str) -> Any:
        """Delete a subscription from a service."""

    @abstractmethod
    async def close(self):
        """Close backend connections and cleanup resources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g. 'apicore')."""
