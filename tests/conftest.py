"""ABOUTME: Pytest configuration and shared fixtures for AFP news MCP server tests.

Provides sample documents and a mocked NewsBackend so the tools can be tested
without calling the AFP API.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

import afp_news
from afpnews.apicore import Document, NewsBackend, SearchResponse


FIXTURE_DOC = Document(
    uno="newsml.afp.com.20260222T090659Z.doc-98hu39e",
    headline="Climate summit opens in Paris",
    published="2026-02-22T09:06:59Z",
    lang="en",
    genre="General news",
    paragraphs=[
        "World leaders gathered in Paris on Sunday.",
        "The summit is expected to last three days.",
        "Delegates from 190 countries are attending.",
        "Protests were held outside the venue.",
        "Organisers hope for a binding agreement.",
    ],
    status="Usable",
    country=["fra"],
    city="Paris",
    slug=["climate", "summit"],
    product="news",
    revision=2,
    created="2026-02-22T08:00:00Z",
)

FIXTURE_DOC_MINIMAL = Document(
    uno="newsml.afp.com.20260101T000000Z.doc-abc123",
    headline="Short item",
)


def make_docs(count: int, paragraph: str = "Lorem ipsum dolor sit amet.", paragraphs: int = 3) -> list[Document]:
    """Build count distinct documents with identical bodies."""
    return [
        Document(
            uno=f"newsml.afp.com.20260101T000000Z.doc-{i:06d}",
            headline=f"Headline {i}",
            lang="fr",
            genre="General news",
            paragraphs=[paragraph] * paragraphs,
        )
        for i in range(count)
    ]


@pytest.fixture
def fixture_doc():
    """Fixture providing a fully populated document."""
    return FIXTURE_DOC


@pytest.fixture
def minimal_doc():
    """Fixture providing a document with only UNO and headline."""
    return FIXTURE_DOC_MINIMAL


@pytest.fixture
def mock_backend():
    """Fixture providing a mocked NewsBackend.

    Returns:
        MagicMock with AsyncMock methods; search and mlt return one document
    """
    backend = MagicMock(spec=NewsBackend)
    backend.name = "mock"
    backend.search = AsyncMock(return_value=SearchResponse(documents=[FIXTURE_DOC], count=1))
    backend.get = AsyncMock(return_value=FIXTURE_DOC)
    backend.mlt = AsyncMock(return_value=SearchResponse(documents=[FIXTURE_DOC], count=1))
    backend.list_facet = AsyncMock(return_value=[{"name": "economy", "count": 12}])
    backend.list_services = AsyncMock(return_value=[])
    backend.register_service = AsyncMock(return_value={"status": "ok"})
    backend.delete_service = AsyncMock(return_value={"status": "ok"})
    backend.add_subscription = AsyncMock(return_value="sub-0001")
    backend.subscriptions_in_service = AsyncMock(return_value=[])
    backend.delete_subscription = AsyncMock(return_value={"status": "ok"})
    backend.close = AsyncMock()
    return backend


@pytest.fixture
def server_backend(monkeypatch, mock_backend):
    """Fixture installing mock_backend as the server's global backend."""
    monkeypatch.setattr(afp_news, "_backend", mock_backend)
    return mock_backend


def result_text(result) -> str:
    """Concatenate the text blocks of a CallToolResult."""
    return "\n".join(block.text for block in result.content)
