"""ABOUTME: Tests for the AFP news MCP tools, prompts and topics resource.

The tools are called directly with a mocked backend installed as the server's
global backend.
"""

import json

import pytest

import afp_news
from conftest import FIXTURE_DOC, make_docs, result_text
from afpnews.apicore import ApiCoreError, SearchResponse
from afpnews.formatting import MARKDOWN_API_FIELDS
from afpnews.presets import genre_exclusions
from afpnews.truncation import CHARACTER_LIMIT, TRUNCATION_HINT


class TestSearchArticles:
    """Tests for afp_search_articles."""

    @pytest.mark.asyncio
    async def test_default_request(self, server_backend):
        """Test request composition and the markdown pagination line."""
        result = await afp_news.afp_search_articles(query="climate")

        request, fields = server_backend.search.call_args.args
        assert request["query"] == "climate"
        assert request["size"] == 10
        assert request["sortOrder"] == "desc"
        assert request["product"] == ["news", "factcheck"]
        assert request["genreid"] == genre_exclusions()
        assert fields == list(MARKDOWN_API_FIELDS)

        assert not result.isError
        assert result.content[0].text == "Showing 1 of 1 results (offset: 0)."
        assert result.content[1].text.startswith("## Climate summit opens in Paris")

    @pytest.mark.asyncio
    async def test_facets_override_defaults(self, server_backend):
        await afp_news.afp_search_articles(facets={"product": ["photo"], "lang": ["en"]})

        request, _ = server_backend.search.call_args.args
        assert request["product"] == ["photo"]
        assert request["lang"] == ["en"]

    @pytest.mark.asyncio
    async def test_preset_wins_and_forces_full_text(self, server_backend):
        result = await afp_news.afp_search_articles(
            preset="agenda", size=50, facets={"product": ["photo"]}
        )

        request, _ = server_backend.search.call_args.args
        assert request["size"] == 5
        assert request["product"] == ["news"]
        assert request["genreid"] == ["afpattribute:Agenda"]
        assert FIXTURE_DOC.paragraphs[-1] in result_text(result)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("output_format", ["markdown", "json", "csv"])
    async def test_no_results(self, server_backend, output_format):
        server_backend.search.return_value = SearchResponse(documents=[], count=0)
        result = await afp_news.afp_search_articles(query="nothing", format=output_format)

        assert result_text(result) == "No results found."
        assert not result.isError

    @pytest.mark.asyncio
    async def test_json_output(self, server_backend):
        server_backend.search.return_value = SearchResponse(documents=[FIXTURE_DOC], count=30)
        result = await afp_news.afp_search_articles(
            query="climate", format="json", fields=["uno", "city", "unknown"], offset=20
        )

        _, fields = server_backend.search.call_args.args
        assert fields == ["afpshortid", "uno", "city"]

        payload = json.loads(result.content[0].text)
        assert payload["total"] == 30
        assert payload["offset"] == 20
        assert payload["shown"] == 1
        assert payload["documents"] == [{"uno": FIXTURE_DOC.uno, "city": "Paris", "unknown": None}]

    @pytest.mark.asyncio
    async def test_csv_output(self, server_backend):
        result = await afp_news.afp_search_articles(format="csv", fields=["uno", "lang"])
        assert result.content[0].text == f"uno,lang\n{FIXTURE_DOC.uno},en"

    @pytest.mark.asyncio
    async def test_large_response_is_bounded(self, server_backend):
        docs = make_docs(200, paragraph="x" * 1000)
        server_backend.search.return_value = SearchResponse(documents=docs, count=5000)

        result = await afp_news.afp_search_articles(size=200, full_text=True)

        assert result.content[-1].text == TRUNCATION_HINT
        assert sum(len(b.text) for b in result.content[:-1]) <= CHARACTER_LIMIT

    @pytest.mark.asyncio
    async def test_invalid_size_skips_upstream(self, server_backend):
        result = await afp_news.afp_search_articles(size=0)

        assert result.isError
        assert result.metadata["error_code"] == "validation_failed"
        server_backend.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_negative_offset(self, server_backend):
        result = await afp_news.afp_search_articles(offset=-5)
        assert result.isError
        server_backend.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reserved_facet_key(self, server_backend):
        result = await afp_news.afp_search_articles(facets={"query": "x"})

        assert result.isError
        assert 'Facet key "query" is reserved and must be provided at top-level.' in result_text(result)
        server_backend.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_error(self, server_backend):
        server_backend.search.side_effect = ApiCoreError("Unauthorized", status_code=401)
        result = await afp_news.afp_search_articles(query="x")

        assert result.isError
        assert result_text(result) == (
            "Error: searching AFP articles: Unauthorized. Check your query parameters and try again."
        )
        assert result.metadata["error_code"] == "auth_failed"

    @pytest.mark.asyncio
    async def test_rate_limit_reports_retry_after(self, server_backend):
        server_backend.search.side_effect = ApiCoreError("Too many requests", status_code=429, retry_after=30)
        result = await afp_news.afp_search_articles(query="x")

        assert result.metadata["error_code"] == "rate_limited"
        assert result.metadata["retry_after_seconds"] == 30

    @pytest.mark.asyncio
    async def test_backend_init_failure(self, monkeypatch):
        monkeypatch.setattr(afp_news, "_backend", None)
        monkeypatch.setenv("NEWS_BACKEND", "apicore")
        for name in ("APICORE_API_KEY", "APICORE_USERNAME", "APICORE_PASSWORD", "APICORE_ACCESS_TOKEN"):
            monkeypatch.delenv(name, raising=False)

        result = await afp_news.afp_search_articles(query="x")

        assert result.isError
        assert result.metadata["error_code"] == "backend_init_failed"
        assert "Missing auth configuration" in result_text(result)


class TestGetArticle:
    """Tests for afp_get_article."""

    @pytest.mark.asyncio
    async def test_full_article(self, server_backend):
        result = await afp_news.afp_get_article(uno=FIXTURE_DOC.uno)

        server_backend.get.assert_awaited_once_with(FIXTURE_DOC.uno)
        text = result_text(result)
        assert "**City:** Paris" in text
        assert FIXTURE_DOC.paragraphs[-1] in text

    @pytest.mark.asyncio
    async def test_not_found(self, server_backend):
        server_backend.get.side_effect = ApiCoreError("Not found", status_code=404)
        result = await afp_news.afp_get_article(uno="BAD")

        assert result.isError
        assert result_text(result) == 'Error: fetching article "BAD": Not found. Verify the UNO identifier is correct.'
        assert result.metadata["error_code"] == "not_found"

    @pytest.mark.asyncio
    async def test_blank_uno(self, server_backend):
        result = await afp_news.afp_get_article(uno="  ")
        assert result.isError
        server_backend.get.assert_not_awaited()


class TestFindSimilar:
    """Tests for afp_find_similar."""

    @pytest.mark.asyncio
    async def test_markdown(self, server_backend):
        result = await afp_news.afp_find_similar(uno=FIXTURE_DOC.uno, lang="en", size=5)

        server_backend.mlt.assert_awaited_once_with(FIXTURE_DOC.uno, "en", 5)
        assert result.content[0].text == "*Found 1 similar articles.*"
        assert result.content[1].text.startswith("## ")

    @pytest.mark.asyncio
    async def test_json_meta_has_no_offset(self, server_backend):
        result = await afp_news.afp_find_similar(uno=FIXTURE_DOC.uno, lang="en", format="json")
        payload = json.loads(result.content[0].text)

        assert payload["total"] == 1
        assert "offset" not in payload

    @pytest.mark.asyncio
    async def test_no_similar(self, server_backend):
        server_backend.mlt.return_value = SearchResponse(documents=[], count=0)
        result = await afp_news.afp_find_similar(uno=FIXTURE_DOC.uno, lang="fr")
        assert result_text(result) == "No similar articles found."

    @pytest.mark.asyncio
    async def test_upstream_error(self, server_backend):
        server_backend.mlt.side_effect = ApiCoreError("Bad gateway", status_code=502)
        result = await afp_news.afp_find_similar(uno="X", lang="fr")

        assert result.isError
        assert result_text(result).startswith('Error: finding similar articles for "X": Bad gateway.')
        assert result.metadata["error_code"] == "upstream_failed"


class TestListFacets:
    """Tests for afp_list_facets."""

    @pytest.mark.asyncio
    async def test_missing_facet(self, server_backend):
        result = await afp_news.afp_list_facets()

        assert result.isError
        text = result_text(result)
        assert "Missing required parameter: facet" in text
        assert "trending-topics" in text
        server_backend.list_facet.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_plain_facet(self, server_backend):
        result = await afp_news.afp_list_facets(facet="slug", lang="en", size=5)

        server_backend.list_facet.assert_awaited_once_with("slug", {"langs": ["en"]}, 5)
        assert result_text(result) == "## Facet: slug\n\n- **economy** — 12 articles"

    @pytest.mark.asyncio
    async def test_trending_topics_uses_labels(self, server_backend):
        server_backend.list_facet.return_value = {"keywords": [
            {"key": "ONLINE-NEWS-FR_LA-UNE", "count": 7},
            {"key": "unlisted", "count": 2},
        ]}
        result = await afp_news.afp_list_facets(preset="trending-topics")

        name, params, size = server_backend.list_facet.call_args.args
        assert name == "slug"
        assert params == {"langs": ["fr"], "product": ["news"], "dateFrom": "now-1d"}
        assert size == 20

        text = result_text(result)
        assert text.startswith("## Trending Topics")
        assert "- **À la une** — 7 articles" in text
        assert "- **unlisted** — 2 articles" in text

    @pytest.mark.asyncio
    async def test_csv(self, server_backend):
        result = await afp_news.afp_list_facets(facet="country", format="csv")
        assert result_text(result) == "name,count\neconomy,12"

    @pytest.mark.asyncio
    async def test_empty(self, server_backend):
        server_backend.list_facet.return_value = []
        result = await afp_news.afp_list_facets(facet="country")
        assert result_text(result) == 'No facet values found for "country".'

    @pytest.mark.asyncio
    async def test_malformed_entries_are_skipped(self, server_backend):
        """Test that bad upstream facet entries never escape as exceptions."""
        server_backend.list_facet.return_value = {"keywords": [
            {"name": "x", "count": None},
            {"name": "y", "count": "many"},
            "not-a-mapping",
            {"name": "economy", "count": 3},
        ]}
        result = await afp_news.afp_list_facets(facet="slug")

        assert not result.isError
        assert result_text(result) == "## Facet: slug\n\n- **x** — 0 articles\n- **economy** — 3 articles"

    @pytest.mark.asyncio
    async def test_unexpected_payload_is_empty(self, server_backend):
        server_backend.list_facet.return_value = 42
        result = await afp_news.afp_list_facets(facet="slug")
        assert result_text(result) == 'No facet values found for "slug".'

    @pytest.mark.asyncio
    async def test_upstream_error(self, server_backend):
        server_backend.list_facet.side_effect = ApiCoreError("Unknown facet", status_code=400)
        result = await afp_news.afp_list_facets(facet="nope")

        assert result.isError
        assert "listing facet values: Unknown facet." in result_text(result)


class TestPrompts:
    """Tests for the prompt templates."""

    def test_daily_briefing(self):
        text = afp_news.daily_briefing(lang="en")
        assert "afp_search_articles" in text
        assert '"lang": ["en"]' in text

    def test_daily_briefing_default_lang(self):
        assert '"lang": ["fr"]' in afp_news.daily_briefing()

    def test_comprehensive_analysis(self):
        text = afp_news.comprehensive_analysis(query="elections")
        assert '"elections"' in text
        assert "afp_find_similar" in text
        assert "afp_get_article" in text

    def test_factcheck(self):
        text = afp_news.factcheck(query="vaccine")
        assert "afpattribute:FactcheckInvestigation" in text

    def test_country_news(self):
        text = afp_news.country_news(country="bra", lang="pt")
        assert '"country": ["bra"]' in text
        assert '"lang": ["pt"]' in text


class TestTopicsResource:
    """Tests for the afp://topics resource."""

    def test_catalog(self):
        catalog = json.loads(afp_news.topics_resource())
        assert set(catalog) == {"fr", "en", "de", "pt", "es", "ar"}
        assert {"label": "À la une", "value": "ONLINE-NEWS-FR_LA-UNE"} in catalog["fr"]
