"""ABOUTME: Tests for search and facet presets."""

import pytest

from afpnews.presets import (
    DEFAULT_FACET_SIZE,
    GENRE_EXCLUSIONS,
    SEARCH_PRESETS,
    apply_search_preset,
    genre_exclusions,
    resolve_facet_request,
    resolve_preset,
)


class TestPresetTables:
    """Tests for the immutable preset tables."""

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            SEARCH_PRESETS["custom"] = SEARCH_PRESETS["agenda"]
        with pytest.raises(TypeError):
            GENRE_EXCLUSIONS["exclude"] = ()

    def test_genre_exclusions_returns_fresh_copy(self):
        """Test that mutating a request copy never touches the table."""
        copy = genre_exclusions()
        copy["exclude"].append("afpattribute:Article")
        assert "afpattribute:Article" not in GENRE_EXCLUSIONS["exclude"]
        assert len(genre_exclusions()["exclude"]) == 8

    def test_unknown_preset_raises(self):
        with pytest.raises(KeyError):
            resolve_preset("nope")


class TestApplySearchPreset:
    """Tests for merging presets onto search requests."""

    def test_no_preset_keeps_request(self):
        request = {"query": "x", "size": 10}
        merged, full_text = apply_search_preset(request, None, False)
        assert merged == request
        assert full_text is False

    def test_preset_overrides_and_forces_full_text(self):
        request = {"query": "x", "size": 10, "product": ["news", "factcheck"]}
        merged, full_text = apply_search_preset(request, "agenda", False)

        assert merged["size"] == 5
        assert merged["product"] == ["news"]
        assert merged["genreid"] == ["afpattribute:Agenda"]
        assert merged["query"] == "x"
        assert full_text is True

    def test_input_request_not_mutated(self):
        request = {"size": 10}
        apply_search_preset(request, "a-la-une", False)
        assert request == {"size": 10}

    def test_a_la_une(self):
        merged, _ = apply_search_preset({}, "a-la-une", False)
        assert merged == {
            "product": ["news"],
            "lang": ["fr"],
            "slug": ["afp", "actualites"],
            "dateFrom": "now-1d",
            "size": 1,
            "genreid": genre_exclusions(),
        }

    def test_major_stories_keeps_caller_size(self):
        merged, _ = apply_search_preset({"size": 30}, "major-stories", False)
        assert merged["size"] == 30
        assert merged["genreid"] == ["afpattribute:Article"]

    def test_previsions(self):
        merged, _ = apply_search_preset({}, "previsions", False)
        assert merged["genreid"] == ["afpattribute:Program", "afpedtype:TextProgram"]


class TestResolveFacetRequest:
    """Tests for facet listing resolution."""

    def test_trending_topics_defaults(self):
        request = resolve_facet_request(None, "trending-topics", None, None)
        assert request.name == "slug"
        assert request.params == {"langs": ["fr"], "product": ["news"], "dateFrom": "now-1d"}
        assert request.size == DEFAULT_FACET_SIZE
        assert request.is_trending is True

    def test_trending_topics_ignores_facet(self):
        request = resolve_facet_request("country", "trending-topics", "en", 5)
        assert request.name == "slug"
        assert request.params["langs"] == ["en"]
        assert request.size == 5

    def test_plain_facet(self):
        request = resolve_facet_request("country", None, "de", None)
        assert request.name == "country"
        assert request.params == {"langs": ["de"]}
        assert request.is_trending is False

    def test_missing_facet(self):
        assert resolve_facet_request(None, None, "fr", 10) is None
