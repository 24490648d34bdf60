"""ABOUTME: Named query presets for AFP searches and facet listings.

A preset is a fixed bundle of query overrides selected by one token. The
tables are built once at import time and exposed read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional, Union

SearchPreset = Literal["a-la-une", "agenda", "previsions", "major-stories"]
ListPreset = Literal["trending-topics"]

TRENDING_TOPICS: str = "trending-topics"
TRENDING_FACET: str = "slug"
TRENDING_DEFAULT_LANG: str = "fr"
TRENDING_LOOKBACK: str = "now-1d"
DEFAULT_FACET_SIZE: int = 20

# Administrative and non-news genres hidden from searches by default
GENRE_EXCLUSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "exclude": (
        "afpgenre:Agenda",
        "afpattribute:Agenda",
        "afpattribute:Program",
        "afpattribute:TextProgram",
        "afpattribute:AdvisoryUpdate",
        "afpattribute:Advice",
        "afpattribute:SpecialAnnouncement",
        "afpattribute:PictureProgram",
    ),
})

DEFAULT_PRODUCTS: tuple[str, ...] = ("news", "factcheck")


def genre_exclusions() -> dict[str, list[str]]:
    """Fresh, mutable copy of GENRE_EXCLUSIONS for a request."""
    return {key: list(values) for key, values in GENRE_EXCLUSIONS.items()}


@dataclass(frozen=True)
class PresetOverrides:
    """Query overrides applied by a search preset.

    genreid is either a list of genres to include or a filter object such as
    {"exclude": [...]}.
    """
    product: Optional[tuple[str, ...]] = None
    lang: Optional[tuple[str, ...]] = None
    slug: Optional[tuple[str, ...]] = None
    date_from: Optional[str] = None
    size: Optional[int] = None
    genreid: Optional[Union[tuple[str, ...], Mapping[str, tuple[str, ...]]]] = None

    def to_request(self) -> dict[str, Any]:
        """Request keys set by this preset, as fresh lists."""
        overrides: dict[str, Any] = {}
        if self.product is not None:
            overrides["product"] = list(self.product)
        if self.lang is not None:
            overrides["lang"] = list(self.lang)
        if self.slug is not None:
            overrides["slug"] = list(self.slug)
        if self.date_from is not None:
            overrides["dateFrom"] = self.date_from
        if self.size is not None:
            overrides["size"] = self.size
        if isinstance(self.genreid, Mapping):
            overrides["genreid"] = {key: list(values) for key, values in self.genreid.items()}
        elif self.genreid is not None:
            overrides["genreid"] = list(self.genreid)
        return overrides


SEARCH_PRESETS: Mapping[str, PresetOverrides] = MappingProxyType({
    "a-la-une": PresetOverrides(
        product=("news",),
        lang=("fr",),
        slug=("afp", "actualites"),
        date_from="now-1d",
        size=1,
        genreid=GENRE_EXCLUSIONS,
    ),
    "agenda": PresetOverrides(
        product=("news",),
        size=5,
        genreid=("afpattribute:Agenda",),
    ),
    "previsions": PresetOverrides(
        product=("news",),
        size=5,
        genreid=("afpattribute:Program", "afpedtype:TextProgram"),
    ),
    "major-stories": PresetOverrides(
        product=("news",),
        genreid=("afpattribute:Article",),
    ),
})


def resolve_preset(
    name: str,
    presets: Mapping[str, PresetOverrides] = SEARCH_PRESETS
) -> PresetOverrides:
    """Look up a search preset.

    Raises:
        KeyError: If the preset is unknown (tool inputs are validated first)
    """
    return presets[name]


def apply_search_preset(
    request: Mapping[str, Any],
    preset: Optional[str],
    full_text: bool,
    presets: Mapping[str, PresetOverrides] = SEARCH_PRESETS
) -> tuple[dict[str, Any], bool]:
    """Merge a preset onto a search request.

    The preset wins on conflicting keys, and any preset forces full_text.
    The input request is not modified.

    Returns:
        Tuple of (merged request, effective full_text)
    """
    merged = dict(request)
    if not preset:
        return merged, full_text
    merged.update(resolve_preset(preset, presets).to_request())
    return merged, True


@dataclass(frozen=True)
class FacetRequest:
    """Resolved arguments of a facet listing call."""
    name: str
    params: dict
    size: int
    is_trending: bool = False


def resolve_facet_request(
    facet: Optional[str],
    preset: Optional[str],
    lang: Optional[str],
    size: Optional[int]
) -> Optional[FacetRequest]:
    """Resolve the facet to list and its filters.

    trending-topics lists the slug facet over the last day of news in the
    requested language (French by default). Without a preset the facet name
    is required.

    Returns:
        FacetRequest, or None if no facet can be determined
    """
    resolved_size = size if size is not None else DEFAULT_FACET_SIZE

    if preset == TRENDING_TOPICS:
        return FacetRequest(
            name=TRENDING_FACET,
            params={
                "langs": [lang or TRENDING_DEFAULT_LANG],
                "product": ["news"],
                "dateFrom": TRENDING_LOOKBACK,
            },
            size=resolved_size,
            is_trending=True,
        )

    if not facet:
        return None

    params = {"langs": [lang]} if lang else {}
    return FacetRequest(name=facet, params=params, size=resolved_size)
