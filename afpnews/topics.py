"""ABOUTME: AFP Stories topic catalog, exposed as the afp://topics resource.

Each language maps to the editorially curated sections available in it, with
the identifier to pass as a "topic" facet filter.
"""

import json
from types import MappingProxyType
from typing import Mapping, Optional

TOPICS_URI: str = "afp://topics"

TOPICS: Mapping[str, tuple[Mapping[str, str], ...]] = MappingProxyType({
    "fr": (
        MappingProxyType({"label": "À la une", "value": "ONLINE-NEWS-FR_LA-UNE"}),
        MappingProxyType({"label": "International", "value": "ONLINE-NEWS-FR_INTERNATIONAL"}),
        MappingProxyType({"label": "France", "value": "ONLINE-NEWS-FR_FRANCE"}),
        MappingProxyType({"label": "Économie", "value": "ONLINE-NEWS-FR_ECONOMIE"}),
        MappingProxyType({"label": "Sports", "value": "ONLINE-NEWS-FR_SPORTS"}),
    ),
    "en": (
        MappingProxyType({"label": "Top stories", "value": "ONLINE-NEWS-EN_TOP-STORIES-INT"}),
        MappingProxyType({"label": "World", "value": "ONLINE-NEWS-EN_WORLD"}),
        MappingProxyType({"label": "Business", "value": "ONLINE-NEWS-EN_BUSINESS"}),
        MappingProxyType({"label": "Sports", "value": "ONLINE-NEWS-EN_SPORTS"}),
    ),
    "de": (
        MappingProxyType({"label": "Topthemen", "value": "ONLINE-NEWS-DE_TOPTHEMEN"}),
    ),
    "pt": (
        MappingProxyType({"label": "Destaques", "value": "ONLINE-NEWS-PT_DESTAQUES"}),
    ),
    "es": (
        MappingProxyType({"label": "Portada", "value": "ONLINE-NEWS-ES_PORTADA"}),
    ),
    "ar": (
        MappingProxyType({"label": "أبرز الأخبار", "value": "ONLINE-NEWS-AR_TOP-STORIES"}),
    ),
})

_LABELS: Mapping[str, str] = MappingProxyType({
    topic["value"]: topic["label"]
    for topics in TOPICS.values()
    for topic in topics
})


def get_topic_label(value: str) -> Optional[str]:
    """Human-readable label of a topic identifier, or None if unknown."""
    return _LABELS.get(value)


def topics_as_json() -> str:
    """Catalog serialized for the topics resource."""
    catalog = {lang: [dict(topic) for topic in topics] for lang, topics in TOPICS.items()}
    return json.dumps(catalog, indent=2, ensure_ascii=False)
