"""ABOUTME: Response formatting for AFP documents - projection, rendering and pagination.

Turns documents and facet values into MCP text blocks in one of three output
formats (markdown, json, csv), projecting structured output onto a field
allow-list and keeping every response within the character ceiling.
"""

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping, Optional, Sequence

from mcp.types import CallToolResult, TextContent

from .apicore.backend import Document, FacetResult
from .truncation import (
    CHARACTER_LIMIT,
    TRUNCATION_HINT,
    total_length,
    truncate_blocks,
    truncate_to_limit,
)

# Configure logging
logger = logging.getLogger(__name__)


OutputFormat = Literal["markdown", "json", "csv"]

EXCERPT_PARAGRAPH_COUNT: int = 4
NO_RESULTS_MESSAGE: str = "No results found."

# Document fields that may be requested for json/csv output
ALL_DOC_FIELDS: tuple[str, ...] = (
    "uno",
    "headline",
    "lang",
    "genre",
    "afpshortid",
    "published",
    "status",
    "signal",
    "advisory",
    "country",
    "city",
    "slug",
    "product",
    "revision",
    "created",
)

DEFAULT_OUTPUT_FIELDS: tuple[str, ...] = ("uno", "headline", "lang", "genre")

# Fields fetched for markdown rendering (published and afpshortid are encoded in the UNO)
MARKDOWN_API_FIELDS: tuple[str, ...] = (
    "uno", "headline", "news", "lang", "genre", "status", "signal", "advisory",
)

FIELD_ACCESSORS: Mapping[str, Callable[[Document], Any]] = MappingProxyType({
    "uno": lambda doc: doc.uno,
    "headline": lambda doc: doc.headline,
    "lang": lambda doc: doc.lang,
    "genre": lambda doc: doc.genre,
    "afpshortid": lambda doc: doc.short_id,
    "published": lambda doc: doc.published,
    "status": lambda doc: doc.status,
    "signal": lambda doc: doc.signal,
    "advisory": lambda doc: doc.advisory,
    "country": lambda doc: doc.country,
    "city": lambda doc: doc.city,
    "slug": lambda doc: doc.slug,
    "product": lambda doc: doc.product,
    "revision": lambda doc: doc.revision,
    "created": lambda doc: doc.created,
})


@dataclass
class RenderedOutput:
    """Text blocks returned to the caller.

    Attributes:
        content: Text blocks in display order
        truncated: True if the character ceiling forced truncation
    """
    content: list[TextContent] = field(default_factory=list)
    truncated: bool = False

    def to_result(self) -> CallToolResult:
        """Convert into an MCP tool result."""
        return CallToolResult(content=self.content)


def text_content(text: str) -> TextContent:
    """Wrap text into an MCP text block."""
    return TextContent(type="text", text=text)


def api_fields_for(output_format: str, fields: Sequence[str]) -> list[str]:
    """Fields to request from the API for the given output format.

    Markdown needs the body and flags; json/csv need the projected fields plus
    identifiers, deduplicated in order. Unknown names are never sent to the
    API; they only project to None.
    """
    if output_format == "markdown":
        return list(MARKDOWN_API_FIELDS)
    known = [name for name in fields if name in FIELD_ACCESSORS]
    return list(dict.fromkeys(["afpshortid", "uno", *known]))


# ===========================
# Field Projection
# ===========================

def project_fields(doc: Document, names: Sequence[str]) -> dict[str, Any]:
    """Reduce a document to the requested fields.

    Unknown names and empty values map to None, so caller-supplied field
    names never raise.
    """
    projected = {}
    for name in names:
        accessor = FIELD_ACCESSORS.get(name)
        value = accessor(doc) if accessor else None
        projected[name] = None if value in ("", [], ()) else value
    return projected


def csv_value(value: Any) -> str:
    """Render a projected value as a CSV cell (before escaping)."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "|".join(str(v) for v in value)
    return str(value)


def escape_csv_value(value: str) -> str:
    """Quote a CSV cell when it contains a comma, a quote or a newline."""
    if any(ch in value for ch in (",", '"', "\n")):
        return '"' + value.replace('"', '""') + '"'
    return value


def to_csv_row(values: Sequence[Any]) -> str:
    return ",".join(escape_csv_value(csv_value(v)) for v in values)


# ===========================
# Markdown Rendering
# ===========================

def _join_values(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def format_document(doc: Document, full_text: bool = False) -> TextContent:
    """Render a document as a markdown block.

    Layout: "## headline", an italic metadata line, then the body (first
    EXCERPT_PARAGRAPH_COUNT paragraphs unless full_text).
    """
    meta = [f"UNO: {doc.uno}"]
    if doc.published:
        meta.append(f"Published: {doc.published}")
    if doc.lang:
        meta.append(f"Lang: {doc.lang}")
    if doc.genre:
        meta.append(f"Genre: {doc.genre}")
    if doc.status:
        meta.append(f"Status: {doc.status}")
    if doc.signal:
        meta.append(f"Signal: {doc.signal}")
    if doc.advisory:
        meta.append(f"Advisory: {doc.advisory}")

    paragraphs = doc.paragraphs if full_text else doc.paragraphs[:EXCERPT_PARAGRAPH_COUNT]
    body = "\n\n".join(paragraphs)

    return text_content(f"## {doc.headline}\n*{' | '.join(meta)}*\n\n{body}")


def _meta_line(pairs: Sequence[tuple[str, Any]]) -> Optional[str]:
    present = [f"**{key}:** {_join_values(value)}" for key, value in pairs if value not in (None, "", [])]
    return " · ".join(present) if present else None


def format_full_article(doc: Document) -> TextContent:
    """Render a document with all its metadata and the complete body."""
    groups = [
        [("UNO", doc.uno), ("Published", doc.published), ("Short ID", doc.afpshortid)],
        [("Lang", doc.lang), ("Genre", doc.genre), ("Product", doc.product), ("Revision", doc.revision)],
        [("Country", doc.country), ("City", doc.city), ("Slug", doc.slug)],
        [("Status", doc.status), ("Signal", doc.signal), ("Advisory", doc.advisory)],
    ]
    lines = [line for line in (_meta_line(group) for group in groups) if line]

    body = "\n\n".join(doc.paragraphs)
    return text_content(f"## {doc.headline}\n\n" + "\n".join(lines) + f"\n\n---\n\n{body}")


# ===========================
# Pagination
# ===========================

def build_pagination_line(shown: int, total: int, offset: int) -> str:
    """Summarize which slice of the results is displayed.

    Examples:
        >>> build_pagination_line(3, 10, 0)
        'Showing 3 of 10 results (offset: 0). Use offset=3 to see more.'
        >>> build_pagination_line(3, 3, 0)
        'Showing 3 of 3 results (offset: 0).'
    """
    line = f"Showing {shown} of {total} results (offset: {offset})."
    if total > offset + shown:
        line += f" Use offset={offset + shown} to see more."
    return line


# ===========================
# Output Assembly
# ===========================

def _structured_output(text: str, truncated: bool) -> RenderedOutput:
    content = [text_content(text)]
    if truncated:
        content.append(text_content(TRUNCATION_HINT))
    return RenderedOutput(content=content, truncated=truncated)


def render_markdown(
    documents: Sequence[Document],
    full_text: bool = False,
    prefix: Sequence[TextContent] = ()
) -> RenderedOutput:
    """Markdown blocks for documents, truncated to fit alongside the prefix blocks."""
    blocks = [format_document(doc, full_text) for doc in documents]
    budget = max(CHARACTER_LIMIT - total_length(prefix), 0)
    kept, truncated = truncate_blocks(blocks, limit=budget)
    return RenderedOutput(content=[*prefix, *kept], truncated=truncated)


def render_json(
    documents: Sequence[Document],
    fields: Sequence[str],
    meta: Optional[dict[str, Any]] = None
) -> RenderedOutput:
    """One JSON block: {**meta, shown, truncated, documents}."""
    projected = [project_fields(doc, fields) for doc in documents]
    meta = meta or {}

    def serialize(prefix: Sequence[dict]) -> str:
        payload = {
            **meta,
            "shown": len(prefix),
            "truncated": len(prefix) < len(projected),
            "documents": list(prefix),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    result = truncate_to_limit(projected, serialize)
    return _structured_output(result.text, result.truncated)


def render_csv(documents: Sequence[Document], fields: Sequence[str]) -> RenderedOutput:
    """One CSV block: header row plus one row per document."""
    header = ",".join(fields)
    rows = [
        to_csv_row(list(project_fields(doc, fields).values()))
        for doc in documents
    ]
    result = truncate_to_limit(rows, lambda prefix: "\n".join([header, *prefix]))
    return _structured_output(result.text, result.truncated)


def format_document_output(
    documents: Sequence[Document],
    output_format: str = "markdown",
    *,
    fields: Optional[Sequence[str]] = None,
    full_text: bool = False,
    json_meta: Optional[dict[str, Any]] = None,
    markdown_prefix: Sequence[TextContent] = (),
    empty_message: str = NO_RESULTS_MESSAGE
) -> RenderedOutput:
    """Render documents in the requested output format.

    Args:
        documents: Documents to render
        output_format: "markdown", "json" or "csv"
        fields: Fields for json/csv output (default DEFAULT_OUTPUT_FIELDS)
        full_text: Render full bodies instead of excerpts (markdown only)
        json_meta: Context merged into the JSON payload (e.g. total, offset)
        markdown_prefix: Blocks placed before the documents (markdown only)
        empty_message: Text returned when there are no documents

    Returns:
        RenderedOutput; a single empty_message block when documents is empty
    """
    if not documents:
        return RenderedOutput(content=[text_content(empty_message)])

    fields = list(fields) if fields else list(DEFAULT_OUTPUT_FIELDS)

    if output_format == "json":
        return render_json(documents, fields, json_meta)
    if output_format == "csv":
        return render_csv(documents, fields)
    return render_markdown(documents, full_text, markdown_prefix)


# ===========================
# Facets
# ===========================

def normalize_facet_results(raw: Any) -> list[FacetResult]:
    """Accept a list of facet entries or a mapping holding them under "keywords".

    Entries may name their value under "name" or "key". Entries that are not
    mappings, have no name or carry a non-numeric count are skipped; a
    missing count is 0.
    """
    if isinstance(raw, Mapping):
        raw = raw.get("keywords") or []
    if not isinstance(raw, (list, tuple)):
        logger.warning(f"Unexpected facet payload type: {type(raw).__name__}")
        return []

    results = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        name = item.get("name", item.get("key"))
        if name is None:
            continue
        try:
            count = int(item.get("count") or 0)
        except (TypeError, ValueError):
            logger.warning(f"Skipping facet value {name!r} with invalid count {item.get('count')!r}")
            continue
        results.append(FacetResult(name=str(name), count=count))
    return results


def format_facet_output(
    results: Sequence[FacetResult],
    output_format: str = "markdown",
    heading: str = "",
    label_for: Callable[[str], str] = lambda name: name
) -> RenderedOutput:
    """Render facet values as a markdown list, a JSON array or name,count CSV rows."""
    if output_format == "json":
        items = [{"name": r.name, "count": r.count} for r in results]
        result = truncate_to_limit(items, lambda prefix: json.dumps(list(prefix), indent=2, ensure_ascii=False))
        return _structured_output(result.text, result.truncated)

    if output_format == "csv":
        rows = [f"{escape_csv_value(r.name)},{r.count}" for r in results]
        result = truncate_to_limit(rows, lambda prefix: "\n".join(["name,count", *prefix]))
        return _structured_output(result.text, result.truncated)

    lines = [f"- **{label_for(r.name)}** — {r.count} articles" for r in results]
    blocks, truncated = truncate_blocks([text_content(f"## {heading}\n\n" + "\n".join(lines))])
    return RenderedOutput(content=blocks, truncated=truncated)
