"""ABOUTME: AFP News MCP Server - search, read and follow AFP news from an LLM assistant.

Exposes the AFP APICore news API as MCP tools (article search with presets,
article retrieval, similar articles, facet listing, e-mail notification
subscriptions), plus briefing prompts and a topic catalog resource.

Search, similar-article and facet results render as markdown (default), json
or csv, and every response stays within a fixed character ceiling.
"""

import json
from datetime import date
from typing import Any, Literal, Optional

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult, ToolAnnotations

from afpnews.mcp_base import MCPServerBase
from afpnews.error_handling import (
    ERROR_BACKEND_INIT,
    create_error_result,
    create_missing_parameter_error,
    create_upstream_error,
    create_validation_error,
)
from afpnews.apicore import NewsBackend, get_news_backend
from afpnews.formatting import (
    ALL_DOC_FIELDS,
    DEFAULT_OUTPUT_FIELDS,
    NO_RESULTS_MESSAGE,
    OutputFormat,
    api_fields_for,
    build_pagination_line,
    format_document_output,
    format_facet_output,
    format_full_article,
    normalize_facet_results,
    text_content,
)
from afpnews.presets import (
    DEFAULT_PRODUCTS,
    ListPreset,
    SearchPreset,
    apply_search_preset,
    genre_exclusions,
    resolve_facet_request,
)
from afpnews.topics import TOPICS_URI, get_topic_label, topics_as_json
from afpnews.truncation import TRUNCATION_HINT, truncate_to_limit
from afpnews.validation import (
    DEFAULT_SEARCH_SIZE,
    MAX_FACET_SIZE,
    MAX_QUERY_LENGTH,
    MAX_SEARCH_SIZE,
    MIN_FACET_SIZE,
    MIN_SEARCH_SIZE,
    normalize_facets,
    validate_email,
    validate_facets,
    validate_integer_range,
    validate_non_empty_string,
    validate_non_negative_integer,
)

# Initialize MCP server with base class
server = MCPServerBase(
    "afpnews",
    instructions="Search and read AFP news articles. Start with afp_search_articles.",
)
mcp = server.get_mcp()
logger = server.get_logger()

# ============================================================================
# MODULE-LEVEL CONSTANTS
# ============================================================================

Lang = Literal["en", "fr", "de", "pt", "es", "ar"]
Product = Literal["news", "factcheck", "photo", "video", "multimedia", "graphic", "videographic"]

NOTIFICATION_SERVICE_NAME: str = "mcp-mail-service"
NOTIFICATION_SERVICE_TYPE: str = "mail"

READ_ONLY_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=True,
)

UNO_FORMAT_NOTE = """Note on the UNO identifier (e.g. newsml.afp.com.20260222T090659Z.doc-98hu39e):
  - Publication date: the timestamp segment, e.g. 20260222T090659Z -> 2026-02-22 09:06:59 UTC
  - Short ID (afpshortid): the segment after "doc-", e.g. 98hu39e
  Both are embedded in the UNO; request afpshortid or published as explicit fields only if needed."""

AVAILABLE_FIELDS_NOTE = f"Available fields: {', '.join(ALL_DOC_FIELDS)}."

# ============================================================================
# GLOBAL STATE
# ============================================================================

# Global backend instance (initialized on first use)
_backend: Optional[NewsBackend] = None


# ============================================================================
# BACKEND MANAGEMENT
# ============================================================================

def get_backend() -> NewsBackend:
    """Get or initialize the AFP backend.

    Raises:
        ValueError: If the backend cannot be configured from the environment
    """
    global _backend

    if _backend is None:
        _backend = get_news_backend()

    return _backend


async def _backend_or_error(
    tool_name: str,
    ctx: Optional[Context]
) -> tuple[Optional[NewsBackend], Optional[CallToolResult]]:
    try:
        return get_backend(), None
    except Exception as e:
        error_msg = f"Failed to initialize AFP backend: {str(e)}"
        logger.error(error_msg, exc_info=True)
        server.log_tool_error(tool_name, ERROR_BACKEND_INIT, str(e))
        if ctx:
            await ctx.error(error_msg)
        return None, create_error_result(
            error_message=error_msg,
            error_code=ERROR_BACKEND_INIT,
            error_type="backend_error"
        )


async def _upstream_failure(
    tool_name: str,
    context: str,
    error: Exception,
    hint: str,
    ctx: Optional[Context]
) -> CallToolResult:
    logger.error(f"{tool_name}: {context} failed: {error}", exc_info=True)
    result = create_upstream_error(context, error, hint)
    server.log_tool_error(tool_name, result.metadata["error_code"], str(error))
    if ctx:
        await ctx.error(result.content[0].text)
    return result


def _topic_label(name: str) -> str:
    return get_topic_label(name) or name


async def _invalid(
    tool_name: str,
    field_name: str,
    error_msg: str,
    field_value: Any,
    ctx: Optional[Context]
) -> CallToolResult:
    logger.warning(f"{tool_name}: invalid {field_name}: {error_msg}")
    if ctx:
        await ctx.error(f"Invalid {field_name}: {error_msg}")
    return create_validation_error(
        field_name=field_name,
        error_message=error_msg,
        field_value=field_value
    )


# ============================================================================
# MCP TOOL IMPLEMENTATIONS
# ============================================================================

@mcp.tool(
    name="afp_search_articles",
    title="Search AFP News Articles",
    annotations=READ_ONLY_ANNOTATIONS,
    description=f"""Search AFP news articles with filters and presets. This is the primary query tool for all AFP news search use cases.

{UNO_FORMAT_NOTE}

Args:
  - preset: Optional predefined filter set (a-la-une, agenda, previsions, major-stories). Presets force full_text.
  - format: Output format: markdown (default), json, or csv. json/csv omit article body text.
  - fields: Fields to include in json/csv output (default: {', '.join(DEFAULT_OUTPUT_FIELDS)}). {AVAILABLE_FIELDS_NOTE}
  - full_text: Return full article body (true) or the first paragraphs only (false, default). Markdown only.
  - query: Search keywords (e.g. 'climate change')
  - size: Number of results (default {DEFAULT_SEARCH_SIZE}, max {MAX_SEARCH_SIZE})
  - sort_order: 'asc' or 'desc' by date (default 'desc')
  - offset: Pagination offset (number of results to skip)
  - facets: Facet filters as key/value pairs (e.g. {{"lang": ["fr"], "dateFrom": "2026-01-01", "dateTo": "2026-01-31", "country": ["usa"], "genreid": {{"exclude": ["afpattribute:Agenda"]}}}})

Returns:
  - markdown: Pagination summary line + one block per article (headline, metadata, body)
  - json: {{ total, offset, shown, truncated, documents: [...] }} with selected fields
  - csv: Header row + one row per article with selected fields

Examples:
  - Latest Ukraine news: {{ "query": "Ukraine", "facets": {{ "lang": ["en"] }}, "size": 5 }}
  - French front page: {{ "preset": "a-la-une" }}
  - Export metadata as CSV: {{ "query": "economy", "format": "csv", "fields": ["uno", "headline", "country"] }}""",
)
async def afp_search_articles(
    preset: Optional[SearchPreset] = None,
    format: OutputFormat = "markdown",
    fields: Optional[list[str]] = None,
    full_text: bool = False,
    query: Optional[str] = None,
    size: int = DEFAULT_SEARCH_SIZE,
    sort_order: Literal["asc", "desc"] = "desc",
    offset: Optional[int] = None,
    facets: Optional[dict[str, Any]] = None,
    ctx: Context = None
) -> CallToolResult:
    """Search AFP articles and render them as markdown, json or csv."""
    tool_name = "afp_search_articles"
    server.log_tool_start(tool_name, query=query, preset=preset, format=format, size=size, offset=offset)

    # ========================================================================
    # INPUT VALIDATION
    # ========================================================================

    if query is not None and len(query) > MAX_QUERY_LENGTH:
        error_msg = f"query must be at most {MAX_QUERY_LENGTH} characters, got {len(query)}"
        return await _invalid(tool_name, "query", error_msg, None, ctx)

    is_valid, error_msg = validate_integer_range(size, MIN_SEARCH_SIZE, MAX_SEARCH_SIZE, "size")
    if not is_valid:
        return await _invalid(tool_name, "size", error_msg, size, ctx)

    if offset is not None:
        is_valid, error_msg = validate_non_negative_integer(offset, "offset")
        if not is_valid:
            return await _invalid(tool_name, "offset", error_msg, offset, ctx)

    is_valid, error_msg = validate_facets(facets)
    if not is_valid:
        return await _invalid(tool_name, "facets", error_msg, None, ctx)

    # ========================================================================
    # REQUEST COMPOSITION
    # ========================================================================

    request: dict[str, Any] = {
        "query": query,
        "size": size,
        "sortOrder": sort_order,
        "startAt": offset,
        "product": list(DEFAULT_PRODUCTS),
        "genreid": genre_exclusions(),
        **normalize_facets(facets),
    }
    request, full_text = apply_search_preset(request, preset, full_text)

    output_fields = list(fields) if fields else list(DEFAULT_OUTPUT_FIELDS)
    api_fields = api_fields_for(format, output_fields)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    # ========================================================================
    # SEARCH EXECUTION
    # ========================================================================

    try:
        response = await backend.search(request, api_fields)
    except Exception as e:
        return await _upstream_failure(
            tool_name, "searching AFP articles", e,
            "Check your query parameters and try again.", ctx
        )

    if response.count == 0:
        server.log_tool_complete(tool_name, results=0, total=0)
        return server.create_success_result(NO_RESULTS_MESSAGE)

    current_offset = offset or 0
    output = format_document_output(
        response.documents,
        format,
        fields=output_fields,
        full_text=full_text,
        json_meta={"total": response.count, "offset": current_offset},
        markdown_prefix=[text_content(
            build_pagination_line(len(response.documents), response.count, current_offset)
        )],
    )

    server.log_tool_complete(
        tool_name,
        results=len(response.documents),
        total=response.count,
        truncated=output.truncated
    )
    return output.to_result()


@mcp.tool(
    name="afp_get_article",
    title="Get AFP Article",
    annotations=READ_ONLY_ANNOTATIONS,
    description=f"""Retrieve the complete text of a specific AFP article by its UNO identifier.

Use this tool when you have a UNO (from afp_search_articles or afp_find_similar results) and need:
  - The full, untruncated article body
  - All available metadata (country, city, slug, revision, status, signal, advisory)
  - A definitive version of the article before quoting or summarising

Do NOT use this to discover articles; use afp_search_articles for that.

{UNO_FORMAT_NOTE}

Args:
  - uno: The unique article identifier (e.g. newsml.afp.com.20260222T090659Z.doc-98hu39e)

Returns:
  Markdown article: headline, metadata lines (**Key:** value pairs), a rule, then every paragraph.""",
)
async def afp_get_article(uno: str, ctx: Context = None) -> CallToolResult:
    """Fetch one AFP article and render it in full."""
    tool_name = "afp_get_article"
    server.log_tool_start(tool_name, uno=uno)

    is_valid, error_msg = validate_non_empty_string(uno, "uno")
    if not is_valid:
        return await _invalid(tool_name, "uno", error_msg, uno, ctx)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    try:
        doc = await backend.get(uno)
    except Exception as e:
        return await _upstream_failure(
            tool_name, f'fetching article "{uno}"', e,
            "Verify the UNO identifier is correct.", ctx
        )

    server.log_tool_complete(tool_name, paragraphs=len(doc.paragraphs))
    return CallToolResult(content=[format_full_article(doc)])


@mcp.tool(
    name="afp_find_similar",
    title="Find Similar AFP Articles",
    annotations=READ_ONLY_ANNOTATIONS,
    description=f"""Find AFP news articles similar to a given article (More Like This). Useful for exploring related coverage or finding follow-up stories.

{UNO_FORMAT_NOTE}

Args:
  - uno: The UNO of the reference article
  - lang: Language for results (e.g. 'en', 'fr')
  - size: Number of similar articles to return (default 10)
  - format: Output format: markdown (default), json, or csv. json/csv omit article body text.
  - fields: Fields to include in json/csv output (default: {', '.join(DEFAULT_OUTPUT_FIELDS)}). {AVAILABLE_FIELDS_NOTE}

Returns:
  - markdown: Summary line + article excerpts
  - json: {{ total, shown, truncated, documents: [...] }} with selected fields
  - csv: Header row + data rows with selected fields""",
)
async def afp_find_similar(
    uno: str,
    lang: Lang,
    size: Optional[int] = None,
    format: OutputFormat = "markdown",
    fields: Optional[list[str]] = None,
    ctx: Context = None
) -> CallToolResult:
    """Find articles similar to a reference article."""
    tool_name = "afp_find_similar"
    server.log_tool_start(tool_name, uno=uno, lang=lang, size=size, format=format)

    is_valid, error_msg = validate_non_empty_string(uno, "uno")
    if not is_valid:
        return await _invalid(tool_name, "uno", error_msg, uno, ctx)

    if size is not None:
        is_valid, error_msg = validate_integer_range(size, MIN_SEARCH_SIZE, MAX_SEARCH_SIZE, "size")
        if not is_valid:
            return await _invalid(tool_name, "size", error_msg, size, ctx)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    try:
        response = await backend.mlt(uno, lang, size)
    except Exception as e:
        return await _upstream_failure(
            tool_name, f'finding similar articles for "{uno}"', e,
            "Verify the UNO identifier is correct.", ctx
        )

    empty_message = "No similar articles found."
    if response.count == 0:
        server.log_tool_complete(tool_name, results=0)
        return server.create_success_result(empty_message)

    output = format_document_output(
        response.documents,
        format,
        fields=fields,
        json_meta={"total": response.count},
        markdown_prefix=[text_content(f"*Found {response.count} similar articles.*")],
        empty_message=empty_message,
    )

    server.log_tool_complete(tool_name, results=len(response.documents), truncated=output.truncated)
    return output.to_result()


@mcp.tool(
    name="afp_list_facets",
    title="List AFP Facet Values",
    annotations=READ_ONLY_ANNOTATIONS,
    description="""List facet values and their article counts. Use this to discover available topics, genres, or countries, or to get trending topics.

Args:
  - preset: Optional preset (trending-topics): lists the 'slug' facet over the last 24h of news
  - facet: Facet to list (e.g. 'slug', 'genre', 'country'). Required when no preset is used.
  - lang: Language filter (e.g. 'en', 'fr')
  - size: Number of facet values to return (default 20)
  - format: Output format: markdown (default), json, or csv.

Returns:
  - markdown: List of values with article counts
  - json: Array of { name, count } objects
  - csv: name,count rows""",
)
async def afp_list_facets(
    preset: Optional[ListPreset] = None,
    facet: Optional[str] = None,
    lang: Optional[Lang] = None,
    size: Optional[int] = None,
    format: OutputFormat = "markdown",
    ctx: Context = None
) -> CallToolResult:
    """List the values of a facet with their document counts."""
    tool_name = "afp_list_facets"
    server.log_tool_start(tool_name, preset=preset, facet=facet, lang=lang, size=size, format=format)

    facet_request = resolve_facet_request(facet, preset, lang, size)
    if facet_request is None:
        logger.warning(f"{tool_name}: missing facet")
        return create_missing_parameter_error(
            "facet (e.g. 'slug', 'genre', 'country')",
            "Alternatively, use preset: 'trending-topics'."
        )

    is_valid, error_msg = validate_integer_range(facet_request.size, MIN_FACET_SIZE, MAX_FACET_SIZE, "size")
    if not is_valid:
        return await _invalid(tool_name, "size", error_msg, size, ctx)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    try:
        raw = await backend.list_facet(facet_request.name, facet_request.params, facet_request.size)
    except Exception as e:
        return await _upstream_failure(
            tool_name, "listing facet values", e,
            "Check that the facet name is valid (e.g. 'slug', 'genre', 'country').", ctx
        )

    results = normalize_facet_results(raw)
    if not results:
        server.log_tool_complete(tool_name, values=0)
        return server.create_success_result(f'No facet values found for "{facet_request.name}".')

    if facet_request.is_trending:
        output = format_facet_output(results, format, heading="Trending Topics", label_for=_topic_label)
    else:
        output = format_facet_output(results, format, heading=f"Facet: {facet_request.name}")

    server.log_tool_complete(tool_name, values=len(results), truncated=output.truncated)
    return output.to_result()


# ============================================================================
# NOTIFICATION TOOLS
# ============================================================================

async def ensure_service_exists(backend: NewsBackend, email: str) -> None:
    """Register the mail notification service unless it already exists."""
    services = await backend.list_services()
    if any(s.get("serviceName") == NOTIFICATION_SERVICE_NAME for s in services or []):
        return

    logger.info(f"Creating notification service {NOTIFICATION_SERVICE_NAME}")
    await backend.register_service(
        NOTIFICATION_SERVICE_NAME,
        NOTIFICATION_SERVICE_TYPE,
        {"address": email},
    )


async def delete_service_if_empty(backend: NewsBackend) -> bool:
    """Remove the mail notification service once it has no subscriptions left."""
    subscriptions = await backend.subscriptions_in_service(NOTIFICATION_SERVICE_NAME)
    if subscriptions:
        return False

    logger.info(f"Removing empty notification service {NOTIFICATION_SERVICE_NAME}")
    await backend.delete_service(NOTIFICATION_SERVICE_NAME)
    return True


@mcp.tool(
    name="notification-add-subscription",
    description="Subscribe to AFP news alerts by email. Automatically creates the mail notification service if needed.",
)
async def notification_add_subscription(
    name: str,
    email: str,
    query: Optional[str] = None,
    lang: Optional[list[Lang]] = None,
    product: Optional[list[Product]] = None,
    country: Optional[list[str]] = None,
    slug: Optional[list[str]] = None,
    ctx: Context = None
) -> CallToolResult:
    """Create an e-mail subscription for news matching the given filters."""
    tool_name = "notification-add-subscription"
    server.log_tool_start(tool_name, name=name, query=query, lang=lang)

    is_valid, error_msg = validate_non_empty_string(name, "name")
    if not is_valid:
        return await _invalid(tool_name, "name", error_msg, name, ctx)

    is_valid, error_msg = validate_email(email)
    if not is_valid:
        return await _invalid(tool_name, "email", error_msg, email, ctx)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    params: dict[str, Any] = {}
    if query:
        params["query"] = query
    if lang:
        params["langs"] = list(lang)
    if product:
        params["product"] = list(product)
    if country:
        params["country"] = list(country)
    if slug:
        params["slug"] = list(slug)

    try:
        await ensure_service_exists(backend, email)
        identifier = await backend.add_subscription(name, NOTIFICATION_SERVICE_NAME, params)
    except Exception as e:
        return await _upstream_failure(
            tool_name, f'creating subscription "{name}"', e,
            "Check the subscription parameters and try again.", ctx
        )

    server.log_tool_complete(tool_name, identifier=identifier)
    return server.create_success_result(
        f'Subscription "{name}" created (notifications sent to {email}).\nIdentifier: {identifier}'
    )


@mcp.tool(
    name="notification-list-subscriptions",
    description="List all active email notification subscriptions",
)
async def notification_list_subscriptions(ctx: Context = None) -> CallToolResult:
    """List the subscriptions of the mail notification service."""
    tool_name = "notification-list-subscriptions"
    server.log_tool_start(tool_name)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    try:
        subscriptions = await backend.subscriptions_in_service(NOTIFICATION_SERVICE_NAME)
    except Exception as e:
        return await _upstream_failure(
            tool_name, "listing subscriptions", e,
            "Try again later.", ctx
        )

    if not subscriptions:
        server.log_tool_complete(tool_name, subscriptions=0)
        return server.create_success_result("No subscriptions found.")

    result = truncate_to_limit(
        subscriptions,
        lambda prefix: json.dumps(list(prefix), indent=2, ensure_ascii=False),
    )
    content = [text_content(result.text)]
    if result.truncated:
        content.append(text_content(TRUNCATION_HINT))

    server.log_tool_complete(tool_name, subscriptions=len(subscriptions), truncated=result.truncated)
    return CallToolResult(content=content)


@mcp.tool(
    name="notification-delete-subscription",
    description="Delete an email notification subscription. Automatically removes the mail service if no subscriptions remain.",
)
async def notification_delete_subscription(name: str, ctx: Context = None) -> CallToolResult:
    """Delete a subscription, then the mail service if it became empty."""
    tool_name = "notification-delete-subscription"
    server.log_tool_start(tool_name, name=name)

    is_valid, error_msg = validate_non_empty_string(name, "name")
    if not is_valid:
        return await _invalid(tool_name, "name", error_msg, name, ctx)

    backend, error = await _backend_or_error(tool_name, ctx)
    if error:
        return error

    try:
        await backend.delete_subscription(NOTIFICATION_SERVICE_NAME, name)
        service_removed = await delete_service_if_empty(backend)
    except Exception as e:
        return await _upstream_failure(
            tool_name, f'deleting subscription "{name}"', e,
            "Verify the subscription name with notification-list-subscriptions.", ctx
        )

    server.log_tool_complete(tool_name, service_removed=service_removed)
    return server.create_success_result(f'Subscription "{name}" deleted.')


# ============================================================================
# PROMPTS
# ============================================================================

@mcp.prompt(name="daily-briefing", description="Generate a news briefing for today")
def daily_briefing(lang: str = "fr") -> str:
    """Daily briefing instructions for the given language."""
    today = date.today().isoformat()
    return (
        f'Use the afp_search_articles tool to find today\'s most important news '
        f'(facets: {{ "lang": ["{lang}"], "dateFrom": "{today}" }}, size: 15, sort_order: "desc"). '
        "Then write a concise daily briefing summarizing the key stories, grouped by theme."
    )


@mcp.prompt(name="comprehensive-analysis", description="Perform an in-depth analysis on a specific topic")
def comprehensive_analysis(query: str) -> str:
    return f"""Perform an in-depth analysis on "{query}":
1. Use afp_search_articles to find recent articles about "{query}" (size: 10).
2. Use afp_find_similar on the most relevant article to find related coverage.
3. Use afp_get_article to retrieve the full text of the most important articles.
4. Synthesize the information from these articles to write a comprehensive analysis covering: key facts, timeline, different angles, and outlook."""


@mcp.prompt(name="factcheck", description="Verify facts about a specific topic")
def factcheck(query: str) -> str:
    return f"""Factcheck the following query: "{query}":
1. Use afp_search_articles to find recent factchecks related to "{query}" (facets: {{ "genreid": ["afpattribute:FactcheckInvestigation"] }}, size: 10).
2. For each relevant factcheck, use afp_get_article to retrieve the full text.
3. Summarize the findings, including: what is being claimed, what the factcheck verdict is, and the evidence provided."""


@mcp.prompt(name="country-news", description="News summary for a specific country")
def country_news(country: str, lang: str = "fr") -> str:
    return (
        f'Use afp_search_articles to find recent news for country "{country}" '
        f'(facets: {{ "lang": ["{lang}"], "country": ["{country}"] }}, size: 15). '
        "Write a news summary for this country covering the main stories of the day."
    )


# ============================================================================
# RESOURCES
# ============================================================================

@mcp.resource(
    TOPICS_URI,
    name="topics",
    description="AFP Stories topic catalog: available sections by language (fr, en, de, pt, es, ar) with their identifiers",
    mime_type="application/json",
)
def topics_resource() -> str:
    return topics_as_json()


if __name__ == "__main__":
    server.run()
