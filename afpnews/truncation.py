"""ABOUTME: Size-bounded output truncation for MCP tool responses.

Every tool response is capped at CHARACTER_LIMIT characters. Two strategies:

- truncate_to_limit: binary search for the longest prefix of homogeneous items
  (JSON documents, CSV rows) whose serialization fits the limit.
- truncate_blocks: greedy accumulation of heterogeneous pre-rendered markdown
  blocks, with a hard cut of the first block that does not fit.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

from mcp.types import TextContent

# Configure logging
logger = logging.getLogger(__name__)

T = TypeVar("T")

CHARACTER_LIMIT: int = 25_000

# A block that overflows is only cut when at least this much budget remains
MIN_PARTIAL_BLOCK_CHARS: int = 100

ELLIPSIS_MARKER: str = "\n\n[...]"

TRUNCATION_HINT: str = (
    f"Response truncated: output exceeded {CHARACTER_LIMIT:,} characters. "
    "Reduce 'size' or add filters to narrow the results."
)


@dataclass
class TruncationResult:
    """Outcome of truncate_to_limit.

    Attributes:
        text: Serialization of the kept prefix
        count: Number of items kept
        truncated: True if items were dropped
    """
    text: str
    count: int
    truncated: bool


def truncate_to_limit(
    items: Sequence[T],
    serialize: Callable[[Sequence[T]], str],
    limit: int = CHARACTER_LIMIT
) -> TruncationResult:
    """Serialize the longest prefix of items that fits within limit characters.

    Precondition: len(serialize(items[:k])) must be non-decreasing in k. This
    holds for JSON arrays and for header + CSV rows, where each extra item
    appends text. With it, the binary search returns the maximal k such that
    serialize(items[:k]) fits, and serialize(items[:k + 1]) does not.

    Costs O(log n) calls to serialize.

    Args:
        items: Items to serialize (e.g. projected documents, CSV rows)
        serialize: Function turning a prefix of items into text
        limit: Maximum length of the returned text

    Returns:
        TruncationResult with the text, kept item count, and truncated flag
    """
    full_text = serialize(items)
    if len(full_text) <= limit:
        return TruncationResult(text=full_text, count=len(items), truncated=False)

    # Invariant: prefix of length `low` fits, prefix of length `high + 1` does not
    low, high = 0, len(items) - 1
    while low < high:
        mid = (low + high + 1) // 2
        if len(serialize(items[:mid])) <= limit:
            low = mid
        else:
            high = mid - 1

    logger.info(f"Truncated output: kept {low} of {len(items)} items ({limit} char limit)")
    return TruncationResult(text=serialize(items[:low]), count=low, truncated=True)


def total_length(blocks: Sequence[TextContent]) -> int:
    """Combined character count of text blocks."""
    return sum(len(block.text) for block in blocks)


def truncate_blocks(
    blocks: Sequence[TextContent],
    limit: int = CHARACTER_LIMIT
) -> tuple[list[TextContent], bool]:
    """Fit pre-rendered markdown blocks into limit characters.

    Blocks are kept in order while the running total stays within the limit.
    The first block that does not fit is cut (with an ellipsis marker) when
    more than MIN_PARTIAL_BLOCK_CHARS remain, otherwise dropped, and nothing
    after it is kept. A TRUNCATION_HINT block is appended when anything was
    dropped or cut; the hint does not count against the limit.

    This does not search for the maximal shippable content: markdown is read
    by people and LLMs, not parsed.

    Args:
        blocks: Rendered text blocks
        limit: Character budget for the blocks

    Returns:
        Tuple of (blocks to return, truncated flag)
    """
    if total_length(blocks) <= limit:
        return list(blocks), False

    kept: list[TextContent] = []
    used = 0
    for block in blocks:
        if used + len(block.text) <= limit:
            kept.append(block)
            used += len(block.text)
            continue

        remaining = limit - used
        if remaining > MIN_PARTIAL_BLOCK_CHARS:
            cut = block.text[:remaining - len(ELLIPSIS_MARKER)]
            kept.append(TextContent(type="text", text=cut + ELLIPSIS_MARKER))
        break

    logger.info(f"Truncated markdown: kept {len(kept)} of {len(blocks)} blocks ({limit} char limit)")
    kept.append(TextContent(type="text", text=TRUNCATION_HINT))
    return kept, True
