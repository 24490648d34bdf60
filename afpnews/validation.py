"""ABOUTME: Shared validation utilities for the AFP news MCP tools.

Validates tool arguments before any call to the AFP API, so bad input costs no
network round-trip. Standalone validators return (is_valid, error_message);
facet filter values are checked with a pydantic TypeAdapter.

Design:
- Constants for the limits the AFP API accepts
- Standalone validator functions (return tuple[bool, Optional[str]])
- Pydantic models for structured facet filter objects
"""

from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator


# =============================================================================
# Validation Constants
# =============================================================================

MIN_SEARCH_SIZE: int = 1
MAX_SEARCH_SIZE: int = 1000
DEFAULT_SEARCH_SIZE: int = 10

MIN_FACET_SIZE: int = 1
MAX_FACET_SIZE: int = 1000

MAX_QUERY_LENGTH: int = 1024

# Arguments that have their own top-level parameter and may not appear in facets
RESERVED_FACET_KEYS: frozenset[str] = frozenset({
    "preset",
    "format",
    "fields",
    "full_text",
    "fullText",
    "query",
    "size",
    "sort_order",
    "sortOrder",
    "offset",
    "startAt",
    "facets",
})


# =============================================================================
# Facet Filter Models
# =============================================================================

class FacetFilter(BaseModel):
    """Include/exclude filter object, e.g. {"exclude": ["afpattribute:Agenda"]}."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    include: Optional[Union[list[str], list[int]]] = Field(default=None, alias="in")
    exclude: Optional[Union[list[str], list[int]]] = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "FacetFilter":
        if self.include is None and self.exclude is None:
            raise ValueError("Facet filter object must include either 'in' or 'exclude'.")
        return self


FacetValue = Union[str, int, list[str], list[int], FacetFilter]

FACET_VALUE_ADAPTER: TypeAdapter = TypeAdapter(FacetValue)


def _first_error(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return str(error)
    return errors[-1].get("msg", str(error))


# =============================================================================
# Standalone Validator Functions
# =============================================================================

def validate_integer_range(
    value: int,
    min_val: int,
    max_val: int,
    field_name: str = "value"
) -> Tuple[bool, Optional[str]]:
    """Validate that integer is within range.

    Example:
        is_valid, error = validate_integer_range(size, 1, 1000, "size")
    """
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{field_name} must be an integer, got {type(value).__name__}"

    if value < min_val or value > max_val:
        return False, f"{field_name} must be between {min_val} and {max_val}, got {value}"

    return True, None


def validate_non_negative_integer(
    value: int,
    field_name: str = "value"
) -> Tuple[bool, Optional[str]]:
    """Validate that value is an integer >= 0."""
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{field_name} must be an integer, got {type(value).__name__}"

    if value < 0:
        return False, f"{field_name} must not be negative, got {value}"

    return True, None


def validate_non_empty_string(
    value: str,
    field_name: str = "field"
) -> Tuple[bool, Optional[str]]:
    """Validate that string is not empty or whitespace-only."""
    if not isinstance(value, str):
        return False, f"{field_name} must be a string, got {type(value).__name__}"

    if not value.strip():
        return False, f"{field_name} cannot be empty or whitespace-only"

    return True, None


def validate_email(value: str) -> Tuple[bool, Optional[str]]:
    """Light e-mail check: one "@" with a dotted domain."""
    is_valid, error = validate_non_empty_string(value, "email")
    if not is_valid:
        return is_valid, error

    local, sep, domain = value.strip().partition("@")
    if not sep or not local or "." not in domain or "@" in domain:
        return False, f"email is not a valid address: {value}"

    return True, None


def validate_facets(facets: Optional[dict[str, Any]]) -> Tuple[bool, Optional[str]]:
    """Validate facet filters passed to a search.

    Keys must not shadow top-level arguments. Values are a string, a number, a
    list of either, or an {"in": [...]} / {"exclude": [...]} object.

    Example:
        is_valid, error = validate_facets({"lang": ["fr"], "urgency": 1})
    """
    if facets is None:
        return True, None

    if not isinstance(facets, dict):
        return False, f"facets must be an object, got {type(facets).__name__}"

    for key, value in facets.items():
        if key in RESERVED_FACET_KEYS:
            return False, f'Facet key "{key}" is reserved and must be provided at top-level.'
        try:
            FACET_VALUE_ADAPTER.validate_python(value)
        except ValidationError as e:
            return False, f'Invalid value for facet "{key}": {_first_error(e)}'

    return True, None


def normalize_facets(facets: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Convert validated facet filters into plain request values.

    Filter objects become {"in": [...]} / {"exclude": [...]} dicts.
    """
    normalized: dict[str, Any] = {}
    for key, value in (facets or {}).items():
        parsed = FACET_VALUE_ADAPTER.validate_python(value)
        if isinstance(parsed, FacetFilter):
            normalized[key] = parsed.model_dump(by_alias=True, exclude_none=True)
        else:
            normalized[key] = parsed
    return normalized
