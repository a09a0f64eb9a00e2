"""Lightweight request validation helpers."""

from typing import Any, Optional, Tuple

from ..metadata.models import ContentKind

# Query length limits
MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200


def sanitize_string(value: Any, max_length: int = 500, allow_newlines: bool = False) -> str:
    """
    Sanitize a string by removing control characters and limiting length.

    Args:
        value: String to sanitize
        max_length: Maximum allowed length
        allow_newlines: Whether to allow newlines

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return ""

    # Remove control characters (except newlines if allowed)
    if allow_newlines:
        result = ''.join(c for c in value if c >= ' ' or c in '\n\r\t')
    else:
        result = ''.join(c for c in value if c >= ' ')

    # Limit length
    return result[:max_length]


def validate_search_query(raw: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Validate the ?q= search parameter.

    Returns:
        Tuple of (sanitized_query, error_or_none)
    """
    if raw is None or not raw.strip():
        return "", "Search query is required (use ?q=movie+name)"

    query = sanitize_string(raw, max_length=MAX_QUERY_LENGTH).strip()
    if len(query) < MIN_QUERY_LENGTH:
        return query, f"Search query must be at least {MIN_QUERY_LENGTH} characters"

    return query, None


def validate_content_kind(raw: Optional[str]) -> Tuple[Optional[ContentKind], Optional[str]]:
    """
    Validate the optional ?type= parameter (MOVIE or SERIES, any case).

    Returns:
        Tuple of (kind_or_none, error_or_none)
    """
    if raw is None or not raw.strip():
        return None, None
    try:
        return ContentKind(raw.strip().upper()), None
    except ValueError:
        allowed = ', '.join(k.value for k in ContentKind)
        return None, f"Invalid type '{raw}' (expected one of {allowed})"
