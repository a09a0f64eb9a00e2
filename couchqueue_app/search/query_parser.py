"""
Query parsing for content discovery.

Extracts a release year and genre hints from free-text search input:

    "horror 2023"   -> ParsedQuery(text="horror", year=2023, genres=["Horror"])
    "sci-fi action" -> ParsedQuery(text="sci-fi action", genres=["Science Fiction", "Action"])
    "2023"          -> ParsedQuery(text="2023")   # nothing left after stripping

Genre words stay in the text so titles such as "Horror Movie" still match.
"""

import re
from typing import Dict, List

from ..metadata.models import ParsedQuery


YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")

# Alias -> provider genre name
GENRE_ALIASES: Dict[str, str] = {
    'sci-fi': 'Science Fiction',
    'scifi': 'Science Fiction',
    'sf': 'Science Fiction',
    'science fiction': 'Science Fiction',
    'horror': 'Horror',
    'comedy': 'Comedy',
    'action': 'Action',
    'drama': 'Drama',
    'thriller': 'Thriller',
    'romance': 'Romance',
    'fantasy': 'Fantasy',
    'animation': 'Animation',
    'documentary': 'Documentary',
    'crime': 'Crime',
    'mystery': 'Mystery',
    'adventure': 'Adventure',
    'western': 'Western',
    'war': 'War',
}

_GENRE_PATTERNS = [
    (re.compile(rf"\b{re.escape(alias)}\b", re.IGNORECASE), name)
    for alias, name in GENRE_ALIASES.items()
]


def _collapse(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def extract_genres(text: str) -> List[str]:
    """Canonical genre names mentioned in text, in dictionary order, no duplicates."""
    genres: List[str] = []
    for pattern, name in _GENRE_PATTERNS:
        if name not in genres and pattern.search(text):
            genres.append(name)
    return genres


def parse_query(raw_query: str) -> ParsedQuery:
    """
    Parse a raw search string into a ParsedQuery. Never raises.

    Args:
        raw_query: User input

    Returns:
        ParsedQuery with the year removed from text (unless that would leave
        nothing) and genre hints, or genres=None when no alias matched.
    """
    if not isinstance(raw_query, str):
        raw_query = ""

    original = raw_query.strip()
    text = original
    year = None

    match = YEAR_RE.search(text)
    if match:
        stripped = _collapse(text[:match.start()] + " " + text[match.end():])
        if stripped:
            text = stripped
            year = int(match.group(1))

    genres = extract_genres(text)

    return ParsedQuery(
        text=text,
        year=year,
        genres=genres or None,
    )
