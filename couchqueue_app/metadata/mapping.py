"""
Mapping of raw TMDB payloads onto the domain models.

Search hits become MovieSummary / SeriesSummary (people and unknown
media types are skipped); detail payloads become ContentRecord.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    ContentRecord,
    ContentKind,
    ProviderName,
    MovieSummary,
    SeriesSummary,
    ProviderSummary,
)

logger = logging.getLogger(__name__)

_YEAR_PREFIX_RE = re.compile(r'^(\d{4})')

# TMDB movie and tv ids share one number space
SERIES_ID_PREFIX = 'tv/'


def extract_year(date_value: Optional[str]) -> int:
    """Leading four digits of a YYYY-MM-DD date, else the current year."""
    if date_value:
        match = _YEAR_PREFIX_RE.match(str(date_value).strip())
        if match:
            return int(match.group(1))
    return datetime.now().year


def average_runtime(episode_run_time: Optional[Iterable[Any]]) -> Optional[int]:
    """
    Rounded mean episode runtime in minutes.

    >>> average_runtime([24, 26, 25])
    25
    >>> average_runtime([]) is None
    True
    """
    values = [
        v for v in (episode_run_time or [])
        if isinstance(v, (int, float)) and not isinstance(v, bool)
    ]
    if not values:
        return None
    return round(sum(values) / len(values))


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _genre_names(payload: Dict[str, Any]) -> List[str]:
    return [g['name'] for g in payload.get('genres') or [] if isinstance(g, dict) and g.get('name')]


def _genre_ids(payload: Dict[str, Any]) -> List[int]:
    genre_ids = payload.get('genre_ids')
    if not isinstance(genre_ids, list):
        return []
    return [g for g in genre_ids if isinstance(g, int) and not isinstance(g, bool)]


def _title(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return ''


def series_provider_id(tmdb_id: Any) -> str:
    """Store key for a TMDB tv id ('1396' -> 'tv/1396')."""
    return f"{SERIES_ID_PREFIX}{tmdb_id}"


def parse_summary(payload: Dict[str, Any]) -> Optional[ProviderSummary]:
    """
    Build a tagged summary from one /search/multi hit.

    Returns None for people, unknown media types and malformed hits
    (no id, no title).
    """
    if not isinstance(payload, dict) or payload.get('id') is None:
        return None

    media_type = payload.get('media_type')
    if media_type == 'movie':
        summary_cls, title_key, original_key, date_key = (
            MovieSummary, 'title', 'original_title', 'release_date'
        )
    elif media_type == 'tv':
        summary_cls, title_key, original_key, date_key = (
            SeriesSummary, 'name', 'original_name', 'first_air_date'
        )
    else:
        if media_type != 'person':
            logger.debug(f"Skipping TMDB result with media_type={media_type!r}")
        return None

    title = _title(payload.get(title_key), payload.get(original_key))
    if not title:
        logger.debug(f"Skipping TMDB {media_type} {payload['id']} without a title")
        return None

    return summary_cls(
        provider_id=str(payload['id']),
        title=title,
        original_title=_title(payload.get(original_key)) or None,
        release_date=_blank_to_none(payload.get(date_key)),
        genre_ids=_genre_ids(payload),
    )


def movie_detail_to_record(detail: Dict[str, Any]) -> ContentRecord:
    """Map a /movie/{id} payload."""
    release_date = _blank_to_none(detail.get('release_date'))
    return ContentRecord(
        provider_name=ProviderName.TMDB,
        provider_id=str(detail['id']),
        title=detail.get('title') or detail.get('original_title') or '',
        original_title=detail.get('original_title'),
        kind=ContentKind.MOVIE,
        overview=_blank_to_none(detail.get('overview')),
        tagline=_blank_to_none(detail.get('tagline')),
        genres=_genre_names(detail),
        original_language=detail.get('original_language'),
        release_date=release_date,
        year=extract_year(release_date),
        runtime_minutes=detail.get('runtime') or None,
        poster_path=detail.get('poster_path'),
        backdrop_path=detail.get('backdrop_path'),
        external_cross_id=_blank_to_none(detail.get('imdb_id')),
    )


def series_detail_to_record(detail: Dict[str, Any]) -> ContentRecord:
    """Map a /tv/{id}?append_to_response=external_ids payload."""
    first_air_date = _blank_to_none(detail.get('first_air_date'))
    external_ids = detail.get('external_ids') or {}
    return ContentRecord(
        provider_name=ProviderName.TMDB,
        provider_id=series_provider_id(detail['id']),
        title=detail.get('name') or detail.get('original_name') or '',
        original_title=detail.get('original_name'),
        kind=ContentKind.SERIES,
        overview=_blank_to_none(detail.get('overview')),
        tagline=_blank_to_none(detail.get('tagline')),
        genres=_genre_names(detail),
        original_language=detail.get('original_language'),
        release_date=first_air_date,
        year=extract_year(first_air_date),
        runtime_minutes=average_runtime(detail.get('episode_run_time')),
        poster_path=detail.get('poster_path'),
        backdrop_path=detail.get('backdrop_path'),
        external_cross_id=_blank_to_none(external_ids.get('imdb_id')),
        season_count=detail.get('number_of_seasons'),
        episode_count=detail.get('number_of_episodes'),
        air_status=detail.get('status'),
        last_air_date=_blank_to_none(detail.get('last_air_date')),
    )
