"""
================================================================================
CouchQueue v1.0 - Content Models
================================================================================
Domain models shared by the discovery pipeline.

  - ContentRecord: canonical cached representation of a movie or series.
  - SearchCandidate: a ContentRecord plus a transient relevance score.
  - ParsedQuery: structured filters extracted from free-text input.
  - MovieSummary / SeriesSummary: lightweight provider search hits, tagged by
    kind so the detail fetcher can branch on an explicit field.

These are plain dataclasses; the SQLAlchemy rows live in couchqueue_app.models.
================================================================================
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Union
from enum import Enum


TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"


# =============================================================================
# ENUMS
# =============================================================================

class ContentKind(str, Enum):
    """Kind of title stored in the watch list catalogue."""
    MOVIE = "MOVIE"
    SERIES = "SERIES"


class ProviderName(str, Enum):
    """External catalogues a ContentRecord can be keyed by."""
    TMDB = "TMDB"


class Provenance(str, Enum):
    """Where a search candidate came from within one search invocation."""
    LOCAL = "local"
    PROVIDER = "provider"


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass
class ContentRecord:
    """
    Canonical cached representation of a title.

    Identity is (provider_name, provider_id); local_id is assigned by the
    Local Store on first insertion and never changes afterwards.
    """

    provider_name: ProviderName
    provider_id: str
    title: str
    kind: ContentKind
    year: int

    local_id: Optional[str] = None

    original_title: Optional[str] = None
    overview: Optional[str] = None
    tagline: Optional[str] = None
    genres: List[str] = field(default_factory=list)
    original_language: Optional[str] = None
    release_date: Optional[str] = None  # ISO date, e.g. "2010-07-15"
    runtime_minutes: Optional[int] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    external_cross_id: Optional[str] = None  # IMDb id

    # Series-only extension (present when the provider supplied season data)
    season_count: Optional[int] = None
    episode_count: Optional[int] = None
    air_status: Optional[str] = None
    last_air_date: Optional[str] = None

    @property
    def identity_key(self) -> tuple:
        return (ProviderName(self.provider_name), str(self.provider_id))

    @property
    def has_season_data(self) -> bool:
        """True when a dependent season summary should be stored."""
        return self.kind == ContentKind.SERIES and (
            self.season_count is not None
            or self.episode_count is not None
            or self.air_status is not None
            or self.last_air_date is not None
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['provider_name'] = ProviderName(self.provider_name).value
        data['kind'] = ContentKind(self.kind).value
        data['poster_url'] = image_url(self.poster_path)
        data['backdrop_url'] = backdrop_url(self.backdrop_path)
        return data


@dataclass
class SearchCandidate:
    """A ContentRecord annotated with a similarity score for one search."""
    record: ContentRecord
    similarity: float = 0.0
    provenance: Provenance = Provenance.LOCAL

    # Composite score filled in by the ranker (similarity + bonuses)
    relevance: Optional[float] = None

    @property
    def local_id(self) -> Optional[str]:
        return self.record.local_id

    @property
    def is_fresh(self) -> bool:
        return self.provenance == Provenance.PROVIDER


@dataclass
class ParsedQuery:
    """Structured form of a raw search string. Never persisted."""
    text: str
    year: Optional[int] = None
    genres: Optional[List[str]] = None


# =============================================================================
# PROVIDER SUMMARIES (tagged union)
# =============================================================================

@dataclass
class MovieSummary:
    """Search hit for a movie; a detail call is needed before caching."""
    provider_id: str
    title: str
    original_title: Optional[str] = None
    release_date: Optional[str] = None
    genre_ids: List[int] = field(default_factory=list)
    genre_names: List[str] = field(default_factory=list)
    kind: ContentKind = field(default=ContentKind.MOVIE, init=False)


@dataclass
class SeriesSummary:
    """Search hit for a TV series; a detail call is needed before caching."""
    provider_id: str
    title: str
    original_title: Optional[str] = None
    release_date: Optional[str] = None  # first_air_date
    genre_ids: List[int] = field(default_factory=list)
    genre_names: List[str] = field(default_factory=list)
    kind: ContentKind = field(default=ContentKind.SERIES, init=False)


ProviderSummary = Union[MovieSummary, SeriesSummary]


# =============================================================================
# IMAGE HELPERS
# =============================================================================

def image_url(path: Optional[str], size: str = "w500") -> Optional[str]:
    """Full poster URL for a TMDB relative image path."""
    if not path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}/{size}{path}"


def backdrop_url(path: Optional[str], size: str = "w1280") -> Optional[str]:
    """Full backdrop URL for a TMDB relative image path."""
    if not path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}/{size}{path}"
