"""
================================================================================
CouchQueue v1.0 - Metadata Package
================================================================================
External catalogue access (TMDB) and the shared content models.

Components:
  - models.py - ContentRecord, SearchCandidate, ParsedQuery, provider summaries
  - providers/ - BaseMetadataProvider and the TMDB REST client
  - mapping.py - Raw TMDB payloads -> summaries and ContentRecords
  - genres.py - Injectable genre id -> name cache
  - manager.py - Provider search and parallel detail fetch
================================================================================
"""

from .models import (
    ContentRecord,
    ContentKind,
    ProviderName,
    Provenance,
    SearchCandidate,
    ParsedQuery,
    MovieSummary,
    SeriesSummary,
)

__all__ = [
    'ContentRecord',
    'ContentKind',
    'ProviderName',
    'Provenance',
    'SearchCandidate',
    'ParsedQuery',
    'MovieSummary',
    'SeriesSummary',
]
