"""
================================================================================
CouchQueue v1.0 - Result Merger / Ranker
================================================================================
Combines local search candidates with freshly cached provider records.

Problem:
  A search that falls through to TMDB ends up with two result sets: what the
  Local Store already knew, and what was just fetched and cached. The same
  title can appear in both.

Solution:
  1. Local candidates first, in their search order
  2. Provider records appended as "fresh" candidates
  3. Deduplicate by local id (first occurrence wins, so local beats provider)
  4. Composite relevance = similarity + recency bonus + freshness bonus
  5. Sort by relevance and truncate to the page size

The pipeline's default "re-query" strategy skips this module and lets the
Local Store's unique key do the deduplication; see search.smart_search.
================================================================================
"""

from datetime import datetime
from typing import List, Optional, Sequence, Set
import logging

from ..metadata.models import ContentRecord, SearchCandidate, Provenance

logger = logging.getLogger(__name__)

RECENCY_BONUS = 0.1
RECENCY_WINDOW_YEARS = 2
FRESH_BONUS = 0.15


def relevance_score(
    candidate: SearchCandidate,
    fresh: Optional[bool] = None,
    current_year: Optional[int] = None
) -> float:
    """
    Composite relevance for sorting merged results.

    Args:
        candidate: Scored candidate
        fresh: Whether it was just sourced from the provider
               (defaults to the candidate's provenance)
        current_year: Override for the calendar year (tests)

    Returns:
        similarity + 0.1 if released in the last two years + 0.15 if fresh
    """
    if fresh is None:
        fresh = candidate.is_fresh
    if current_year is None:
        current_year = datetime.now().year

    score = candidate.similarity or 0.0
    if candidate.record.year >= current_year - RECENCY_WINDOW_YEARS:
        score += RECENCY_BONUS
    if fresh:
        score += FRESH_BONUS
    return score


def merge_candidates(
    local: Sequence[SearchCandidate],
    provider_fetched: Sequence[ContentRecord],
    limit: int = 10,
    current_year: Optional[int] = None
) -> List[SearchCandidate]:
    """
    Simple-union merge. Returns ranked candidates with `relevance` set.

    When provider_fetched is empty the local candidates are returned in their
    original order, only truncated.
    """
    if not provider_fetched:
        return list(local)[:limit]

    seen: Set[str] = set()
    merged: List[SearchCandidate] = []

    def _add(candidate: SearchCandidate):
        key = candidate.local_id or f"{candidate.record.provider_name}:{candidate.record.provider_id}"
        if key in seen:
            logger.debug(f"Dropping duplicate '{candidate.record.title}' ({key})")
            return
        seen.add(key)
        candidate.relevance = relevance_score(candidate, current_year=current_year)
        merged.append(candidate)

    for candidate in local:
        _add(candidate)

    for record in provider_fetched:
        _add(SearchCandidate(
            record=record,
            similarity=0.0,
            provenance=Provenance.PROVIDER,
        ))

    # sorted() is stable, so equal scores keep local-first order
    merged = sorted(merged, key=lambda c: c.relevance, reverse=True)

    logger.debug(
        f"Merged {len(local)} local + {len(provider_fetched)} provider "
        f"into {len(merged)} unique results"
    )
    return merged[:limit]


def merge_and_rank(
    local: Sequence[SearchCandidate],
    provider_fetched: Sequence[ContentRecord],
    limit: int = 10,
    current_year: Optional[int] = None
) -> List[ContentRecord]:
    """merge_candidates(), reduced to the records."""
    return [
        candidate.record
        for candidate in merge_candidates(local, provider_fetched, limit, current_year)
    ]
