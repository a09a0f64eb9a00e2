"""
================================================================================
CouchQueue v1.0 - Metadata Manager
================================================================================
Provider search and detail fetch for the discovery pipeline.

Given the residual query text, asks the metadata provider for candidates the
Local Store does not have yet:

  1. One /search/multi call (people and unknown media types dropped)
  2. Keep only the requested kinds
  3. Order by hint match (year, genre names), then fuzzy title similarity
  4. Truncate to the fill budget (page size minus local results)
  5. Fetch full details for the survivors in parallel
  6. Map each detail payload to a ContentRecord

Usage:
    manager = MetadataManager(TMDBProvider(), genre_cache=GenreCache())
    records = await manager.fetch_candidates("inception", already_have=2)
    await manager.close()
================================================================================
"""

import asyncio
from typing import List, Optional, Sequence
import logging

from rapidfuzz import fuzz

from .models import (
    ContentRecord,
    ContentKind,
    ParsedQuery,
    MovieSummary,
    SeriesSummary,
    ProviderSummary,
)
from .genres import GenreCache
from .mapping import parse_summary, movie_detail_to_record, series_detail_to_record, extract_year
from .providers.base import BaseMetadataProvider

logger = logging.getLogger(__name__)


class MetadataManager:
    """
    Turns query text into fresh ContentRecords from the metadata provider.

    Handles:
      - Kind filtering and fill budget
      - Hint-aware candidate ordering
      - Parallel detail fetches with per-item failure isolation
    """

    def __init__(
        self,
        provider: BaseMetadataProvider,
        genre_cache: Optional[GenreCache] = None
    ):
        self.provider = provider
        self.genre_cache = genre_cache if genre_cache is not None else GenreCache()

    async def close(self):
        """Close the provider's HTTP client."""
        await self.provider.close()

    # =========================================================================
    # SEARCH + DETAIL FETCH
    # =========================================================================

    async def fetch_candidates(
        self,
        query_text: str,
        kinds: Optional[Sequence[ContentKind]] = None,
        max_results: int = 10,
        already_have: int = 0,
        hints: Optional[ParsedQuery] = None
    ) -> List[ContentRecord]:
        """
        Fetch detail records for the best provider matches.

        Args:
            query_text: Residual query text
            kinds: Kinds to keep (None = movies and series)
            max_results: Page size
            already_have: Results the Local Store already supplied
            hints: Parsed year / genres used for ordering only

        Returns:
            ContentRecords in selection order; items whose detail call
            failed are missing.

        Raises:
            ProviderError: The search call itself failed (including a
                missing credential).
        """
        budget = max(max_results - already_have, 0)
        if budget == 0:
            return []

        wanted = {ContentKind(k) for k in kinds} if kinds else set(ContentKind)

        raw_results = await self.provider.search_multi(query_text, page=1)

        summaries: List[ProviderSummary] = []
        for payload in raw_results:
            summary = parse_summary(payload)
            if summary is not None and summary.kind in wanted:
                summaries.append(summary)

        if not summaries:
            logger.info(f"No provider matches for '{query_text}'")
            return []

        if hints and hints.genres:
            await self.genre_cache.initialize(self.provider)

        selected = self._order(summaries, query_text, hints)[:budget]
        logger.info(
            f"Provider returned {len(summaries)} usable matches for '{query_text}', "
            f"fetching details for {len(selected)}"
        )

        results = await asyncio.gather(
            *[self._fetch_detail(summary) for summary in selected],
            return_exceptions=True
        )

        records: List[ContentRecord] = []
        for summary, result in zip(selected, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Detail fetch failed for {summary.kind.value} "
                    f"{summary.provider_id} ({summary.title}): {result}"
                )
                continue
            records.append(result)

        return records

    async def _fetch_detail(self, summary: ProviderSummary) -> ContentRecord:
        if isinstance(summary, MovieSummary):
            detail = await self.provider.get_movie_detail(summary.provider_id)
            return movie_detail_to_record(detail)
        elif isinstance(summary, SeriesSummary):
            detail = await self.provider.get_series_detail(summary.provider_id)
            return series_detail_to_record(detail)
        raise TypeError(f"Unsupported provider summary: {summary!r}")

    # =========================================================================
    # ORDERING
    # =========================================================================

    def _hint_score(self, summary: ProviderSummary, hints: Optional[ParsedQuery]) -> int:
        if not hints:
            return 0

        score = 0
        if hints.year and summary.release_date and extract_year(summary.release_date) == hints.year:
            score += 1
        if hints.genres:
            if not summary.genre_names:
                summary.genre_names = self.genre_cache.names_for(summary.kind, summary.genre_ids)
            if set(hints.genres) & set(summary.genre_names):
                score += 1
        return score

    def _title_similarity(self, summary: ProviderSummary, query_text: str) -> float:
        query = query_text.lower().strip()
        titles = [t for t in (summary.title, summary.original_title) if t]
        if not titles or not query:
            return 0.0
        return max(fuzz.token_sort_ratio(query, t.lower()) for t in titles)

    def _order(
        self,
        summaries: List[ProviderSummary],
        query_text: str,
        hints: Optional[ParsedQuery]
    ) -> List[ProviderSummary]:
        """Stable sort: hint matches first, then title similarity."""
        return sorted(
            summaries,
            key=lambda s: (self._hint_score(s, hints), self._title_similarity(s, query_text)),
            reverse=True
        )
