"""
Local fuzzy search over the cached content catalogue.

Thin async wrapper around ContentStore.search_trigram(): applies the parsed
query's structured filters and runs the blocking database call in the default
executor so other requests keep moving.
"""

import asyncio
import logging
from functools import partial
from typing import List, Optional, Sequence

from ..metadata.models import ParsedQuery, SearchCandidate, ContentKind

logger = logging.getLogger(__name__)


class LocalSearch:
    """Trigram search against the Local Store."""

    def __init__(self, store):
        self.store = store

    def build_filters(
        self,
        parsed: ParsedQuery,
        kind: Optional[ContentKind] = None,
        include_ids: Optional[Sequence[str]] = None
    ) -> dict:
        filters = {}
        if kind:
            filters['kind'] = ContentKind(kind)
        if parsed.year:
            filters['year'] = parsed.year
        if parsed.genres:
            filters['genres'] = list(parsed.genres)
        if include_ids:
            filters['include_ids'] = list(include_ids)
        return filters

    async def search(
        self,
        parsed: ParsedQuery,
        kind: Optional[ContentKind] = None,
        limit: int = 10,
        min_similarity: float = 0.3,
        include_ids: Optional[Sequence[str]] = None
    ) -> List[SearchCandidate]:
        """
        Search the Local Store.

        Args:
            parsed: Parsed query (text plus optional year/genre filters)
            kind: Restrict to MOVIE or SERIES
            limit: Maximum candidates
            min_similarity: Floor for the combined similarity score
            include_ids: Local ids always eligible (rows just cached)

        Returns:
            Candidates ordered by similarity desc, year desc.
            Store failures propagate unchanged.
        """
        filters = self.build_filters(parsed, kind, include_ids)
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(
            None,
            partial(
                self.store.search_trigram,
                parsed.text,
                filters,
                limit,
                min_similarity,
            )
        )
        logger.debug(
            f"Local search '{parsed.text}' filters={filters} -> {len(results)} results"
        )
        return results
