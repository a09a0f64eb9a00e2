"""
================================================================================
CouchQueue v1.0 - Discovery Search Coordinator
================================================================================
Resolves free text into a ranked page of titles.

Flow:
  1. Parse the query (year, genre hints)
  2. Trigram search against the Local Store
  3. Confidence gate: a full page or a strong top hit ends the search here
  4. Otherwise ask TMDB for the missing slots (search + parallel details)
  5. Cache the detail records in the Local Store (atomic upsert)
  6. Merge: re-run the local search over the grown cache (default), or
     union local and fresh results and rank them

Failure policy:
  - TMDB down, misconfigured or erroring: local results are returned as-is
  - Single detail fetch or upsert failing: that title is dropped
  - Local Store failing: the error propagates to the caller
================================================================================
"""

import logging
import time
from typing import List, Optional

from .config import DiscoveryConfig, MERGE_UNION
from .gate import ConfidenceGate
from .local import LocalSearch
from .query_parser import parse_query
from .ranker import merge_and_rank
from .reconcile import CacheWriter
from ..metadata.manager import MetadataManager
from ..metadata.models import ContentKind, ContentRecord, SearchCandidate
from ..metadata.providers.base import ProviderError

logger = logging.getLogger(__name__)


class DiscoverySearch:
    """
    Local-first search with provider fallthrough and write-back caching.
    """

    def __init__(
        self,
        store,
        manager: MetadataManager,
        config: Optional[DiscoveryConfig] = None
    ):
        self.config = config or DiscoveryConfig()
        self.local = LocalSearch(store)
        self.gate = ConfidenceGate(self.config.page_size, self.config.confidence_floor)
        self.manager = manager
        self.writer = CacheWriter(store)

    async def search(
        self,
        text: str,
        kind: Optional[ContentKind] = None
    ) -> List[ContentRecord]:
        """
        Search for titles.

        Args:
            text: Raw user query
            kind: Restrict to MOVIE or SERIES (None = both)

        Returns:
            At most page_size ContentRecords, best first
        """
        start_time = time.time()
        page_size = self.config.page_size
        kind = ContentKind(kind) if kind else None

        parsed = parse_query(text)
        local_results = await self.local.search(
            parsed,
            kind=kind,
            limit=page_size,
            min_similarity=self.config.min_similarity
        )

        if self.gate(local_results):
            top = local_results[0].similarity if local_results else 0.0
            logger.info(
                f"Local hit for '{parsed.text}': {len(local_results)} results "
                f"(top={top:.2f}, took {time.time() - start_time:.3f}s)"
            )
            return self._records(local_results)

        logger.info(
            f"Local miss for '{parsed.text}' ({len(local_results)} results), querying provider"
        )

        try:
            fetched = await self.manager.fetch_candidates(
                parsed.text,
                kinds=[kind] if kind else None,
                max_results=page_size,
                already_have=len(local_results),
                hints=parsed
            )
        except ProviderError as e:
            logger.warning(f"Provider search failed for '{parsed.text}', serving local results: {e}")
            return self._records(local_results)

        if not fetched:
            return self._records(local_results)

        cached = await self.writer.upsert_many(fetched)
        if not cached:
            return self._records(local_results)

        if self.config.merge_strategy == MERGE_UNION:
            results = merge_and_rank(local_results, cached, limit=page_size)
        else:
            requeried = await self.local.search(
                parsed,
                kind=kind,
                limit=page_size,
                min_similarity=self.config.requery_min_similarity,
                include_ids=[record.local_id for record in cached]
            )
            results = self._records(requeried)

        elapsed = time.time() - start_time
        logger.info(
            f"Discovery search for '{parsed.text}' completed in {elapsed:.2f}s: "
            f"{len(results)} results ({len(cached)} newly cached)"
        )
        return results

    def _records(self, candidates: List[SearchCandidate]) -> List[ContentRecord]:
        return [candidate.record for candidate in candidates[:self.config.page_size]]
