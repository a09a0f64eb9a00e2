"""
================================================================================
CouchQueue v1.0 - Genre Cache
================================================================================
Genre id -> name vocabulary for search hits.

TMDB search results only carry genre ids; names are needed to compare against
genre hints parsed from the query. Loaded once per process and shared:

    genres = GenreCache()
    await genres.initialize(provider)     # loads movie + tv lists
    genres.names_for(ContentKind.MOVIE, [28, 878])   # ['Action', 'Science Fiction']
    genres.invalidate()                   # next initialize() reloads

Requests may run on different threads and event loops; state access holds a
threading.Lock.
================================================================================
"""

import asyncio
import logging
import threading
from typing import Dict, Iterable, List, Optional

from .models import ContentKind

logger = logging.getLogger(__name__)


class GenreCache:
    """Per-kind genre vocabularies with explicit initialize/invalidate."""

    def __init__(self, vocabularies: Optional[Dict[ContentKind, Dict[int, str]]] = None):
        self._lock = threading.Lock()
        self._vocabularies: Dict[ContentKind, Dict[int, str]] = {}
        if vocabularies:
            self._vocabularies = {ContentKind(k): dict(v) for k, v in vocabularies.items()}

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return bool(self._vocabularies)

    async def initialize(self, provider, force: bool = False) -> bool:
        """
        Load genre lists for every kind from the provider.

        Args:
            provider: BaseMetadataProvider implementation
            force: Reload even if already loaded

        Returns:
            True if the cache holds vocabularies afterwards. Provider
            failures are logged; the cache then stays empty and hint
            matching falls back to year only.
        """
        if self.is_initialized and not force:
            return True

        kinds = list(ContentKind)
        results = await asyncio.gather(
            *[provider.get_genres(kind) for kind in kinds],
            return_exceptions=True
        )

        loaded: Dict[ContentKind, Dict[int, str]] = {}
        for kind, result in zip(kinds, results):
            if isinstance(result, Exception):
                logger.warning(f"Genre list for {kind.value} unavailable: {result}")
                continue
            loaded[kind] = result

        if not loaded:
            return False

        with self._lock:
            self._vocabularies = loaded

        logger.info(
            "Genre cache loaded: "
            + ", ".join(f"{k.value}={len(v)}" for k, v in loaded.items())
        )
        return True

    def invalidate(self):
        """Drop all vocabularies; the next initialize() reloads them."""
        with self._lock:
            self._vocabularies = {}
        logger.debug("Genre cache invalidated")

    def names_for(self, kind: ContentKind, genre_ids: Iterable[int]) -> List[str]:
        """Names for known ids in the given kind's vocabulary (unknown ids dropped)."""
        with self._lock:
            vocabulary = self._vocabularies.get(ContentKind(kind), {})
        return [vocabulary[gid] for gid in genre_ids if gid in vocabulary]

    def __repr__(self):
        with self._lock:
            sizes = {k.value: len(v) for k, v in self._vocabularies.items()}
        return f"<GenreCache({sizes})>"
