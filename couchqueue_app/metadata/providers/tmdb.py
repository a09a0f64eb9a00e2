"""
================================================================================
CouchQueue v1.0 - TMDB Provider
================================================================================
REST client for The Movie Database (TMDB) API v3.

TMDB Features:
  - /search/multi returns movies, TV series and people in one list,
    each tagged with media_type
  - Search hits carry genre ids only; detail calls carry genre names,
    runtime, IMDb id and (for TV) season data
  - Auth via v3 API key (query param) or v4 read access token (Bearer)

API Docs: https://developer.themoviedb.org/reference/intro/getting-started
================================================================================
"""

from typing import List, Optional, Dict, Any
import logging
import os

import httpx

from .base import BaseMetadataProvider, ProviderError, ProviderConfigurationError
from ..models import ContentKind

logger = logging.getLogger(__name__)


class TMDBProvider(BaseMetadataProvider):
    """
    TMDB REST API provider.

    Credential comes from TMDB_API_KEY unless passed explicitly. A missing
    credential is not an error until the first request.
    """

    id = "tmdb"
    name = "TMDB"
    base_url = "https://api.themoviedb.org/3"

    GENRE_ENDPOINTS = {
        ContentKind.MOVIE: "/genre/movie/list",
        ContentKind.SERIES: "/genre/tv/list",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(transport=transport)
        self.api_key = api_key if api_key is not None else os.environ.get('TMDB_API_KEY', '')
        self.language = language or os.environ.get('TMDB_LANGUAGE', 'en-US')
        if timeout is None:
            timeout = float(os.environ.get('TMDB_TIMEOUT', '10'))
        self.timeout = timeout

    @property
    def uses_bearer_token(self) -> bool:
        """v4 read access tokens are JWTs; v3 keys are 32 hex characters."""
        return bool(self.api_key) and (self.api_key.count('.') == 2 or len(self.api_key) > 40)

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        if self.uses_bearer_token:
            headers['Authorization'] = f"Bearer {self.api_key}"
        return headers

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET an endpoint with auth and language params applied."""
        if not self.api_key:
            raise ProviderConfigurationError(
                "TMDB API key is not configured. Please set TMDB_API_KEY environment variable."
            )

        query: Dict[str, Any] = {'language': self.language}
        if not self.uses_bearer_token:
            query['api_key'] = self.api_key
        if params:
            query.update(params)

        data = await self._request('GET', f"{self.base_url}{endpoint}", params=query)
        if not isinstance(data, dict):
            raise ProviderError(f"{self.id}: Unexpected payload from {endpoint}")
        return data

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def search_multi(self, text: str, page: int = 1) -> List[Dict[str, Any]]:
        """
        Search movies, series and people.

        Returns:
            Raw result payloads in TMDB order (media_type tags untouched)
        """
        data = await self._get('/search/multi', {
            'query': text,
            'page': page,
            'include_adult': 'false',
        })
        results = data.get('results') or [] if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ProviderError(f"{self.id}: Unexpected search response shape")
        logger.debug(f"TMDB multi search '{text}' page {page}: {len(results)} results")
        return results

    # =========================================================================
    # DETAILS
    # =========================================================================

    async def get_movie_detail(self, provider_id: str) -> Dict[str, Any]:
        return await self._get(f"/movie/{provider_id}")

    async def get_series_detail(self, provider_id: str) -> Dict[str, Any]:
        """TV detail with external_ids appended (IMDb id lives there)."""
        return await self._get(f"/tv/{provider_id}", {'append_to_response': 'external_ids'})

    # =========================================================================
    # GENRES
    # =========================================================================

    async def get_genres(self, kind: ContentKind) -> Dict[int, str]:
        data = await self._get(self.GENRE_ENDPOINTS[ContentKind(kind)])
        return {
            int(genre['id']): genre['name']
            for genre in data.get('genres') or []
            if 'id' in genre and genre.get('name')
        }
