"""
================================================================================
CouchQueue v1.0 - Base Metadata Provider
================================================================================
Abstract base class for external metadata catalogues.

A provider is a remote, read-only catalogue of movies and series that can:
  - search across kinds by free text (lightweight summaries)
  - return full detail payloads by id (genres by name, runtime, seasons)
  - list its genre vocabulary (id -> name)

Providers return raw JSON payloads; mapping to ContentRecord happens in
couchqueue_app.metadata.mapping so every provider is mapped the same way.
================================================================================
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
import logging

import httpx

from ..models import ContentKind


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A metadata provider call failed (network, HTTP status, bad payload)."""


class ProviderConfigurationError(ProviderError):
    """The provider is missing required configuration, e.g. its credential."""


class BaseMetadataProvider(ABC):
    """
    Abstract base class for metadata providers.

    All providers must implement:
      - search_multi(): Mixed-kind search by text
      - get_movie_detail(): Full movie payload by id
      - get_series_detail(): Full series payload by id
      - get_genres(): Genre vocabulary for one kind

    The base class owns the shared httpx.AsyncClient and turns transport and
    HTTP status failures into ProviderError.
    """

    # Provider identification
    id: str = "base"
    name: str = "Base Provider"

    # API configuration
    base_url: str = ""

    # Request timeout (seconds)
    timeout: float = 10.0

    # User-Agent (some APIs require this)
    user_agent: str = "CouchQueue/1.0"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize provider.

        Args:
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _default_headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.user_agent,
            'Accept': 'application/json'
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._default_headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _error_message(self, response: httpx.Response) -> str:
        """Best-effort error text from an error response body."""
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase or 'Unknown error'
        if isinstance(body, dict):
            return str(body.get('status_message') or body.get('message') or response.reason_phrase)
        return response.reason_phrase or 'Unknown error'

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make an HTTP request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST)
            url: Full URL
            **kwargs: Additional arguments for httpx

        Returns:
            JSON response as dict

        Raises:
            ProviderError: On transport failure, non-2xx status or invalid JSON
        """
        client = await self._get_client()
        logger.debug(f"{self.id}: {method} {url}")

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise ProviderError(f"{self.id}: Request error ({e.__class__.__name__}: {e})") from e

        if response.is_error:
            raise ProviderError(
                f"{self.id}: API error {response.status_code}: {self._error_message(response)}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.id}: Invalid JSON from {url}") from e

    # =========================================================================
    # ABSTRACT METHODS (must be implemented by providers)
    # =========================================================================

    @abstractmethod
    async def search_multi(
        self,
        text: str,
        page: int = 1
    ) -> List[Dict[str, Any]]:
        """
        Search all supported kinds by text.

        Args:
            text: Query text
            page: Result page (1-based)

        Returns:
            Raw summary payloads, each tagged with its kind
        """
        pass

    @abstractmethod
    async def get_movie_detail(self, provider_id: str) -> Dict[str, Any]:
        """Full movie payload by provider id."""
        pass

    @abstractmethod
    async def get_series_detail(self, provider_id: str) -> Dict[str, Any]:
        """Full series payload by provider id."""
        pass

    @abstractmethod
    async def get_genres(self, kind: ContentKind) -> Dict[int, str]:
        """Genre id -> name for one content kind."""
        pass

    def __repr__(self):
        return f"<{self.__class__.__name__}(id='{self.id}', base_url='{self.base_url}')>"
