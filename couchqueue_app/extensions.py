"""
Shared objects attached to the Flask app.

One DiscoveryServices instance lives in app.extensions['couchqueue'] and is
shared by every request: the Local Store, the genre cache and the search
settings. TMDB clients are bound to an event loop, so a fresh provider is
built per request through provider_factory.
"""

from dataclasses import dataclass, field
from typing import Callable

from flask import current_app

from .metadata.genres import GenreCache
from .metadata.providers.base import BaseMetadataProvider
from .metadata.providers.tmdb import TMDBProvider
from .search.config import DiscoveryConfig
from .store import ContentStore

EXTENSION_KEY = 'couchqueue'


@dataclass
class DiscoveryServices:
    store: ContentStore
    config: DiscoveryConfig = field(default_factory=DiscoveryConfig.from_env)
    genre_cache: GenreCache = field(default_factory=GenreCache)
    provider_factory: Callable[[], BaseMetadataProvider] = TMDBProvider


def get_services() -> DiscoveryServices:
    """Services of the current app."""
    return current_app.extensions[EXTENSION_KEY]
