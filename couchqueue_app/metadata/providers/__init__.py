from .base import BaseMetadataProvider, ProviderError, ProviderConfigurationError
from .tmdb import TMDBProvider

__all__ = [
    'BaseMetadataProvider',
    'ProviderError',
    'ProviderConfigurationError',
    'TMDBProvider',
]
