"""
==============================================================================
Translation Package
==============================================================================

Machine translation through Google, Azure, DeepL and LibreTranslate.

Modules:
--------
- base: TranslationProvider ABC and shared HTTP/caching behaviour
- policies: Retry with backoff and per-provider rate limiting
- google, azure, deepl, libre: Concrete REST providers
- factory: Builds the configured providers
- resilient: Stored translations plus provider fallback

==============================================================================
"""

from .azure import AzureTranslateProvider
from .base import ProviderSettings, TranslationProvider
from .deepl import DeepLProvider
from .errors import (
    ProviderError,
    ProviderRateLimitedError,
    ProviderUnavailableError,
    TransientProviderError,
)
from .factory import TranslationProviderFactory, get_translation_factory
from .google import GoogleTranslateProvider
from .libre import LibreTranslateProvider
from .policies import ProviderRateLimiter, RetryPolicy
from .resilient import ResilientTranslationProvider

__all__ = [
    "AzureTranslateProvider",
    "DeepLProvider",
    "GoogleTranslateProvider",
    "LibreTranslateProvider",
    "ProviderError",
    "ProviderRateLimitedError",
    "ProviderRateLimiter",
    "ProviderSettings",
    "ProviderUnavailableError",
    "ResilientTranslationProvider",
    "RetryPolicy",
    "TransientProviderError",
    "TranslationProvider",
    "TranslationProviderFactory",
    "get_translation_factory",
]
