"""
==============================================================================
Translation Provider Factory
==============================================================================

Builds the configured providers and hands them out by type.

Availability:
------------
    Google          GOOGLE_TRANSLATE_API_KEY set
    Azure           AZURE_TRANSLATE_SUBSCRIPTION_KEY set
    DeepL           DEEPL_API_KEY set
    LibreTranslate  LIBRETRANSLATE_API_URL set (key optional)

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Dict, Iterable, List, Optional

import httpx

from splitter.config import Settings, get_settings
from splitter.db.models import TranslationProviderType
from splitter.services.cache_service import RedisCache, get_cache
from splitter.translation.azure import AzureTranslateProvider
from splitter.translation.base import ProviderSettings, TranslationProvider
from splitter.translation.deepl import FREE_API_URL, PRO_API_URL, DeepLProvider
from splitter.translation.errors import ProviderUnavailableError
from splitter.translation.google import GoogleTranslateProvider
from splitter.translation.libre import LibreTranslateProvider


logger = logging.getLogger(__name__)


def provider_settings_from(settings: Settings) -> Dict[TranslationProviderType, ProviderSettings]:
    """Per-provider settings for every provider whose credentials are set."""
    configured: Dict[TranslationProviderType, ProviderSettings] = {}

    if settings.google_translate_api_key:
        configured[TranslationProviderType.GOOGLE] = ProviderSettings(
            api_key=settings.google_translate_api_key,
            base_url=settings.google_translate_url,
            timeout_seconds=settings.google_translate_timeout_seconds,
            max_batch_size=settings.google_translate_max_batch_size,
            enable_retries=settings.google_translate_enable_retries,
            max_retries=settings.google_translate_max_retries
        )

    if settings.azure_translate_subscription_key:
        configured[TranslationProviderType.AZURE] = ProviderSettings(
            api_key=settings.azure_translate_subscription_key,
            base_url=settings.azure_translate_endpoint,
            region=settings.azure_translate_region,
            timeout_seconds=settings.azure_translate_timeout_seconds,
            max_batch_size=settings.azure_translate_max_batch_size,
            enable_retries=settings.azure_translate_enable_retries,
            max_retries=settings.azure_translate_max_retries
        )

    if settings.deepl_api_key:
        configured[TranslationProviderType.DEEPL] = ProviderSettings(
            api_key=settings.deepl_api_key,
            base_url=FREE_API_URL if settings.deepl_use_free_tier else PRO_API_URL,
            timeout_seconds=settings.deepl_timeout_seconds,
            max_batch_size=settings.deepl_max_batch_size,
            enable_retries=settings.deepl_enable_retries,
            max_retries=settings.deepl_max_retries
        )

    if settings.libretranslate_api_url:
        configured[TranslationProviderType.LIBRE_TRANSLATE] = ProviderSettings(
            api_key=settings.libretranslate_api_key,
            base_url=settings.libretranslate_api_url,
            timeout_seconds=settings.libretranslate_timeout_seconds,
            max_batch_size=settings.libretranslate_max_batch_size,
            enable_retries=settings.libretranslate_enable_retries,
            max_retries=settings.libretranslate_max_retries
        )

    return configured


PROVIDER_CLASSES = {
    TranslationProviderType.GOOGLE: GoogleTranslateProvider,
    TranslationProviderType.AZURE: AzureTranslateProvider,
    TranslationProviderType.DEEPL: DeepLProvider,
    TranslationProviderType.LIBRE_TRANSLATE: LibreTranslateProvider,
}


class TranslationProviderFactory:
    """
    Registry of available providers.

    Attributes:
        default_provider: Provider type preferred by get_default_provider()

    Example:
        >>> factory = TranslationProviderFactory.from_settings()
        >>> factory.is_provider_available(TranslationProviderType.DEEPL)
        False
    """

    def __init__(
        self,
        providers: Iterable[TranslationProvider],
        default_provider: TranslationProviderType = TranslationProviderType.GOOGLE
    ) -> None:
        self._providers: Dict[TranslationProviderType, TranslationProvider] = {
            provider.provider_type: provider for provider in providers
        }
        self.default_provider = default_provider

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        cache: Optional[RedisCache] = None,
        client: Optional[httpx.Client] = None
    ) -> TranslationProviderFactory:
        settings = settings or get_settings()
        cache_ttl = timedelta(hours=settings.translation_cache_duration_hours)

        providers = [
            PROVIDER_CLASSES[provider_type](
                provider_settings,
                client=client,
                cache=cache,
                cache_ttl=cache_ttl
            )
            for provider_type, provider_settings in provider_settings_from(settings).items()
        ]

        logger.info(f"Translation providers available: {[p.provider_name for p in providers]}")
        return cls(providers, TranslationProviderType(settings.translation_default_provider))

    def get_provider(self, provider_type: TranslationProviderType) -> TranslationProvider:
        """
        Raises:
            ProviderUnavailableError: If the provider is not configured
        """
        provider = self._providers.get(provider_type)
        if provider is None:
            raise ProviderUnavailableError(f"Provider {provider_type} is not available.")
        return provider

    def get_all_providers(self) -> Dict[TranslationProviderType, TranslationProvider]:
        return dict(self._providers)

    def get_default_provider(self) -> TranslationProvider:
        if self.default_provider in self._providers:
            return self._providers[self.default_provider]

        for provider in self._providers.values():
            return provider

        raise ProviderUnavailableError("No translation providers are available.")

    def is_provider_available(self, provider_type: TranslationProviderType) -> bool:
        return provider_type in self._providers

    def available_types(self) -> List[TranslationProviderType]:
        return list(self._providers)


@lru_cache()
def get_translation_factory() -> TranslationProviderFactory:
    """Process-wide factory backed by the shared Redis cache."""
    return TranslationProviderFactory.from_settings(cache=get_cache())
