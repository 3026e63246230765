"""
==============================================================================
Resilient Translation Provider
==============================================================================

Stored translations first, then providers in fallback order.

Translate Flow:
--------------
    ┌──────────────────────┐  hit   ┌──────────────────────────────┐
    │ TranslationRepository├───────▶│ bump use_count, return       │
    └──────────┬───────────┘        └──────────────────────────────┘
               │ miss
               ▼
    primary ──fail──▶ fallback #1 ──fail──▶ ... ──fail──▶ TranslationFailedError
       │ ok               │ ok                                (502)
       ▼                  ▼
    save(provider that served it, use_count=1) and return

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from splitter.core.exceptions import TranslationFailedError
from splitter.db.models import TranslationProviderType
from splitter.repositories.translation_repository import TranslationRepository
from splitter.translation.factory import TranslationProviderFactory
from splitter.translation.base import TranslationProvider


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResilientTranslationProvider:
    """
    Translation front end with persistence and provider fallback.

    Attributes:
        primary: Provider tried first
        enable_fallback: Whether other providers are tried after the primary
        fallback_order: Order of the remaining providers

    Example:
        >>> resilient = ResilientTranslationProvider(factory, repository, TranslationProviderType.GOOGLE)
        >>> resilient.translate("Hello", "en", "es")
        'Hola'
    """

    def __init__(
        self,
        factory: TranslationProviderFactory,
        repository: TranslationRepository,
        primary: TranslationProviderType,
        enable_fallback: bool = True,
        fallback_order: Optional[Sequence[TranslationProviderType]] = None
    ) -> None:
        self._factory = factory
        self._repository = repository
        self.primary = primary
        self.enable_fallback = enable_fallback
        self.fallback_order = list(fallback_order or list(TranslationProviderType))

    @property
    def provider_name(self) -> str:
        return f"Resilient({self.primary})"

    def providers_in_order(self) -> List[TranslationProvider]:
        """Available providers: the primary, then the fallback order."""
        order = [self.primary]
        if self.enable_fallback:
            order += [p for p in self.fallback_order if p != self.primary]

        return [
            self._factory.get_provider(provider_type)
            for provider_type in order
            if self._factory.is_provider_available(provider_type)
        ]

    def _with_fallback(
        self,
        action: Callable[[TranslationProvider], T],
        description: str
    ) -> Tuple[T, TranslationProvider]:
        """
        Run action against each provider until one succeeds.

        Raises:
            TranslationFailedError: If every provider failed or none is available
        """
        errors: List[BaseException] = []

        for provider in self.providers_in_order():
            try:
                return action(provider), provider
            except Exception as e:
                logger.warning(
                    f"⚠️ Provider {provider.provider_name} failed to {description}. "
                    f"Trying next provider. ({type(e).__name__}: {e})"
                )
                errors.append(e)

        if not errors:
            raise TranslationFailedError("No translation providers are available.")

        raise TranslationFailedError(f"All translation providers failed to {description}.", errors)

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def translate(self, text: str, source_language: str, target_language: str) -> str:
        existing = self._repository.find(text, source_language, target_language)
        if existing is not None:
            self._repository.update_usage(existing.id)
            logger.debug(f"Stored translation reused (id={existing.id})")
            return existing.translated_text

        translated, provider = self._with_fallback(
            lambda p: p.translate(text, source_language, target_language),
            "translate the text"
        )

        self._repository.save(text, translated, source_language, target_language, provider.provider_type)
        return translated

    def translate_batch(
        self,
        texts: Iterable[str],
        source_language: str,
        target_language: str
    ) -> Dict[str, str]:
        """Translate texts; only those not already stored reach a provider."""
        result: Dict[str, str] = {}
        missing: List[str] = []

        for text in dict.fromkeys(texts):
            existing = self._repository.find(text, source_language, target_language)
            if existing is not None:
                self._repository.update_usage(existing.id)
                result[text] = existing.translated_text
            else:
                missing.append(text)

        if not missing:
            return result

        translations, provider = self._with_fallback(
            lambda p: p.translate_batch(missing, source_language, target_language),
            "batch translate the texts"
        )

        for text, translated in translations.items():
            self._repository.save(text, translated, source_language, target_language, provider.provider_type)
            result[text] = translated

        return result

    def detect_language(self, text: str) -> str:
        language, _ = self._with_fallback(lambda p: p.detect_language(text), "detect the language")
        return language

    def get_supported_languages(self) -> List[str]:
        languages, _ = self._with_fallback(lambda p: p.get_supported_languages(), "get supported languages")
        return languages

    def is_language_supported(self, language_code: str) -> bool:
        code = (language_code or "").lower()
        return any(lang.lower() == code for lang in self.get_supported_languages())
