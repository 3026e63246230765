"""
==============================================================================
Translation Provider Base
==============================================================================

Shared behaviour for REST translation backends.

Every concrete provider supplies four raw calls:

    _fetch_languages()                  → ["en", "es", ...]
    _translate_many(texts, src, tgt)    → ["hola", ...]   (same order)
    _detect(text)                       → "en" | None

and inherits:
- Response caching through the shared RedisCache (24 h, per-provider prefix)
- Per-provider rate limiting and retry with exponential backoff
- Batch chunking by max_batch_size
- HTTP status to error mapping

==============================================================================
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

import httpx

from splitter.db.models import TranslationProviderType
from splitter.services.cache_service import RedisCache
from splitter.translation.errors import ProviderError, TransientProviderError
from splitter.translation.policies import (
    DEFAULT_CALLS_PER_MINUTE,
    ProviderRateLimiter,
    RetryPolicy,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

UNDETERMINED_LANGUAGE = "und"
DEFAULT_CACHE_TTL = timedelta(hours=24)


@dataclass
class ProviderSettings:
    """Connection and policy settings for one provider."""

    api_key: str = ""
    base_url: str = ""
    region: str = ""
    timeout_seconds: int = 30
    max_batch_size: int = 100
    enable_retries: bool = True
    max_retries: int = 3


def text_digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]


class TranslationProvider(ABC):
    """
    Abstract translation backend.

    Attributes:
        provider_type: Enum member identifying the backend
        provider_name: Human readable name
        settings: ProviderSettings for this backend

    Example:
        >>> provider = LibreTranslateProvider(settings)
        >>> provider.translate("Hello", "en", "es")
        'Hola'
    """

    provider_type: TranslationProviderType
    provider_name: str = ""
    calls_per_minute: int = DEFAULT_CALLS_PER_MINUTE

    def __init__(
        self,
        settings: ProviderSettings,
        client: Optional[httpx.Client] = None,
        cache: Optional[RedisCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rate_limiter: Optional[ProviderRateLimiter] = None,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL
    ) -> None:
        self.settings = settings
        self._client = client or httpx.Client(timeout=settings.timeout_seconds)
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._retry = retry_policy or RetryPolicy(
            max_retries=settings.max_retries,
            enabled=settings.enable_retries
        )
        self._rate_limiter = rate_limiter or ProviderRateLimiter(self.calls_per_minute)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.provider_name!r})"

    # =========================================================================
    # RAW CALLS
    # =========================================================================

    @abstractmethod
    def _fetch_languages(self) -> List[str]:
        ...

    @abstractmethod
    def _translate_many(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        ...

    @abstractmethod
    def _detect(self, text: str) -> Optional[str]:
        ...

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    def get_supported_languages(self) -> List[str]:
        """Language codes, cached under translation:{provider}:languages."""
        return list(self._cached(
            "languages",
            lambda: self._execute(self._fetch_languages, "get languages")
        ))

    def translate(self, text: str, source_language: str, target_language: str) -> str:
        key = f"trans:{text_digest(text)}:{source_language}:{target_language}"

        def _call() -> str:
            translated = self._execute(
                lambda: self._translate_many([text], source_language, target_language),
                "translate"
            )
            return translated[0] if translated else text

        try:
            return self._cached(key, _call)
        except ProviderError as e:
            logger.error(
                f"Error translating text with {self.provider_name}. "
                f"Source: {source_language}, Target: {target_language}: {e}"
            )
            raise

    def translate_batch(
        self,
        texts: Iterable[str],
        source_language: str,
        target_language: str
    ) -> Dict[str, str]:
        """Translate many texts, max_batch_size per request."""
        items = list(dict.fromkeys(texts))
        size = max(1, self.settings.max_batch_size)
        results: Dict[str, str] = {}

        for start in range(0, len(items), size):
            chunk = items[start:start + size]
            translated = self._execute(
                lambda: self._translate_many(chunk, source_language, target_language),
                "translate batch"
            )
            for index, original in enumerate(chunk):
                results[original] = translated[index] if index < len(translated) else original

        return results

    def detect_language(self, text: str) -> str:
        key = f"detect:{text_digest(text)}"
        detected = self._cached(key, lambda: self._execute(lambda: self._detect(text), "detect language"))
        return detected or UNDETERMINED_LANGUAGE

    def is_language_supported(self, language_code: str) -> bool:
        code = (language_code or "").lower()
        return any(lang.lower() == code for lang in self.get_supported_languages())

    # =========================================================================
    # POLICIES
    # =========================================================================

    def _execute(self, action: Callable[[], T], label: str) -> T:
        self._rate_limiter.acquire(self.provider_name)
        return self._retry.execute(action, f"{self.provider_name} {label}")

    def _cached(self, key: str, factory: Callable[[], Any]) -> Any:
        if self._cache is None:
            return factory()
        prefix = self.provider_type.value.lower()
        return self._cache.get_or_set(f"translation:{prefix}:{key}", factory, self._cache_ttl)

    # =========================================================================
    # HTTP
    # =========================================================================

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        Send a request and decode the JSON body.

        Raises:
            TransientProviderError: Network error, timeout, 5xx or 429
            ProviderError: Any other non-success response
        """
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientProviderError(f"{self.provider_name} timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransientProviderError(f"{self.provider_name} unreachable: {e}") from e

        status = response.status_code
        if status >= 500 or status == 429:
            raise TransientProviderError(f"{self.provider_name} returned HTTP {status}", status)
        if status >= 400:
            raise ProviderError(f"{self.provider_name} returned HTTP {status}: {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.provider_name} returned invalid JSON") from e

    def close(self) -> None:
        self._client.close()
