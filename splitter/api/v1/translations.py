"""
==============================================================================
Translation Endpoints
==============================================================================

Machine translation with stored results and provider fallback.

Routes that reach a provider are plain `def` and run in the threadpool;
provider calls block on HTTP and on retry backoff.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from splitter.config import get_settings
from splitter.core.dependencies import get_current_user
from splitter.db.database import get_db
from splitter.db.models import TranslationProviderType, User
from splitter.repositories.translation_repository import TranslationRepository
from splitter.schemas.translation import (
    DetectLanguageRequest,
    DetectLanguageResponse,
    LanguagesResponse,
    ProviderInfo,
    ProvidersResponse,
    TranslateBatchRequest,
    TranslateBatchResponse,
    TranslateRequest,
    TranslateResponse,
)
from splitter.translation import (
    ResilientTranslationProvider,
    TranslationProviderFactory,
    get_translation_factory,
)


router = APIRouter(prefix="/translations", tags=["Translations"])


def get_translator(
    db: Session = Depends(get_db),
    factory: TranslationProviderFactory = Depends(get_translation_factory)
) -> ResilientTranslationProvider:
    """FastAPI dependency building the fallback-aware translator."""
    settings = get_settings()
    return ResilientTranslationProvider(
        factory,
        TranslationRepository(db),
        primary=TranslationProviderType(settings.translation_default_provider),
        enable_fallback=settings.translation_enable_fallback,
        fallback_order=[TranslationProviderType(p) for p in settings.translation_fallback_order_list]
    )


class TranslationController:
    """Controller for translation operations."""

    def __init__(self, translator: ResilientTranslationProvider):
        self._translator = translator

    def translate(self, request: TranslateRequest) -> TranslateResponse:
        translated = self._translator.translate(
            request.text,
            request.source_language,
            request.target_language
        )
        return TranslateResponse(
            translated_text=translated,
            source_language=request.source_language,
            target_language=request.target_language
        )

    def translate_batch(self, request: TranslateBatchRequest) -> TranslateBatchResponse:
        translations = self._translator.translate_batch(
            request.texts,
            request.source_language,
            request.target_language
        )
        return TranslateBatchResponse(
            translations=translations,
            source_language=request.source_language,
            target_language=request.target_language
        )

    def detect(self, request: DetectLanguageRequest) -> DetectLanguageResponse:
        return DetectLanguageResponse(language=self._translator.detect_language(request.text))

    def languages(self) -> LanguagesResponse:
        return LanguagesResponse(languages=self._translator.get_supported_languages())


@router.post("/translate", response_model=TranslateResponse)
def translate(
    request: TranslateRequest,
    user: User = Depends(get_current_user),
    translator: ResilientTranslationProvider = Depends(get_translator)
):
    """Translate one text, reusing a stored translation when there is one."""
    controller = TranslationController(translator)
    return controller.translate(request)


@router.post("/translate-batch", response_model=TranslateBatchResponse)
def translate_batch(
    request: TranslateBatchRequest,
    user: User = Depends(get_current_user),
    translator: ResilientTranslationProvider = Depends(get_translator)
):
    """Translate many texts; only unseen ones reach a provider."""
    controller = TranslationController(translator)
    return controller.translate_batch(request)


@router.post("/detect", response_model=DetectLanguageResponse)
def detect_language(
    request: DetectLanguageRequest,
    user: User = Depends(get_current_user),
    translator: ResilientTranslationProvider = Depends(get_translator)
):
    controller = TranslationController(translator)
    return controller.detect(request)


@router.get("/languages", response_model=LanguagesResponse)
def supported_languages(
    user: User = Depends(get_current_user),
    translator: ResilientTranslationProvider = Depends(get_translator)
):
    controller = TranslationController(translator)
    return controller.languages()


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(
    user: User = Depends(get_current_user),
    factory: TranslationProviderFactory = Depends(get_translation_factory)
):
    """Configured providers and the default one."""
    available = factory.get_all_providers()
    return ProvidersResponse(
        default_provider=factory.default_provider,
        providers=[
            ProviderInfo(
                provider=provider_type,
                name=available[provider_type].provider_name if provider_type in available else None,
                available=provider_type in available,
                is_default=provider_type == factory.default_provider
            )
            for provider_type in TranslationProviderType
        ]
    )
