"""
==============================================================================
Translation Schemas Module
==============================================================================

Request and response schemas for the machine translation endpoints.

==============================================================================
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from splitter.db.models import TranslationProviderType


class TranslateRequest(BaseModel):
    """Single text translation."""
    text: str = Field(..., min_length=1, max_length=5000)
    source_language: str = Field(default="auto", min_length=2, max_length=10)
    target_language: str = Field(..., min_length=2, max_length=10)

    @field_validator("source_language", "target_language")
    @classmethod
    def strip_language(cls, v: str) -> str:
        return v.strip()


class TranslateBatchRequest(BaseModel):
    """Many texts, same language pair."""
    texts: List[str] = Field(..., min_length=1, max_length=1000)
    source_language: str = Field(default="auto", min_length=2, max_length=10)
    target_language: str = Field(..., min_length=2, max_length=10)

    @field_validator("texts")
    @classmethod
    def validate_texts(cls, v: List[str]) -> List[str]:
        if any(not text or not text.strip() for text in v):
            raise ValueError("Texts must not be empty")
        return v


class DetectLanguageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class TranslateResponse(BaseModel):
    success: bool = Field(default=True)
    translated_text: str
    source_language: str
    target_language: str


class TranslateBatchResponse(BaseModel):
    success: bool = Field(default=True)
    translations: Dict[str, str]
    source_language: str
    target_language: str


class DetectLanguageResponse(BaseModel):
    success: bool = Field(default=True)
    language: str


class LanguagesResponse(BaseModel):
    success: bool = Field(default=True)
    languages: List[str]


class ProviderInfo(BaseModel):
    """One configured translation backend."""
    provider: TranslationProviderType
    name: Optional[str] = None
    available: bool
    is_default: bool = False


class ProvidersResponse(BaseModel):
    success: bool = Field(default=True)
    default_provider: TranslationProviderType
    providers: List[ProviderInfo]
