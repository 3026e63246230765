"""
==============================================================================
Localization Schemas Module
==============================================================================

Schemas for localized UI strings, templates and bulk import/export.

==============================================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocalizedStringUpsert(BaseModel):
    """Create or replace one string."""
    key: str = Field(..., min_length=1, max_length=100)
    culture: str = Field(..., min_length=2, max_length=5)
    value: str = Field(..., min_length=1, max_length=4000)
    description: Optional[str] = Field(default=None, max_length=500)
    group: Optional[str] = Field(default=None, max_length=50)
    is_template: bool = False


class LocalizedStringDetail(BaseModel):
    id: int
    key: str
    culture: str
    value: str
    description: Optional[str] = None
    group: Optional[str] = None
    is_template: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LocalizedStringResponse(BaseModel):
    success: bool = Field(default=True)
    key: str
    culture: str
    value: str


class LocalizedStringsResponse(BaseModel):
    """Every string for a culture after fallback."""
    success: bool = Field(default=True)
    culture: str
    strings: Dict[str, str]


class FormatTemplateRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    culture: Optional[str] = None
    values: Dict[str, Any] = Field(default_factory=dict)


class ImportEntry(BaseModel):
    """Import/export wire format, camelCase isTemplate included."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    culture: str
    value: Optional[str] = None
    description: Optional[str] = None
    group: Optional[str] = None
    is_template: bool = Field(default=False, alias="isTemplate")


class ImportRequest(BaseModel):
    entries: List[ImportEntry]
    overwrite: bool = True


class ImportResultResponse(BaseModel):
    success: bool
    added: int
    updated: int
    skipped: int
    errors: List[str]


class CulturesResponse(BaseModel):
    success: bool = Field(default=True)
    default_culture: str
    cultures: List[str]
