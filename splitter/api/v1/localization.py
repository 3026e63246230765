"""
==============================================================================
Localization Endpoints
==============================================================================

Localized UI strings with culture fallback, templates and bulk
import/export. Reads are public; writes need Admin.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from splitter.core.dependencies import require_admin
from splitter.db.database import get_db
from splitter.db.models import User
from splitter.schemas.common import MessageResponse
from splitter.schemas.localization import (
    CulturesResponse,
    FormatTemplateRequest,
    ImportRequest,
    ImportResultResponse,
    LocalizedStringDetail,
    LocalizedStringResponse,
    LocalizedStringsResponse,
    LocalizedStringUpsert,
)
from splitter.services.cache_service import get_cache
from splitter.services.localization_service import LocalizationService


router = APIRouter(prefix="/localization", tags=["Localization"])


def get_localization_service(db: Session = Depends(get_db)) -> LocalizationService:
    return LocalizationService(db, get_cache())


class LocalizationController:
    """Controller for localization operations."""

    def __init__(self, service: LocalizationService):
        self._service = service

    def cultures(self) -> CulturesResponse:
        return CulturesResponse(
            default_culture=self._service.default_culture,
            cultures=self._service.supported_cultures()
        )

    def get_all(self, culture: Optional[str]) -> LocalizedStringsResponse:
        culture = culture or self._service.default_culture
        return LocalizedStringsResponse(culture=culture, strings=self._service.get_all(culture))

    def get_string(self, key: str, culture: Optional[str]) -> LocalizedStringResponse:
        culture = culture or self._service.default_culture
        value = self._service.get_string(key, culture, throw_on_missing=True)
        return LocalizedStringResponse(key=key, culture=culture, value=value)

    def upsert(self, data: LocalizedStringUpsert) -> LocalizedStringDetail:
        entry = self._service.set_string(
            data.key,
            data.culture,
            data.value,
            description=data.description,
            group=data.group,
            is_template=data.is_template
        )
        return LocalizedStringDetail.model_validate(entry)

    def format(self, data: FormatTemplateRequest) -> LocalizedStringResponse:
        culture = data.culture or self._service.default_culture
        value = self._service.format_template(data.key, culture, data.values)
        return LocalizedStringResponse(key=data.key, culture=culture, value=value)

    def import_entries(self, data: ImportRequest) -> ImportResultResponse:
        result = self._service.import_entries(
            [entry.model_dump(by_alias=True) for entry in data.entries],
            overwrite=data.overwrite
        )
        return ImportResultResponse(
            success=result.succeeded,
            added=result.added,
            updated=result.updated,
            skipped=result.skipped,
            errors=result.errors
        )


@router.get("/cultures", response_model=CulturesResponse)
async def list_cultures(service: LocalizationService = Depends(get_localization_service)):
    """Supported cultures and the default one."""
    return LocalizationController(service).cultures()


@router.get("/strings", response_model=LocalizedStringsResponse)
async def get_strings(
    culture: Optional[str] = Query(None),
    service: LocalizationService = Depends(get_localization_service)
):
    """Every string for a culture, parent and default cultures filling gaps."""
    return LocalizationController(service).get_all(culture)


@router.get("/strings/{key}", response_model=LocalizedStringResponse)
async def get_string(
    key: str,
    culture: Optional[str] = Query(None),
    service: LocalizationService = Depends(get_localization_service)
):
    return LocalizationController(service).get_string(key, culture)


@router.put("/strings", response_model=LocalizedStringDetail)
async def upsert_string(
    request: LocalizedStringUpsert,
    admin: User = Depends(require_admin),
    service: LocalizationService = Depends(get_localization_service)
):
    """Create or update a string (Admin only)."""
    return LocalizationController(service).upsert(request)


@router.delete("/strings/{culture}/{key}", response_model=MessageResponse)
async def delete_string(
    culture: str,
    key: str,
    admin: User = Depends(require_admin),
    service: LocalizationService = Depends(get_localization_service)
):
    service.delete_string(key, culture)
    return MessageResponse(message=f"Localized string '{key}' ({culture}) deleted")


@router.post("/format", response_model=LocalizedStringResponse)
async def format_template(
    request: FormatTemplateRequest,
    service: LocalizationService = Depends(get_localization_service)
):
    """Fill a template's {placeholders}."""
    return LocalizationController(service).format(request)


@router.get("/export")
async def export_strings(
    culture: Optional[str] = Query(None),
    group: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: LocalizationService = Depends(get_localization_service)
):
    """Export strings as a JSON array (Admin only)."""
    return JSONResponse(content=service.export_entries(culture, group))


@router.post("/import", response_model=ImportResultResponse)
async def import_strings(
    request: ImportRequest,
    admin: User = Depends(require_admin),
    service: LocalizationService = Depends(get_localization_service)
):
    """
    Import strings (Admin only).

    All entries are validated first; nothing is written if any is invalid.
    """
    return LocalizationController(service).import_entries(request)
