"""
==============================================================================
Localization Service Module
==============================================================================

Database-backed UI strings with culture fallback and templates.

Lookup Chain:
------------
    es-MX ──miss──▶ es ──miss──▶ en-US (default) ──miss──▶ key itself
                                                           (or NOT_FOUND)

This module implements:
- LocalizationService: Lookups, upserts, templates, JSON import/export
- ImportResult: Outcome of an import

Caching:
-------
Resolved strings are cached under ``localization:{culture}:{key}`` through
the shared RedisCache. Every write clears the cached entries for its key.

==============================================================================
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from splitter.config import get_settings
from splitter.core.exceptions import bad_request, not_found
from splitter.db.models import LocalizedString
from splitter.services.cache_service import RedisCache
from splitter.utils.validators import LocalizationValidator


logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([a-zA-Z0-9_]+)\}")
CACHE_TTL = timedelta(hours=1)


@dataclass
class ImportResult:
    """Counts and problems from an import."""

    added: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


def parent_culture(culture: str) -> Optional[str]:
    """``es-MX`` → ``es``; neutral cultures have no parent."""
    return culture.split("-", 1)[0] if "-" in culture else None


class LocalizationService:
    """
    Localized string store.

    Attributes:
        default_culture: Final fallback culture
        _supported: Cultures accepted on write

    Example:
        >>> service = LocalizationService(db, cache)
        >>> service.set_string("greeting", "es", "Hola {name}", is_template=True)
        >>> service.format_template("greeting", "es-MX", {"name": "Ana"})
        'Hola Ana'
    """

    def __init__(self, db: Session, cache: Optional[RedisCache] = None) -> None:
        settings = get_settings()
        self._db = db
        self._cache = cache
        self._validator = LocalizationValidator()
        self.default_culture = settings.localization_default_culture
        self._supported = list(settings.supported_cultures_list)

    # =========================================================================
    # CULTURES
    # =========================================================================

    def supported_cultures(self) -> List[str]:
        return list(self._supported)

    def is_supported(self, culture: str) -> bool:
        return culture in self._supported

    def fallback_chain(self, culture: Optional[str]) -> List[str]:
        """Cultures to try, most specific first, without repeats."""
        chain = []
        for candidate in (culture, parent_culture(culture) if culture else None, self.default_culture):
            if candidate and candidate not in chain:
                chain.append(candidate)
        return chain

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _cache_key(self, culture: str, key: str) -> str:
        return f"localization:{culture}:{key}"

    def _find(self, key: str, culture: str) -> Optional[LocalizedString]:
        return self._db.query(LocalizedString).filter(
            LocalizedString.key == key,
            LocalizedString.culture == culture
        ).first()

    def _resolve(self, key: str, culture: Optional[str]) -> Optional[str]:
        for candidate in self.fallback_chain(culture):
            entry = self._find(key, candidate)
            if entry is not None:
                return entry.value
        return None

    def get_string(
        self,
        key: str,
        culture: Optional[str] = None,
        throw_on_missing: bool = False
    ) -> str:
        """
        Resolve a string through the fallback chain.

        Returns:
            The value, or the key itself when nothing matches

        Raises:
            AppException: NOT_FOUND if missing and throw_on_missing is set
        """
        culture = culture or self.default_culture
        cache_key = self._cache_key(culture, key)

        if self._cache is not None:
            value = self._cache.get_or_set(cache_key, lambda: self._resolve(key, culture), CACHE_TTL)
        else:
            value = self._resolve(key, culture)

        if value is None:
            if throw_on_missing:
                raise not_found(f"Resource key not found: {key}", {"key": key, "culture": culture})
            logger.debug(f"Missing localization key '{key}' for culture '{culture}'")
            return key

        return value

    def get_all(self, culture: Optional[str] = None) -> Dict[str, str]:
        """All strings for a culture, layered default ← parent ← exact."""
        merged: Dict[str, str] = {}
        for candidate in reversed(self.fallback_chain(culture or self.default_culture)):
            rows = self._db.query(LocalizedString).filter(LocalizedString.culture == candidate).all()
            merged.update({row.key: row.value for row in rows})
        return merged

    def format_template(
        self,
        key: str,
        culture: Optional[str],
        values: Mapping[str, Any]
    ) -> str:
        """Fill ``{name}`` placeholders. Unknown placeholders are left as is."""
        template = self.get_string(key, culture)

        def _replace(match: re.Match) -> str:
            name = match.group(1)
            return str(values[name]) if name in values else match.group(0)

        return PLACEHOLDER_PATTERN.sub(_replace, template)

    # =========================================================================
    # WRITES
    # =========================================================================

    def validate_entry(
        self,
        key: Optional[str],
        culture: Optional[str],
        value: Optional[str],
        description: Optional[str] = None,
        group: Optional[str] = None,
        is_template: bool = False
    ) -> List[str]:
        """Every rule the entry breaks."""
        v = self._validator
        problems = []

        for ok, _, error in (v.validate_key(key), v.validate_culture(culture), v.validate_value(value)):
            if not ok:
                problems.append(error)

        if culture and v.CULTURE_PATTERN.match(culture) and not self.is_supported(culture):
            problems.append(f"Culture '{culture}' is not in the list of supported cultures")

        if value and is_template and not PLACEHOLDER_PATTERN.search(value):
            problems.append("Template value must contain at least one placeholder (e.g., {name})")

        if description and len(description) > v.MAX_DESCRIPTION_LENGTH:
            problems.append(f"Description length exceeds maximum of {v.MAX_DESCRIPTION_LENGTH} characters")

        if group and len(group) > v.MAX_GROUP_LENGTH:
            problems.append(f"Group length exceeds maximum of {v.MAX_GROUP_LENGTH} characters")

        return problems

    def set_string(
        self,
        key: str,
        culture: str,
        value: str,
        description: Optional[str] = None,
        group: Optional[str] = None,
        is_template: bool = False
    ) -> LocalizedString:
        """
        Create or update one string.

        Raises:
            AppException: BAD_REQUEST if the entry is invalid
        """
        problems = self.validate_entry(key, culture, value, description, group, is_template)
        if problems:
            raise bad_request("; ".join(problems), {"key": key, "culture": culture})

        entry = self._upsert(key.strip(), culture.strip(), value, description, group, is_template)
        self._db.commit()
        self._invalidate(key.strip())

        logger.info(f"Localized string saved: {culture}/{key}")
        return entry

    def delete_string(self, key: str, culture: str) -> None:
        entry = self._find(key, culture)
        if entry is None:
            raise not_found(f"Resource key not found: {key}", {"key": key, "culture": culture})
        self._db.delete(entry)
        self._db.commit()
        self._invalidate(key)

    def _upsert(
        self,
        key: str,
        culture: str,
        value: str,
        description: Optional[str],
        group: Optional[str],
        is_template: bool
    ) -> LocalizedString:
        entry = self._find(key, culture)
        if entry is None:
            entry = LocalizedString(key=key, culture=culture)
            self._db.add(entry)
        entry.value = value
        entry.description = description
        entry.group = group
        entry.is_template = is_template
        return entry

    def _invalidate(self, key: str) -> None:
        if self._cache is not None:
            self._cache.remove_all(self._cache_key("*", key))

    # =========================================================================
    # IMPORT / EXPORT
    # =========================================================================

    def export_entries(self, culture: Optional[str] = None, group: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self._db.query(LocalizedString)
        if culture:
            query = query.filter(LocalizedString.culture == culture)
        if group:
            query = query.filter(LocalizedString.group == group)

        return [
            {
                "key": row.key,
                "culture": row.culture,
                "value": row.value,
                "description": row.description,
                "group": row.group,
                "isTemplate": row.is_template,
            }
            for row in query.order_by(LocalizedString.key, LocalizedString.culture).all()
        ]

    def export_json(self, culture: Optional[str] = None, group: Optional[str] = None) -> str:
        return json.dumps(self.export_entries(culture, group), indent=2, ensure_ascii=False)

    def import_entries(
        self,
        entries: Union[str, Iterable[Mapping[str, Any]]],
        overwrite: bool = True
    ) -> ImportResult:
        """
        Import strings from JSON text or a list of mappings.

        Nothing is written when any entry is invalid; the problems are
        reported in the result instead.
        """
        result = ImportResult()

        if isinstance(entries, str):
            try:
                entries = json.loads(entries)
            except ValueError as e:
                result.errors.append(f"Invalid JSON: {e}")
                return result

        if not isinstance(entries, list):
            result.errors.append("Import must be a JSON array of entries")
            return result

        seen = set()
        normalized = []
        for item in entries:
            if not isinstance(item, Mapping):
                result.errors.append("Each entry must be an object")
                continue

            key = (item.get("key") or "").strip()
            culture = (item.get("culture") or "").strip()
            is_template = bool(item.get("isTemplate", item.get("is_template", False)))

            if (key, culture) in seen:
                result.errors.append(
                    f"Validation error for {key} ({culture}): Duplicate key-culture combination in import"
                )
                continue
            seen.add((key, culture))

            problems = self.validate_entry(
                key, culture, item.get("value"), item.get("description"), item.get("group"), is_template
            )
            if problems:
                result.errors.append(f"Validation error for {key} ({culture}): {'; '.join(problems)}")
                continue

            normalized.append((key, culture, item["value"], item.get("description"), item.get("group"), is_template))

        if result.errors:
            logger.warning(f"⚠️ Localization import rejected with {len(result.errors)} error(s)")
            return result

        try:
            for key, culture, value, description, group, is_template in normalized:
                existing = self._find(key, culture)
                if existing is not None and not overwrite:
                    result.skipped += 1
                    continue
                self._upsert(key, culture, value, description, group, is_template)
                if existing is None:
                    result.added += 1
                else:
                    result.updated += 1
            self._db.commit()
        except Exception as e:
            self._db.rollback()
            logger.error(f"Localization import failed: {e}")
            raise

        for key in {entry[0] for entry in normalized}:
            self._invalidate(key)

        logger.info(
            f"✅ Localization import: {result.added} added, "
            f"{result.updated} updated, {result.skipped} skipped"
        )
        return result
