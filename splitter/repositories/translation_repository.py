"""
==============================================================================
Translation Store
==============================================================================

Persistent memory of machine translations, looked up before any provider
is called.

==============================================================================
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import update

from splitter.db.database import utcnow
from splitter.db.models import TranslationProviderType, TranslationRecord
from splitter.repositories.base import GenericRepository


class TranslationRepository(GenericRepository[TranslationRecord]):
    """
    Stored translations keyed by (source_text, source_language, target_language).

    Example:
        >>> repo = TranslationRepository(db)
        >>> hit = repo.find("Hello", "en", "es")
    """

    model = TranslationRecord

    def find(
        self,
        source_text: str,
        source_language: str,
        target_language: str
    ) -> Optional[TranslationRecord]:
        return self.query().filter(
            TranslationRecord.source_text == source_text,
            TranslationRecord.source_language == source_language,
            TranslationRecord.target_language == target_language
        ).first()

    def save(
        self,
        source_text: str,
        translated_text: str,
        source_language: str,
        target_language: str,
        provider: TranslationProviderType
    ) -> TranslationRecord:
        now = utcnow()
        record = TranslationRecord(
            source_text=source_text,
            translated_text=translated_text,
            source_language=source_language,
            target_language=target_language,
            provider=provider,
            created_at=now,
            last_used_at=now,
            use_count=1
        )
        return self.add(record)

    def update_usage(self, record_id: int) -> None:
        """Bump last_used_at and use_count in one statement."""
        self._db.execute(
            update(TranslationRecord)
            .where(TranslationRecord.id == record_id)
            .values(
                last_used_at=utcnow(),
                use_count=TranslationRecord.use_count + 1
            )
        )
        self._db.commit()
