"""
==============================================================================
Generic Repository
==============================================================================

Thin persistence wrapper over a SQLAlchemy session for one model class.

    service ──▶ GenericRepository[Model] ──▶ Session ──▶ database

Repositories commit on every write. Services that need several writes in
one unit of work use the session directly.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class GenericRepository(Generic[ModelT]):
    """
    CRUD operations for a single ORM model.

    Soft-deletable models (those with an ``is_deleted`` column) are hidden
    from reads and flagged instead of removed on delete.

    Attributes:
        model: ORM class handled by the repository
        _db: Database session

    Example:
        >>> repo = GenericRepository(Expense, db)
        >>> expense = repo.get_by_id("1b4e...")
    """

    model: Type[ModelT]

    def __init__(self, db: Session, model: Optional[Type[ModelT]] = None) -> None:
        if model is not None:
            self.model = model
        self._db = db

    @property
    def session(self) -> Session:
        return self._db

    @property
    def _soft_delete(self) -> bool:
        return hasattr(self.model, "is_deleted")

    def query(self) -> Query:
        """Base query, excluding soft-deleted rows."""
        query = self._db.query(self.model)
        if self._soft_delete:
            query = query.filter(self.model.is_deleted.is_(False))
        return query

    # =========================================================================
    # READ
    # =========================================================================

    def get_by_id(self, entity_id: Any) -> Optional[ModelT]:
        return self.query().filter(self.model.id == entity_id).first()

    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[ModelT]:
        """List entities whose columns equal the given filter values."""
        query = self.query()
        for column, value in (filters or {}).items():
            query = query.filter(getattr(self.model, column) == value)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, query: Optional[Query] = None) -> int:
        return (query if query is not None else self.query()).count()

    # =========================================================================
    # WRITE
    # =========================================================================

    def add(self, entity: ModelT) -> ModelT:
        self._db.add(entity)
        self._db.commit()
        self._db.refresh(entity)
        logger.debug(f"Added {self.model.__name__}")
        return entity

    def update(self, entity: ModelT, changes: Optional[Dict[str, Any]] = None) -> ModelT:
        """Apply column changes (if any) and commit."""
        for column, value in (changes or {}).items():
            setattr(entity, column, value)
        self._db.commit()
        self._db.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        """Soft delete when supported, hard delete otherwise."""
        if self._soft_delete:
            entity.is_deleted = True
            entity.is_active = False
        else:
            self._db.delete(entity)
        self._db.commit()
        logger.debug(f"Deleted {self.model.__name__}")
