"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from splitter.db.database import get_db
from splitter.services.cache_service import RedisCache, get_cache


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, db: Session, cache: RedisCache):
        self._db = db
        self._cache = cache

    def check_database(self) -> str:
        """Check database connectivity."""
        try:
            self._db.execute(text("SELECT 1"))
            return "healthy"
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return "unhealthy"

    def check_cache(self) -> str:
        if not self._cache.enabled:
            return "disabled"
        return "healthy" if self._cache.ping() else "unhealthy"

    def get_health(self) -> dict:
        """Get full health status."""
        db_status = self.check_database()
        cache_status = self.check_cache()

        overall = "healthy"
        if db_status != "healthy" or cache_status == "unhealthy":
            overall = "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "database": db_status,
                "cache": cache_status
            },
            "details": {
                "cache": self._cache.stats
            }
        }


@router.get("")
async def health_check(
    db: Session = Depends(get_db),
    cache: RedisCache = Depends(get_cache)
):
    """
    Health check endpoint.

    Returns system status including API, database, and cache.
    """
    controller = HealthController(db, cache)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
