"""
==============================================================================
Splitter - Application Entry Point
==============================================================================

FastAPI application with:
- Account, authentication and role endpoints
- Expense splitting and settlement
- Multi-provider machine translation
- Database-backed localization
- JWT authentication and OTP rate limiting

Usage:
------
    # Development
    uvicorn splitter.main:app --reload

    # Production
    uvicorn splitter.main:app --host 0.0.0.0 --port 8000

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from splitter import __version__
from splitter.api.router import api_router
from splitter.config import get_settings
from splitter.core.exceptions import register_exception_handlers
from splitter.core.rate_limit import RateLimitMiddleware, get_otp_rate_limiter
from splitter.db.database import DatabaseManager
from splitter.db.init_db import init_db
from splitter.services.auth_service import VERIFY_OTP_PATH
from splitter.services.cache_service import get_cache


# ============================================================================
# LOGGING SETUP
# ============================================================================

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    FastAPI application factory and manager.

    Handles application lifecycle including:
    - Startup and shutdown events
    - Middleware configuration
    - Router registration
    - Exception handler setup
    """

    def __init__(self):
        """Initialize the application."""
        self._settings = get_settings()
        self._app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self._settings.app_name,
            version=__version__,
            description="Expense splitting, settlement, translation and localization API",
            lifespan=self._lifespan,
            docs_url=None if self._settings.is_production else "/docs",
            redoc_url=None if self._settings.is_production else "/redoc",
        )

        self._configure_middleware(app)
        register_exception_handlers(app)
        self._register_routers(app)
        self._register_root(app)

        return app

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Application lifespan manager."""
        self._startup()
        yield
        self._shutdown()

    def _startup(self) -> None:
        """Application startup tasks."""
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name}")
        logger.info("=" * 60)

        self._settings.ensure_directories()
        init_db()
        get_cache().connect()

        logger.info("=" * 60)
        logger.info(f"✅ {self._settings.app_name} ready")
        logger.info(f"📍 Running on http://{self._settings.host}:{self._settings.port}")
        logger.info(f"📖 API Docs: http://{self._settings.host}:{self._settings.port}/docs")
        logger.info("=" * 60)

    def _shutdown(self) -> None:
        """Application shutdown tasks."""
        logger.info("🛑 Shutting down...")
        get_cache().close()
        DatabaseManager().dispose()
        logger.info("✅ Shutdown complete")

    def _configure_middleware(self, app: FastAPI) -> None:
        """Configure application middleware."""
        app.add_middleware(
            RateLimitMiddleware,
            limiter=get_otp_rate_limiter(),
            paths=[VERIFY_OTP_PATH],
            trusted_proxies=self._settings.trusted_proxies_list,
        )
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Redirect-Url"],
        )

    def _register_routers(self, app: FastAPI) -> None:
        """Register API routers."""
        app.include_router(api_router)

    def _register_root(self, app: FastAPI) -> None:
        """Register root endpoint."""

        @app.get("/")
        async def root():
            return {
                "name": self._settings.app_name,
                "version": __version__,
                "docs": "/docs"
            }

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

application = Application()
app = application.app


# ============================================================================
# ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "splitter.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
