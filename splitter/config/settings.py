"""
==============================================================================
Application Settings Module
==============================================================================

Production-grade configuration management using Pydantic Settings.

This module implements the Singleton pattern to ensure a single global
configuration instance throughout the application lifecycle.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values
- Thread-safe singleton implementation

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Sections:
---------
- Application / server
- Database
- JWT authentication and account (OTP, reset tokens)
- Default super admin seed and role limits
- Email (SMTP)
- Redis cache
- Translation providers
- Localization
- CORS

Security Considerations:
-----------------------
- Never commit .env files to version control
- Use strong JWT_SECRET_KEY in production
- Change the seeded super admin password immediately

==============================================================================
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)

# Provider names accepted in DEFAULT_PROVIDER / FALLBACK_ORDER
TRANSLATION_PROVIDER_NAMES = ("Google", "Azure", "DeepL", "LibreTranslate")

CULTURE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This class uses Pydantic Settings to provide type-safe configuration
    with automatic environment variable loading and validation.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        database_url: SQLAlchemy database connection string
        jwt_secret_key: Secret key for JWT token signing
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days
        otp_expire_minutes: Lifetime of email verification codes
        default_superadmin_email: Seeded super admin account
        max_super_admin_users: Initial cap on SuperAdmin role holders
        web_app_base_url: Frontend URL used in password reset links
        smtp_host: SMTP server host
        redis_url: Redis connection URL
        translation_default_provider: Primary translation provider
        localization_default_culture: Culture used as last fallback
        cors_origins: Allowed CORS origins (JSON array string)

    Example:
        >>> settings = Settings()
        >>> print(settings.app_name)
        'Splitter API'
        >>> print(settings.is_production)
        False
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        # Load from .env file if present
        env_file=".env",
        env_file_encoding="utf-8",
        # Environment variables are case-insensitive
        case_sensitive=False,
        # Ignore extra environment variables
        extra="ignore",
        # Validate default values
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Splitter API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/splitter.db",
        description="SQLAlchemy database connection string"
    )

    # =========================================================================
    # JWT AUTHENTICATION SETTINGS
    # =========================================================================
    jwt_secret_key: str = Field(
        default="change-this-in-production-please",
        min_length=16,
        description="Secret key for JWT token signing"
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="Algorithm for JWT signing"
    )

    jwt_issuer: Optional[str] = Field(
        default=None,
        description="Issuer claim added to and required on access tokens"
    )

    jwt_audience: Optional[str] = Field(
        default=None,
        description="Audience claim added to and required on access tokens"
    )

    access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        le=1440,  # Max 24 hours
        description="Access token lifetime in minutes"
    )

    refresh_token_expire_days: int = Field(
        default=7,
        ge=1,
        le=90,  # Max 90 days
        description="Refresh token lifetime in days"
    )

    # =========================================================================
    # ACCOUNT SETTINGS
    # =========================================================================
    otp_expire_minutes: int = Field(
        default=15,
        ge=1,
        le=1440,
        description="Lifetime of email verification codes"
    )

    otp_rate_limit_capacity: int = Field(
        default=5,
        ge=1,
        description="OTP verification attempts allowed per client per window"
    )

    otp_rate_limit_window_minutes: int = Field(
        default=15,
        ge=1,
        description="Window in which OTP attempts are refilled"
    )

    trusted_proxies: str = Field(
        default="[]",
        description="Proxy addresses whose X-Forwarded-For header is honoured (JSON array string)"
    )

    password_reset_expire_minutes: int = Field(
        default=60,
        ge=5,
        le=1440,
        description="Lifetime of password reset tokens"
    )

    google_tokeninfo_url: str = Field(
        default="https://oauth2.googleapis.com/tokeninfo",
        description="Endpoint used to validate Google ID tokens"
    )

    # =========================================================================
    # DEFAULT SUPER ADMIN / ROLE SETTINGS
    # =========================================================================
    default_superadmin_email: str = Field(
        default="superadmin@splitter.com",
        description="Seeded super admin email"
    )

    default_superadmin_password: str = Field(
        default="SuperAdmin@123",
        min_length=8,
        description="Seeded super admin password"
    )

    default_superadmin_first_name: str = Field(default="Super")
    default_superadmin_last_name: str = Field(default="Admin")

    max_super_admin_users: int = Field(
        default=1,
        ge=1,
        description="Initial cap on users holding the SuperAdmin role"
    )

    # =========================================================================
    # URL SETTINGS
    # =========================================================================
    web_app_base_url: str = Field(
        default="http://localhost:3000",
        description="Frontend base URL used in emailed links"
    )

    # =========================================================================
    # EMAIL (SMTP) SETTINGS
    # =========================================================================
    smtp_host: str = Field(default="localhost", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_enable_ssl: bool = Field(
        default=True,
        description="Use implicit SSL on port 465, STARTTLS otherwise"
    )
    smtp_username: str = Field(default="", description="SMTP login")
    smtp_password: str = Field(default="", description="SMTP password")
    email_from_address: str = Field(
        default="no-reply@splitter.com",
        description="Sender address"
    )
    email_from_name: str = Field(default="Splitter", description="Sender display name")
    email_timeout_seconds: int = Field(default=30, ge=1)
    email_max_recipients: int = Field(default=50, ge=1)
    email_suppress_send: bool = Field(
        default=True,
        description="Log outgoing mail instead of delivering it"
    )

    # =========================================================================
    # REDIS SETTINGS
    # =========================================================================
    redis_enabled: bool = Field(default=True, description="Enable Redis caching")
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    redis_instance_name: str = Field(
        default="splitter",
        description="Key prefix for all cache entries"
    )
    redis_default_ttl_minutes: int = Field(default=60, ge=1)

    # =========================================================================
    # TRANSLATION SETTINGS
    # =========================================================================
    translation_default_provider: str = Field(default="Google")
    translation_enable_fallback: bool = Field(default=True)
    translation_fallback_order: str = Field(
        default='["Google", "Azure", "DeepL", "LibreTranslate"]',
        description="Provider fallback order as JSON array string"
    )
    translation_cache_duration_hours: int = Field(default=24, ge=1)

    google_translate_api_key: str = Field(default="")
    google_translate_url: str = Field(
        default="https://translation.googleapis.com/language/translate/v2"
    )
    google_translate_timeout_seconds: int = Field(default=30, ge=1)
    google_translate_max_batch_size: int = Field(default=100, ge=1)
    google_translate_enable_retries: bool = Field(default=True)
    google_translate_max_retries: int = Field(default=3, ge=0)

    azure_translate_subscription_key: str = Field(default="")
    azure_translate_endpoint: str = Field(
        default="https://api.cognitive.microsofttranslator.com/"
    )
    azure_translate_region: str = Field(default="")
    azure_translate_timeout_seconds: int = Field(default=30, ge=1)
    azure_translate_max_batch_size: int = Field(default=100, ge=1)
    azure_translate_enable_retries: bool = Field(default=True)
    azure_translate_max_retries: int = Field(default=3, ge=0)

    deepl_api_key: str = Field(default="")
    deepl_use_free_tier: bool = Field(default=False)
    deepl_timeout_seconds: int = Field(default=30, ge=1)
    deepl_max_batch_size: int = Field(default=50, ge=1)
    deepl_enable_retries: bool = Field(default=True)
    deepl_max_retries: int = Field(default=3, ge=0)

    libretranslate_api_url: str = Field(default="https://libretranslate.com")
    libretranslate_api_key: str = Field(default="")
    libretranslate_timeout_seconds: int = Field(default=30, ge=1)
    libretranslate_max_batch_size: int = Field(default=50, ge=1)
    libretranslate_enable_retries: bool = Field(default=True)
    libretranslate_max_retries: int = Field(default=3, ge=0)

    # =========================================================================
    # LOCALIZATION SETTINGS
    # =========================================================================
    localization_default_culture: str = Field(default="en-US")
    localization_supported_cultures: str = Field(
        default='["en-US", "en", "es", "es-MX", "fr", "de"]',
        description="Supported cultures as JSON array string"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Args:
            value: Raw environment value

        Returns:
            Lowercase normalized environment name
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, value: str) -> str:
        """
        Validate JWT algorithm is supported.

        Raises:
            ValueError: If algorithm is not supported
        """
        supported = {"HS256", "HS384", "HS512"}

        if value.upper() not in supported:
            raise ValueError(
                f"Unsupported JWT algorithm: {value}. "
                f"Supported: {', '.join(sorted(supported))}"
            )

        return value.upper()

    @field_validator("translation_default_provider")
    @classmethod
    def validate_default_provider(cls, value: str) -> str:
        """Match the provider name case-insensitively."""
        for name in TRANSLATION_PROVIDER_NAMES:
            if name.lower() == value.strip().lower():
                return name
        raise ValueError(
            f"Unknown translation provider: {value}. "
            f"Supported: {', '.join(TRANSLATION_PROVIDER_NAMES)}"
        )

    @field_validator("localization_default_culture")
    @classmethod
    def validate_default_culture(cls, value: str) -> str:
        """Require the 'xx' or 'xx-XX' culture format."""
        if not CULTURE_PATTERN.match(value):
            raise ValueError(f"Invalid culture code: {value}")
        return value

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        return self._parse_json_list(self.cors_origins, ["*"], "CORS origins")

    @property
    def trusted_proxies_list(self) -> List[str]:
        """Peers allowed to report the client address via X-Forwarded-For."""
        return self._parse_json_list(self.trusted_proxies, [], "trusted proxies")

    @property
    def translation_fallback_order_list(self) -> List[str]:
        """
        Parse the provider fallback order.

        Unknown provider names are dropped with a warning.
        """
        raw = self._parse_json_list(
            self.translation_fallback_order,
            list(TRANSLATION_PROVIDER_NAMES),
            "translation fallback order"
        )
        order = []
        for item in raw:
            match = next(
                (n for n in TRANSLATION_PROVIDER_NAMES if n.lower() == str(item).lower()),
                None
            )
            if match is None:
                logger.warning(f"Ignoring unknown translation provider: {item}")
            elif match not in order:
                order.append(match)
        return order

    @property
    def supported_cultures_list(self) -> List[str]:
        """Supported cultures, always including the default culture."""
        cultures = self._parse_json_list(
            self.localization_supported_cultures,
            [self.localization_default_culture],
            "supported cultures"
        )
        if self.localization_default_culture not in cultures:
            cultures.insert(0, self.localization_default_culture)
        return cultures

    @property
    def access_token_expire_seconds(self) -> int:
        """Get access token expiry in seconds."""
        return self.access_token_expire_minutes * 60

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    @staticmethod
    def _parse_json_list(raw: str, default: List[str], label: str) -> List[str]:
        """Parse a JSON array string, falling back to a default on errors."""
        try:
            values = json.loads(raw)
            if isinstance(values, list):
                return [str(v) for v in values]
            return list(default)
        except json.JSONDecodeError:
            logger.warning(f"Invalid {label} JSON: {raw}, defaulting to {default}")
            return list(default)

    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for non-SQLite or in-memory databases
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if db_path.startswith("./"):
                db_path = db_path[2:]
            if db_path and db_path != ":memory:":
                return Path(db_path)
        return None

    def ensure_directories(self) -> None:
        """Create the database directory for file-based SQLite."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Uses lru_cache to ensure only one Settings instance is created
    throughout the application lifecycle.

    Returns:
        Global Settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.app_name)
        'Splitter API'
    """
    settings = Settings()

    # Ensure required directories exist
    settings.ensure_directories()

    # Log configuration summary (only in debug mode)
    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
