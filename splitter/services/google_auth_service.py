"""
==============================================================================
Google Sign-In Verification
==============================================================================

Validates Google ID tokens through Google's tokeninfo endpoint.

    client ──id_token──▶ GoogleAuthService ──GET tokeninfo──▶ Google
                                │
                                ▼
                        GoogleUserInfo(email, sub, names)

==============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from splitter.config import get_settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleUserInfo:
    email: str
    google_id: str
    first_name: str
    last_name: str


class GoogleAuthService:
    """
    Verifies Google ID tokens.

    Attributes:
        _client: httpx.Client used for the tokeninfo call
        _tokeninfo_url: Verification endpoint
    """

    def __init__(self, client: Optional[httpx.Client] = None) -> None:
        settings = get_settings()
        self._client = client or httpx.Client(timeout=10.0)
        self._tokeninfo_url = settings.google_tokeninfo_url

    def verify_token(self, id_token: str) -> Optional[GoogleUserInfo]:
        """
        Verify an ID token.

        Returns:
            GoogleUserInfo, or None if Google rejects the token or is unreachable
        """
        try:
            response = self._client.get(self._tokeninfo_url, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.warning(f"Google token verification failed: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"Google rejected ID token: HTTP {response.status_code}")
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Google tokeninfo returned invalid JSON")
            return None

        email = (data.get("email") or "").strip().lower()
        sub = data.get("sub")
        if not email or not sub:
            logger.warning("Google token missing email or subject")
            return None

        return GoogleUserInfo(
            email=email,
            google_id=str(sub),
            first_name=data.get("given_name") or "",
            last_name=data.get("family_name") or ""
        )


def get_google_auth_service() -> GoogleAuthService:
    """FastAPI dependency providing the Google verifier."""
    return GoogleAuthService()
