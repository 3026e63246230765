"""
==============================================================================
Authentication Endpoints
==============================================================================

Login, Google sign-in, token refresh and revocation.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from splitter.api.v1.account import profile_response
from splitter.core.dependencies import get_current_user
from splitter.db.database import get_db
from splitter.db.models import User
from splitter.schemas.auth import (
    AuthResponse,
    GoogleLoginRequest,
    LoginRequest,
    ProfileResponse,
    RefreshRequest,
)
from splitter.schemas.common import MessageResponse
from splitter.services.auth_service import AuthService
from splitter.services.email_service import EmailService, get_email_service
from splitter.services.google_auth_service import GoogleAuthService, get_google_auth_service


router = APIRouter(prefix="/auth", tags=["Authentication"])


class AuthController:
    """Controller for authentication operations."""

    def __init__(
        self,
        db: Session,
        email_service: EmailService,
        google_auth: Optional[GoogleAuthService] = None
    ):
        self._service = AuthService(db, email_service, google_auth=google_auth)

    def login(self, request: LoginRequest) -> AuthResponse:
        """Authenticate user and generate tokens."""
        result = self._service.login(request.email, request.password)
        return AuthResponse.from_result(result)

    def google_login(self, request: GoogleLoginRequest) -> AuthResponse:
        result = self._service.google_login(request.id_token)
        return AuthResponse.from_result(result)

    def refresh(self, request: RefreshRequest) -> AuthResponse:
        """Rotate both tokens."""
        result = self._service.refresh(request.refresh_token)
        return AuthResponse.from_result(result)

    def revoke(self, user: User) -> MessageResponse:
        self._service.revoke(user)
        return MessageResponse(message="Refresh token revoked")


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Authenticate user and get tokens."""
    controller = AuthController(db, email_service)
    return controller.login(request)


@router.post("/google-login", response_model=AuthResponse)
def google_login(
    request: GoogleLoginRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    google_auth: GoogleAuthService = Depends(get_google_auth_service)
):
    """Sign in with a Google ID token, creating the account on first use."""
    controller = AuthController(db, email_service, google_auth)
    return controller.google_login(request)


@router.post("/refresh-token", response_model=AuthResponse)
async def refresh_token(
    request: RefreshRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Refresh access token using refresh token."""
    controller = AuthController(db, email_service)
    return controller.refresh(request)


@router.post("/revoke-token", response_model=MessageResponse)
async def revoke_token(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Log out by clearing the refresh token."""
    controller = AuthController(db, email_service)
    return controller.revoke(user)


@router.get("/me", response_model=ProfileResponse)
async def get_current_user_info(user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return profile_response(user)
