"""
==============================================================================
Account Endpoints
==============================================================================

Registration, email verification, password recovery and profile.

Registration Flow:
-----------------
    POST /account/register ──▶ OTP emailed ──▶ X-Redirect-Url: verify-otp
                                                      │
    POST /account/verify-otp {email, otp} ◀───────────┘
            │
            ▼
    AuthResponse (email confirmed, tokens issued)

Routes that send mail are plain `def` so SMTP runs in the threadpool.

==============================================================================
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from splitter.core.dependencies import get_current_user
from splitter.core.exceptions import HeaderKeys
from splitter.db.database import get_db
from splitter.db.models import User
from splitter.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ProfileInfo,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
    VerifyOtpRequest,
)
from splitter.schemas.common import MessageResponse
from splitter.schemas.user import UserDetail
from splitter.services.auth_service import VERIFY_OTP_PATH, AuthService
from splitter.services.email_service import EmailService, get_email_service


router = APIRouter(prefix="/account", tags=["Account"])


def profile_response(user: User) -> ProfileResponse:
    return ProfileResponse(user=ProfileInfo(**UserDetail.from_user(user).model_dump()))


class AccountController:
    """Controller for account operations."""

    def __init__(self, db: Session, email_service: EmailService):
        self._service = AuthService(db, email_service)

    def register(self, request: RegisterRequest, response: Response) -> MessageResponse:
        """Create the user and send the verification code."""
        user = self._service.register(
            request.email,
            request.password,
            request.first_name,
            request.last_name,
            request.phone_number
        )
        response.headers[HeaderKeys.REDIRECT_URL] = VERIFY_OTP_PATH
        return MessageResponse(
            message=f"Registration successful. A verification code was sent to {user.email}."
        )

    def verify_otp(self, request: VerifyOtpRequest) -> AuthResponse:
        result = self._service.verify_otp(request.email, request.otp)
        return AuthResponse.from_result(result)

    def verify_email(self, request: VerifyEmailRequest) -> MessageResponse:
        self._service.verify_email(request.token)
        return MessageResponse(message="Email verified successfully")

    def forgot_password(self, request: ForgotPasswordRequest) -> MessageResponse:
        self._service.forgot_password(request.email)
        return MessageResponse(
            message="If an account exists for this email, a password reset link has been sent."
        )

    def reset_password(self, request: ResetPasswordRequest) -> MessageResponse:
        self._service.reset_password(request.email, request.token, request.new_password)
        return MessageResponse(message="Password has been reset successfully")

    def change_password(self, user: User, request: ChangePasswordRequest) -> MessageResponse:
        self._service.change_password(user, request.current_password, request.new_password)
        return MessageResponse(message="Password changed successfully")

    def update_profile(self, user: User, request: ProfileUpdateRequest) -> ProfileResponse:
        user = self._service.update_profile(
            user,
            request.first_name,
            request.last_name,
            request.phone_number
        )
        return profile_response(user)


@router.post("/register", response_model=MessageResponse)
def register(
    request: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Register a new account and email a verification code."""
    controller = AccountController(db, email_service)
    return controller.register(request, response)


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """
    Confirm the email with the 6-digit code.

    Rate limited per client IP.
    """
    controller = AccountController(db, email_service)
    return controller.verify_otp(request)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    request: VerifyEmailRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Confirm the email with the link token."""
    controller = AccountController(db, email_service)
    return controller.verify_email(request)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Email a password reset link. Never reveals whether the user exists."""
    controller = AccountController(db, email_service)
    return controller.forgot_password(request)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    controller = AccountController(db, email_service)
    return controller.reset_password(request)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Change the current user's password."""
    controller = AccountController(db, email_service)
    return controller.change_password(user, request)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return profile_response(user)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Update name and phone number."""
    controller = AccountController(db, email_service)
    return controller.update_profile(user, request)
