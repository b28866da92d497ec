"""Authentication endpoints: register, login, logout and password reset."""

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr
from sqlalchemy.orm import Session

from gradevault.core.settings import Settings
from gradevault.db.session import get_db
from gradevault.dependencies.auth import get_current_principal, get_email_service, get_settings
from gradevault.models.user import User
from gradevault.schemas.auth import (
    AuthUserRead,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    ResetTokenValidation,
)
from gradevault.schemas.common import ERROR_RESPONSES, MessageResponse
from gradevault.services import identity
from gradevault.services.mailer import EmailService
from gradevault.services.scoping import Principal

router = APIRouter(prefix="/api/auth", tags=["auth"], responses=ERROR_RESPONSES)

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a password reset link has been sent."


@router.post("/register", response_model=MessageResponse)
def register(user_in: RegisterRequest, db: Session = Depends(get_db)):
    identity.register_user(db, user_in)
    return MessageResponse(message="Registration successful")


@router.post("/login", response_model=AuthUserRead)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = identity.authenticate(db, settings, credentials.email, credentials.password)
    return AuthUserRead(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        token=identity.issue_access_token(settings, user, remember_me=credentials.remember_me),
        token_type="bearer",
    )


@router.post("/logout", response_model=MessageResponse)
def logout(principal: Principal = Depends(get_current_principal)):
    # Tokens are stateless; the client discards its copy
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=AuthUserRead)
def read_me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    return db.get(User, principal.user_id)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request_in: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: EmailService = Depends(get_email_service),
):
    identity.request_password_reset(db, settings, mailer, request_in.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.get("/validate-reset-token", response_model=ResetTokenValidation)
def validate_reset_token(
    email: EmailStr = Query(...),
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    identity.validate_reset_token(db, settings, email, token)
    return ResetTokenValidation(valid=True)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    reset_in: ResetPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: EmailService = Depends(get_email_service),
):
    identity.reset_password(db, settings, mailer, reset_in)
    return MessageResponse(message="Password has been reset successfully")
