"""Accounts: registration, login with lockout, and password reset.

Registration provisions the Teacher or Student profile that matches the
requested role in the same transaction as the account itself.
"""

from datetime import timedelta
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradevault.core.errors import (
    AccountLocked,
    DependencyFailure,
    EmailAlreadyRegistered,
    InvalidCredentials,
    InvalidResetToken,
    ValidationError,
)
from gradevault.core.logging import get_logger
from gradevault.core.security import (
    create_access_token,
    create_password_reset_token,
    decode_password_reset_token,
    get_password_hash,
    password_fingerprint,
    password_policy_errors,
    verify_password,
)
from gradevault.core.settings import Settings
from gradevault.core.time import as_utc, utc_now
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.models.user import ROLE_TEACHER, User
from gradevault.schemas.auth import RegisterRequest, ResetPasswordRequest
from gradevault.services.mailer import EmailService

logger = get_logger("identity")


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def _check_new_password(password: str, confirm_password: str) -> None:
    errors = password_policy_errors(password)
    if password != confirm_password:
        errors.append("Passwords do not match")
    if errors:
        raise ValidationError("Invalid password", errors=errors)


def register_user(db: Session, user_in: RegisterRequest) -> User:
    _check_new_password(user_in.password, user_in.confirm_password)
    if get_user_by_email(db, user_in.email):
        raise EmailAlreadyRegistered()

    email = _normalize_email(user_in.email)
    user = User(
        email=email,
        hashed_password=get_password_hash(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        role=user_in.role,
    )
    profile_cls = Teacher if user_in.role == ROLE_TEACHER else Student
    profile = profile_cls(first_name=user_in.first_name, last_name=user_in.last_name, email=email, user=user)
    try:
        db.add(user)
        db.add(profile)
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise EmailAlreadyRegistered() from exc
    except Exception:
        # Account and profile are provisioned together or not at all
        db.rollback()
        raise
    db.refresh(user)
    logger.info("User %d registered with role %s", user.id, user.role)
    return user


def _register_failed_login(db: Session, settings: Settings, user: User) -> None:
    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= settings.lockout_max_attempts:
        user.lockout_until = utc_now() + timedelta(minutes=settings.lockout_minutes)
        user.failed_login_attempts = 0
        logger.warning("User %d locked out after repeated failed logins", user.id)
    db.commit()


def is_locked_out(user: User) -> bool:
    lockout_until = as_utc(user.lockout_until)
    return lockout_until is not None and lockout_until > utc_now()


def authenticate(db: Session, settings: Settings, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        raise InvalidCredentials()
    if is_locked_out(user):
        raise AccountLocked()
    if not user.hashed_password or not verify_password(password, user.hashed_password):
        _register_failed_login(db, settings, user)
        if is_locked_out(user):
            raise AccountLocked()
        raise InvalidCredentials()

    user.failed_login_attempts = 0
    user.lockout_until = None
    user.last_login = utc_now()
    db.commit()
    db.refresh(user)
    logger.info("User %d logged in", user.id)
    return user


def issue_access_token(settings: Settings, user: User, remember_me: bool = False) -> str:
    expires = settings.remember_me_expire_minutes if remember_me else None
    return create_access_token(settings, user_id=user.id, role=user.role, email=user.email, expires_minutes=expires)


def build_reset_link(settings: Settings, email: str, token: str) -> str:
    query = urlencode({"email": email, "token": token})
    return f"{settings.frontend_url.rstrip('/')}/reset-password?{query}"


def request_password_reset(db: Session, settings: Settings, mailer: EmailService, email: str) -> None:
    """Email a reset link when the account exists.

    Unknown addresses are silently ignored so the endpoint does not reveal
    which emails are registered.
    """
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive account")
        return

    token = create_password_reset_token(settings, user.id, user.hashed_password)
    link = build_reset_link(settings, user.email, token)
    mailer.send_email(
        user.email,
        "Reset your GradeVault password",
        f"<p>Hello {user.first_name or ''},</p>"
        f"<p>Use the link below to choose a new password. It expires in "
        f"{settings.password_reset_expire_minutes} minutes.</p>"
        f'<p><a href="{link}">Reset password</a></p>',
    )
    logger.info("Password reset email issued for user %d", user.id)


def validate_reset_token(db: Session, settings: Settings, email: str, token: str) -> User:
    user = get_user_by_email(db, email)
    if user is None:
        raise InvalidResetToken()
    try:
        payload = decode_password_reset_token(settings, token)
    except ValueError as exc:
        raise InvalidResetToken() from exc
    if payload.get("sub") != str(user.id) or payload.get("pwd") != password_fingerprint(user.hashed_password):
        raise InvalidResetToken()
    return user


def reset_password(db: Session, settings: Settings, mailer: EmailService, reset_in: ResetPasswordRequest) -> User:
    user = validate_reset_token(db, settings, reset_in.email, reset_in.token)
    _check_new_password(reset_in.password, reset_in.confirm_password)

    user.hashed_password = get_password_hash(reset_in.password)
    user.failed_login_attempts = 0
    user.lockout_until = None
    db.commit()
    db.refresh(user)
    logger.info("Password reset for user %d", user.id)

    try:
        mailer.send_email(
            user.email,
            "Your GradeVault password was changed",
            "<p>Your password has been reset. If this wasn't you, contact your school administrator.</p>",
        )
    except DependencyFailure:
        logger.warning("Password reset confirmation email to user %d could not be sent", user.id)
    return user