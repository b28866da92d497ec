"""Security utilities for GradeVault: password hashing and JWT token operations.

Access tokens carry the user id as ``sub`` plus the role claim. Password-reset
tokens are separate JWTs scoped by a ``purpose`` claim and bound to a
fingerprint of the password hash they were issued against, so they stop
validating once the password changes.
"""

import hashlib
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from gradevault.core.settings import Settings

ALGORITHM = "HS256"
PASSWORD_RESET_PURPOSE = "password_reset"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_RULES = (
    (re.compile(r".{8,}"), "Password must be at least 8 characters long"),
    (re.compile(r"[A-Z]"), "Password must contain an uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain a lowercase letter"),
    (re.compile(r"\d"), "Password must contain a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain a non-alphanumeric character"),
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def password_policy_errors(password: str) -> list[str]:
    return [message for pattern, message in PASSWORD_RULES if not pattern.search(password)]


def create_access_token(
    settings: Settings,
    user_id: int,
    role: str,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    # Embed expiration claim so tokens self-expire when validated
    payload = {"sub": str(user_id), "role": role, "exp": expire}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Expired token") from exc
    except jwt.InvalidTokenError as exc:
        raise ValueError("Invalid token") from exc
    if payload.get("purpose"):
        raise ValueError("Invalid token")
    return payload


def password_fingerprint(hashed_password: Optional[str]) -> str:
    return hashlib.sha256((hashed_password or "").encode("utf-8")).hexdigest()[:16]


def create_password_reset_token(settings: Settings, user_id: int, hashed_password: Optional[str]) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.password_reset_expire_minutes)
    payload = {
        "sub": str(user_id),
        "purpose": PASSWORD_RESET_PURPOSE,
        "pwd": password_fingerprint(hashed_password),
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_password_reset_token(settings: Settings, token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Expired token") from exc
    except jwt.InvalidTokenError as exc:
        raise ValueError("Invalid token") from exc
    if payload.get("purpose") != PASSWORD_RESET_PURPOSE:
        raise ValueError("Invalid token")
    return payload
