"""Request and response schemas for the auth endpoints."""

from typing import Literal, Optional

from pydantic import EmailStr, Field

from gradevault.schemas.common import CamelModel

NAME_PATTERN = r"^[a-zA-Z]+$"


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    remember_me: bool = False


class RegisterRequest(CamelModel):
    email: EmailStr
    first_name: str = Field(min_length=4, pattern=NAME_PATTERN)
    last_name: str = Field(min_length=4, pattern=NAME_PATTERN)
    password: str = Field(min_length=8)
    confirm_password: str
    role: Literal["Teacher", "Student"]


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    token: str = Field(min_length=1)
    password: str = Field(min_length=8)
    confirm_password: str


class AuthUserRead(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    token: Optional[str] = None
    token_type: Optional[str] = None


class ResetTokenValidation(CamelModel):
    valid: bool
