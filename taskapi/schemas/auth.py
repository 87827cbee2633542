"""Request and response schemas for the authentication endpoints."""

import re
from datetime import datetime

from pydantic import EmailStr, field_validator

from taskapi.schemas.common import CamelModel

MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 50
MIN_PASSWORD_LENGTH = 6
# bcrypt refuses longer input
MAX_PASSWORD_BYTES = 72
_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _validate_name(value: str) -> str:
    normalized = value.strip()
    if not MIN_NAME_LENGTH <= len(normalized) <= MAX_NAME_LENGTH:
        raise ValueError(f"Name must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters")
    return normalized


def _validate_new_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not _PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, and one number"
        )
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must not exceed {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(CamelModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_name(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_new_password(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class UpdateProfileRequest(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_name(value)


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str

    @field_validator("current_password")
    @classmethod
    def validate_current_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Current password is required")
        return value

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _validate_new_password(value)


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class ProfileResponse(UserResponse):
    created_at: datetime
    updated_at: datetime


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: str
