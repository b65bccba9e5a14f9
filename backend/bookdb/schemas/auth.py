"""Auth-related schemas (register, login, refresh, password change)."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, EmailStr, Field, field_validator

from bookdb.core.sanitize import clean_email, clean_single_line, clean_token, has_control_chars
from bookdb.schemas.user import UserOut

MAX_NAME_LEN = 200


def _validate_password(value: str) -> str:
    if has_control_chars(value):
        raise ValueError("password_contains_control_chars")
    if not value.strip():
        raise ValueError("password_required")
    return value


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str | None = Field(default=None, max_length=MAX_NAME_LEN)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator("full_name", mode="before")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        cleaned = clean_single_line(value)
        return cleaned or None

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_password(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class RefreshTokenRequest(BaseModel):
    token: str | None = None
    refresh_token: str | None = None

    @field_validator("token", "refresh_token", mode="before")
    @classmethod
    def normalize_token(cls, value: str | None) -> str | None:
        cleaned = clean_token(value)
        return cleaned or None


class LogoutRequest(BaseModel):
    refresh_token: str | None = None

    @field_validator("refresh_token", mode="before")
    @classmethod
    def normalize_token(cls, value: str | None) -> str | None:
        cleaned = clean_token(value)
        return cleaned or None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _validate_password(value)


class TokenResponse(BaseModel):
    success: bool = True
    message: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: dt.datetime
    user: UserOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str
