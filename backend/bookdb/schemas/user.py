"""Pydantic schemas for user payloads and responses."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from bookdb.models.enums import UserRole


class UserOut(BaseModel):
    id: UUID
    email: EmailStr
    full_name: str | None = None
    roles: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class AdminUserOut(BaseModel):
    id: UUID
    email: EmailStr
    full_name: str | None = None
    roles: list[UserRole]
    is_active: bool
    created_at: dt.datetime
    last_login_at: dt.datetime | None = None
    active_sessions: int = 0

    model_config = ConfigDict(from_attributes=True)


class RoleAssignRequest(BaseModel):
    role: UserRole


class ToggleActiveResponse(BaseModel):
    message: str
    is_active: bool
    revoked_sessions: int = 0


class RoleOut(BaseModel):
    name: UserRole
    description: str
