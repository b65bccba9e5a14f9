"""Schemas for session (refresh token) management endpoints."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel


class DeviceOut(BaseModel):
    id: int
    device_info: str
    ip_address: str
    created_at: dt.datetime
    expires_at: dt.datetime
    is_current: bool = False


class DeviceListResponse(BaseModel):
    success: bool = True
    data: list[DeviceOut]
    count: int


class TokenStatsOut(BaseModel):
    active_sessions: int
    total_tokens_created: int
    revoked_tokens: int
    used_tokens: int
    expired_tokens: int


class CleanupResponse(BaseModel):
    success: bool = True
    removed: int
