"""Refresh token model used for JWT session rotation and revocation."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bookdb.db.base import Base

DEVICE_INFO_MAX_LEN = 500
IP_ADDRESS_MAX_LEN = 50
REVOKE_REASON_MAX_LEN = 500


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes; every stored value is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_state", "user_id", "is_revoked", "is_used"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    jwt_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    used_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoke_reason: Mapped[str | None] = mapped_column(String(REVOKE_REASON_MAX_LEN), nullable=True)
    device_info: Mapped[str | None] = mapped_column(String(DEVICE_INFO_MAX_LEN), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(IP_ADDRESS_MAX_LEN), nullable=True)

    def is_expired(self, now: dt.datetime | None = None) -> bool:
        return (now or utcnow()) >= as_utc(self.expires_at)

    def is_active_at(self, now: dt.datetime | None = None) -> bool:
        return not self.is_revoked and not self.is_used and not self.is_expired(now)

    @property
    def is_active(self) -> bool:
        return self.is_active_at()
