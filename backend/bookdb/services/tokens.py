"""Access/refresh token orchestration: issuance, validation, rotation and revocation."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from bookdb.core.config import settings
from bookdb.core.security import (
    SignedAccessToken,
    create_access_token,
    generate_refresh_secret,
    hash_refresh_secret,
)
from bookdb.models.refresh_token import DEVICE_INFO_MAX_LEN, IP_ADDRESS_MAX_LEN, RefreshToken
from bookdb.models.user import User
from bookdb.services import refresh_tokens

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "Unknown"


@dataclass(frozen=True)
class ClientInfo:
    device_info: str | None = None
    ip_address: str | None = None


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _truncate(value: str | None, limit: int) -> str:
    cleaned = (value or "").strip() or UNKNOWN_CLIENT
    return cleaned[:limit]


def issue_access_token(user: User, roles: Iterable[str]) -> SignedAccessToken:
    return create_access_token(
        subject=str(user.id),
        email=user.email or "",
        display_name=user.display_name,
        roles=roles,
    )


def issue_refresh_token(
    db: Session,
    user: User,
    jwt_id: str,
    *,
    client: ClientInfo | None = None,
) -> str:
    client = client or ClientInfo()
    secret = generate_refresh_secret()
    now = _utcnow()
    refresh_tokens.add(
        db,
        RefreshToken(
            user_id=user.id,
            token=hash_refresh_secret(secret),
            jwt_id=jwt_id,
            created_at=now,
            expires_at=now + dt.timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            device_info=_truncate(client.device_info, DEVICE_INFO_MAX_LEN),
            ip_address=_truncate(client.ip_address, IP_ADDRESS_MAX_LEN),
        ),
    )
    logger.info("Issued refresh token for user %s (jti=%s)", user.id, jwt_id)
    return secret


def validate_refresh_token(db: Session, secret: str, expected_jwt_id: str) -> bool:
    """Return whether ``secret`` is active and paired with ``expected_jwt_id``.

    Callers only ever see a boolean; the specific reason is logged.
    """
    if not secret or not expected_jwt_id:
        return False
    stored = refresh_tokens.get_by_token(db, secret)
    if stored is None:
        logger.warning("Refresh token not found")
        return False
    if stored.jwt_id != expected_jwt_id:
        logger.warning("Refresh token jti mismatch for user %s", stored.user_id)
        return False
    if not stored.is_active_at(_utcnow()):
        logger.warning(
            "Refresh token inactive for user %s (revoked=%s used=%s expired=%s)",
            stored.user_id,
            stored.is_revoked,
            stored.is_used,
            stored.is_expired(_utcnow()),
        )
        return False
    return True


def mark_used(db: Session, secret: str) -> bool:
    redeemed = refresh_tokens.mark_used(db, secret, now=_utcnow())
    if redeemed:
        logger.info("Refresh token redeemed")
    else:
        logger.warning("Refresh token redemption lost or token inactive")
    return redeemed


def revoke_refresh_token(db: Session, secret: str, reason: str) -> bool:
    revoked = refresh_tokens.revoke(db, secret, reason, now=_utcnow())
    logger.info("Revoked refresh token (reason=%s, changed=%s)", reason, revoked)
    return revoked


def revoke_all_user_tokens(db: Session, user_id: UUID, reason: str) -> int:
    count = refresh_tokens.revoke_all_for_user(db, user_id, reason, now=_utcnow())
    logger.info("Revoked %s refresh tokens for user %s (reason=%s)", count, user_id, reason)
    return count


def cleanup_expired_tokens(db: Session) -> int:
    try:
        removed = refresh_tokens.delete_expired(db, now=_utcnow())
    except Exception:  # noqa: BLE001
        db.rollback()
        logger.exception("Expired refresh token cleanup failed")
        return 0
    logger.info("Cleaned up %s expired refresh tokens", removed)
    return removed


def count_active_tokens(db: Session, user_id: UUID) -> int:
    return refresh_tokens.count_active(db, user_id, now=_utcnow())


def revoke_device_token(db: Session, user_id: UUID, token_id: int, reason: str) -> bool:
    revoked = refresh_tokens.revoke_for_user(db, user_id, token_id, reason, now=_utcnow())
    logger.info("Revoked device token %s for user %s (changed=%s)", token_id, user_id, revoked)
    return revoked


def list_active_devices(db: Session, user_id: UUID) -> list[RefreshToken]:
    return refresh_tokens.list_active_for_user(db, user_id, now=_utcnow())


def token_stats(db: Session, user_id: UUID) -> dict[str, int]:
    now = _utcnow()
    records = refresh_tokens.list_all_for_user(db, user_id)
    return {
        "active_sessions": sum(1 for record in records if record.is_active_at(now)),
        "total_tokens_created": len(records),
        "revoked_tokens": sum(1 for record in records if record.is_revoked),
        "used_tokens": sum(1 for record in records if record.is_used),
        "expired_tokens": sum(1 for record in records if record.is_expired(now)),
    }
