"""Data access for persisted refresh tokens.

Only consistency of reads and writes lives here. Every lifecycle transition is a
single conditional UPDATE so that two concurrent callers can never both apply
the same transition to a record.
"""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from bookdb.core.security import hash_refresh_secret
from bookdb.models.refresh_token import REVOKE_REASON_MAX_LEN, RefreshToken


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _active_filter(now: dt.datetime):
    return (
        RefreshToken.is_revoked.is_(False),
        RefreshToken.is_used.is_(False),
        RefreshToken.expires_at > now,
    )


def get_by_token(db: Session, secret: str) -> RefreshToken | None:
    digest = hash_refresh_secret(secret)
    return db.execute(select(RefreshToken).where(RefreshToken.token == digest)).scalar_one_or_none()


def get_by_jwt_id(db: Session, jwt_id: str) -> RefreshToken | None:
    return db.execute(select(RefreshToken).where(RefreshToken.jwt_id == jwt_id)).scalars().first()


def get_for_user(db: Session, user_id: UUID, token_id: int) -> RefreshToken | None:
    return db.execute(
        select(RefreshToken).where(RefreshToken.id == token_id, RefreshToken.user_id == user_id)
    ).scalar_one_or_none()


def list_active_for_user(db: Session, user_id: UUID, *, now: dt.datetime | None = None) -> list[RefreshToken]:
    stmt = (
        select(RefreshToken)
        .where(RefreshToken.user_id == user_id, *_active_filter(now or _utcnow()))
        .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def list_all_for_user(db: Session, user_id: UUID) -> list[RefreshToken]:
    stmt = (
        select(RefreshToken)
        .where(RefreshToken.user_id == user_id)
        .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def add(db: Session, record: RefreshToken) -> RefreshToken:
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_record(db: Session, record: RefreshToken) -> RefreshToken:
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def mark_used(db: Session, secret: str, *, now: dt.datetime | None = None) -> bool:
    """Redeem an active token. Only one caller can ever get ``True`` for a secret."""
    now = now or _utcnow()
    result = db.execute(
        update(RefreshToken)
        .where(RefreshToken.token == hash_refresh_secret(secret), *_active_filter(now))
        .values(is_used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def revoke(db: Session, secret: str, reason: str, *, now: dt.datetime | None = None) -> bool:
    now = now or _utcnow()
    result = db.execute(
        update(RefreshToken)
        .where(RefreshToken.token == hash_refresh_secret(secret), RefreshToken.is_revoked.is_(False))
        .values(is_revoked=True, revoked_at=now, revoke_reason=reason[:REVOKE_REASON_MAX_LEN])
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def revoke_all_for_user(db: Session, user_id: UUID, reason: str, *, now: dt.datetime | None = None) -> int:
    now = now or _utcnow()
    result = db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
        .values(is_revoked=True, revoked_at=now, revoke_reason=reason[:REVOKE_REASON_MAX_LEN])
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return int(result.rowcount or 0)


def delete_expired(db: Session, *, now: dt.datetime | None = None) -> int:
    result = db.execute(
        delete(RefreshToken)
        .where(RefreshToken.expires_at < (now or _utcnow()))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return int(result.rowcount or 0)


def count_active(db: Session, user_id: UUID, *, now: dt.datetime | None = None) -> int:
    stmt = select(func.count(RefreshToken.id)).where(
        RefreshToken.user_id == user_id,
        *_active_filter(now or _utcnow()),
    )
    return int(db.execute(stmt).scalar_one())


def revoke_for_user(
    db: Session,
    user_id: UUID,
    token_id: int,
    reason: str,
    *,
    now: dt.datetime | None = None,
) -> bool:
    now = now or _utcnow()
    result = db.execute(
        update(RefreshToken)
        .where(
            RefreshToken.id == token_id,
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked.is_(False),
        )
        .values(is_revoked=True, revoked_at=now, revoke_reason=reason[:REVOKE_REASON_MAX_LEN])
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1
