"""User store helpers: lookup, credential checks, password and role management."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookdb.core.security import hash_password, verify_password
from bookdb.models.enums import DEFAULT_ROLE, UserRole
from bookdb.models.user import User, UserRoleAssignment

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def parse_user_id(value: UUID | str | None) -> UUID | None:
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()


def get_user(db: Session, user_id: UUID | str) -> User | None:
    parsed = parse_user_id(user_id)
    if parsed is None:
        return None
    return db.get(User, parsed)


def role_names(user: User) -> list[str]:
    return [role.value for role in user.roles]


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str | None,
    roles: Iterable[UserRole] = (DEFAULT_ROLE,),
) -> User:
    user = User(
        id=uuid4(),
        email=email.strip().lower(),
        full_name=(full_name or "").strip() or None,
        password_hash=hash_password(password),
        is_active=True,
    )
    user.role_assignments = [UserRoleAssignment(role=role) for role in dict.fromkeys(roles)]
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created: %s", user.email)
    return user


def check_password(user: User, password: str) -> bool:
    if not user.password_hash:
        return False
    return verify_password(password, user.password_hash)


def record_login(db: Session, user: User) -> None:
    user.last_login_at = _utcnow()
    db.add(user)
    db.commit()


def change_password(db: Session, user: User, current_password: str, new_password: str) -> bool:
    if not check_password(user, current_password):
        logger.warning("Password change rejected: wrong current password (%s)", user.id)
        return False
    if not new_password or not new_password.strip():
        logger.warning("Password change rejected: empty new password (%s)", user.id)
        return False
    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    return True


def list_users(db: Session, *, search: str | None = None, offset: int = 0, limit: int = 20) -> list[User]:
    stmt = select(User)
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        stmt = stmt.where(func.lower(User.email).like(pattern) | func.lower(User.full_name).like(pattern))
    stmt = stmt.order_by(User.created_at.desc()).offset(max(offset, 0)).limit(max(limit, 1))
    return list(db.execute(stmt).scalars().all())


def set_active(db: Session, user: User, active: bool) -> User:
    user.is_active = active
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s: %s", "activated" if active else "deactivated", user.email)
    return user


def count_users_with_role(db: Session, role: UserRole) -> int:
    stmt = select(func.count()).select_from(UserRoleAssignment).where(UserRoleAssignment.role == role)
    return int(db.execute(stmt).scalar_one())


def assign_role(db: Session, user: User, role: UserRole) -> bool:
    if role in user.roles:
        return False
    user.role_assignments.append(UserRoleAssignment(role=role))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Role %s assigned to %s", role.value, user.email)
    return True


def remove_role(db: Session, user: User, role: UserRole) -> bool:
    assignment = next((item for item in user.role_assignments if item.role == role), None)
    if assignment is None:
        return False
    user.role_assignments.remove(assignment)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Role %s removed from %s", role.value, user.email)
    return True
