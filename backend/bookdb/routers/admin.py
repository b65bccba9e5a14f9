"""User administration: listing, activation and role assignment."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bookdb.core.deps import require_policy
from bookdb.core.exceptions import BadRequestError, NotFoundError
from bookdb.core.rbac import CAN_MANAGE_USERS, REQUIRE_ADMIN_ROLE, ROLE_DESCRIPTIONS
from bookdb.db.session import get_db
from bookdb.models.enums import UserRole
from bookdb.models.user import User
from bookdb.schemas.auth import MessageResponse
from bookdb.schemas.user import AdminUserOut, RoleAssignRequest, RoleOut, ToggleActiveResponse
from bookdb.services import tokens as token_service
from bookdb.services import users as user_service

router = APIRouter()

DEACTIVATED_REASON = "Account deactivated"


def _load_user(db: Session, user_id: UUID) -> User:
    user = user_service.get_user(db, user_id)
    if not user:
        raise NotFoundError("user_not_found", details={"user_id": str(user_id)})
    return user


def _to_admin_out(db: Session, user: User) -> AdminUserOut:
    return AdminUserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        roles=user.roles,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        active_sessions=token_service.count_active_tokens(db, user.id),
    )


@router.get(
    "/users",
    response_model=list[AdminUserOut],
    dependencies=[Depends(require_policy(CAN_MANAGE_USERS))],
)
def list_users(
    search: str | None = Query(default=None, max_length=200),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
) -> list[AdminUserOut]:
    return [_to_admin_out(db, user) for user in user_service.list_users(db, search=search, offset=offset, limit=limit)]


@router.post(
    "/users/{user_id}/toggle-active",
    response_model=ToggleActiveResponse,
    dependencies=[Depends(require_policy(REQUIRE_ADMIN_ROLE))],
)
def toggle_active(user_id: UUID, db: Session = Depends(get_db)) -> ToggleActiveResponse:
    user = _load_user(db, user_id)
    if user.is_active and UserRole.admin in user.roles:
        raise BadRequestError("cannot_deactivate_admin")

    user = user_service.set_active(db, user, not user.is_active)
    revoked = 0
    if not user.is_active:
        revoked = token_service.revoke_all_user_tokens(db, user.id, DEACTIVATED_REASON)
    state = "activated" if user.is_active else "deactivated"
    return ToggleActiveResponse(message=f"User {state}", is_active=user.is_active, revoked_sessions=revoked)


@router.post(
    "/users/{user_id}/roles",
    response_model=AdminUserOut,
    dependencies=[Depends(require_policy(REQUIRE_ADMIN_ROLE))],
)
def assign_role(user_id: UUID, payload: RoleAssignRequest, db: Session = Depends(get_db)) -> AdminUserOut:
    user = _load_user(db, user_id)
    if not user_service.assign_role(db, user, payload.role):
        raise BadRequestError("role_already_assigned", details={"role": payload.role.value})
    return _to_admin_out(db, user)


@router.delete(
    "/users/{user_id}/roles/{role}",
    response_model=MessageResponse,
    dependencies=[Depends(require_policy(REQUIRE_ADMIN_ROLE))],
)
def remove_role(user_id: UUID, role: UserRole, db: Session = Depends(get_db)) -> MessageResponse:
    user = _load_user(db, user_id)
    if role not in user.roles:
        raise NotFoundError("role_not_assigned", details={"role": role.value})
    if role == UserRole.admin and user_service.count_users_with_role(db, UserRole.admin) <= 1:
        raise BadRequestError("last_admin")
    user_service.remove_role(db, user, role)
    return MessageResponse(message=f"Role {role.value} removed")


@router.get(
    "/roles",
    response_model=list[RoleOut],
    dependencies=[Depends(require_policy(CAN_MANAGE_USERS))],
)
def list_roles() -> list[RoleOut]:
    return [RoleOut(name=role, description=description) for role, description in ROLE_DESCRIPTIONS.items()]
