"""Session management: list devices, sign out devices, token statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from bookdb.core.config import settings
from bookdb.core.deps import get_current_user, get_event_publisher, require_roles
from bookdb.core.exceptions import NotFoundError
from bookdb.core.security import hash_refresh_secret
from bookdb.db.session import get_db
from bookdb.models.enums import UserRole
from bookdb.models.refresh_token import as_utc
from bookdb.models.user import User
from bookdb.schemas.auth import MessageResponse
from bookdb.schemas.token import CleanupResponse, DeviceListResponse, DeviceOut, TokenStatsOut
from bookdb.services import auth as auth_service
from bookdb.services import tokens as token_service
from bookdb.services.events import EventPublisher

router = APIRouter()

LOGOUT_DEVICE_REASON = "Logged out from device"


@router.get("/my-devices", response_model=DeviceListResponse)
def my_devices(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DeviceListResponse:
    current_secret = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    current_digest = hash_refresh_secret(current_secret) if current_secret else None
    devices = [
        DeviceOut(
            id=record.id,
            device_info=record.device_info or "Unknown",
            ip_address=record.ip_address or "Unknown",
            created_at=as_utc(record.created_at),
            expires_at=as_utc(record.expires_at),
            is_current=record.token == current_digest,
        )
        for record in token_service.list_active_devices(db, current_user.id)
    ]
    return DeviceListResponse(data=devices, count=len(devices))


@router.post("/logout-device/{token_id}", response_model=MessageResponse)
def logout_device(
    token_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    if not token_service.revoke_device_token(db, current_user.id, token_id, LOGOUT_DEVICE_REASON):
        raise NotFoundError("device_not_found", details={"token_id": token_id})
    return MessageResponse(message="Device logged out")


@router.post("/logout-all-devices", response_model=MessageResponse)
def logout_all_devices(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    publisher: EventPublisher | None = Depends(get_event_publisher),
) -> MessageResponse:
    count = auth_service.logout_all_devices(db, current_user.id, publisher=publisher)
    return MessageResponse(message=f"Logged out from {count} devices")


@router.get("/stats", response_model=TokenStatsOut)
def stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TokenStatsOut:
    return TokenStatsOut(**token_service.token_stats(db, current_user.id))


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    dependencies=[Depends(require_roles(UserRole.admin))],
)
def cleanup(db: Session = Depends(get_db)) -> CleanupResponse:
    return CleanupResponse(removed=token_service.cleanup_expired_tokens(db))
