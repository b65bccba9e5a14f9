"""Common FastAPI dependencies for authentication and authorization."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bookdb.core.config import settings
from bookdb.core.exceptions import AuthenticationException, InsufficientPermissionsError
from bookdb.core.rbac import has_any_role, has_policy
from bookdb.core.security import AccessTokenClaims, decode_access_token
from bookdb.db.session import get_db
from bookdb.models.enums import UserRole
from bookdb.models.user import User
from bookdb.services.events import EventPublisher
from bookdb.services.tokens import ClientInfo
from bookdb.services.users import get_user


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def extract_access_token(request: Request) -> str | None:
    return _extract_bearer_token(request) or request.cookies.get(settings.COOKIE_NAME)


def get_current_claims(request: Request) -> AccessTokenClaims:
    token = extract_access_token(request)
    if not token:
        raise AuthenticationException(
            "not_authenticated",
            error_code="NOT_AUTHENTICATED",
            status_code=401,
        )
    return decode_access_token(token)


def get_current_user(
    claims: AccessTokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
) -> User:
    user = get_user(db, claims.subject)
    if not user:
        raise AuthenticationException(
            "user_not_found",
            error_code="USER_NOT_FOUND",
            status_code=401,
        )
    if not user.is_active:
        raise AuthenticationException(
            "account_disabled",
            error_code="ACCOUNT_DISABLED",
            status_code=403,
        )
    return user


def require_roles(*required: UserRole):
    allowed = set(required)

    def _checker(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        if not has_any_role(claims.roles, allowed):
            raise InsufficientPermissionsError("forbidden")
        return claims

    return _checker


def require_policy(policy: str):
    def _checker(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        if not has_policy(claims.roles, policy):
            raise InsufficientPermissionsError("forbidden")
        return claims

    return _checker


def client_ip(request: Request) -> str | None:
    peer = request.client.host if request.client else None
    # X-Forwarded-For is client-controlled unless a known proxy set it.
    if peer is None or peer not in settings.trusted_proxies:
        return peer
    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    # Walk back from the nearest hop and stop at the first untrusted address.
    for hop in reversed(hops):
        if hop not in settings.trusted_proxies:
            return hop
    return hops[0] if hops else peer


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(device_info=request.headers.get("User-Agent"), ip_address=client_ip(request))


def get_event_publisher(request: Request) -> EventPublisher | None:
    return getattr(request.app.state, "event_publisher", None)
