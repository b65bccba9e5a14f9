"""Authentication endpoints (register, login, refresh, logout, password change)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from bookdb.core.config import settings
from bookdb.core.deps import get_client_info, get_current_claims, get_current_user, get_event_publisher
from bookdb.core.exceptions import AuthenticationException, BadRequestError, BookDbException, ConflictError
from bookdb.core.security import AccessTokenClaims
from bookdb.db.session import get_db
from bookdb.models.user import User
from bookdb.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from bookdb.schemas.user import UserOut
from bookdb.services import auth as auth_service
from bookdb.services.auth import FAILURE_MESSAGES, AuthFailure, AuthResult
from bookdb.services.events import EventPublisher
from bookdb.services.tokens import ClientInfo
from bookdb.services.users import role_names

router = APIRouter()
logger = logging.getLogger(__name__)

_FAILURE_STATUS: dict[AuthFailure, tuple[int, str]] = {
    AuthFailure.invalid_credentials: (401, "INVALID_CREDENTIALS"),
    AuthFailure.account_disabled: (403, "ACCOUNT_DISABLED"),
    AuthFailure.invalid_token: (401, "INVALID_TOKEN"),
    AuthFailure.invalid_refresh_token: (401, "INVALID_REFRESH_TOKEN"),
    AuthFailure.user_not_found_or_disabled: (401, "USER_NOT_FOUND_OR_DISABLED"),
}


def _set_auth_cookies(response: Response, *, access_token: str, refresh_token: str) -> None:
    is_secure = settings.ENV != "development"
    refresh_max_age = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
    # The access cookie outlives its JWT so /refresh-token can still read the
    # expired token; the token's own exp claim bounds its use everywhere else.
    response.set_cookie(
        settings.COOKIE_NAME,
        access_token,
        httponly=True,
        samesite="lax",
        secure=is_secure,
        path="/",
        max_age=refresh_max_age,
    )
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        refresh_token,
        httponly=True,
        samesite="strict",
        secure=is_secure,
        path="/api",
        max_age=refresh_max_age,
    )


def _clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(settings.COOKIE_NAME, path="/")
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path="/api")


def _failure_error(result: AuthResult) -> BookDbException:
    if result.failure == AuthFailure.duplicate_email:
        return ConflictError("email_exists")
    if result.failure in _FAILURE_STATUS:
        status_code, error_code = _FAILURE_STATUS[result.failure]
        return AuthenticationException(result.message, error_code=error_code, status_code=status_code)
    return BookDbException(result.message, error_code="AUTH_FAILED", status_code=400)


def _token_response(result: AuthResult, response: Response) -> TokenResponse:
    tokens, user = result.tokens, result.user
    if not result.success or tokens is None or user is None:
        raise _failure_error(result)
    _set_auth_cookies(
        response,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    return TokenResponse(
        message=result.message,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_at=tokens.expires_at,
        user=UserOut(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            roles=user.roles,
        ),
    )


@router.post("/register", response_model=TokenResponse)
def register_user(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
    publisher: EventPublisher | None = Depends(get_event_publisher),
) -> TokenResponse:
    result = auth_service.register(
        db,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        client=client,
        publisher=publisher,
    )
    return _token_response(result, response)


@router.post("/login", response_model=TokenResponse)
def login_user(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
    publisher: EventPublisher | None = Depends(get_event_publisher),
) -> TokenResponse:
    result = auth_service.login(
        db,
        email=payload.email,
        password=payload.password,
        client=client,
        publisher=publisher,
    )
    return _token_response(result, response)


@router.post("/refresh-token", response_model=TokenResponse)
def refresh_tokens(
    request: Request,
    response: Response,
    payload: RefreshTokenRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
    publisher: EventPublisher | None = Depends(get_event_publisher),
) -> TokenResponse:
    access_token = (payload.token if payload else None) or request.cookies.get(settings.COOKIE_NAME)
    refresh_token = (payload.refresh_token if payload else None) or request.cookies.get(
        settings.REFRESH_COOKIE_NAME
    )
    if not access_token or not refresh_token:
        raise AuthenticationException("missing_tokens", error_code="MISSING_TOKENS", status_code=401)

    result = auth_service.refresh(
        db,
        access_token=access_token,
        refresh_token=refresh_token,
        client=client,
        publisher=publisher,
    )
    return _token_response(result, response)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    payload: LogoutRequest | None = Body(default=None),
    claims: AccessTokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
    publisher: EventPublisher | None = Depends(get_event_publisher),
) -> MessageResponse:
    refresh_token = (payload.refresh_token if payload else None) or request.cookies.get(
        settings.REFRESH_COOKIE_NAME
    )
    revoked = auth_service.logout(db, claims.subject, refresh_token, publisher=publisher)
    _clear_auth_cookies(response)
    if not revoked:
        logger.info("Logout for user %s did not revoke a refresh token", claims.subject)
    return MessageResponse(message="Logged out")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    publisher: EventPublisher | None = Depends(get_event_publisher),
) -> MessageResponse:
    changed = auth_service.change_password(
        db,
        current_user.id,
        payload.current_password,
        payload.new_password,
        publisher=publisher,
    )
    if not changed:
        raise BadRequestError(FAILURE_MESSAGES[AuthFailure.password_change_rejected])
    _clear_auth_cookies(response)
    return MessageResponse(message="Password changed; please sign in again")


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return UserOut(
        id=current_user.id,
        email=current_user.email,
        full_name=current_user.full_name,
        roles=role_names(current_user),
    )
