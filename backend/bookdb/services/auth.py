"""User-facing authentication flows: register, login, refresh, password change, logout."""

from __future__ import annotations

import datetime as dt
import enum
import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookdb.core.security import decode_expired_access_token
from bookdb.models.enums import AuthEvent
from bookdb.models.user import User
from bookdb.services import refresh_tokens, tokens, users
from bookdb.services.events import EventPublisher, publish_event
from bookdb.services.tokens import ClientInfo

logger = logging.getLogger(__name__)

PASSWORD_CHANGED_REASON = "Password changed"
LOGOUT_REASON = "User logged out"
LOGOUT_ALL_REASON = "Logout from all devices"


class AuthFailure(str, enum.Enum):
    duplicate_email = "DuplicateEmail"
    invalid_credentials = "InvalidCredentials"
    account_disabled = "AccountDisabled"
    invalid_token = "InvalidToken"
    invalid_refresh_token = "InvalidRefreshToken"
    user_not_found_or_disabled = "UserNotFoundOrDisabled"
    password_change_rejected = "PasswordChangeRejected"


FAILURE_MESSAGES: dict[AuthFailure, str] = {
    AuthFailure.duplicate_email: "Email is already registered",
    AuthFailure.invalid_credentials: "Invalid email or password",
    AuthFailure.account_disabled: "Account is disabled",
    AuthFailure.invalid_token: "Invalid token",
    AuthFailure.invalid_refresh_token: "Refresh token is invalid or expired",
    AuthFailure.user_not_found_or_disabled: "User does not exist or is disabled",
    AuthFailure.password_change_rejected: "Password change rejected",
}


@dataclass(frozen=True)
class UserView:
    id: UUID
    email: str
    full_name: str | None
    roles: list[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(id=user.id, email=user.email, full_name=user.full_name, roles=users.role_names(user))


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    jwt_id: str
    expires_at: dt.datetime


@dataclass(frozen=True)
class AuthResult:
    success: bool
    message: str
    failure: AuthFailure | None = None
    tokens: TokenPair | None = None
    user: UserView | None = None

    @classmethod
    def ok(cls, message: str, *, tokens: TokenPair, user: UserView) -> "AuthResult":
        return cls(success=True, message=message, tokens=tokens, user=user)

    @classmethod
    def fail(cls, failure: AuthFailure) -> "AuthResult":
        return cls(success=False, message=FAILURE_MESSAGES[failure], failure=failure)


def _issue_token_pair(db: Session, user: User, client: ClientInfo | None) -> TokenPair:
    signed = tokens.issue_access_token(user, users.role_names(user))
    refresh_secret = tokens.issue_refresh_token(db, user, signed.claims.jti, client=client)
    return TokenPair(
        access_token=signed.token,
        refresh_token=refresh_secret,
        jwt_id=signed.claims.jti,
        expires_at=signed.claims.expires_at,
    )


def register(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str | None,
    client: ClientInfo | None = None,
    publisher: EventPublisher | None = None,
) -> AuthResult:
    if users.find_user_by_email(db, email):
        logger.info("Registration rejected: email already registered (%s)", email.lower())
        return AuthResult.fail(AuthFailure.duplicate_email)
    try:
        user = users.create_user(db, email=email, password=password, full_name=full_name)
    except IntegrityError:
        db.rollback()
        logger.info("Registration lost a race on email %s", email.lower())
        return AuthResult.fail(AuthFailure.duplicate_email)

    pair = _issue_token_pair(db, user, client)
    view = UserView.from_user(user)
    publish_event(publisher, AuthEvent.registered, {"user_id": str(user.id), "email": user.email})
    logger.info("User %s registered", user.email)
    return AuthResult.ok("Registration successful", tokens=pair, user=view)


def login(
    db: Session,
    *,
    email: str,
    password: str,
    client: ClientInfo | None = None,
    publisher: EventPublisher | None = None,
) -> AuthResult:
    user = users.find_user_by_email(db, email)
    if user is None or not users.check_password(user, password):
        logger.warning("Login failed for %s", email.lower())
        return AuthResult.fail(AuthFailure.invalid_credentials)
    if not user.is_active:
        logger.warning("Login refused for disabled account %s", user.email)
        return AuthResult.fail(AuthFailure.account_disabled)

    users.record_login(db, user)
    pair = _issue_token_pair(db, user, client)
    view = UserView.from_user(user)
    publish_event(publisher, AuthEvent.logged_in, {"user_id": str(user.id)})
    logger.info("User %s logged in", user.email)
    return AuthResult.ok("Login successful", tokens=pair, user=view)


def refresh(
    db: Session,
    *,
    access_token: str,
    refresh_token: str,
    client: ClientInfo | None = None,
    publisher: EventPublisher | None = None,
) -> AuthResult:
    claims = decode_expired_access_token(access_token) if access_token else None
    if claims is None:
        return AuthResult.fail(AuthFailure.invalid_token)

    if not tokens.validate_refresh_token(db, refresh_token, claims.jti):
        return AuthResult.fail(AuthFailure.invalid_refresh_token)

    user = users.get_user(db, claims.subject)
    if user is None or not user.is_active:
        logger.warning("Refresh refused: user %s missing or disabled", claims.subject)
        return AuthResult.fail(AuthFailure.user_not_found_or_disabled)

    # Burning the presented secret is the redemption; losing this race means
    # another request already rotated off the same token.
    if not tokens.mark_used(db, refresh_token):
        return AuthResult.fail(AuthFailure.invalid_refresh_token)

    pair = _issue_token_pair(db, user, client)
    view = UserView.from_user(user)
    publish_event(publisher, AuthEvent.tokens_refreshed, {"user_id": str(user.id)})
    logger.info("Tokens refreshed for user %s", user.id)
    return AuthResult.ok("Token refreshed", tokens=pair, user=view)


def change_password(
    db: Session,
    user_id: UUID | str,
    current_password: str,
    new_password: str,
    *,
    publisher: EventPublisher | None = None,
) -> bool:
    user = users.get_user(db, user_id)
    if user is None:
        return False
    if not users.change_password(db, user, current_password, new_password):
        return False

    tokens.revoke_all_user_tokens(db, user.id, PASSWORD_CHANGED_REASON)
    publish_event(publisher, AuthEvent.password_changed, {"user_id": str(user.id)})
    logger.info("Password changed for user %s", user.id)
    return True


def logout(
    db: Session,
    user_id: UUID | str,
    refresh_token: str | None,
    *,
    publisher: EventPublisher | None = None,
) -> bool:
    parsed_user_id = users.parse_user_id(user_id)
    if not refresh_token or parsed_user_id is None:
        return False
    stored = refresh_tokens.get_by_token(db, refresh_token)
    if stored is None or stored.user_id != parsed_user_id:
        logger.warning("Logout ignored: refresh token does not belong to user %s", user_id)
        return False

    revoked = tokens.revoke_refresh_token(db, refresh_token, LOGOUT_REASON)
    publish_event(publisher, AuthEvent.logged_out, {"user_id": str(parsed_user_id)})
    logger.info("User %s logged out", parsed_user_id)
    return revoked


def logout_all_devices(
    db: Session,
    user_id: UUID | str,
    *,
    publisher: EventPublisher | None = None,
) -> int:
    parsed_user_id = users.parse_user_id(user_id)
    if parsed_user_id is None:
        return 0
    count = tokens.revoke_all_user_tokens(db, parsed_user_id, LOGOUT_ALL_REASON)
    publish_event(publisher, AuthEvent.logged_out_all, {"user_id": str(parsed_user_id), "sessions": count})
    logger.info("User %s logged out from all devices", parsed_user_id)
    return count
