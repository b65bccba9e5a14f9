"""Security helpers for hashing passwords, signing access tokens and minting refresh secrets."""

from __future__ import annotations

import datetime as dt
import hashlib
import logging
import secrets
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from bookdb.core.config import settings
from bookdb.core.exceptions import ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Tokens whose header names any other algorithm are rejected before decoding.
ACCESS_TOKEN_ALGORITHM = "HS256"
MIN_REFRESH_TOKEN_BYTES = 64


@dataclass(frozen=True)
class AccessTokenClaims:
    subject: str
    jti: str
    issued_at: dt.datetime
    expires_at: dt.datetime
    email: str
    display_name: str
    roles: frozenset[str]

    def to_payload(self) -> dict[str, Any]:
        return {
            "sub": self.subject,
            "jti": self.jti,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
            "email": self.email,
            "name": self.display_name,
            "roles": sorted(self.roles),
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
        }


@dataclass(frozen=True)
class SignedAccessToken:
    token: str
    claims: AccessTokenClaims


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(
    *,
    subject: str,
    email: str,
    display_name: str,
    roles: Iterable[str],
    now: dt.datetime | None = None,
) -> SignedAccessToken:
    issued_at = (now or _utcnow()).replace(microsecond=0)
    claims = AccessTokenClaims(
        subject=subject,
        jti=str(uuid4()),
        issued_at=issued_at,
        expires_at=issued_at + dt.timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        email=email,
        display_name=display_name,
        roles=frozenset(roles),
    )
    token = jwt.encode(claims.to_payload(), settings.JWT_SECRET, algorithm=ACCESS_TOKEN_ALGORITHM)
    return SignedAccessToken(token=token, claims=claims)


def _claims_from_payload(payload: dict[str, Any]) -> AccessTokenClaims | None:
    subject = payload.get("sub")
    jti = payload.get("jti")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not subject or not jti or iat is None or exp is None:
        return None
    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    try:
        issued_at = dt.datetime.fromtimestamp(int(iat), tz=dt.timezone.utc)
        expires_at = dt.datetime.fromtimestamp(int(exp), tz=dt.timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None
    return AccessTokenClaims(
        subject=str(subject),
        jti=str(jti),
        issued_at=issued_at,
        expires_at=expires_at,
        email=str(payload.get("email") or ""),
        display_name=str(payload.get("name") or ""),
        roles=frozenset(str(role) for role in roles),
    )


def _decode(token: str, *, verify_exp: bool) -> dict[str, Any]:
    header = jwt.get_unverified_header(token)
    if str(header.get("alg", "")).upper() != ACCESS_TOKEN_ALGORITHM:
        raise JWTError("unexpected_algorithm")
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[ACCESS_TOKEN_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
        options={"verify_exp": verify_exp},
    )


def decode_access_token(token: str) -> AccessTokenClaims:
    """Fully validate a bearer token, expiry included."""
    try:
        payload = _decode(token, verify_exp=True)
    except ExpiredSignatureError as exc:
        raise ExpiredTokenError("access_token_expired") from exc
    except JWTError as exc:
        raise InvalidTokenError() from exc
    claims = _claims_from_payload(payload)
    if claims is None:
        raise InvalidTokenError()
    return claims


def decode_expired_access_token(token: str) -> AccessTokenClaims | None:
    """Read the claims of a possibly expired access token.

    Signature, issuer, audience and algorithm are still enforced; only the
    lifetime check is skipped so the refresh flow can recover the ``jti`` the
    presented refresh token was paired with.
    """
    try:
        payload = _decode(token, verify_exp=False)
    except JWTError as exc:
        logger.warning("Rejected access token during refresh: %s", exc)
        return None
    return _claims_from_payload(payload)


def generate_refresh_secret(num_bytes: int | None = None) -> str:
    size = max(num_bytes or settings.REFRESH_TOKEN_BYTES, MIN_REFRESH_TOKEN_BYTES)
    return secrets.token_urlsafe(size)


def hash_refresh_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()
