from __future__ import annotations

import base64
import datetime as dt
import string

import pytest
from jose import jwt

from bookdb.core.config import settings
from bookdb.core.exceptions import ExpiredTokenError, InvalidTokenError
from bookdb.core.security import (
    ACCESS_TOKEN_ALGORITHM,
    create_access_token,
    decode_access_token,
    decode_expired_access_token,
    generate_refresh_secret,
    hash_password,
    hash_refresh_secret,
    verify_password,
)

COOKIE_SAFE_CHARS = set(string.ascii_letters + string.digits + "-_")


def _issue(now: dt.datetime | None = None):
    return create_access_token(
        subject="2f1d5f0e-8a55-4d5c-9f0b-3d7c3b1a9e11",
        email="reader@bookdb.dev",
        display_name="Reader",
        roles=["User", "Editor"],
        now=now,
    )


def test_access_token_expiry_is_issued_at_plus_lifetime() -> None:
    signed = _issue(dt.datetime(2026, 3, 1, 12, 0, 0, 987654, tzinfo=dt.timezone.utc))

    assert signed.claims.issued_at.microsecond == 0
    assert signed.claims.expires_at - signed.claims.issued_at == dt.timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )


def test_access_token_round_trips_claims() -> None:
    signed = _issue()
    claims = decode_access_token(signed.token)

    assert claims == signed.claims
    assert claims.roles == frozenset({"User", "Editor"})
    assert claims.display_name == "Reader"


def test_every_access_token_gets_a_fresh_jti() -> None:
    assert _issue().claims.jti != _issue().claims.jti


def test_tampered_signature_is_rejected() -> None:
    token = _issue().token
    head, body, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

    with pytest.raises(InvalidTokenError):
        decode_access_token(f"{head}.{body}.{flipped}")
    assert decode_expired_access_token(f"{head}.{body}.{flipped}") is None


def test_other_algorithm_is_rejected() -> None:
    payload = _issue().claims.to_payload()
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS512")

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)
    assert decode_expired_access_token(token) is None


@pytest.mark.parametrize("claim,value", [("iss", "SomeoneElse"), ("aud", "OtherAudience")])
def test_wrong_issuer_or_audience_is_rejected(claim: str, value: str) -> None:
    payload = _issue().claims.to_payload()
    payload[claim] = value
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=ACCESS_TOKEN_ALGORITHM)

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)
    assert decode_expired_access_token(token) is None


def test_expired_token_is_rejected_but_still_readable_for_refresh() -> None:
    signed = _issue(dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=1))

    with pytest.raises(ExpiredTokenError):
        decode_access_token(signed.token)
    claims = decode_expired_access_token(signed.token)
    assert claims is not None
    assert claims.jti == signed.claims.jti


def test_garbage_token_is_rejected() -> None:
    with pytest.raises(InvalidTokenError):
        decode_access_token("not-a-jwt")
    assert decode_expired_access_token("not-a-jwt") is None


def test_refresh_secret_has_at_least_64_bytes_of_entropy() -> None:
    secret = generate_refresh_secret()

    assert len(base64.urlsafe_b64decode(secret + "=" * (-len(secret) % 4))) == 64
    assert generate_refresh_secret() != secret
    assert len(generate_refresh_secret(16)) == len(secret)


def test_refresh_secret_is_cookie_safe() -> None:
    for _ in range(20):
        secret = generate_refresh_secret()
        assert set(secret) <= COOKIE_SAFE_CHARS


def test_refresh_secret_digest_is_stable() -> None:
    secret = generate_refresh_secret()

    assert hash_refresh_secret(secret) == hash_refresh_secret(secret)
    assert hash_refresh_secret(secret) != secret
    assert len(hash_refresh_secret(secret)) == 64


def test_password_hashing() -> None:
    hashed = hash_password("correct horse")

    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
