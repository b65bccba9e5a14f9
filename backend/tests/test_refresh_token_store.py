from __future__ import annotations

import datetime as dt

from bookdb.core.security import hash_refresh_secret
from bookdb.models.refresh_token import RefreshToken
from bookdb.services import refresh_tokens, users

NOW = dt.datetime(2026, 5, 1, 8, 0, 0, tzinfo=dt.timezone.utc)


def _make_user(db, email: str = "store@bookdb.dev"):
    return users.create_user(db, email=email, password="secret-pass", full_name="Store User")


def _add_token(db, user, secret: str, *, jwt_id: str = "jti-1", expires_in: dt.timedelta = dt.timedelta(days=7)):
    return refresh_tokens.add(
        db,
        RefreshToken(
            user_id=user.id,
            token=hash_refresh_secret(secret),
            jwt_id=jwt_id,
            created_at=NOW,
            expires_at=NOW + expires_in,
        ),
    )


def test_lookup_by_secret_uses_the_stored_digest(db) -> None:
    user = _make_user(db)
    record = _add_token(db, user, "plain-secret")

    assert record.token != "plain-secret"
    assert refresh_tokens.get_by_token(db, "plain-secret").id == record.id
    assert refresh_tokens.get_by_token(db, "other-secret") is None
    assert refresh_tokens.get_by_jwt_id(db, "jti-1").id == record.id


def test_mark_used_succeeds_once(db) -> None:
    user = _make_user(db)
    _add_token(db, user, "plain-secret")

    assert refresh_tokens.mark_used(db, "plain-secret", now=NOW)
    assert not refresh_tokens.mark_used(db, "plain-secret", now=NOW)

    record = refresh_tokens.get_by_token(db, "plain-secret")
    assert record.is_used
    assert record.used_at is not None


def test_mark_used_refuses_revoked_and_expired_tokens(db) -> None:
    user = _make_user(db)
    _add_token(db, user, "revoked", jwt_id="a")
    _add_token(db, user, "expired", jwt_id="b", expires_in=dt.timedelta(seconds=-1))

    assert refresh_tokens.revoke(db, "revoked", "test", now=NOW)
    assert not refresh_tokens.mark_used(db, "revoked", now=NOW)
    assert not refresh_tokens.mark_used(db, "expired", now=NOW)


def test_revoke_records_reason_and_is_idempotent(db) -> None:
    user = _make_user(db)
    _add_token(db, user, "plain-secret")

    assert refresh_tokens.revoke(db, "plain-secret", "User logged out", now=NOW)
    assert not refresh_tokens.revoke(db, "plain-secret", "again", now=NOW)

    record = refresh_tokens.get_by_token(db, "plain-secret")
    assert record.is_revoked
    assert record.revoke_reason == "User logged out"


def test_revoke_all_only_touches_the_owner(db) -> None:
    owner = _make_user(db)
    other = _make_user(db, "other@bookdb.dev")
    _add_token(db, owner, "one", jwt_id="1")
    _add_token(db, owner, "two", jwt_id="2")
    _add_token(db, other, "three", jwt_id="3")

    assert refresh_tokens.revoke_all_for_user(db, owner.id, "Logout from all devices", now=NOW) == 2
    assert refresh_tokens.count_active(db, owner.id, now=NOW) == 0
    assert refresh_tokens.count_active(db, other.id, now=NOW) == 1


def test_revoke_for_user_checks_ownership(db) -> None:
    owner = _make_user(db)
    other = _make_user(db, "other@bookdb.dev")
    record = _add_token(db, owner, "one")

    assert not refresh_tokens.revoke_for_user(db, other.id, record.id, "nope", now=NOW)
    assert refresh_tokens.revoke_for_user(db, owner.id, record.id, "Logged out from device", now=NOW)
    assert refresh_tokens.count_active(db, owner.id, now=NOW) == 0


def test_list_active_orders_newest_first(db) -> None:
    user = _make_user(db)
    older = _add_token(db, user, "older", jwt_id="1")
    newer = refresh_tokens.add(
        db,
        RefreshToken(
            user_id=user.id,
            token=hash_refresh_secret("newer"),
            jwt_id="2",
            created_at=NOW + dt.timedelta(minutes=5),
            expires_at=NOW + dt.timedelta(days=7),
        ),
    )
    _add_token(db, user, "used", jwt_id="3")
    refresh_tokens.mark_used(db, "used", now=NOW)

    active = refresh_tokens.list_active_for_user(db, user.id, now=NOW)
    assert [record.id for record in active] == [newer.id, older.id]
    assert len(refresh_tokens.list_all_for_user(db, user.id)) == 3


def test_delete_expired_ignores_used_and_revoked_state(db) -> None:
    user = _make_user(db)
    _add_token(db, user, "expired-used", jwt_id="1", expires_in=dt.timedelta(hours=-2))
    _add_token(db, user, "expired-revoked", jwt_id="2", expires_in=dt.timedelta(hours=-1))
    _add_token(db, user, "live", jwt_id="3")
    refresh_tokens.mark_used(db, "expired-used", now=NOW - dt.timedelta(days=1))
    refresh_tokens.revoke(db, "expired-revoked", "test", now=NOW)

    assert refresh_tokens.delete_expired(db, now=NOW) == 2
    remaining = refresh_tokens.list_all_for_user(db, user.id)
    assert [record.jwt_id for record in remaining] == ["3"]


def test_update_record_persists_changes(db) -> None:
    user = _make_user(db)
    record = _add_token(db, user, "plain-secret")

    record.device_info = "Renamed device"
    refresh_tokens.update_record(db, record)

    db.expire_all()
    assert refresh_tokens.get_by_token(db, "plain-secret").device_info == "Renamed device"


def test_get_for_user_scopes_lookup_to_the_owner(db) -> None:
    owner = _make_user(db)
    other = _make_user(db, "other@bookdb.dev")
    record = _add_token(db, owner, "plain-secret")

    assert refresh_tokens.get_for_user(db, owner.id, record.id).id == record.id
    assert refresh_tokens.get_for_user(db, other.id, record.id) is None
