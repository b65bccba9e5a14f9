from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from bookdb.services import auth, refresh_tokens, tokens, users

WORKERS = 8


def _run_in_parallel(session_factory, fn):
    barrier = threading.Barrier(WORKERS)

    def _worker(_index: int):
        session = session_factory()
        try:
            barrier.wait()
            return fn(session)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(_worker, range(WORKERS)))


def test_parallel_redemption_of_one_secret_has_one_winner(db, session_factory) -> None:
    user = users.create_user(db, email="race@bookdb.dev", password="secret-pass", full_name=None)
    secret = tokens.issue_refresh_token(db, user, "jti-race")

    results = _run_in_parallel(session_factory, lambda session: refresh_tokens.mark_used(session, secret))

    assert results.count(True) == 1
    assert results.count(False) == WORKERS - 1


def test_parallel_refreshes_yield_exactly_one_new_pair(db, session_factory) -> None:
    registered = auth.register(db, email="race@bookdb.dev", password="secret-pass", full_name=None)

    results = _run_in_parallel(
        session_factory,
        lambda session: auth.refresh(
            session,
            access_token=registered.tokens.access_token,
            refresh_token=registered.tokens.refresh_token,
        ),
    )

    winners = [result for result in results if result.success]
    assert len(winners) == 1
    assert all(result.failure == auth.AuthFailure.invalid_refresh_token for result in results if not result.success)
    assert tokens.count_active_tokens(db, registered.user.id) == 1
