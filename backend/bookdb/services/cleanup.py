"""Background loop that purges expired refresh tokens."""

from __future__ import annotations

import asyncio
import logging

from bookdb.core.config import settings
from bookdb.db.session import SessionLocal
from bookdb.services.tokens import cleanup_expired_tokens

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 60

_task: asyncio.Task | None = None


def _interval() -> int:
    return max(MIN_INTERVAL_SECONDS, settings.REFRESH_TOKEN_CLEANUP_INTERVAL_SECONDS)


def run_once() -> int:
    db = SessionLocal()
    try:
        return cleanup_expired_tokens(db)
    finally:
        db.close()


async def _loop() -> None:
    startup_delay = max(0, settings.REFRESH_TOKEN_CLEANUP_STARTUP_DELAY_SECONDS)
    if startup_delay:
        await asyncio.sleep(startup_delay)
    while True:
        await asyncio.to_thread(run_once)
        await asyncio.sleep(_interval())


async def start_token_cleanup() -> None:
    global _task
    if _task is not None:
        return
    if not settings.REFRESH_TOKEN_CLEANUP_ENABLED:
        return
    _task = asyncio.create_task(_loop(), name="refresh-token-cleanup")
    logger.info("Refresh token cleanup loop started (every %s seconds)", _interval())


async def stop_token_cleanup() -> None:
    global _task
    task = _task
    _task = None
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
