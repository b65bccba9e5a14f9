from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-value-that-is-long-enough-for-hs256")
os.environ.setdefault("REFRESH_TOKEN_CLEANUP_ENABLED", "false")

from bookdb.db.base import Base  # noqa: E402
import bookdb.models  # noqa: E402,F401


@pytest.fixture
def engine(tmp_path):
    # File-backed so worker threads share one database; writers wait on the lock.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'bookdb-test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
