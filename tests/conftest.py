"""Root conftest: in-memory SQLite credential table, fake clock, authenticator."""

from __future__ import annotations

import pytest
from sqlalchemy import Connection, create_engine, text
from sqlalchemy.engine import Engine

from pinvault.services.pin_service import PinAuthenticator
from pinvault.storage.memory import MemoryCredentialStore

# Matches Alembic head: 3f9a1c7d2b40 (create credential entries)
SCHEMA_DDL = """
CREATE TABLE credential_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    context VARCHAR(255) NOT NULL,
    name VARCHAR(64) NOT NULL,
    value TEXT NOT NULL,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(context, name)
);
"""

START_MS = 1_750_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture()
def db_engine() -> Engine:
    return create_engine("sqlite:///:memory:")


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture()
def authenticator(store: MemoryCredentialStore, clock: FakeClock) -> PinAuthenticator:
    return PinAuthenticator(
        store,
        max_attempts=5,
        lockout_duration_ms=30 * 60 * 1000,
        reject_weak_pins=True,
        clock=clock,
    )
