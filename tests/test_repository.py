from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone

import psycopg
import pytest
from psycopg.errors import UniqueViolation

from quantgen_auth.config import Settings
from quantgen_auth.domain.contracts import NewAccount
from quantgen_auth.domain.errors import DuplicateAccount, StoreUnavailable
from quantgen_auth.repository import (
    InMemoryCredentialStore,
    PostgresCredentialStore,
    build_credential_store,
)

pytestmark = pytest.mark.anyio


class FakeCursor:
    def __init__(self, row=None, error: Exception | None = None) -> None:
        self.row = row
        self.error = error
        self.executed: list[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, query, params=None):
        self.executed.append((query, params))
        if self.error is not None:
            raise self.error

    async def fetchone(self):
        return self.row


class FakeConnection:
    def __init__(self, cursor: FakeCursor) -> None:
        self._cursor = cursor
        self.committed = False

    def cursor(self, row_factory=None):
        return self._cursor

    async def commit(self):
        self.committed = True


class FakePool:
    """Stands in for ``AsyncConnectionPool`` by handing out one fake connection."""

    def __init__(self, cursor: FakeCursor) -> None:
        self.conn = FakeConnection(cursor)

    @asynccontextmanager
    async def connection(self):
        yield self.conn


NEW = NewAccount(email="a@x.com", secret_hash="$2b$10$hash", display_name="A")


async def test_postgres_insert_maps_returned_row():
    account_id = uuid.uuid4()
    created_at = datetime.now(timezone.utc)
    cursor = FakeCursor(row=(account_id, "a@x.com", "$2b$10$hash", created_at, "A"))
    pool = FakePool(cursor)

    account = await PostgresCredentialStore(pool).insert(NEW)

    assert account.account_id == str(account_id)
    assert account.email == "a@x.com"
    assert account.display_name == "A"
    assert pool.conn.committed
    _, params = cursor.executed[0]
    assert params[1:] == ("a@x.com", "$2b$10$hash", "A")


async def test_postgres_unique_violation_is_duplicate_account():
    pool = FakePool(FakeCursor(error=UniqueViolation("duplicate key value")))

    with pytest.raises(DuplicateAccount):
        await PostgresCredentialStore(pool).insert(NEW)
    assert not pool.conn.committed


async def test_postgres_driver_errors_are_store_unavailable():
    store = PostgresCredentialStore(FakePool(FakeCursor(error=psycopg.OperationalError("down"))))

    with pytest.raises(StoreUnavailable):
        await store.find_by_email("a@x.com")
    with pytest.raises(StoreUnavailable):
        await store.insert(NEW)
    with pytest.raises(StoreUnavailable):
        await store.ensure_schema()


async def test_postgres_find_by_email_missing_returns_none():
    cursor = FakeCursor(row=None)
    assert await PostgresCredentialStore(FakePool(cursor)).find_by_email("nobody@x.com") is None
    assert cursor.executed[0][1] == ("nobody@x.com",)


async def test_memory_store_enforces_unique_email():
    store = InMemoryCredentialStore()
    first = await store.insert(NEW)

    with pytest.raises(DuplicateAccount):
        await store.insert(replace(NEW, secret_hash="other"))

    found = await store.find_by_email("a@x.com")
    assert found == first
    assert await store.find_by_email("A@x.com") is None


def test_build_credential_store_selects_backend():
    assert isinstance(build_credential_store(Settings(store_backend="memory")), InMemoryCredentialStore)
    assert isinstance(
        build_credential_store(Settings(store_backend="postgres"), pool=object()),
        PostgresCredentialStore,
    )
    with pytest.raises(ValueError):
        build_credential_store(Settings(store_backend="postgres"))
    with pytest.raises(ValueError):
        build_credential_store(Settings(store_backend="mongo"))
