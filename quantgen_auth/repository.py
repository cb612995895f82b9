"""Credential store backends for account data."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Protocol

import psycopg
from psycopg.errors import UniqueViolation
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from .config import Settings
from .domain.account import Account
from .domain.contracts import NewAccount
from .domain.errors import DuplicateAccount, StoreUnavailable

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id   UUID PRIMARY KEY,
    email        TEXT NOT NULL,
    secret_hash  TEXT NOT NULL,
    display_name TEXT,
    created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT accounts_email_key UNIQUE (email)
)
"""


class CredentialStore(Protocol):
    """Lookup/insert boundary the auth service depends on."""

    async def find_by_email(self, email: str) -> Account | None:
        ...

    async def insert(self, new_account: NewAccount) -> Account:
        """Persist ``new_account``; raise ``DuplicateAccount`` if the email is taken."""
        ...


class PostgresCredentialStore:
    """Postgres-backed credential store relying on a unique key over ``email``."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    async def ensure_schema(self) -> None:
        """Create the ``accounts`` table when it does not exist yet."""
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(_SCHEMA_SQL)
                await conn.commit()
        except psycopg.Error as exc:
            raise StoreUnavailable(f"schema setup failed: {exc.__class__.__name__}") from exc

    async def find_by_email(self, email: str) -> Account | None:
        """Return the account registered under ``email`` or ``None``."""
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(
                        """
                        SELECT account_id, email, secret_hash, created_at, display_name
                        FROM accounts
                        WHERE email = %s
                        """,
                        (email,),
                    )
                    row = await cur.fetchone()
        except psycopg.Error as exc:
            raise StoreUnavailable(f"lookup failed: {exc.__class__.__name__}") from exc
        if row is None:
            return None
        return self._map_record(row)

    async def insert(self, new_account: NewAccount) -> Account:
        """Insert a new account row, translating unique-key violations."""
        account_id = uuid.uuid4()
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(
                        """
                        INSERT INTO accounts (account_id, email, secret_hash, display_name)
                        VALUES (%s, %s, %s, %s)
                        RETURNING account_id, email, secret_hash, created_at, display_name
                        """,
                        (
                            account_id,
                            new_account.email,
                            new_account.secret_hash,
                            new_account.display_name,
                        ),
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except UniqueViolation as exc:
            raise DuplicateAccount() from exc
        except psycopg.Error as exc:
            raise StoreUnavailable(f"insert failed: {exc.__class__.__name__}") from exc
        return self._map_record(row)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            email=row[1],
            secret_hash=row[2],
            created_at=row[3],
            display_name=row[4],
        )


class InMemoryCredentialStore:
    """Process-local store enforcing the same unique-email rule as Postgres."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = asyncio.Lock()

    async def find_by_email(self, email: str) -> Account | None:
        account = self._accounts.get(email)
        return replace(account) if account is not None else None

    async def insert(self, new_account: NewAccount) -> Account:
        async with self._lock:
            if new_account.email in self._accounts:
                raise DuplicateAccount()
            account = Account(
                account_id=str(uuid.uuid4()),
                email=new_account.email,
                secret_hash=new_account.secret_hash,
                created_at=datetime.now(timezone.utc),
                display_name=new_account.display_name,
            )
            self._accounts[account.email] = account
        return replace(account)

    def __len__(self) -> int:
        return len(self._accounts)


def build_credential_store(
    settings: Settings, pool: AsyncConnectionPool | None = None
) -> PostgresCredentialStore | InMemoryCredentialStore:
    """Instantiate the configured credential store backend."""
    if settings.store_backend == "memory":
        logger.warning("credential store using in-memory backend; accounts are not persisted")
        return InMemoryCredentialStore()
    if settings.store_backend != "postgres":
        raise ValueError(f"unknown credential store backend: {settings.store_backend!r}")
    if pool is None:
        raise ValueError("postgres credential store requires a connection pool")
    logger.info("credential store using postgres backend")
    return PostgresCredentialStore(pool)
