from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from quantgen_auth.api import routes
from quantgen_auth.api.errors import install_exception_handlers
from quantgen_auth.domain.account import Account
from quantgen_auth.domain.contracts import NewAccount
from quantgen_auth.domain.service import AuthService
from quantgen_auth.repository import InMemoryCredentialStore


class RecordingStore:
    """In-memory store that records calls and can be told to fail."""

    def __init__(self) -> None:
        self._inner = InMemoryCredentialStore()
        self.calls: list[str] = []
        self.fail_with: Exception | None = None

    async def find_by_email(self, email: str) -> Account | None:
        self.calls.append("find_by_email")
        if self.fail_with is not None:
            raise self.fail_with
        return await self._inner.find_by_email(email)

    async def insert(self, new_account: NewAccount) -> Account:
        self.calls.append("insert")
        if self.fail_with is not None:
            raise self.fail_with
        return await self._inner.insert(new_account)

    def __len__(self) -> int:
        return len(self._inner)


class RacingStore(InMemoryCredentialStore):
    """Store whose lookups yield to the loop so concurrent signups both pass the pre-check."""

    async def find_by_email(self, email: str) -> Account | None:
        result = await super().find_by_email(email)
        await asyncio.sleep(0.01)
        return result


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def api_client(store: RecordingStore):
    """Provide a FastAPI test client with isolated state."""
    service = AuthService(store)

    app = FastAPI()
    install_exception_handlers(app)
    app.include_router(routes.router)
    app.state.auth_service = service

    original_limiter = routes.rate_limiter
    routes.rate_limiter = routes.SlidingWindowRateLimiter(max_requests=100, window_seconds=60)

    with TestClient(app) as client:
        yield client, store

    routes.rate_limiter = original_limiter
