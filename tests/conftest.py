"""
tests/conftest.py -- Shared test fixtures for StaffDesk tests.

This module provides:
  - memory_url(): a unique named shared-memory SQLite URL
  - FakeAssetHost: in-process asset host recording every upload
  - user_store / employee_store: isolated stores per test
  - codec: TokenCodec with a fixed test secret
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because store calls run on worker threads (anyio.to_thread and the
TestClient portal). Plain ':memory:' DBs are per-connection and would present
a blank schema to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

The DEBUG env var must be set before api.main is imported so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_services
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenCodec, hash_password
from employees.photos import AssetHostError, HostedImage
from employees.store import EmployeeStore

TEST_SECRET = "test-secret-key-" + "x" * 32
SEVEN_DAYS = 7 * 24 * 60 * 60
ADMIN_PASSWORD = "testpass123"


def memory_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


class FakeAssetHost:
    """Asset host double: records payloads and returns deterministic URLs.

    Set fail=True to simulate an asset-host outage.
    """

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[str] = []

    def store(self, payload: str) -> HostedImage:
        if self.fail:
            raise AssetHostError("simulated outage")
        self.uploads.append(payload)
        n = len(self.uploads)
        return HostedImage(
            url=f"https://assets.example.test/employee_photos/photo{n}.png",
            asset_id=f"employee_photos/photo{n}",
        )


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET, SEVEN_DAYS)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(memory_url("users"))
    yield store
    store.close()


@pytest.fixture
def employee_store() -> Generator[EmployeeStore, None, None]:
    store = EmployeeStore(memory_url("employees"))
    yield store
    store.close()


@pytest.fixture
def asset_host() -> FakeAssetHost:
    return FakeAssetHost()


# ---------------------------------------------------------------------------
# Integration fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, employee_store: EmployeeStore, codec: TokenCodec, asset_host):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and the fake asset host into app.state so
    TestClient routes see isolated state and never touch the network.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(
            app,
            user_store=user_store,
            employee_store=employee_store,
            codec=codec,
            asset_host=asset_host,
            max_upload_bytes=5 * 1024 * 1024,
        )
        yield

    return test_lifespan


@pytest.fixture
def api_client(
    user_store: UserStore, employee_store: EmployeeStore, codec: TokenCodec, asset_host: FakeAssetHost
) -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) for API integration tests.

    A user "testadmin" / "testpass123" exists before the client starts and
    token is a valid bearer token for it.
    """
    uid = user_store.create_user(
        User(username="testadmin", email="admin@example.com", hashed_password=hash_password(ADMIN_PASSWORD))
    )
    token = codec.create_access_token(uid)

    original = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(user_store, employee_store, codec, asset_host)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client, token
    finally:
        app.router.lifespan_context = original
