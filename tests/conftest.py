"""
tests/conftest.py -- Shared test fixtures for CondoDesk.

This module provides:
  - user_store / maintenance: fresh in-memory stores for unit tests
  - _make_test_stores(): named shared-memory DBs for the ASGI integration tests
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_env: module-scoped TestClient plus the stores and a seeded admin

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the integration tests because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates both signing keys instead of raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any auth/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from auth.tokens import issue_token_pair
from maintenance.store import MaintenanceStore

# Login is rate limited per client IP and every TestClient request comes from
# the same address. Tests that exercise the limit switch it back on locally.
limiter.enabled = False


# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def maintenance() -> Generator[MaintenanceStore, None, None]:
    store = MaintenanceStore("sqlite:///:memory:")
    yield store
    store.close()


def make_user(
    store: UserStore,
    username: str,
    role: Role = Role.MORADOR,
    complex_id: int | None = 1,
    password: str = "secret123",
) -> int:
    """Insert a user with a real bcrypt hash and return its id."""
    return store.create_user(
        User(
            username=username,
            name=username.title(),
            role=role,
            hashed_password=hash_password(password),
            complex_id=complex_id,
            complement="Bloco A, 101",
        )
    )


# ---------------------------------------------------------------------------
# Integration harness
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, MaintenanceStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    maint_url = f"sqlite:///file:test_maint_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=users_url), MaintenanceStore(db_url=maint_url)


def _patch_lifespan(user_store: UserStore, maintenance: MaintenanceStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.maintenance = maintenance
        yield

    return test_lifespan


@dataclass
class ApiEnv:
    client: TestClient
    user_store: UserStore
    maintenance: MaintenanceStore
    complex_id: int
    other_complex_id: int
    admin_id: int
    admin_token: str

    def headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def login_as(self, username: str, role: Role, complex_id: int | None = None) -> tuple[int, str]:
        """Create a user directly in the store and issue them a live token pair.

        Returns (user_id, access_token).
        """
        uid = make_user(self.user_store, username, role=role, complex_id=complex_id or self.complex_id)
        pair = issue_token_pair(self.user_store, uid, username, role)
        return uid, pair["accessToken"]


@pytest.fixture(scope="module")
def api_env(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv for API integration tests.

    Seeds two complexes ("Residencial Alpha" and "Residencial Beta") and an
    ADMIN_COMPLEX user "root" in Alpha holding a live token pair. Tests must
    not log in as "root" through /login, which would rotate that pair away.
    """
    user_store, maintenance = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])

    complex_id = maintenance.create_complex("Residencial Alpha")
    other_complex_id = maintenance.create_complex("Residencial Beta")
    admin_id = make_user(user_store, "root", role=Role.ADMIN_COMPLEX, complex_id=complex_id)
    admin_token = issue_token_pair(user_store, admin_id, "root", Role.ADMIN_COMPLEX)["accessToken"]

    app.router.lifespan_context = _patch_lifespan(user_store, maintenance)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiEnv(
            client=client,
            user_store=user_store,
            maintenance=maintenance,
            complex_id=complex_id,
            other_complex_id=other_complex_id,
            admin_id=admin_id,
            admin_token=admin_token,
        )

    user_store.close()
    maintenance.close()
