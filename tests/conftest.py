"""
tests/conftest.py -- Shared test fixtures for SessionGuard.

This module provides:
  - make_context(): isolated AuthContext on a named shared-memory SQLite DB
  - seed_account(): create an account with a given role
  - refresh_cookie(): pull the refreshToken value out of Set-Cookie headers
  - _patch_lifespan(): wires a test context into app.state, bypassing real startup
  - context / sessions / gate: per-test unit fixtures
  - api_client: module-scoped TestClient over the real app

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs plain `def` handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Environment must be set before any api/ or core/ import:
  DEBUG=true              -- get_settings() auto-generates SECRET_KEY
  RATE_LIMIT_ENABLED=false -- the suite logs in far more than 10 times a minute
  ALLOWED_HOSTS           -- TestClient sends Host: testserver
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any api/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_auth
from auth.context import AuthContext
from auth.gate import AuthorizationGate
from auth.models import Account, Role
from auth.sessions import SessionManager

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_context(db_url: str | None = None, **codec_kwargs) -> AuthContext:
    """Build an AuthContext on its own named shared-memory DB (unless db_url is given)."""
    if db_url is None:
        db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    return AuthContext.create(secret_key=TEST_SECRET, db_url=db_url, **codec_kwargs)


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def seed_account(
    context: AuthContext,
    email: str,
    password: str = "password123",
    name: str = "Test User",
    role: Role = Role.USER,
) -> Account:
    """Register an account through SessionManager, then promote it if needed."""
    account = SessionManager(context).register(email, password, name)
    if role is not Role.USER:
        context.store.set_role(account.id, role)
        account.role = role
    return account


def refresh_cookie(resp) -> str | None:
    """Return the refreshToken value from a response's Set-Cookie headers, if any."""
    for header in resp.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        if name.strip() == "refreshToken":
            return rest.split(";", 1)[0]
    return None


def refresh_headers(token: str) -> dict[str, str]:
    """The refresh cookie is Secure, so the client jar never replays it over http://testserver.
    Tests send it explicitly instead."""
    return {"Cookie": f"refreshToken={token}"}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _patch_lifespan(context: AuthContext):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        wire_auth(app, context)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def context() -> Generator[AuthContext, None, None]:
    ctx = make_context()
    yield ctx
    ctx.close()


@pytest.fixture
def sessions(context: AuthContext) -> SessionManager:
    return SessionManager(context)


@pytest.fixture
def gate(context: AuthContext) -> AuthorizationGate:
    return AuthorizationGate(context.codec)


# ---------------------------------------------------------------------------
# Module-scoped API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AuthContext], None, None]:
    """Yield (client, context) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers against an isolated in-memory store. The context
    is exposed so tests can seed ADMIN / MODERATOR accounts and inspect the
    refresh slot directly.
    """
    ctx = make_context()
    app.router.lifespan_context = _patch_lifespan(ctx)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, ctx

    ctx.close()
