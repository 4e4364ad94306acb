"""
tests/conftest.py -- Shared test fixtures for Inkpost.

This module provides:
  - _make_test_stores(): one isolated in-memory database per test, shared by
    UserStore and PostStore through a single Engine
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores: (user_store, post_store) behind the patched app
  - client: TestClient with follow_redirects=False
  - helpers: signup(), login(), session_payload()

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any web/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import base64
import json
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any web/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient
from itsdangerous import TimestampSigner
from sqlalchemy.engine import Engine

from auth.store import UserStore
from blog.store import PostStore
from core.config import get_settings
from core.db import create_db_engine
from web.app import app
from web.views import preload_views

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[Engine, UserStore, PostStore]:
    """Create an isolated named shared-memory database and both stores on it."""
    db_url = f"sqlite:///file:test_inkpost_{db_suffix}?mode=memory&cache=shared&uri=true"
    engine = create_db_engine(db_url)
    return engine, UserStore(engine), PostStore(engine)


def _patch_lifespan(user_store: UserStore, post_store: PostStore):
    """Return an async context manager that replaces the real lifespan.

    Keeps the real startup's view compilation so a broken template still
    fails the suite, but skips creating the production database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        preload_views()
        app.state.user_store = user_store
        app.state.post_store = post_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[UserStore, PostStore], None, None]:
    """Fresh (user_store, post_store) pair wired into the app's lifespan."""
    engine, user_store, post_store = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(user_store, post_store)
    yield user_store, post_store
    engine.dispose()


@pytest.fixture
def client(stores) -> Generator[TestClient, None, None]:
    """TestClient against the real app with an empty database.

    follow_redirects=False is essential: tests assert on 303 Location headers,
    which are invisible once the client follows the redirect.
    """
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def signup(client: TestClient, username: str, password: str):
    return client.post("/signup/", data={"username": username, "password": password})


def login(client: TestClient, username: str, password: str):
    return client.post("/login/", data={"username": username, "password": password})


def session_payload(client: TestClient) -> dict:
    """Decode the signed session cookie held by client. {} when there is none.

    Mirrors Starlette's SessionMiddleware format: base64(JSON) signed with
    itsdangerous.TimestampSigner(SECRET_KEY).
    """
    settings = get_settings()
    cookie = client.cookies.get(settings.session_cookie)
    if not cookie:
        return {}
    data = TimestampSigner(settings.secret_key).unsign(cookie.encode("utf-8"))
    return json.loads(base64.b64decode(data))
