"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against an in-memory SQLite database (TestingConfig). Flask-SQLAlchemy
    keeps a single connection for `sqlite://`, so the schema created at session
    start is visible to every request.
  - The app is created once per session using create_app("testing").
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - The media host is replaced by FakeMediaHost: no network, deterministic URLs.

Helper functions (not fixtures) are provided for common operations:
  - register(client, ...)    → safe user dict
  - login(client, ...)       → dict with user + tokens
  - auth_headers(token)      → {"Authorization": "Bearer <token>"}
  - image(name)              → multipart file tuple

The client does NOT keep cookies between requests: tests pass tokens
explicitly, so which token a request carries is always visible in the test.
"""

from __future__ import annotations

import io
import os

import pytest
from sqlalchemy import text

from vidtube.app import create_app
from vidtube.app.extensions import db as _db


class FakeMediaHost:
    """Stands in for MediaHostClient. Consumes staged files like the real one."""

    def __init__(self) -> None:
        self.uploads: list[str] = []
        self.fail = False

    def upload(self, local_path):
        if not local_path:
            return None
        name = os.path.basename(local_path)
        self.discard(local_path)
        if self.fail:
            return None
        self.uploads.append(name)
        return {"url": f"https://media.test/{name}"}

    def discard(self, *paths):
        for path in paths:
            if path and os.path.exists(path):
                os.remove(path)


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """
    Creates the Flask application in 'testing' mode once for the entire test session.

    Steps:
      1. Create app with TestingConfig (in-memory SQLite).
      2. Point UPLOAD_FOLDER at a temp dir and install the fake media host.
      3. Run db.create_all() to create all tables.
      4. Yield the app for the test session.
      5. Drop all tables at teardown.
    """
    flask_app = create_app("testing")
    flask_app.config["UPLOAD_FOLDER"] = str(tmp_path_factory.mktemp("uploads"))
    flask_app.extensions["media_host"] = FakeMediaHost()

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows between tests in FK-safe order and resets the fake
    media host.
    """
    yield  # run the test

    media_host = app.extensions["media_host"]
    media_host.fail = False
    media_host.uploads.clear()

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        _db.session.execute(text("DELETE FROM subscriptions"))
        _db.session.execute(text("DELETE FROM users"))
        _db.session.commit()


@pytest.fixture
def media_host(app) -> FakeMediaHost:
    return app.extensions["media_host"]


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client without a cookie jar. Each test gets a fresh client."""
    return app.test_client(use_cookies=False)


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def image(name: str = "avatar.png") -> tuple:
    return (io.BytesIO(b"\x89PNG fake image bytes"), name)


def register(
    client,
    username: str = "alice",
    email: str | None = None,
    password: str = "p1",
    full_name: str | None = None,
    cover_image: bool = False,
) -> dict:
    """
    Registers a new user (with an avatar) and returns the safe user dict.
    """
    if email is None:
        email = f"{username}@x.com"
    form = {
        "full_name": full_name or username.title(),
        "username": username,
        "email": email,
        "password": password,
        "avatar": image(),
    }
    if cover_image:
        form["cover_image"] = image("cover.png")
    resp = client.post(
        "/api/v1/auth/register",
        data=form,
        content_type="multipart/form-data",
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()["data"]


def login(client, username: str, password: str = "p1") -> dict:
    """
    Logs in a user and returns the response data dict.
    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    resp = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def error_of(resp) -> dict:
    return resp.get_json()["error"]
