"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against TEST_DATABASE_URL (in-memory SQLite when unset, a
    PostgreSQL moneybook_test database in CI).
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - There is no login endpoint: the auth provider issues tokens, so tests
    mint them with the testing secret (make_token).

Helper functions (not fixtures) are provided for common operations:
  - make_token(user_id)             → signed access token
  - auth_headers(token)             → {"Authorization": "Bearer <token>"}
  - make_money_book(client, ...)    → money book dict
  - make_pocket(client, ...)        → pocket dict
  - make_pockets(client, ...)       → list of pocket dicts
  - make_allocation(client, ...)    → HTTP response

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import text

from moneybook.app import create_app
from moneybook.app.extensions import db as _db

TEST_JWT_SECRET = "testing-secret"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.

    Steps:
      1. Create app with TestingConfig.
      2. Run db.create_all() to create all tables.
      3. Yield the app for the test session.
      4. Drop all tables at teardown.
    """
    flask_app = create_app("testing")

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
    Deletes all rows after every test, children before parents.

    autouse=True means this runs around EVERY test in the integration suite
    without needing to be declared in each test function.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM allocation_items"))
            conn.execute(text("DELETE FROM allocations"))
            conn.execute(text("DELETE FROM pockets"))
            conn.execute(text("DELETE FROM money_books"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_token(user_id: str = "alice", expires_in: timedelta = timedelta(minutes=15)) -> str:
    """Signs an access token shaped like the auth provider's."""
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_money_book(client, token: str, name: str = "Household") -> dict:
    """Creates a money book owned by the token's subject and returns its data dict."""
    resp = client.post(
        "/api/v1/money-books/",
        json={"name": name},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_money_book failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_pocket(
    client,
    token: str,
    money_book_id: str,
    name: str,
    percentage: str,
    order_index: int | None = None,
) -> dict:
    """Creates a pocket and returns its data dict."""
    payload: dict = {"name": name, "percentage": percentage}
    if order_index is not None:
        payload["order_index"] = order_index

    resp = client.post(
        f"/api/v1/money-books/{money_book_id}/pockets",
        json=payload,
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_pocket failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_pockets(client, token: str, money_book_id: str, pairs: list[tuple[str, str]]) -> list[dict]:
    """Creates pockets in list order from (name, percentage) pairs."""
    return [make_pocket(client, token, money_book_id, name, pct) for name, pct in pairs]


def make_allocation(
    client,
    token: str,
    money_book_id: str,
    source_amount,
    allocation_date: str = "2024-03-01",
    notes: str | None = None,
):
    """Creates an allocation and returns the HTTP response."""
    payload: dict = {"source_amount": source_amount, "date": allocation_date}
    if notes is not None:
        payload["notes"] = notes

    return client.post(
        f"/api/v1/money-books/{money_book_id}/allocations",
        json=payload,
        headers=auth_headers(token),
    )
