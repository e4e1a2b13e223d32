"""
tests/integration/test_auth.py — Authentication and error envelope at the HTTP layer.

Sign-in lives at the external auth provider; these tests only check that
every endpoint demands a valid bearer token and that failures use the
standard error envelope.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from .conftest import auth_headers, make_money_book, make_token

PROTECTED = [
    ("get", "/api/v1/money-books/"),
    ("post", "/api/v1/money-books/"),
    ("get", "/api/v1/money-books/some-id"),
    ("patch", "/api/v1/money-books/some-id"),
    ("delete", "/api/v1/money-books/some-id"),
    ("get", "/api/v1/money-books/some-id/pockets"),
    ("post", "/api/v1/money-books/some-id/pockets"),
    ("put", "/api/v1/money-books/some-id/pockets/order"),
    ("get", "/api/v1/money-books/some-id/pockets/summary"),
    ("patch", "/api/v1/pockets/some-id"),
    ("delete", "/api/v1/pockets/some-id"),
    ("get", "/api/v1/money-books/some-id/allocations"),
    ("post", "/api/v1/money-books/some-id/allocations"),
    ("post", "/api/v1/money-books/some-id/allocations/preview"),
    ("get", "/api/v1/allocations/some-id"),
    ("delete", "/api/v1/allocations/some-id"),
]


@pytest.mark.parametrize("method,path", PROTECTED)
def test_every_endpoint_requires_a_token(client, method, path):
    resp = getattr(client, method)(path, json={})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_MISSING"


def test_expired_token_returns_token_expired(client):
    token = make_token("alice", expires_in=timedelta(hours=-1))

    resp = client.get("/api/v1/money-books/", headers=auth_headers(token))

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_EXPIRED"


def test_tampered_token_returns_token_invalid(client):
    token = make_token("alice")
    head, payload, signature = token.split(".")
    tampered = ".".join([head, payload, signature[::-1]])

    resp = client.get("/api/v1/money-books/", headers=auth_headers(tampered))

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_non_bearer_scheme_returns_token_invalid(client):
    resp = client.get("/api/v1/money-books/", headers={"Authorization": "Basic YWxpY2U6cHc="})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "TOKEN_INVALID"


def test_subject_claim_becomes_owner(client):
    book = make_money_book(client, make_token("3f1c2a9e-user"))
    assert book["user_id"] == "3f1c2a9e-user"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nothing-here", headers=auth_headers(make_token()))

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "NOT_FOUND"


def test_malformed_json_body_returns_400(client):
    resp = client.post(
        "/api/v1/money-books/",
        data="{not json",
        content_type="application/json",
        headers=auth_headers(make_token()),
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "INVALID_FIELD"


def test_cors_headers_in_testing_mode(client):
    resp = client.get(
        "/api/v1/money-books/",
        headers={**auth_headers(make_token()), "Origin": "http://localhost:5173"},
    )

    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert "PUT" in resp.headers["Access-Control-Allow-Methods"]
