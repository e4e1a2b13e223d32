"""
middleware/auth_middleware.py — JWT authentication decorator.

Sign-in, sign-out and token refresh happen at the external auth provider.
This service only verifies the access tokens the provider issues.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT signature (HS256, provider's secret)
  3. Checks token expiry and, when configured, the audience claim
  4. Attaches the subject (user id string) to flask.g for the request
  5. Raises the appropriate 401 error if any step fails

Strict responsibility boundary:
  - This middleware authenticates (401) only.
  - Ownership checks (403) belong to the service layer, which receives the
    user id as a plain string argument and never touches flask.g.

Error codes:
  TOKEN_MISSING  (401) — no Authorization header
  TOKEN_INVALID  (401) — malformed header, invalid signature, bad claims
  TOKEN_EXPIRED  (401) — valid token but exp claim is in the past
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request

from moneybook.app.errors import AppError, ErrorCode


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Attaches the authenticated user's id to flask.g.user_id.
    Raises AppError for all auth failures — the global error handler converts
    these to the correct JSON response. Routes never catch AppError.

    Usage:
        @money_books_bp.route("/", methods=["GET"])
        @require_auth
        def list_money_books():
            user_id = g.user_id  # always a non-empty str when this runs
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _decode_token(raw_token: str) -> dict:
    """Verifies the signature and registered claims; returns the payload."""
    audience = current_app.config.get("JWT_AUDIENCE") or None
    options = {"require": ["exp", "sub"]}
    if audience is None:
        options["verify_aud"] = False

    return jwt.decode(
        raw_token,
        current_app.config["JWT_SECRET_KEY"],
        algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        audience=audience,
        leeway=current_app.config.get("JWT_LEEWAY", 0),
        options=options,
    )


def _authenticate_request() -> None:
    """
    Performs the full JWT authentication sequence and sets flask.g.user_id.

    Separated from the decorator wrapper so tests can call it directly inside
    a request context.
    """
    auth_header = request.headers.get("Authorization", "")

    # ── Step 1: Require Authorization header ──────────────────────────────
    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    # ── Step 2: Parse "Bearer <token>" format ─────────────────────────────
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    # ── Step 3: Decode and verify the JWT ─────────────────────────────────
    try:
        payload = _decode_token(parts[1])
    except jwt.ExpiredSignatureError:
        # The client should refresh its session with the auth provider.
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Sign in again to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        # Covers: bad signature, malformed token, wrong audience, missing claims.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    # ── Step 4: Validate the sub (user id) claim ──────────────────────────
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user id.",
            401,
        )

    # ── Step 5: Attach user_id to flask.g ─────────────────────────────────
    g.user_id = sub
