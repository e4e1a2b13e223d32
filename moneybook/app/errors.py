"""
errors.py — AppError base class and error code registry.

Every error returned by the MoneyBook API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Never conflate 401 (unauthenticated) with 403 (unauthorized).

The allocation calculator itself never raises. Every code below belongs to
the validation and ownership checks that run before it.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD                = "MISSING_FIELD"
    INVALID_FIELD                = "INVALID_FIELD"
    INVALID_PERCENTAGE_PRECISION = "INVALID_PERCENTAGE_PRECISION"
    INVALID_SOURCE_AMOUNT        = "INVALID_SOURCE_AMOUNT"
    DUPLICATE_POCKET_ID          = "DUPLICATE_POCKET_ID"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    MONEY_BOOK_NOT_FOUND         = "MONEY_BOOK_NOT_FOUND"
    POCKET_NOT_FOUND             = "POCKET_NOT_FOUND"
    ALLOCATION_NOT_FOUND         = "ALLOCATION_NOT_FOUND"

    # ── Business Rule Violations (422) ────────────────────────────────────
    NO_POCKETS                   = "NO_POCKETS"
    PERCENTAGE_SUM_MISMATCH      = "PERCENTAGE_SUM_MISMATCH"
    POCKET_ORDER_MISMATCH        = "POCKET_ORDER_MISMATCH"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but the money book is not yours
    TOKEN_MISSING                = "TOKEN_MISSING"          # 401
    TOKEN_INVALID                = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED                = "TOKEN_EXPIRED"          # 401
    FORBIDDEN                    = "FORBIDDEN"              # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR               = "INTERNAL_ERROR"


# ── Warning Code Registry ──────────────────────────────────────────────────
#
# Warnings are returned alongside a 2xx response in the `warnings` array.
# They do not block the request.
# ──────────────────────────────────────────────────────────────────────────

class WarningCode:

    # A 0% pocket takes part in positional remainder distribution and can
    # receive a stray unit. Still recorded.
    ZERO_PERCENTAGE_POCKET = "ZERO_PERCENTAGE_POCKET"
