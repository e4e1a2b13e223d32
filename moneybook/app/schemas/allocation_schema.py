"""
schemas/allocation_schema.py — Marshmallow schemas for allocation endpoints.

Validation responsibility:
  - This file:
      - source_amount is an integer in [0, 2**53 - 1], in the smallest
        currency unit (INVALID_SOURCE_AMOUNT, 400). Fractions and strings are
        rejected, not rounded.
      - date is an ISO date (YYYY-MM-DD)
      - notes at most 500 chars
  - services/allocation_service.py:
      - NO_POCKETS, PERCENTAGE_SUM_MISMATCH (422) — need the book's pockets
      - ownership (FORBIDDEN, 403)

There is no patch schema: allocations are immutable snapshots.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from moneybook.app.errors import ErrorCode
from moneybook.app.services.allocation_service import MAX_SOURCE_AMOUNT


def _source_amount_field() -> fields.Int:
    return fields.Int(
        required=True,
        strict=True,   # reject 10.5 and "10"
        validate=validate.Range(
            min=0,
            max=MAX_SOURCE_AMOUNT,
            error=ErrorCode.INVALID_SOURCE_AMOUNT,
        ),
        error_messages={"invalid": ErrorCode.INVALID_SOURCE_AMOUNT},
    )


class CreateAllocationSchema(Schema):
    """POST /money-books/:id/allocations"""

    source_amount = _source_amount_field()

    date = fields.Date(required=True)

    notes = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=500, error="Notes must be at most 500 characters."),
    )


class PreviewAllocationSchema(Schema):
    """POST /money-books/:id/allocations/preview"""

    source_amount = _source_amount_field()
