"""
schemas/pocket_schema.py — Marshmallow schemas for pocket endpoints.

Validation responsibility:
  - This file:
      - name non-empty after trim, max 100 chars
      - percentage in [0, 100] with at most 2 decimal places
        (INVALID_PERCENTAGE_PRECISION, 400) — rejected, never rounded
      - order_index non-negative integer
      - DUPLICATE_POCKET_ID (400) in the reorder payload
  - services/pocket_service.py:
      - ownership (FORBIDDEN, 403) and existence (POCKET_NOT_FOUND, 404)
      - POCKET_ORDER_MISMATCH (422) — requires the book's pocket list
      - percentages summing to 100 — checked when allocating, not here

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import (
    Schema,
    ValidationError,
    fields,
    validate,
    validates_schema,
)

from moneybook.app.errors import ErrorCode


# ── Shared validators ──────────────────────────────────────────────────────

def _validate_percentage(value: Decimal) -> None:
    """
    Validates a pocket percentage:
      - 0 <= value <= 100 (a 0% pocket is legal)
      - at most 2 decimal places, matching the NUMERIC(5, 2) column

    The error handler detects INVALID_PERCENTAGE_PRECISION by matching the
    raised message to the ErrorCode constant.
    """
    if value < Decimal("0") or value > Decimal("100"):
        raise ValidationError("Percentage must be between 0 and 100.")

    # Decimal("33.333").as_tuple().exponent == -3 → 3 dp → REJECT
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_PERCENTAGE_PRECISION)


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or whitespace only."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_NAME_VALIDATORS = [
    validate.Length(
        min=1,
        max=100,
        error="Pocket name must be between 1 and 100 characters.",
    ),
    _validate_non_empty_after_trim,
]


# ── Create pocket ──────────────────────────────────────────────────────────

class CreatePocketSchema(Schema):
    """
    POST /money-books/:id/pockets

    order_index is optional; the service appends the pocket when absent.
    """

    name = fields.Str(required=True, validate=_NAME_VALIDATORS)

    percentage = fields.Decimal(
        required=True,
        validate=_validate_percentage,
    )

    order_index = fields.Int(
        load_default=None,
        strict=True,
        validate=validate.Range(min=0, error="order_index must be zero or greater."),
    )


# ── Patch pocket ───────────────────────────────────────────────────────────

class PatchPocketSchema(Schema):
    """
    PATCH /pockets/:id — every field optional, at least one required.

    Changing a percentage here does not touch past allocations; their items
    keep the percentage that was in force when they were created.
    """

    name = fields.Str(required=False, validate=_NAME_VALIDATORS)

    percentage = fields.Decimal(
        required=False,
        validate=_validate_percentage,
    )

    order_index = fields.Int(
        required=False,
        strict=True,
        validate=validate.Range(min=0, error="order_index must be zero or greater."),
    )

    @validates_schema
    def validate_not_empty(self, data: dict, **kwargs) -> None:
        if not data:
            raise ValidationError(
                "Provide at least one of name, percentage or order_index."
            )


# ── Reorder pockets ────────────────────────────────────────────────────────

class ReorderPocketsSchema(Schema):
    """
    PUT /money-books/:id/pockets/order

    pocket_ids[i] receives order_index i. Duplicates are a request-shape
    error (400); whether the list matches the book is checked in the service.
    """

    pocket_ids = fields.List(
        fields.Str(validate=validate.Length(min=1, max=36)),
        required=True,
    )

    @validates_schema
    def validate_unique_ids(self, data: dict, **kwargs) -> None:
        pocket_ids = data.get("pocket_ids") or []
        if len(pocket_ids) != len(set(pocket_ids)):
            raise ValidationError(
                {
                    "pocket_ids": [ErrorCode.DUPLICATE_POCKET_ID],
                }
            )
