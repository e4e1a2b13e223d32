"""
schemas/money_book_schema.py — Marshmallow schemas for money book endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim).
  - services/money_book_service.py: existence (404) and ownership (403).

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    validate.Length(min=1) alone lets "   " through.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateMoneyBookSchema(Schema):
    """POST /money-books — name: non-empty after trim, max 100 chars."""

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Money book name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )


class UpdateMoneyBookSchema(CreateMoneyBookSchema):
    """PATCH /money-books/:id — rename only; same rules as create."""
