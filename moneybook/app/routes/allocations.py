"""
routes/allocations.py — Allocation route handlers.

Registered at url_prefix=/api/v1 because this blueprint owns BOTH the
book-scoped paths (/money-books/:id/allocations...) and the allocation-id
paths (/allocations/:id).

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Special: create_allocation returns (Allocation, warnings[]). Warnings such as
ZERO_PERCENTAGE_POCKET go into the envelope; the status is still 201.

Endpoints:
  GET    /money-books/:id/allocations          → 200  history, newest first
  POST   /money-books/:id/allocations          → 201  split and record
  POST   /money-books/:id/allocations/preview  → 200  split without recording
  GET    /allocations/:id                      → 200  allocation + items
  DELETE /allocations/:id                      → 200  delete with items
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from moneybook.app.extensions import db
from moneybook.app.middleware.auth_middleware import require_auth
from moneybook.app.models.allocation import Allocation
from moneybook.app.models.allocation_item import AllocationItem
from moneybook.app.schemas.allocation_schema import (
    CreateAllocationSchema,
    PreviewAllocationSchema,
)
from moneybook.app.services import allocation_service

allocations_bp = Blueprint("allocations", __name__)


# ── Serialization helpers ──────────────────────────────────────────────────
# Pure data-shaping. Amounts are integers; percentages are strings.

def serialize_item(item: AllocationItem) -> dict:
    return {
        "id": item.id,
        "pocket_id": item.pocket_id,
        "pocket_name": item.pocket_name,
        "pocket_percentage": str(item.pocket_percentage),
        "amount": item.amount,
    }


def serialize_preview_line(line: dict) -> dict:
    """Preview lines are unsaved dicts from allocation_service, so no id."""
    return {
        "pocket_id": line["pocket_id"],
        "pocket_name": line["pocket_name"],
        "pocket_percentage": str(line["pocket_percentage"]),
        "amount": line["amount"],
    }


def serialize_allocation(allocation: Allocation) -> dict:
    """Converts an Allocation ORM object (with items) to a plain dict."""
    return {
        "id": allocation.id,
        "money_book_id": allocation.money_book_id,
        "source_amount": allocation.source_amount,
        "date": allocation.date.isoformat(),
        "notes": allocation.notes,
        "created_at": allocation.created_at.isoformat(),
        "items": [serialize_item(item) for item in allocation.items],
    }


# ── Book-scoped allocation routes ──────────────────────────────────────────

@allocations_bp.route("/money-books/<string:money_book_id>/allocations", methods=["GET"])
@require_auth
def list_allocations(money_book_id: str):
    """GET /money-books/:id/allocations — Newest date first, items included."""
    allocations = allocation_service.list_allocations(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({
        "data": [serialize_allocation(a) for a in allocations],
        "warnings": [],
    }), 200


@allocations_bp.route("/money-books/<string:money_book_id>/allocations", methods=["POST"])
@require_auth
def create_allocation(money_book_id: str):
    """
    POST /money-books/:id/allocations — Split source_amount across the book's
    current pockets and store the snapshot.
    """
    data = CreateAllocationSchema().load(request.get_json(force=True) or {})
    allocation, warnings = allocation_service.create_allocation(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_allocation(allocation), "warnings": warnings}), 201


@allocations_bp.route(
    "/money-books/<string:money_book_id>/allocations/preview", methods=["POST"]
)
@require_auth
def preview_allocation(money_book_id: str):
    """POST /money-books/:id/allocations/preview — Same split, nothing stored."""
    data = PreviewAllocationSchema().load(request.get_json(force=True) or {})
    lines, warnings = allocation_service.preview_allocation(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        source_amount=data["source_amount"],
        session=db.session,
    )
    return jsonify({
        "data": {
            "money_book_id": money_book_id,
            "source_amount": data["source_amount"],
            "items": [serialize_preview_line(line) for line in lines],
        },
        "warnings": warnings,
    }), 200


# ── Allocation-ID routes ───────────────────────────────────────────────────

@allocations_bp.route("/allocations/<string:allocation_id>", methods=["GET"])
@require_auth
def get_allocation(allocation_id: str):
    """GET /allocations/:id — Allocation with its snapshot items."""
    allocation = allocation_service.get_allocation(
        allocation_id=allocation_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": serialize_allocation(allocation), "warnings": []}), 200


@allocations_bp.route("/allocations/<string:allocation_id>", methods=["DELETE"])
@require_auth
def delete_allocation(allocation_id: str):
    """DELETE /allocations/:id — Hard delete; items go with it."""
    allocation_service.delete_allocation(
        allocation_id=allocation_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "deleted": True,
            "allocation_id": allocation_id,
        },
        "warnings": [],
    }), 200
