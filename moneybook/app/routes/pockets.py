"""
routes/pockets.py — Pocket route handlers.

Registered at url_prefix=/api/v1 because this blueprint owns BOTH the
book-scoped paths (/money-books/:id/pockets...) and the pocket-id paths
(/pockets/:id).

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints:
  GET    /money-books/:id/pockets          → 200  list in display order
  POST   /money-books/:id/pockets          → 201  create pocket
  PUT    /money-books/:id/pockets/order    → 200  reorder all pockets
  GET    /money-books/:id/pockets/summary  → 200  percentage total check
  PATCH  /pockets/:id                      → 200  partial update
  DELETE /pockets/:id                      → 200  delete (history untouched)
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from moneybook.app.extensions import db
from moneybook.app.middleware.auth_middleware import require_auth
from moneybook.app.models.pocket import Pocket
from moneybook.app.schemas.pocket_schema import (
    CreatePocketSchema,
    PatchPocketSchema,
    ReorderPocketsSchema,
)
from moneybook.app.services import pocket_service

pockets_bp = Blueprint("pockets", __name__)


def serialize_pocket(pocket: Pocket) -> dict:
    """Converts a Pocket ORM object to a plain dict. Percentage as string."""
    return {
        "id": pocket.id,
        "money_book_id": pocket.money_book_id,
        "name": pocket.name,
        "percentage": str(pocket.percentage),
        "order_index": pocket.order_index,
    }


# ── Book-scoped pocket routes ──────────────────────────────────────────────

@pockets_bp.route("/money-books/<string:money_book_id>/pockets", methods=["GET"])
@require_auth
def list_pockets(money_book_id: str):
    """GET /money-books/:id/pockets — Ordered by order_index."""
    pockets = pocket_service.list_pockets(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({
        "data": [serialize_pocket(p) for p in pockets],
        "warnings": [],
    }), 200


@pockets_bp.route("/money-books/<string:money_book_id>/pockets", methods=["POST"])
@require_auth
def create_pocket(money_book_id: str):
    """POST /money-books/:id/pockets — Add a pocket."""
    data = CreatePocketSchema().load(request.get_json(force=True) or {})
    pocket = pocket_service.create_pocket(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_pocket(pocket), "warnings": []}), 201


@pockets_bp.route("/money-books/<string:money_book_id>/pockets/order", methods=["PUT"])
@require_auth
def reorder_pockets(money_book_id: str):
    """PUT /money-books/:id/pockets/order — pocket_ids[i] gets order_index i."""
    data = ReorderPocketsSchema().load(request.get_json(force=True) or {})
    pockets = pocket_service.reorder_pockets(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        pocket_ids=data["pocket_ids"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": [serialize_pocket(p) for p in pockets],
        "warnings": [],
    }), 200


@pockets_bp.route("/money-books/<string:money_book_id>/pockets/summary", methods=["GET"])
@require_auth
def percentage_summary(money_book_id: str):
    """GET /money-books/:id/pockets/summary — {valid, total}."""
    summary = pocket_service.get_percentage_summary(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({
        "data": {
            "valid": summary["valid"],
            "total": str(summary["total"]),
        },
        "warnings": [],
    }), 200


# ── Pocket-ID routes ───────────────────────────────────────────────────────

@pockets_bp.route("/pockets/<string:pocket_id>", methods=["PATCH"])
@require_auth
def update_pocket(pocket_id: str):
    """PATCH /pockets/:id — Past allocations keep their snapshot."""
    data = PatchPocketSchema().load(request.get_json(force=True) or {})
    pocket = pocket_service.update_pocket(
        pocket_id=pocket_id,
        caller_id=g.user_id,
        data=data,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_pocket(pocket), "warnings": []}), 200


@pockets_bp.route("/pockets/<string:pocket_id>", methods=["DELETE"])
@require_auth
def delete_pocket(pocket_id: str):
    """DELETE /pockets/:id — Allocation items keep their name/percentage snapshot."""
    pocket_service.delete_pocket(
        pocket_id=pocket_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "deleted": True,
            "pocket_id": pocket_id,
        },
        "warnings": [],
    }), 200
