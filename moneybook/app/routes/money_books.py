"""
routes/money_books.py — Money book route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/money-books):
  GET    /money-books        → 200  list caller's books
  POST   /money-books        → 201  create book
  GET    /money-books/:id    → 200  get book
  PATCH  /money-books/:id    → 200  rename book
  DELETE /money-books/:id    → 200  delete book, pockets and allocations
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from moneybook.app.extensions import db
from moneybook.app.middleware.auth_middleware import require_auth
from moneybook.app.models.money_book import MoneyBook
from moneybook.app.schemas.money_book_schema import CreateMoneyBookSchema, UpdateMoneyBookSchema
from moneybook.app.services import money_book_service

money_books_bp = Blueprint("money_books", __name__)


def serialize_money_book(money_book: MoneyBook) -> dict:
    """Converts a MoneyBook ORM object to a plain dict for JSON output."""
    return {
        "id": money_book.id,
        "user_id": money_book.user_id,
        "name": money_book.name,
        "created_at": money_book.created_at.isoformat(),
    }


@money_books_bp.route("/", methods=["GET"])
@require_auth
def list_money_books():
    """GET /money-books — List the caller's money books, newest first."""
    money_books = money_book_service.list_money_books(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({
        "data": [serialize_money_book(b) for b in money_books],
        "warnings": [],
    }), 200


@money_books_bp.route("/", methods=["POST"])
@require_auth
def create_money_book():
    """POST /money-books — Create a money book owned by the caller."""
    data = CreateMoneyBookSchema().load(request.get_json(force=True) or {})
    money_book = money_book_service.create_money_book(
        name=data["name"],
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_money_book(money_book), "warnings": []}), 201


@money_books_bp.route("/<string:money_book_id>", methods=["GET"])
@require_auth
def get_money_book(money_book_id: str):
    """GET /money-books/:id — Owner only."""
    money_book = money_book_service.get_money_book(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": serialize_money_book(money_book), "warnings": []}), 200


@money_books_bp.route("/<string:money_book_id>", methods=["PATCH"])
@require_auth
def update_money_book(money_book_id: str):
    """PATCH /money-books/:id — Rename."""
    data = UpdateMoneyBookSchema().load(request.get_json(force=True) or {})
    money_book = money_book_service.update_money_book(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        name=data["name"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": serialize_money_book(money_book), "warnings": []}), 200


@money_books_bp.route("/<string:money_book_id>", methods=["DELETE"])
@require_auth
def delete_money_book(money_book_id: str):
    """DELETE /money-books/:id — Removes the book with its pockets and allocations."""
    money_book_service.delete_money_book(
        money_book_id=money_book_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({
        "data": {
            "deleted": True,
            "money_book_id": money_book_id,
        },
        "warnings": [],
    }), 200
