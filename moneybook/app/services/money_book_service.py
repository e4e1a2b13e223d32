"""
services/money_book_service.py — Money book business logic.

Authorization rules:
  - A money book is visible to and writable by its owner only.
  - Non-owners receive FORBIDDEN (403); unknown ids MONEY_BOOK_NOT_FOUND (404).

get_owned_money_book() is the single ownership gate. pocket_service and
allocation_service call it before touching anything inside a book.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from moneybook.app.errors import AppError, ErrorCode
from moneybook.app.models.money_book import MoneyBook


# ── Ownership gate ─────────────────────────────────────────────────────────

def get_owned_money_book(money_book_id: str, caller_id: str, session: Session) -> MoneyBook:
    """
    Returns the MoneyBook if it exists and belongs to caller_id.

    Raises:
        AppError(MONEY_BOOK_NOT_FOUND, 404) — no such book.
        AppError(FORBIDDEN, 403)            — book belongs to another user.
    """
    money_book = session.get(MoneyBook, money_book_id)
    if money_book is None:
        raise AppError(
            ErrorCode.MONEY_BOOK_NOT_FOUND,
            f"Money book {money_book_id} does not exist.",
            404,
        )
    if money_book.user_id != caller_id:
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You do not own money book {money_book_id}.",
            403,
        )
    return money_book


# ── Public service functions ───────────────────────────────────────────────

def list_money_books(user_id: str, session: Session) -> list[MoneyBook]:
    """Returns the caller's money books, newest first."""
    stmt = (
        select(MoneyBook)
        .where(MoneyBook.user_id == user_id)
        .order_by(MoneyBook.created_at.desc())
    )
    return list(session.execute(stmt).scalars().all())


def get_money_book(money_book_id: str, caller_id: str, session: Session) -> MoneyBook:
    return get_owned_money_book(money_book_id, caller_id, session)


def create_money_book(name: str, user_id: str, session: Session) -> MoneyBook:
    """
    Creates an empty money book owned by user_id.

    Args:
        name:    Book name (validated by schema — non-empty, max 100 chars).
        user_id: The authenticated caller (flask.g.user_id, passed by the route).
    """
    money_book = MoneyBook(name=name.strip(), user_id=user_id)
    session.add(money_book)
    session.flush()
    return money_book


def update_money_book(
        money_book_id: str,
        caller_id: str,
        name: str,
        session: Session,
) -> MoneyBook:
    """Renames a money book. Allocation history is unaffected."""
    money_book = get_owned_money_book(money_book_id, caller_id, session)
    money_book.name = name.strip()
    session.flush()
    return money_book


def delete_money_book(money_book_id: str, caller_id: str, session: Session) -> None:
    """
    Deletes a money book together with its pockets, allocations and
    allocation items (ORM cascade).
    """
    money_book = get_owned_money_book(money_book_id, caller_id, session)
    session.delete(money_book)
    session.flush()
