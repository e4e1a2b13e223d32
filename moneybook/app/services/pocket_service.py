"""
services/pocket_service.py — Pocket business logic.

Rules enforced here:
  - Caller must own the pocket's money book (FORBIDDEN, 403).
  - Reordering must name exactly the book's pockets (POCKET_ORDER_MISMATCH, 422).
  - Editing or deleting a pocket never rewrites allocation history: items keep
    their name/percentage snapshot; a deleted pocket's id is cleared on them.

Percentage sum (validate_pocket_percentages):
  Pockets of a book should sum to 100. Individual pocket writes do NOT enforce
  it, because a user rebalancing three pockets necessarily passes through
  intermediate states. The check gates allocation creation instead and is
  exposed read-only through get_percentage_summary().

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from moneybook.app.errors import AppError, ErrorCode
from moneybook.app.models.allocation_item import AllocationItem
from moneybook.app.models.pocket import Pocket
from moneybook.app.services.money_book_service import get_owned_money_book

PERCENTAGE_TOTAL = Decimal("100")
PERCENTAGE_TOLERANCE = Decimal("0.01")


# ── Private helpers ────────────────────────────────────────────────────────

def _get_pocket_or_404(pocket_id: str, session: Session) -> Pocket:
    """Returns the Pocket or raises POCKET_NOT_FOUND (404)."""
    pocket = session.get(Pocket, pocket_id)
    if pocket is None:
        raise AppError(
            ErrorCode.POCKET_NOT_FOUND,
            f"Pocket {pocket_id} does not exist.",
            404,
        )
    return pocket


def _get_owned_pocket(pocket_id: str, caller_id: str, session: Session) -> Pocket:
    pocket = _get_pocket_or_404(pocket_id, session)
    get_owned_money_book(pocket.money_book_id, caller_id, session)
    return pocket


def _next_order_index(money_book_id: str, session: Session) -> int:
    """One past the highest order_index in the book, or 0 for an empty book."""
    current_max = session.execute(
        select(func.max(Pocket.order_index)).where(Pocket.money_book_id == money_book_id)
    ).scalar()
    return 0 if current_max is None else current_max + 1


def _query_pockets(money_book_id: str, session: Session) -> list[Pocket]:
    stmt = (
        select(Pocket)
        .where(Pocket.money_book_id == money_book_id)
        .order_by(Pocket.order_index.asc(), Pocket.created_at.asc())
    )
    return list(session.execute(stmt).scalars().all())


# ── Percentage validation ──────────────────────────────────────────────────

def validate_pocket_percentages(pockets: Iterable) -> dict:
    """
    Sums pocket percentages and checks the total is 100 within 0.01.

    Accepts anything with a `percentage` attribute (ORM rows, namespaces).
    Values are summed as Decimal so stored NUMERIC(5, 2) values add up exactly.

    Returns:
        {"valid": bool, "total": Decimal}
    """
    total = sum(
        (Decimal(str(p.percentage)) for p in pockets),
        Decimal("0"),
    )
    return {
        "valid": abs(total - PERCENTAGE_TOTAL) < PERCENTAGE_TOLERANCE,
        "total": total,
    }


# ── Public service functions ───────────────────────────────────────────────

def list_pockets(money_book_id: str, caller_id: str, session: Session) -> list[Pocket]:
    """Returns the book's pockets in display order (order_index ascending)."""
    get_owned_money_book(money_book_id, caller_id, session)
    return _query_pockets(money_book_id, session)


def get_ordered_pockets(money_book_id: str, session: Session) -> list[Pocket]:
    """Pockets in allocation order. Caller is responsible for the ownership check."""
    return _query_pockets(money_book_id, session)


def create_pocket(
        money_book_id: str,
        caller_id: str,
        data: dict,
        session: Session,
) -> Pocket:
    """
    Adds a pocket to a money book.

    Args:
        data: Validated dict from CreatePocketSchema
              ({"name", "percentage", optional "order_index"}).

    When order_index is omitted the pocket is appended after the last one.
    """
    get_owned_money_book(money_book_id, caller_id, session)

    order_index = data.get("order_index")
    if order_index is None:
        order_index = _next_order_index(money_book_id, session)

    pocket = Pocket(
        money_book_id=money_book_id,
        name=data["name"].strip(),
        percentage=data["percentage"],
        order_index=order_index,
    )
    session.add(pocket)
    session.flush()
    return pocket


def update_pocket(
        pocket_id: str,
        caller_id: str,
        data: dict,
        session: Session,
) -> Pocket:
    """
    Partially updates a pocket (name, percentage, order_index).

    Past allocation items are snapshots and are NOT touched.
    """
    pocket = _get_owned_pocket(pocket_id, caller_id, session)

    if "name" in data:
        pocket.name = data["name"].strip()
    if "percentage" in data:
        pocket.percentage = data["percentage"]
    if "order_index" in data:
        pocket.order_index = data["order_index"]

    session.flush()
    return pocket


def delete_pocket(pocket_id: str, caller_id: str, session: Session) -> None:
    """
    Deletes a pocket. Allocation items that referenced it keep their
    snapshot and get pocket_id = NULL.
    """
    pocket = _get_owned_pocket(pocket_id, caller_id, session)

    session.execute(
        update(AllocationItem)
        .where(AllocationItem.pocket_id == pocket.id)
        .values(pocket_id=None)
    )
    session.delete(pocket)
    session.flush()


def reorder_pockets(
        money_book_id: str,
        caller_id: str,
        pocket_ids: list[str],
        session: Session,
) -> list[Pocket]:
    """
    Rewrites order_index so that pocket_ids[i] gets order_index i.

    The schema rejects duplicate ids (DUPLICATE_POCKET_ID, 400). Here the list
    must match the book's pockets exactly (POCKET_ORDER_MISMATCH, 422).

    Returns the pockets in their new order.
    """
    get_owned_money_book(money_book_id, caller_id, session)
    pockets = _query_pockets(money_book_id, session)
    by_id = {p.id: p for p in pockets}

    if set(pocket_ids) != set(by_id):
        raise AppError(
            ErrorCode.POCKET_ORDER_MISMATCH,
            "pocket_ids must list every pocket of the money book exactly once.",
            422,
            field="pocket_ids",
        )

    for index, pocket_id in enumerate(pocket_ids):
        by_id[pocket_id].order_index = index

    session.flush()
    return [by_id[pocket_id] for pocket_id in pocket_ids]


def get_percentage_summary(money_book_id: str, caller_id: str, session: Session) -> dict:
    """Returns validate_pocket_percentages() for the book's current pockets."""
    pockets = list_pockets(money_book_id, caller_id, session)
    return validate_pocket_percentages(pockets)
