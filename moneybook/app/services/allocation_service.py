"""
services/allocation_service.py — Allocation calculator and allocation history.

Amount calculation (compute_allocation_amounts):
  - Each pocket gets floor(source_amount * percentage / 100).
  - The units lost to flooring are handed back ONE AT A TIME in list order:
    first pocket, second pocket, ... until none are left.
  - This guarantees sum(amounts) == source_amount for integer totals.

  The remainder policy is positional, not largest-remainder. Stored
  allocations were produced this way and must stay reproducible, so do not
  switch it to a "fairer" method.

  Arithmetic is IEEE-754 double precision (percentages go through float()),
  matching the amounts already recorded by earlier clients.

Rules enforced before an allocation is written:
  - Caller owns the money book (FORBIDDEN, 403).
  - The book has at least one pocket (NO_POCKETS, 422).
  - Pocket percentages sum to 100 within 0.01 (PERCENTAGE_SUM_MISMATCH, 422).
  - source_amount is an integer in [0, 2**53 - 1] (INVALID_SOURCE_AMOUNT, 400).
  All checks run before the first write; nothing partial is ever flushed.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from moneybook.app.errors import AppError, ErrorCode, WarningCode
from moneybook.app.models.allocation import Allocation
from moneybook.app.models.allocation_item import AllocationItem
from moneybook.app.models.pocket import Pocket
from moneybook.app.services import pocket_service
from moneybook.app.services.money_book_service import get_owned_money_book

logger = logging.getLogger(__name__)

# Largest amount the float arithmetic in compute_allocation_amounts represents
# exactly (2**53 - 1). Also well inside the BIGINT column range.
MAX_SOURCE_AMOUNT = 2**53 - 1


# ── Calculator ─────────────────────────────────────────────────────────────

def compute_allocation_amounts(source_amount, shares: Sequence[dict]) -> list[dict]:
    """
    Splits source_amount across weighted shares into whole-unit amounts.

    Args:
        source_amount: Non-negative integer, in the smallest currency unit.
        shares:        Ordered list of {"pocket_id": ..., "percentage": number}.
                       Weights are NOT required to sum to 100.

    Returns:
        List of {"pocket_id": ..., "amount": int} in the same order as shares.

    Only whole units of remainder are distributed, in a single pass over the
    list. With an empty share list the whole amount is dropped. For a
    fractional source_amount the result sums to floor(source_amount).

    Never raises for inputs in its domain; validation is the caller's job.
    """
    results: list[dict] = []
    total_floored = 0

    for share in shares:
        exact_amount = source_amount * float(share["percentage"]) / 100
        floor_amount = math.floor(exact_amount)
        results.append({"pocket_id": share["pocket_id"], "amount": floor_amount})
        total_floored += floor_amount

    remainder = source_amount - total_floored
    index = 0
    while remainder >= 1 and index < len(results):
        results[index]["amount"] += 1
        remainder -= 1
        index += 1

    return results


# ── Private helpers ────────────────────────────────────────────────────────

def _get_allocation_or_404(allocation_id: str, session: Session) -> Allocation:
    """Returns the Allocation or raises ALLOCATION_NOT_FOUND (404)."""
    allocation = session.get(Allocation, allocation_id)
    if allocation is None:
        raise AppError(
            ErrorCode.ALLOCATION_NOT_FOUND,
            f"Allocation {allocation_id} does not exist.",
            404,
        )
    return allocation


def _validate_source_amount(source_amount) -> None:
    """
    Raises INVALID_SOURCE_AMOUNT (400) unless source_amount is an int in
    [0, MAX_SOURCE_AMOUNT]. The schema checks this too; services can be called
    from scripts, so the check is repeated here.
    """
    is_int = isinstance(source_amount, int) and not isinstance(source_amount, bool)
    if not is_int or not 0 <= source_amount <= MAX_SOURCE_AMOUNT:
        raise AppError(
            ErrorCode.INVALID_SOURCE_AMOUNT,
            f"source_amount must be a whole number between 0 and {MAX_SOURCE_AMOUNT}.",
            400,
            field="source_amount",
        )


def _validate_pockets_for_allocation(pockets: list[Pocket], money_book_id: str) -> None:
    """Raises NO_POCKETS or PERCENTAGE_SUM_MISMATCH (422)."""
    if not pockets:
        raise AppError(
            ErrorCode.NO_POCKETS,
            f"Money book {money_book_id} has no pockets to allocate into.",
            422,
        )

    summary = pocket_service.validate_pocket_percentages(pockets)
    if not summary["valid"]:
        raise AppError(
            ErrorCode.PERCENTAGE_SUM_MISMATCH,
            f"Pocket percentages add up to {summary['total']}, not 100.",
            422,
        )


def _zero_percentage_warnings(pockets: list[Pocket]) -> list[dict]:
    return [
        {
            "code": WarningCode.ZERO_PERCENTAGE_POCKET,
            "message": (
                f"Pocket '{p.name}' has 0% weight and may still receive a "
                f"rounding unit."
            ),
            "pocket_id": p.id,
        }
        for p in pockets
        if p.percentage == 0
    ]


def _build_snapshot_lines(pockets: list[Pocket], source_amount: int) -> list[dict]:
    """
    Runs the calculator over the pockets and pairs each amount with the
    pocket's current name and percentage.
    """
    shares = [{"pocket_id": p.id, "percentage": p.percentage} for p in pockets]
    amounts = compute_allocation_amounts(source_amount, shares)

    lines = [
        {
            "pocket_id": pocket.id,
            "pocket_name": pocket.name,
            "pocket_percentage": pocket.percentage,
            "amount": computed["amount"],
            "position": position,
        }
        for position, (pocket, computed) in enumerate(zip(pockets, amounts))
    ]

    # Must always hold for a non-empty pocket list; a failure is a bug.
    computed_sum = sum(line["amount"] for line in lines)
    if computed_sum != source_amount:
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Allocation computation produced sum {computed_sum} for amount {source_amount}. "
            f"This is a bug.",
            500,
        )

    return lines


# ── Public service functions ───────────────────────────────────────────────

def list_allocations(money_book_id: str, caller_id: str, session: Session) -> list[Allocation]:
    """Returns the book's allocations with items, newest date first."""
    get_owned_money_book(money_book_id, caller_id, session)

    stmt = (
        select(Allocation)
        .where(Allocation.money_book_id == money_book_id)
        .options(selectinload(Allocation.items))
        .order_by(Allocation.date.desc(), Allocation.created_at.desc())
    )
    return list(session.execute(stmt).scalars().all())


def get_allocation(allocation_id: str, caller_id: str, session: Session) -> Allocation:
    allocation = _get_allocation_or_404(allocation_id, session)
    get_owned_money_book(allocation.money_book_id, caller_id, session)
    return allocation


def preview_allocation(
        money_book_id: str,
        caller_id: str,
        source_amount: int,
        session: Session,
) -> tuple[list[dict], list[dict]]:
    """
    Computes what create_allocation() would store, without writing.

    Returns:
        (lines, warnings): lines are {pocket_id, pocket_name,
        pocket_percentage, amount, position} dicts in pocket order.
    """
    get_owned_money_book(money_book_id, caller_id, session)
    _validate_source_amount(source_amount)

    pockets = pocket_service.get_ordered_pockets(money_book_id, session)
    _validate_pockets_for_allocation(pockets, money_book_id)

    return _build_snapshot_lines(pockets, source_amount), _zero_percentage_warnings(pockets)


def create_allocation(
        money_book_id: str,
        caller_id: str,
        data: dict,
        session: Session,
) -> tuple[Allocation, list[dict]]:
    """
    Splits a source amount across the book's current pockets and records it.

    Args:
        data: Validated dict from CreateAllocationSchema
              ({"source_amount", "date", optional "notes"}).

    The header and all items are added in one flush; the route commits them
    together.

    Returns:
        (Allocation, warnings). Warnings never block the request.
    """
    get_owned_money_book(money_book_id, caller_id, session)

    source_amount = data["source_amount"]
    _validate_source_amount(source_amount)

    pockets = pocket_service.get_ordered_pockets(money_book_id, session)
    _validate_pockets_for_allocation(pockets, money_book_id)

    lines = _build_snapshot_lines(pockets, source_amount)

    allocation = Allocation(
        money_book_id=money_book_id,
        source_amount=source_amount,
        date=data["date"],
        notes=data.get("notes"),
    )
    allocation.items = [AllocationItem(**line) for line in lines]

    session.add(allocation)
    session.flush()

    logger.info(
        "Created allocation %s in money book %s: %d across %d pockets",
        allocation.id,
        money_book_id,
        source_amount,
        len(lines),
    )

    return allocation, _zero_percentage_warnings(pockets)


def delete_allocation(allocation_id: str, caller_id: str, session: Session) -> None:
    """Deletes an allocation and, by cascade, all of its items."""
    allocation = get_allocation(allocation_id, caller_id, session)
    session.delete(allocation)
    session.flush()

    logger.info("Deleted allocation %s", allocation_id)
