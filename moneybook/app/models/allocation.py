"""
models/allocation.py — Allocation header table definition.

No business logic. No imports from services or routes.

Key design points:
  - An allocation is a point-in-time snapshot. There is no update path;
    the API can only create, read and delete it.
  - `source_amount` is a BigInteger in the smallest currency unit.
  - Items are owned by the allocation (cascade delete) and always loaded in
    `position` order, which is the pocket order at creation time.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moneybook.app.extensions import db


class Allocation(db.Model):
    __tablename__ = "allocations"

    __table_args__ = (
        CheckConstraint("source_amount >= 0", name="ck_allocations_source_amount_nonnegative"),

        # History listing is always "this book, newest date first".
        Index("idx_allocations_book_date", "money_book_id", "date"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    money_book_id: Mapped[str] = mapped_column(
        ForeignKey("money_books.id", ondelete="CASCADE"),
        nullable=False,
    )

    source_amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(dt.timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    money_book: Mapped["MoneyBook"] = relationship(  # noqa: F821
        "MoneyBook",
        back_populates="allocations",
    )

    items: Mapped[list["AllocationItem"]] = relationship(  # noqa: F821
        "AllocationItem",
        back_populates="allocation",
        cascade="all, delete-orphan",
        order_by="AllocationItem.position",
    )

    @property
    def allocated_total(self) -> int:
        """Sum of item amounts. Equals source_amount for every stored allocation."""
        return sum(item.amount for item in self.items)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Allocation id={self.id} "
            f"money_book_id={self.money_book_id} "
            f"source_amount={self.source_amount}>"
        )
