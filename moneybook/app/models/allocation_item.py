"""
models/allocation_item.py — AllocationItem (snapshot line) table definition.

No business logic. No imports from services or routes.

Key design points:
  - `pocket_name` and `pocket_percentage` are copied from the pocket when the
    allocation is created and never written again.
  - `pocket_id` is ON DELETE SET NULL: a pocket can be deleted later without
    touching history. pocket_service also clears it explicitly so SQLite
    (foreign keys off by default) behaves the same way.
  - UNIQUE(allocation_id, position) keeps the snapshot order unambiguous.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moneybook.app.extensions import db


class AllocationItem(db.Model):
    __tablename__ = "allocation_items"

    __table_args__ = (
        UniqueConstraint("allocation_id", "position", name="uq_allocation_items_position"),
        CheckConstraint("amount >= 0", name="ck_allocation_items_amount_nonnegative"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    allocation_id: Mapped[str] = mapped_column(
        ForeignKey("allocations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    pocket_id: Mapped[str | None] = mapped_column(
        ForeignKey("pockets.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    pocket_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    pocket_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    allocation: Mapped["Allocation"] = relationship(  # noqa: F821
        "Allocation",
        back_populates="items",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<AllocationItem id={self.id} "
            f"pocket_name={self.pocket_name!r} "
            f"amount={self.amount}>"
        )
