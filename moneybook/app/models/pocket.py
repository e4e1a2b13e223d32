"""
models/pocket.py — Pocket table definition.

No business logic. No imports from services or routes.

Key design points:
  - `percentage` uses Numeric(5, 2): 0.00 to 100.00, never Float in storage.
    The allocation calculator converts it to float at computation time.
  - Percentages across a book's pockets should sum to 100. That rule spans
    rows, so it lives in pocket_service.validate_pocket_percentages(), not in
    a table constraint.
  - Pockets are not referenced by allocation history: allocation items carry
    their own name/percentage snapshot and a nullable pocket_id.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moneybook.app.extensions import db


class Pocket(db.Model):
    __tablename__ = "pockets"

    __table_args__ = (
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_pockets_name_nonempty",
        ),
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_pockets_percentage_range",
        ),
        CheckConstraint("order_index >= 0", name="ck_pockets_order_index_nonnegative"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    money_book_id: Mapped[str] = mapped_column(
        ForeignKey("money_books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    money_book: Mapped["MoneyBook"] = relationship(  # noqa: F821
        "MoneyBook",
        back_populates="pockets",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Pocket id={self.id} "
            f"name={self.name!r} "
            f"percentage={self.percentage}>"
        )
