"""
models/money_book.py — MoneyBook table definition.

No business logic. No imports from services or routes.

FK policy: a money book owns its pockets and allocations. Deleting the book
removes both (ORM cascade here, ON DELETE CASCADE in the migration).

`user_id` is the subject claim of the external auth provider's token. There
is no local users table; ownership is a plain string comparison.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moneybook.app.extensions import db


class MoneyBook(db.Model):
    __tablename__ = "money_books"

    __table_args__ = (
        # Also enforced by the marshmallow schema; the schema is the primary gate.
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_money_books_name_nonempty",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    pockets: Mapped[list["Pocket"]] = relationship(  # noqa: F821
        "Pocket",
        back_populates="money_book",
        cascade="all, delete-orphan",
        order_by="Pocket.order_index",
    )

    allocations: Mapped[list["Allocation"]] = relationship(  # noqa: F821
        "Allocation",
        back_populates="money_book",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<MoneyBook id={self.id} name={self.name!r}>"
