"""Initial schema — money books, pockets, allocations, allocation items.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order (FK dependency order):
  money_books → pockets → allocations → allocation_items

ON DELETE policies:
  pockets.money_book_id            → CASCADE   (pockets owned by their book)
  allocations.money_book_id        → CASCADE   (history owned by its book)
  allocation_items.allocation_id   → CASCADE   (items owned by their allocation)
  allocation_items.pocket_id       → SET NULL  (snapshot survives pocket deletion)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:

    # ── Step 1: money_books ────────────────────────────────────────────────
    # user_id is the auth provider's subject; there is no local users table.

    op.create_table(
        "money_books",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_money_books"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_money_books_name_nonempty",
        ),
    )

    # ── Step 2: pockets ────────────────────────────────────────────────────

    op.create_table(
        "pockets",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "money_book_id",
            sa.String(36),
            sa.ForeignKey("money_books.id", ondelete="CASCADE", name="fk_pockets_money_book"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_pockets"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_pockets_name_nonempty",
        ),
        sa.CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_pockets_percentage_range",
        ),
        sa.CheckConstraint("order_index >= 0", name="ck_pockets_order_index_nonnegative"),
    )

    # ── Step 3: allocations ────────────────────────────────────────────────
    # source_amount is BIGINT in the smallest currency unit.

    op.create_table(
        "allocations",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "money_book_id",
            sa.String(36),
            sa.ForeignKey("money_books.id", ondelete="CASCADE", name="fk_allocations_money_book"),
            nullable=False,
        ),
        sa.Column("source_amount", sa.BigInteger(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_allocations"),
        sa.CheckConstraint(
            "source_amount >= 0",
            name="ck_allocations_source_amount_nonnegative",
        ),
    )

    # ── Step 4: allocation_items ───────────────────────────────────────────
    # Name and percentage are frozen copies; pocket_id may later become NULL.

    op.create_table(
        "allocation_items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "allocation_id",
            sa.String(36),
            sa.ForeignKey("allocations.id", ondelete="CASCADE", name="fk_allocation_items_allocation"),
            nullable=False,
        ),
        sa.Column(
            "pocket_id",
            sa.String(36),
            sa.ForeignKey("pockets.id", ondelete="SET NULL", name="fk_allocation_items_pocket"),
            nullable=True,
        ),
        sa.Column("pocket_name", sa.String(100), nullable=False),
        sa.Column("pocket_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_allocation_items"),
        sa.UniqueConstraint("allocation_id", "position", name="uq_allocation_items_position"),
        sa.CheckConstraint("amount >= 0", name="ck_allocation_items_amount_nonnegative"),
    )

    # ── Step 5: Indexes ────────────────────────────────────────────────────
    # Names match what the models generate, so autogenerate stays quiet.

    op.create_index("ix_money_books_user_id", "money_books", ["user_id"])
    op.create_index("ix_pockets_money_book_id", "pockets", ["money_book_id"])
    op.create_index(
        "idx_allocations_book_date",
        "allocations",
        ["money_book_id", "date"],
    )
    op.create_index("ix_allocation_items_allocation_id", "allocation_items", ["allocation_id"])
    op.create_index("ix_allocation_items_pocket_id", "allocation_items", ["pocket_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    For local development resets only; in production write a corrective
    migration instead.
    """
    op.drop_index("ix_allocation_items_pocket_id",     table_name="allocation_items")
    op.drop_index("ix_allocation_items_allocation_id", table_name="allocation_items")
    op.drop_index("idx_allocations_book_date",         table_name="allocations")
    op.drop_index("ix_pockets_money_book_id",          table_name="pockets")
    op.drop_index("ix_money_books_user_id",            table_name="money_books")

    op.drop_table("allocation_items")
    op.drop_table("allocations")
    op.drop_table("pockets")
    op.drop_table("money_books")
