"""Add allocation sum integrity trigger.

Revision: 002_add_allocation_sum_trigger
Created:  2026-10-19

allocation_service.py guarantees sum(allocation_items.amount) ==
allocations.source_amount. This trigger enforces the same equality in
PostgreSQL so that writes bypassing the service are rejected too.

A CHECK constraint cannot aggregate sibling rows, hence a trigger.

Trigger design:
  Function : fn_check_allocation_sum()
    - Resolves allocation_id from NEW (INSERT/UPDATE) or OLD (DELETE).
    - Compares SUM(amount) of its items with the header's source_amount.
    - Raises SQLSTATE 23514 (check_violation) when they differ.
    - When the header row is already gone (cascade delete) the comparison
      is against NULL and nothing is raised.

  Trigger  : trg_allocation_items_sum_check
    - CONSTRAINT TRIGGER, DEFERRABLE INITIALLY DEFERRED, FOR EACH ROW.
    - Deferred to COMMIT: the header is flushed before its items, so the
      intermediate state never balances.

Append-only: never edit after it has been applied; add a new migration.
"""

from __future__ import annotations

from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "002_add_allocation_sum_trigger"
down_revision: str | None = "001_initial_schema"
branch_labels: tuple | None = None
depends_on: tuple | None = None


_CREATE_FUNCTION = """
CREATE OR REPLACE FUNCTION fn_check_allocation_sum()
RETURNS TRIGGER
LANGUAGE plpgsql
AS $$
DECLARE
    v_allocation_id  VARCHAR(36);
    v_item_sum       BIGINT;
    v_source_amount  BIGINT;
BEGIN
    IF TG_OP = 'DELETE' THEN
        v_allocation_id := OLD.allocation_id;
    ELSE
        v_allocation_id := NEW.allocation_id;
    END IF;

    SELECT COALESCE(SUM(amount), 0)
    INTO v_item_sum
    FROM allocation_items
    WHERE allocation_id = v_allocation_id;

    SELECT source_amount
    INTO v_source_amount
    FROM allocations
    WHERE id = v_allocation_id;

    IF v_item_sum <> v_source_amount THEN
        RAISE EXCEPTION
            'allocation item sum (%) does not equal source amount (%) for allocation id=%',
            v_item_sum, v_source_amount, v_allocation_id
            USING ERRCODE = '23514';  -- check_violation
    END IF;

    IF TG_OP = 'DELETE' THEN
        RETURN OLD;
    ELSE
        RETURN NEW;
    END IF;
END;
$$;
"""

_CREATE_TRIGGER = """
CREATE CONSTRAINT TRIGGER trg_allocation_items_sum_check
    AFTER INSERT OR UPDATE OR DELETE
    ON allocation_items
    DEFERRABLE INITIALLY DEFERRED
    FOR EACH ROW
    EXECUTE FUNCTION fn_check_allocation_sum();
"""

_DROP_TRIGGER = "DROP TRIGGER IF EXISTS trg_allocation_items_sum_check ON allocation_items;"
_DROP_FUNCTION = "DROP FUNCTION IF EXISTS fn_check_allocation_sum();"


def upgrade() -> None:
    """Creates the function first; the trigger references it."""
    op.execute(_CREATE_FUNCTION)
    op.execute(_CREATE_TRIGGER)


def downgrade() -> None:
    """Drops the trigger, then the function."""
    op.execute(_DROP_TRIGGER)
    op.execute(_DROP_FUNCTION)
