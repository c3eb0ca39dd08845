"""Ensure the spot/escrow check constraints and the reservation and promo
uniqueness constraints exist on databases created before they were modelled.

Revision ID: 002_escrow_and_spot_guards
Revises: 001_initial
Create Date: 2026-10-18

Each constraint is added inside a DO block that ignores "already exists", so
this is safe to run after create_all. PostgreSQL only; SQLite databases get
the constraints from create_all.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_escrow_and_spot_guards"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CONSTRAINTS = [
    ("campaigns", "ck_campaigns_spots_non_negative", "CHECK (spots_remaining >= 0)"),
    ("campaigns", "ck_campaigns_spots_within_total", "CHECK (spots_remaining <= total_spots)"),
    (
        "campaigns",
        "ck_campaigns_escrow_within_budget",
        "CHECK (released_amount + refunded_amount <= total_budget)",
    ),
    ("reservations", "uq_reservations_user_campaign", "UNIQUE (user_id, campaign_id)"),
    ("promo_code_usages", "uq_promo_code_usages_code_user", "UNIQUE (promo_code_id, user_id)"),
]


def _safe_add_constraint(table: str, name: str, definition: str) -> None:
    op.execute(sa.text(f"""
        DO $$
        BEGIN
            ALTER TABLE {table} ADD CONSTRAINT {name} {definition};
        EXCEPTION
            WHEN duplicate_object OR duplicate_table THEN
                NULL;
        END $$;
    """))


def upgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    for table, name, definition in CONSTRAINTS:
        _safe_add_constraint(table, name, definition)


def downgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    for table, name, _ in reversed(CONSTRAINTS):
        op.execute(sa.text(f"ALTER TABLE {table} DROP CONSTRAINT IF EXISTS {name}"))
