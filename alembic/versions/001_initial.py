"""Initial revision: no-op so alembic upgrade head succeeds.

Tables are created by app startup (Base.metadata.create_all).
Later revisions patch databases created by older versions of the models.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    pass


def downgrade() -> None:
    pass
