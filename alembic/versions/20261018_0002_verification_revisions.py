"""Verification result ordering by session revision

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

Changes:
- verification_sessions: Add revision, incremented on every state change
- verification_snapshots: Add <field>_revision per verification field, the
  revision of the last provider result merged into that field
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SNAPSHOT_FIELDS = ("identity", "bank_account", "income", "background")


def upgrade() -> None:
    """Add revision counters."""
    op.add_column(
        "verification_sessions",
        sa.Column("revision", sa.Integer(), nullable=False, server_default="0"),
    )
    for name in SNAPSHOT_FIELDS:
        op.add_column(
            "verification_snapshots",
            sa.Column(f"{name}_revision", sa.Integer(), nullable=False, server_default="0"),
        )


def downgrade() -> None:
    """Drop revision counters."""
    for name in reversed(SNAPSHOT_FIELDS):
        op.drop_column("verification_snapshots", f"{name}_revision")
    op.drop_column("verification_sessions", "revision")
