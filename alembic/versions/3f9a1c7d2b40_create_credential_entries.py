"""create credential entries

Revision ID: 3f9a1c7d2b40
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3f9a1c7d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "credential_entries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("context", sa.String(255), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("value", sa.Text, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("context", "name", name="uq_credential_entries_context_name"),
    )
    op.create_index("ix_credential_entries_context", "credential_entries", ["context"])


def downgrade() -> None:
    op.drop_index("ix_credential_entries_context", table_name="credential_entries")
    op.drop_table("credential_entries")
