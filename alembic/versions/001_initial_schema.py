"""Initial schema — groups, members, cursors, record owners.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Group configuration
    op.create_table(
        "rotation_groups",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(200), unique=True, nullable=False),
        sa.Column("pool_id", sa.String(200), nullable=False),
    )

    # Pool membership
    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("pool_id", sa.String(200), nullable=False),
        sa.Column("member_id", sa.String(200), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("pool_id", "member_id", name="uq_group_members_pool_member"),
    )
    op.create_index("idx_group_members_pool", "group_members", ["pool_id"])

    # Round-robin cursors
    op.create_table(
        "rotation_cursors",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("group_key", sa.String(200), unique=True, nullable=False),
        sa.Column("last_index", sa.Integer, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("last_index >= 0", name="ck_rotation_cursors_index"),
    )

    # Assigned owners
    op.create_table(
        "record_owners",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("record_id", sa.String(200), nullable=False),
        sa.Column("field_name", sa.String(200), nullable=False),
        sa.Column("member_id", sa.String(200), nullable=False),
        sa.Column(
            "assigned_at", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint("record_id", "field_name", name="uq_record_owners_record_field"),
    )
    op.create_index("idx_record_owners_member", "record_owners", ["member_id"])


def downgrade() -> None:
    op.drop_table("record_owners")
    op.drop_table("rotation_cursors")
    op.drop_table("group_members")
    op.drop_table("rotation_groups")
