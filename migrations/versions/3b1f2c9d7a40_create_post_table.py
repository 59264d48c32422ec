"""create post table

Revision ID: 3b1f2c9d7a40
Revises:
Create Date: 2026-10-19 09:12:41.337802

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f2c9d7a40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the post table."""
    op.create_table(
        "post",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("vessel_code", sa.Text(), nullable=True),
        sa.Column("bay", sa.Text(), nullable=True),
        sa.Column("is_hold", sa.Boolean(), nullable=False),
        sa.Column("is_ld", sa.Boolean(), nullable=False),
        sa.Column("status", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_post_updated_at"), "post", ["updated_at"], unique=False)


def downgrade() -> None:
    """Drop the post table."""
    op.drop_index(op.f("ix_post_updated_at"), table_name="post")
    op.drop_table("post")
