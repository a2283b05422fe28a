"""add action_comments table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "004"
down_revision = "003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "action_comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("action_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["action_id"], ["actions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_action_comments_id"), "action_comments", ["id"], unique=False)
    op.create_index(
        op.f("ix_action_comments_action_id"), "action_comments", ["action_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_action_comments_action_id"), table_name="action_comments")
    op.drop_index(op.f("ix_action_comments_id"), table_name="action_comments")
    op.drop_table("action_comments")
