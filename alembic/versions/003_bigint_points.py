"""widen point columns to BIGINT

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

Aura values in the millions overflow a 32-bit integer once a few +1M
adjustments stack up.  batch_alter_table rebuilds the table on SQLite, which
cannot ALTER a column type in place.

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None

POINT_COLUMNS = (
    ("players", "aura_points"),
    ("actions", "points"),
    ("action_proposals", "points"),
)


def upgrade() -> None:
    for table, column in POINT_COLUMNS:
        with op.batch_alter_table(table) as batch_op:
            batch_op.alter_column(
                column,
                existing_type=sa.Integer(),
                type_=sa.BigInteger(),
                existing_nullable=False,
            )


def downgrade() -> None:
    for table, column in POINT_COLUMNS:
        with op.batch_alter_table(table) as batch_op:
            batch_op.alter_column(
                column,
                existing_type=sa.BigInteger(),
                type_=sa.Integer(),
                existing_nullable=False,
            )
