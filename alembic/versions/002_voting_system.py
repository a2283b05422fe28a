"""add action_proposals and proposal_votes; track who performed an action

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

Actions recorded before this revision have no performer.  They are backfilled
with a fixed marker so the column can be shown without null handling.

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

PRE_TRACKING_PERFORMER = "System (pre-tracking)"


def upgrade() -> None:
    op.add_column(
        "actions", sa.Column("performed_by_username", sa.String(length=100), nullable=True)
    )
    actions = sa.table("actions", sa.column("performed_by_username", sa.String))
    op.execute(
        actions.update()
        .where(actions.c.performed_by_username.is_(None))
        .values(performed_by_username=PRE_TRACKING_PERFORMER)
    )

    op.create_table(
        "action_proposals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("proposed_by_username", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "approved", "rejected", "executed", "expired", name="proposalstatus"
            ),
            nullable=False,
        ),
        sa.Column("votes_for", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("votes_against", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_voters", sa.Integer(), nullable=False),
        sa.Column("required_votes", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_action_proposals_id"), "action_proposals", ["id"], unique=False)
    op.create_index(
        op.f("ix_action_proposals_game_id"), "action_proposals", ["game_id"], unique=False
    )
    op.create_index(
        op.f("ix_action_proposals_player_id"), "action_proposals", ["player_id"], unique=False
    )
    op.create_index(
        op.f("ix_action_proposals_status"), "action_proposals", ["status"], unique=False
    )

    op.create_table(
        "proposal_votes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("proposal_id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("vote", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["proposal_id"], ["action_proposals.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "proposal_id", "username", name="uq_proposal_votes_proposal_username"
        ),
    )
    op.create_index(op.f("ix_proposal_votes_id"), "proposal_votes", ["id"], unique=False)
    op.create_index(
        op.f("ix_proposal_votes_proposal_id"), "proposal_votes", ["proposal_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_proposal_votes_proposal_id"), table_name="proposal_votes")
    op.drop_index(op.f("ix_proposal_votes_id"), table_name="proposal_votes")
    op.drop_table("proposal_votes")

    op.drop_index(op.f("ix_action_proposals_status"), table_name="action_proposals")
    op.drop_index(op.f("ix_action_proposals_player_id"), table_name="action_proposals")
    op.drop_index(op.f("ix_action_proposals_game_id"), table_name="action_proposals")
    op.drop_index(op.f("ix_action_proposals_id"), table_name="action_proposals")
    op.drop_table("action_proposals")

    with op.batch_alter_table("actions") as batch_op:
        batch_op.drop_column("performed_by_username")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS proposalstatus")
