"""game_sessions

Revision ID: 5c1d2e3f4a5b
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1d2e3f4a5b"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "game_sessions",
        sa.Column("code", sa.String(6), primary_key=True),
        sa.Column("creator_user_id", sa.String(128), nullable=False),
        sa.Column("creator_gender", sa.String(16), nullable=False),
        sa.Column("partner_user_id", sa.String(128), nullable=True),
        sa.Column("partner_gender", sa.String(16), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("challenge_count", sa.Integer(), nullable=False),
        sa.Column("start_intensity", sa.Integer(), nullable=False),
        sa.Column("current_challenge_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("current_player", sa.String(16), nullable=False, server_default=sa.text("'creator'")),
        sa.Column("challenges", postgresql.JSONB(), nullable=False),
        sa.Column("creator_preferences", postgresql.JSONB(), nullable=True),
        sa.Column("partner_preferences", postgresql.JSONB(), nullable=True),
        sa.Column("creator_changes_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("partner_changes_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("creator_bonus_changes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("partner_bonus_changes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("pending_challenge_created_by", sa.String(128), nullable=True),
        sa.Column("pending_challenge_for_player", sa.String(16), nullable=True),
        sa.Column("pending_challenge_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('waiting','active','completed','abandoned')",
            name="ck_game_sessions_status",
        ),
        sa.CheckConstraint(
            "current_player IN ('creator','partner')",
            name="ck_game_sessions_current_player",
        ),
        sa.CheckConstraint(
            "start_intensity BETWEEN 1 AND 4",
            name="ck_game_sessions_start_intensity_range",
        ),
        sa.CheckConstraint(
            "challenge_count >= 0",
            name="ck_game_sessions_challenge_count_non_negative",
        ),
        sa.CheckConstraint(
            "current_challenge_index >= 0",
            name="ck_game_sessions_current_challenge_index_non_negative",
        ),
        sa.CheckConstraint(
            "creator_changes_used >= 0",
            name="ck_game_sessions_creator_changes_used_non_negative",
        ),
        sa.CheckConstraint(
            "partner_changes_used >= 0",
            name="ck_game_sessions_partner_changes_used_non_negative",
        ),
        sa.CheckConstraint(
            "creator_bonus_changes BETWEEN 0 AND 3",
            name="ck_game_sessions_creator_bonus_changes_range",
        ),
        sa.CheckConstraint(
            "partner_bonus_changes BETWEEN 0 AND 3",
            name="ck_game_sessions_partner_bonus_changes_range",
        ),
        sa.CheckConstraint(
            "(status = 'waiting') = (partner_user_id IS NULL) OR status = 'abandoned'",
            name="ck_game_sessions_partner_matches_status",
        ),
    )
    op.create_index(
        "idx_game_sessions_creator_status",
        "game_sessions",
        ["creator_user_id", "status"],
    )
    op.create_index(
        "idx_game_sessions_partner_status",
        "game_sessions",
        ["partner_user_id", "status"],
    )
    op.create_index(
        "idx_game_sessions_status_created",
        "game_sessions",
        ["status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_game_sessions_status_created", table_name="game_sessions")
    op.drop_index("idx_game_sessions_partner_status", table_name="game_sessions")
    op.drop_index("idx_game_sessions_creator_status", table_name="game_sessions")
    op.drop_table("game_sessions")
