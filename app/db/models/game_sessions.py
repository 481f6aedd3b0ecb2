from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class GameSession(Base):
    __tablename__ = "game_sessions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('waiting','active','completed','abandoned')",
            name="status",
        ),
        CheckConstraint("current_player IN ('creator','partner')", name="current_player"),
        CheckConstraint("start_intensity BETWEEN 1 AND 4", name="start_intensity_range"),
        CheckConstraint("challenge_count >= 0", name="challenge_count_non_negative"),
        CheckConstraint(
            "current_challenge_index >= 0",
            name="current_challenge_index_non_negative",
        ),
        CheckConstraint("creator_changes_used >= 0", name="creator_changes_used_non_negative"),
        CheckConstraint("partner_changes_used >= 0", name="partner_changes_used_non_negative"),
        CheckConstraint(
            "creator_bonus_changes BETWEEN 0 AND 3",
            name="creator_bonus_changes_range",
        ),
        CheckConstraint(
            "partner_bonus_changes BETWEEN 0 AND 3",
            name="partner_bonus_changes_range",
        ),
        CheckConstraint(
            "(status = 'waiting') = (partner_user_id IS NULL) OR status = 'abandoned'",
            name="partner_matches_status",
        ),
        Index("idx_game_sessions_creator_status", "creator_user_id", "status"),
        Index("idx_game_sessions_partner_status", "partner_user_id", "status"),
        Index("idx_game_sessions_status_created", "status", "created_at"),
    )

    code: Mapped[str] = mapped_column(String(6), primary_key=True)
    creator_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    creator_gender: Mapped[str] = mapped_column(String(16), nullable=False)
    partner_user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    partner_gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    challenge_count: Mapped[int] = mapped_column(Integer, nullable=False)
    start_intensity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_challenge_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_player: Mapped[str] = mapped_column(String(16), nullable=False, default="creator")
    challenges: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False)
    creator_preferences: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument, nullable=True
    )
    partner_preferences: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument, nullable=True
    )
    creator_changes_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    partner_changes_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    creator_bonus_changes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    partner_bonus_changes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_challenge_created_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    pending_challenge_for_player: Mapped[str | None] = mapped_column(String(16), nullable=True)
    pending_challenge_created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Every UPDATE/DELETE is guarded by the version it was read at.
    __mapper_args__ = {"version_id_col": version}
