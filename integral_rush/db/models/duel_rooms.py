from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from integral_rush.db.models.base import Base, JSONType, UTCDateTime


class DuelRoom(Base):
    __tablename__ = "duel_rooms"
    __table_args__ = (
        CheckConstraint(
            "status IN ('WAITING','IN_PROGRESS','COMPLETED','ABANDONED')",
            name="ck_duel_rooms_status",
        ),
        CheckConstraint(
            "phase IS NULL OR phase IN ('countdown','playing','result','finished')",
            name="ck_duel_rooms_phase",
        ),
        CheckConstraint(
            "source IN ('PRIVATE','MATCHMAKING','TOURNAMENT')",
            name="ck_duel_rooms_source",
        ),
        CheckConstraint(
            "difficulty IN ('Basic','Intermediate','Advanced','Mixed')",
            name="ck_duel_rooms_difficulty",
        ),
        CheckConstraint(
            "opponent_id IS NULL OR opponent_id <> host_id",
            name="ck_duel_rooms_no_self_duel",
        ),
        CheckConstraint("time_control > 0", name="ck_duel_rooms_time_control_positive"),
        CheckConstraint("questions_to_win >= 1", name="ck_duel_rooms_questions_to_win_positive"),
        CheckConstraint("host_score >= 0", name="ck_duel_rooms_host_score_non_negative"),
        CheckConstraint("opponent_score >= 0", name="ck_duel_rooms_opponent_score_non_negative"),
        CheckConstraint(
            "host_time_remaining >= 0",
            name="ck_duel_rooms_host_time_non_negative",
        ),
        CheckConstraint(
            "opponent_time_remaining >= 0",
            name="ck_duel_rooms_opponent_time_non_negative",
        ),
        CheckConstraint(
            "(status = 'COMPLETED') = (winner_id IS NOT NULL)",
            name="ck_duel_rooms_winner_iff_completed",
        ),
        Index("idx_duel_rooms_host_status", "host_id", "status", "created_at"),
        Index("idx_duel_rooms_opponent_status", "opponent_id", "status", "created_at"),
        Index("idx_duel_rooms_status_created", "status", "created_at"),
    )

    code: Mapped[str] = mapped_column(String(6), primary_key=True)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    phase: Mapped[str | None] = mapped_column(String(16), nullable=True)
    host_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    opponent_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    time_control: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    questions_to_win: Mapped[int] = mapped_column(Integer, nullable=False)
    question_budget: Mapped[int | None] = mapped_column(Integer, nullable=True)
    host_score: Mapped[int] = mapped_column(Integer, nullable=False)
    opponent_score: Mapped[int] = mapped_column(Integer, nullable=False)
    host_time_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    opponent_time_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    question_no: Mapped[int] = mapped_column(Integer, nullable=False)
    current_problem: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    question_started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    host_answered_question: Mapped[int] = mapped_column(Integer, nullable=False)
    opponent_answered_question: Mapped[int] = mapped_column(Integer, nullable=False)
    answer_log: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False)
    winner_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
