from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from integral_rush.db.models.base import Base, UTCDateTime


class TournamentRoom(Base):
    __tablename__ = "tournament_rooms"
    __table_args__ = (
        CheckConstraint(
            "status IN ('WAITING','IN_PROGRESS','COMPLETED','ABANDONED')",
            name="ck_tournament_rooms_status",
        ),
        CheckConstraint(
            "format IN ('ROUND_ROBIN','KNOCKOUT')",
            name="ck_tournament_rooms_format",
        ),
        CheckConstraint(
            "difficulty IN ('Basic','Intermediate','Advanced','Mixed')",
            name="ck_tournament_rooms_difficulty",
        ),
        CheckConstraint(
            "max_players >= 2 AND max_players <= 16",
            name="ck_tournament_rooms_max_players_range",
        ),
        CheckConstraint("current_round >= 0", name="ck_tournament_rooms_current_round_non_negative"),
        CheckConstraint(
            "(status = 'COMPLETED') = (champion_id IS NOT NULL)",
            name="ck_tournament_rooms_champion_iff_completed",
        ),
        Index("idx_tournament_rooms_status_created", "status", "created_at"),
    )

    code: Mapped[str] = mapped_column(String(6), primary_key=True)
    host_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    format: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    max_players: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    questions_per_match: Mapped[int] = mapped_column(Integer, nullable=False)
    time_per_question: Mapped[int] = mapped_column(Integer, nullable=False)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False)
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False)
    champion_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    __mapper_args__ = {"version_id_col": version}
