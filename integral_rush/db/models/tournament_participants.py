from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, Float, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from integral_rush.db.models.base import Base, UTCDateTime


class TournamentParticipant(Base):
    __tablename__ = "tournament_participants"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_tournament_participants_points_non_negative"),
        CheckConstraint(
            "seconds_spent >= 0",
            name="ck_tournament_participants_seconds_spent_non_negative",
        ),
        Index(
            "idx_tournament_participants_tournament_points",
            "tournament_code",
            "points",
            "seconds_spent",
        ),
    )

    tournament_code: Mapped[str] = mapped_column(
        String(6),
        ForeignKey("tournament_rooms.code"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    seconds_spent: Mapped[float] = mapped_column(Float, nullable=False, server_default=text("0"))
    matches_played: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    wins: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    eliminated_in_round: Mapped[int | None] = mapped_column(Integer, nullable=True)
