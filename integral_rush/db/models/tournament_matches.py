from __future__ import annotations

from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from integral_rush.db.models.base import Base


class TournamentMatch(Base):
    __tablename__ = "tournament_matches"
    __table_args__ = (
        CheckConstraint("round_no >= 1", name="ck_tournament_matches_round_no_positive"),
        CheckConstraint(
            "status IN ('SCHEDULED','IN_PROGRESS','COMPLETED','WALKOVER')",
            name="ck_tournament_matches_status",
        ),
        CheckConstraint(
            "user_b IS NULL OR user_a <> user_b",
            name="ck_tournament_matches_no_self_pair",
        ),
        Index(
            "idx_tournament_matches_tournament_round_status",
            "tournament_code",
            "round_no",
            "status",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    tournament_code: Mapped[str] = mapped_column(
        String(6),
        ForeignKey("tournament_rooms.code"),
        nullable=False,
    )
    round_no: Mapped[int] = mapped_column(Integer, nullable=False)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
    user_a: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_b: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    duel_room_code: Mapped[str | None] = mapped_column(
        String(6),
        ForeignKey("duel_rooms.code"),
        unique=True,
        nullable=True,
    )
    score_a: Mapped[int] = mapped_column(Integer, nullable=False)
    score_b: Mapped[int] = mapped_column(Integer, nullable=False)
    winner_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
