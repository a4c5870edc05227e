from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from integral_rush.db.models.base import Base, UTCDateTime


class DuelQueueEntry(Base):
    __tablename__ = "duel_queue"
    __table_args__ = (
        CheckConstraint(
            "difficulty IN ('Basic','Intermediate','Advanced','Mixed')",
            name="ck_duel_queue_difficulty",
        ),
        CheckConstraint("time_control > 0", name="ck_duel_queue_time_control_positive"),
        Index("idx_duel_queue_config_enqueued", "time_control", "difficulty", "enqueued_at"),
        Index("idx_duel_queue_enqueued", "enqueued_at"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    time_control: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    enqueued_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
