from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from integral_rush.game.duels.constants import DUEL_TIME_CONTROL_DEFAULT_SECONDS
from integral_rush.game.problems.constants import DIFFICULTY_MIXED

from .duels_models import DuelRoomResponse


class MatchmakingJoinRequest(BaseModel):
    time_control: int = Field(default=DUEL_TIME_CONTROL_DEFAULT_SECONDS, gt=0)
    difficulty: str = Field(default=DIFFICULTY_MIXED, min_length=1, max_length=16)


class QueueEntryResponse(BaseModel):
    user_id: int
    time_control: int
    difficulty: str
    enqueued_at: datetime


class MatchmakingStatusResponse(BaseModel):
    state: str
    entry: QueueEntryResponse | None = None
    room: DuelRoomResponse | None = None


class MatchmakingLeaveResponse(BaseModel):
    removed: bool
