from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from integral_rush.game.duels.types import DuelRoomSnapshot


@dataclass(slots=True)
class QueueEntrySnapshot:
    user_id: int
    time_control: int
    difficulty: str
    enqueued_at: datetime


@dataclass(slots=True)
class MatchmakingStatus:
    state: str
    entry: QueueEntrySnapshot | None
    room: DuelRoomSnapshot | None


@dataclass(slots=True)
class QueueLeaveResult:
    removed: bool


@dataclass(slots=True)
class MatchmakingSweepResult:
    examined: int
    rooms_created: int
