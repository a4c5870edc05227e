from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.game.matchmaking.service import (
    join_queue,
    leave_queue,
    pair_waiting_entries,
    poll_queue_status,
    purge_stale_entries,
)
from integral_rush.game.matchmaking.types import (
    MatchmakingStatus,
    MatchmakingSweepResult,
    QueueLeaveResult,
)


class MatchmakingServiceFacade:
    """Facade for the matchmaking queue used by the polling gateway and workers."""

    @staticmethod
    async def join_queue(
        session: AsyncSession,
        *,
        user_id: int,
        time_control: int,
        difficulty: str,
        now_utc: datetime,
    ) -> MatchmakingStatus:
        return await join_queue(
            session,
            user_id=user_id,
            time_control=time_control,
            difficulty=difficulty,
            now_utc=now_utc,
        )

    @staticmethod
    async def poll_queue_status(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
        since: datetime | None = None,
    ) -> MatchmakingStatus:
        return await poll_queue_status(session, user_id=user_id, now_utc=now_utc, since=since)

    @staticmethod
    async def leave_queue(session: AsyncSession, *, user_id: int) -> QueueLeaveResult:
        return await leave_queue(session, user_id=user_id)

    @staticmethod
    async def purge_stale_entries(session: AsyncSession, *, now_utc: datetime) -> int:
        return await purge_stale_entries(session, now_utc=now_utc)

    @staticmethod
    async def pair_waiting_entries(
        session: AsyncSession,
        *,
        now_utc: datetime,
    ) -> MatchmakingSweepResult:
        return await pair_waiting_entries(session, now_utc=now_utc)
