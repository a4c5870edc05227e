from __future__ import annotations

import random
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.game.problems.constants import DIFFICULTY_MIXED
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_DEFAULT_MAX_PARTICIPANTS,
    TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH,
    TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS,
    TOURNAMENT_FORMAT_ROUND_ROBIN,
)
from integral_rush.game.tournaments.service import (
    abandon_tournament,
    create_tournament,
    get_leaderboard,
    get_tournament,
    join_tournament,
    start_tournament,
    sync_tournament,
)
from integral_rush.game.tournaments.types import (
    TournamentAbandonResult,
    TournamentJoinResult,
    TournamentLobbySnapshot,
    TournamentSnapshot,
    TournamentStandingEntry,
    TournamentStartResult,
    TournamentSyncResult,
)


class TournamentServiceFacade:
    """Facade for tournament orchestration used by the polling gateway and workers."""

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        host_id: int,
        now_utc: datetime,
        format_code: str = TOURNAMENT_FORMAT_ROUND_ROBIN,
        max_players: int = TOURNAMENT_DEFAULT_MAX_PARTICIPANTS,
        difficulty: str = DIFFICULTY_MIXED,
        questions_per_match: int = TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH,
        time_per_question: int = TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS,
    ) -> TournamentSnapshot:
        return await create_tournament(
            session,
            host_id=host_id,
            now_utc=now_utc,
            format_code=format_code,
            max_players=max_players,
            difficulty=difficulty,
            questions_per_match=questions_per_match,
            time_per_question=time_per_question,
        )

    @staticmethod
    async def join(
        session: AsyncSession,
        *,
        code: str,
        user_id: int,
        now_utc: datetime,
    ) -> TournamentJoinResult:
        return await join_tournament(session, code=code, user_id=user_id, now_utc=now_utc)

    @staticmethod
    async def start(
        session: AsyncSession,
        *,
        code: str,
        caller_id: int,
        now_utc: datetime,
        rng: random.Random | None = None,
    ) -> TournamentStartResult:
        return await start_tournament(
            session,
            code=code,
            caller_id=caller_id,
            now_utc=now_utc,
            rng=rng,
        )

    @staticmethod
    async def sync(session: AsyncSession, *, code: str, now_utc: datetime) -> TournamentSyncResult:
        return await sync_tournament(session, code=code, now_utc=now_utc)

    @staticmethod
    async def poll(
        session: AsyncSession,
        *,
        code: str,
        viewer_id: int,
        now_utc: datetime,
    ) -> TournamentLobbySnapshot:
        await sync_tournament(session, code=code, now_utc=now_utc)
        return await get_tournament(session, code=code, viewer_id=viewer_id)

    @staticmethod
    async def leaderboard(session: AsyncSession, *, code: str) -> list[TournamentStandingEntry]:
        return await get_leaderboard(session, code=code)

    @staticmethod
    async def abandon(
        session: AsyncSession,
        *,
        code: str,
        caller_id: int,
        now_utc: datetime,
    ) -> TournamentAbandonResult:
        return await abandon_tournament(session, code=code, caller_id=caller_id, now_utc=now_utc)
