from __future__ import annotations

import random
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from integral_rush.game.duels.constants import (
    DUEL_QUESTIONS_TO_WIN_DEFAULT,
    DUEL_TIME_CONTROL_DEFAULT_SECONDS,
)
from integral_rush.game.duels.service import (
    abandon_duel_room,
    advance_to_next_question,
    create_duel_room,
    get_duel_state,
    join_duel_room,
    quarantine_room,
    submit_answer,
    tick_timer,
)
from integral_rush.game.duels.types import (
    DuelAbandonResult,
    DuelAnswerResult,
    DuelQuestionResult,
    DuelRoomSnapshot,
    DuelTickResult,
)
from integral_rush.game.judging.judge import AnswerJudge
from integral_rush.game.problems.catalog import ProblemCatalog
from integral_rush.game.problems.constants import DIFFICULTY_MIXED


class DuelServiceFacade:
    """Facade for duel room operations used by the polling gateway."""

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        host_id: int,
        now_utc: datetime,
        time_control: int = DUEL_TIME_CONTROL_DEFAULT_SECONDS,
        difficulty: str = DIFFICULTY_MIXED,
        questions_to_win: int = DUEL_QUESTIONS_TO_WIN_DEFAULT,
    ) -> DuelRoomSnapshot:
        return await create_duel_room(
            session,
            host_id=host_id,
            now_utc=now_utc,
            time_control=time_control,
            difficulty=difficulty,
            questions_to_win=questions_to_win,
        )

    @staticmethod
    async def join(
        session: AsyncSession,
        *,
        code: str,
        opponent_id: int,
        now_utc: datetime,
    ) -> DuelRoomSnapshot:
        return await join_duel_room(session, code=code, opponent_id=opponent_id, now_utc=now_utc)

    @staticmethod
    async def get_state(
        session: AsyncSession,
        *,
        code: str,
        viewer_id: int,
    ) -> DuelRoomSnapshot:
        return await get_duel_state(session, code=code, viewer_id=viewer_id)

    @staticmethod
    async def advance(
        session_factory: async_sessionmaker[AsyncSession],
        *,
        code: str,
        caller_id: int,
        catalog: ProblemCatalog,
        now_utc: datetime,
        rng: random.Random | None = None,
    ) -> DuelQuestionResult:
        return await advance_to_next_question(
            session_factory,
            code=code,
            caller_id=caller_id,
            catalog=catalog,
            now_utc=now_utc,
            rng=rng,
        )

    @staticmethod
    async def submit(
        session_factory: async_sessionmaker[AsyncSession],
        *,
        code: str,
        caller_id: int,
        answer: str,
        judge: AnswerJudge,
        now_utc: datetime,
    ) -> DuelAnswerResult:
        return await submit_answer(
            session_factory,
            code=code,
            caller_id=caller_id,
            answer=answer,
            judge=judge,
            now_utc=now_utc,
        )

    @staticmethod
    async def tick(
        session: AsyncSession,
        *,
        code: str,
        caller_id: int,
        now_utc: datetime,
    ) -> DuelTickResult:
        return await tick_timer(session, code=code, caller_id=caller_id, now_utc=now_utc)

    @staticmethod
    async def abandon(
        session: AsyncSession,
        *,
        code: str,
        now_utc: datetime,
        caller_id: int | None = None,
    ) -> DuelAbandonResult:
        return await abandon_duel_room(session, code=code, now_utc=now_utc, caller_id=caller_id)

    @staticmethod
    async def quarantine(session: AsyncSession, *, code: str, now_utc: datetime) -> bool:
        return await quarantine_room(session, code=code, now_utc=now_utc)
