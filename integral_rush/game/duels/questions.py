from __future__ import annotations

import random
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.game.duels.constants import (
    DUEL_ADVANCEABLE_PHASES,
    DUEL_PHASE_PLAYING,
    DUEL_STATUS_IN_PROGRESS,
    is_duel_terminal_status,
)
from integral_rush.game.duels.errors import DuelNotStartedError, DuelRoomConflictError
from integral_rush.game.duels.internal import (
    apply_if_status,
    budget_leader_id,
    build_duel_snapshot,
    completion_values,
    get_room_for_read,
    resolve_seat,
)
from integral_rush.game.duels.types import DuelQuestionResult
from integral_rush.game.errors import UpstreamUnavailableError
from integral_rush.game.problems.catalog import ProblemCatalog, resolve_concrete_difficulty
from integral_rush.game.problems.errors import ProblemCatalogUnavailableError
from integral_rush.game.problems.types import IntegralProblem

logger = structlog.get_logger(__name__)


def _has_active_question(room: DuelRoom) -> bool:
    return room.phase == DUEL_PHASE_PLAYING and room.current_problem is not None


def _current_problem(room: DuelRoom) -> IntegralProblem | None:
    if room.current_problem is None:
        return None
    return IntegralProblem.from_payload(room.current_problem)


async def _pull_problem(
    catalog: ProblemCatalog,
    *,
    room_code: str,
    difficulty: str,
    rng: random.Random | None,
) -> IntegralProblem:
    tier = resolve_concrete_difficulty(difficulty, rng=rng)
    try:
        return await catalog.get_random(tier)
    except UpstreamUnavailableError:
        logger.warning("problem_catalog_unavailable", room_code=room_code, difficulty=tier)
        raise
    except Exception as exc:
        logger.warning(
            "problem_catalog_unavailable",
            room_code=room_code,
            difficulty=tier,
            error=type(exc).__name__,
        )
        raise ProblemCatalogUnavailableError from exc


async def advance_to_next_question(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    code: str,
    caller_id: int,
    catalog: ProblemCatalog,
    now_utc: datetime,
    rng: random.Random | None = None,
) -> DuelQuestionResult:
    async with session_factory.begin() as session:
        room = await get_room_for_read(session, code=code)
        resolve_seat(room, user_id=caller_id)
        if is_duel_terminal_status(room.status) or _has_active_question(room):
            return DuelQuestionResult(
                snapshot=build_duel_snapshot(room),
                problem=_current_problem(room),
                issued_now=False,
            )
        if room.status != DUEL_STATUS_IN_PROGRESS:
            raise DuelNotStartedError
        difficulty = room.difficulty

    # The catalog is called with no transaction open.
    problem = await _pull_problem(
        catalog,
        room_code=code,
        difficulty=difficulty,
        rng=rng,
    )

    def _issue_question(current: DuelRoom) -> dict[str, Any] | None:
        if _has_active_question(current):
            return None
        if current.phase not in DUEL_ADVANCEABLE_PHASES:
            raise DuelRoomConflictError
        question_no = int(current.question_no)
        leader_id = budget_leader_id(
            current,
            host_score=int(current.host_score),
            opponent_score=int(current.opponent_score),
            question_no=question_no,
        )
        if leader_id is not None:
            return completion_values(winner_id=leader_id, now_utc=now_utc)
        return {
            "phase": DUEL_PHASE_PLAYING,
            "current_problem": problem.to_payload(),
            "question_started_at": now_utc,
            "question_no": question_no + 1,
        }

    async with session_factory.begin() as session:
        room = await get_room_for_read(session, code=code)
        if is_duel_terminal_status(room.status):
            return DuelQuestionResult(
                snapshot=build_duel_snapshot(room),
                problem=_current_problem(room),
                issued_now=False,
            )
        room, applied = await apply_if_status(
            session,
            code=code,
            expected_status=DUEL_STATUS_IN_PROGRESS,
            mutation=_issue_question,
            now_utc=now_utc,
        )
    issued_now = applied and room.status == DUEL_STATUS_IN_PROGRESS
    if issued_now:
        logger.info(
            "duel_question_issued",
            room_code=code,
            question_no=int(room.question_no),
            problem_id=problem.problem_id,
        )
    elif applied:
        logger.info("duel_room_budget_settled", room_code=code, winner_id=room.winner_id)
    return DuelQuestionResult(
        snapshot=build_duel_snapshot(room),
        problem=_current_problem(room),
        issued_now=issued_now,
    )
