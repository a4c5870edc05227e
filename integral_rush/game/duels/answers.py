from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.game.duels.constants import (
    DUEL_PHASE_PLAYING,
    DUEL_PHASE_RESULT,
    DUEL_SEAT_HOST,
    DUEL_SEAT_OPPONENT,
    DUEL_STATUS_COMPLETED,
    DUEL_STATUS_IN_PROGRESS,
    is_duel_terminal_status,
)
from integral_rush.game.duels.errors import (
    DuelAlreadyAnsweredError,
    DuelNoActiveQuestionError,
    DuelNotStartedError,
)
from integral_rush.game.duels.internal import (
    apply_if_status,
    budget_leader_id,
    build_duel_snapshot,
    completion_values,
    get_room_for_read,
    resolve_seat,
    seat_user_id,
)
from integral_rush.game.duels.types import DuelAnswerResult
from integral_rush.game.errors import UpstreamUnavailableError
from integral_rush.game.judging.errors import AnswerJudgeUnavailableError
from integral_rush.game.judging.judge import AnswerJudge
from integral_rush.game.judging.types import AnswerVerdict
from integral_rush.game.problems.types import IntegralProblem

logger = structlog.get_logger(__name__)


def _answered_current_question(room: DuelRoom, *, seat: str) -> bool:
    question_no = int(room.question_no)
    return question_no > 0 and int(getattr(room, f"{seat}_answered_question")) == question_no


def _seconds_since_question_start(room: DuelRoom, *, now_utc: datetime) -> float:
    if room.question_started_at is None:
        return 0.0
    return round(max(0.0, (now_utc - room.question_started_at).total_seconds()), 3)


async def _judge_answer(
    judge: AnswerJudge,
    *,
    room_code: str,
    answer: str,
    problem: IntegralProblem,
) -> AnswerVerdict:
    try:
        return await judge.evaluate(
            answer=answer,
            solution=problem.solution,
            alternatives=problem.alternatives,
        )
    except UpstreamUnavailableError:
        logger.warning("answer_judge_unavailable", room_code=room_code, problem_id=problem.problem_id)
        raise
    except Exception as exc:
        logger.warning(
            "answer_judge_unavailable",
            room_code=room_code,
            problem_id=problem.problem_id,
            error=type(exc).__name__,
        )
        raise AnswerJudgeUnavailableError from exc


async def submit_answer(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    code: str,
    caller_id: int,
    answer: str,
    judge: AnswerJudge,
    now_utc: datetime,
) -> DuelAnswerResult:
    """Judges an answer between two short transactions.

    The judge runs with no transaction open and holds no lock on the room or
    the database. The write re-checks the question number and the answered
    marker; a room that finished meanwhile turns the answer into a no-op.
    """
    async with session_factory.begin() as session:
        room = await get_room_for_read(session, code=code)
        seat = resolve_seat(room, user_id=caller_id)
        if is_duel_terminal_status(room.status):
            return DuelAnswerResult(
                snapshot=build_duel_snapshot(room),
                applied=False,
                is_correct=None,
                feedback=None,
                completed_now=False,
            )
        if room.status != DUEL_STATUS_IN_PROGRESS:
            raise DuelNotStartedError
        if _answered_current_question(room, seat=seat):
            raise DuelAlreadyAnsweredError
        if room.phase != DUEL_PHASE_PLAYING or room.current_problem is None:
            raise DuelNoActiveQuestionError
        question_no = int(room.question_no)
        problem = IntegralProblem.from_payload(room.current_problem)

    verdict = await _judge_answer(judge, room_code=code, answer=answer, problem=problem)

    def _record_answer(current: DuelRoom) -> dict[str, Any]:
        if int(current.question_no) != question_no:
            raise DuelNoActiveQuestionError
        if _answered_current_question(current, seat=seat):
            raise DuelAlreadyAnsweredError
        if current.phase != DUEL_PHASE_PLAYING:
            raise DuelNoActiveQuestionError

        scores = {
            DUEL_SEAT_HOST: int(current.host_score),
            DUEL_SEAT_OPPONENT: int(current.opponent_score),
        }
        if verdict.is_correct:
            scores[seat] += 1
        values: dict[str, Any] = {
            f"{seat}_answered_question": question_no,
            f"{seat}_score": scores[seat],
            "answer_log": [
                *(current.answer_log or []),
                {
                    "question_no": question_no,
                    "seat": seat,
                    "is_correct": verdict.is_correct,
                    "seconds": _seconds_since_question_start(current, now_utc=now_utc),
                },
            ],
        }

        winner_id: int | None = None
        if verdict.is_correct and scores[seat] >= int(current.questions_to_win):
            winner_id = seat_user_id(current, seat=seat)
        else:
            winner_id = budget_leader_id(
                current,
                host_score=scores[DUEL_SEAT_HOST],
                opponent_score=scores[DUEL_SEAT_OPPONENT],
                question_no=question_no,
            )
        if winner_id is not None:
            values.update(completion_values(winner_id=winner_id, now_utc=now_utc))
        else:
            values["phase"] = DUEL_PHASE_RESULT
        return values

    async with session_factory.begin() as session:
        room = await get_room_for_read(session, code=code)
        if is_duel_terminal_status(room.status):
            return DuelAnswerResult(
                snapshot=build_duel_snapshot(room),
                applied=False,
                is_correct=None,
                feedback=None,
                completed_now=False,
            )
        room, _ = await apply_if_status(
            session,
            code=code,
            expected_status=DUEL_STATUS_IN_PROGRESS,
            mutation=_record_answer,
            now_utc=now_utc,
        )
        snapshot = build_duel_snapshot(room)
    completed_now = room.status == DUEL_STATUS_COMPLETED
    logger.info(
        "duel_answer_recorded",
        room_code=code,
        seat=seat,
        question_no=question_no,
        is_correct=verdict.is_correct,
        completed_now=completed_now,
    )
    return DuelAnswerResult(
        snapshot=snapshot,
        applied=True,
        is_correct=verdict.is_correct,
        feedback=verdict.feedback,
        completed_now=completed_now,
    )
