from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.core.config import get_settings
from integral_rush.core.room_codes import generate_room_code
from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.repo.duel_rooms_repo import DuelRoomsRepo
from integral_rush.game.duels.constants import (
    DUEL_CAS_MAX_ATTEMPTS,
    DUEL_PHASE_FINISHED,
    DUEL_SEAT_HOST,
    DUEL_SEAT_OPPONENT,
    DUEL_STATUS_COMPLETED,
)
from integral_rush.game.duels.errors import (
    DuelAccessError,
    DuelRoomConflictError,
    DuelRoomNotFoundError,
    RoomCodeExhaustedError,
)
from integral_rush.game.duels.invariants import assert_room_consistent
from integral_rush.game.duels.types import DuelAnswerLogEntry, DuelConfig, DuelRoomSnapshot
from integral_rush.game.problems.types import IntegralProblem

logger = structlog.get_logger(__name__)

RoomMutation = Callable[[DuelRoom], dict[str, Any] | None]


def build_duel_snapshot(room: DuelRoom) -> DuelRoomSnapshot:
    question_no = int(room.question_no)
    return DuelRoomSnapshot(
        code=room.code,
        source=room.source,
        status=room.status,
        phase=room.phase,
        host_id=int(room.host_id),
        opponent_id=(int(room.opponent_id) if room.opponent_id is not None else None),
        time_control=int(room.time_control),
        difficulty=room.difficulty,
        questions_to_win=int(room.questions_to_win),
        question_budget=room.question_budget,
        host_score=int(room.host_score),
        opponent_score=int(room.opponent_score),
        host_time_remaining=int(room.host_time_remaining),
        opponent_time_remaining=int(room.opponent_time_remaining),
        question_no=question_no,
        current_problem=(
            IntegralProblem.from_payload(room.current_problem)
            if room.current_problem is not None
            else None
        ),
        question_started_at=room.question_started_at,
        host_answered=question_no > 0 and int(room.host_answered_question) == question_no,
        opponent_answered=question_no > 0 and int(room.opponent_answered_question) == question_no,
        answer_log=tuple(
            DuelAnswerLogEntry(
                question_no=int(item["question_no"]),
                seat=str(item["seat"]),
                is_correct=bool(item["is_correct"]),
                seconds=float(item["seconds"]),
            )
            for item in (room.answer_log or [])
        ),
        winner_id=(int(room.winner_id) if room.winner_id is not None else None),
        created_at=room.created_at,
        started_at=room.started_at,
        completed_at=room.completed_at,
        version=int(room.version),
    )


def resolve_seat(room: DuelRoom, *, user_id: int) -> str:
    if int(room.host_id) == user_id:
        return DUEL_SEAT_HOST
    if room.opponent_id is not None and int(room.opponent_id) == user_id:
        return DUEL_SEAT_OPPONENT
    raise DuelAccessError


def seat_user_id(room: DuelRoom, *, seat: str) -> int | None:
    if seat == DUEL_SEAT_HOST:
        return int(room.host_id)
    return int(room.opponent_id) if room.opponent_id is not None else None


def other_seat(seat: str) -> str:
    return DUEL_SEAT_OPPONENT if seat == DUEL_SEAT_HOST else DUEL_SEAT_HOST


def budget_leader_id(
    room: DuelRoom,
    *,
    host_score: int,
    opponent_score: int,
    question_no: int,
) -> int | None:
    """Returns the leader once the question budget is spent, or None while tied or within budget."""
    budget = room.question_budget
    if budget is None or question_no < int(budget) or host_score == opponent_score:
        return None
    if host_score > opponent_score:
        return int(room.host_id)
    return int(room.opponent_id) if room.opponent_id is not None else None


def completion_values(*, winner_id: int, now_utc: datetime) -> dict[str, Any]:
    return {
        "status": DUEL_STATUS_COMPLETED,
        "phase": DUEL_PHASE_FINISHED,
        "winner_id": winner_id,
        "completed_at": now_utc,
    }


def build_duel_room(
    *,
    code: str,
    source: str,
    status: str,
    phase: str | None,
    host_id: int,
    opponent_id: int | None,
    config: DuelConfig,
    now_utc: datetime,
    started_at: datetime | None,
) -> DuelRoom:
    return DuelRoom(
        code=code,
        source=source,
        status=status,
        phase=phase,
        host_id=host_id,
        opponent_id=opponent_id,
        time_control=config.time_control,
        difficulty=config.difficulty,
        questions_to_win=config.questions_to_win,
        question_budget=config.question_budget,
        host_score=0,
        opponent_score=0,
        host_time_remaining=config.time_control,
        opponent_time_remaining=config.time_control,
        question_no=0,
        current_problem=None,
        question_started_at=None,
        host_answered_question=0,
        opponent_answered_question=0,
        answer_log=[],
        winner_id=None,
        version=1,
        created_at=now_utc,
        started_at=started_at,
        completed_at=None,
        updated_at=now_utc,
    )


async def generate_duel_room_code(session: AsyncSession) -> str:
    max_attempts = max(1, int(get_settings().room_code_max_attempts))
    for _ in range(max_attempts):
        code = generate_room_code()
        if not await DuelRoomsRepo.code_exists(session, code):
            return code
    logger.error("duel_room_code_exhausted", attempts=max_attempts)
    raise RoomCodeExhaustedError


async def get_room_or_raise(session: AsyncSession, *, code: str) -> DuelRoom:
    room = await DuelRoomsRepo.get_by_code_for_update(session, code)
    if room is None:
        raise DuelRoomNotFoundError
    assert_room_consistent(room)
    return room


async def get_room_for_read(session: AsyncSession, *, code: str) -> DuelRoom:
    room = await DuelRoomsRepo.get_by_code(session, code)
    if room is None:
        raise DuelRoomNotFoundError
    assert_room_consistent(room)
    return room


async def apply_if_status(
    session: AsyncSession,
    *,
    code: str,
    expected_status: str,
    mutation: RoomMutation,
    now_utc: datetime,
    expected_phases: frozenset[str] | None = None,
    conflict_error: type[DuelRoomConflictError] = DuelRoomConflictError,
) -> tuple[DuelRoom, bool]:
    """Conditionally writes a room mutation keyed by status, phase and version.

    ``mutation`` receives the freshly read room and returns the columns to
    write, ``None`` for a no-op, or raises a typed conflict. A write that
    loses the version race is re-evaluated against the re-read row.
    """
    for attempt in range(1, DUEL_CAS_MAX_ATTEMPTS + 1):
        room = await get_room_or_raise(session, code=code)
        if room.status != expected_status:
            raise conflict_error
        if expected_phases is not None and room.phase not in expected_phases:
            raise conflict_error

        values = mutation(room)
        if values is None:
            return room, False

        applied = await DuelRoomsRepo.update_if_version(
            session,
            code=code,
            expected_version=int(room.version),
            expected_status=expected_status,
            values={**values, "updated_at": now_utc},
        )
        if applied:
            await session.refresh(room)
            return room, True
        logger.info("duel_room_cas_retry", room_code=code, attempt=attempt)

    logger.info("duel_room_conflict", room_code=code, expected_status=expected_status)
    raise conflict_error
