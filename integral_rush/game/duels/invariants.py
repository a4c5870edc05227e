from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.repo.duel_rooms_repo import DuelRoomsRepo
from integral_rush.game.duels.constants import (
    DUEL_PHASE_FINISHED,
    DUEL_STATUS_ABANDONED,
    DUEL_STATUS_COMPLETED,
    DUEL_STATUS_IN_PROGRESS,
    DUEL_STATUS_WAITING,
    is_duel_terminal_status,
)
from integral_rush.game.duels.errors import DuelInvariantViolationError

logger = structlog.get_logger(__name__)

_KNOWN_STATUSES = frozenset(
    {
        DUEL_STATUS_WAITING,
        DUEL_STATUS_IN_PROGRESS,
        DUEL_STATUS_COMPLETED,
        DUEL_STATUS_ABANDONED,
    }
)


def collect_room_violations(room: DuelRoom) -> tuple[str, ...]:
    violations: list[str] = []
    seats = {int(room.host_id)}
    if room.opponent_id is not None:
        if int(room.opponent_id) == int(room.host_id):
            violations.append("seats_not_distinct")
        seats.add(int(room.opponent_id))

    if room.status not in _KNOWN_STATUSES:
        violations.append("unknown_status")
    if room.status == DUEL_STATUS_WAITING and room.opponent_id is not None:
        violations.append("waiting_with_opponent")
    if room.status == DUEL_STATUS_IN_PROGRESS and room.opponent_id is None:
        violations.append("in_progress_without_opponent")

    if room.status == DUEL_STATUS_COMPLETED:
        if room.winner_id is None:
            violations.append("completed_without_winner")
        elif int(room.winner_id) not in seats:
            violations.append("winner_not_a_seat")
    elif room.winner_id is not None:
        violations.append("winner_without_completion")

    target = int(room.questions_to_win)
    for seat_score in (int(room.host_score), int(room.opponent_score)):
        if seat_score < 0 or seat_score > target:
            violations.append("score_out_of_bounds")
        elif seat_score == target and room.status != DUEL_STATUS_COMPLETED:
            violations.append("target_reached_without_completion")

    for remaining in (int(room.host_time_remaining), int(room.opponent_time_remaining)):
        if remaining < 0 or remaining > int(room.time_control):
            violations.append("clock_out_of_bounds")
    return tuple(dict.fromkeys(violations))


def assert_room_consistent(room: DuelRoom) -> None:
    if is_duel_terminal_status(room.status):
        return
    violations = collect_room_violations(room)
    if not violations:
        return
    logger.error(
        "duel_room_invariant_violation",
        room_code=room.code,
        status=room.status,
        violations=list(violations),
    )
    raise DuelInvariantViolationError(room.code, violations)


async def quarantine_room(session: AsyncSession, *, code: str, now_utc: datetime) -> bool:
    """Forces a room that fails its invariants into ABANDONED so it stops taking mutations."""
    room = await DuelRoomsRepo.get_by_code_for_update(session, code)
    if room is None or is_duel_terminal_status(room.status):
        return False
    violations = collect_room_violations(room)
    if not violations:
        return False
    applied = await DuelRoomsRepo.update_if_version(
        session,
        code=code,
        expected_version=int(room.version),
        expected_status=room.status,
        values={
            "status": DUEL_STATUS_ABANDONED,
            "phase": DUEL_PHASE_FINISHED,
            "winner_id": None,
            "completed_at": now_utc,
            "updated_at": now_utc,
        },
    )
    if applied:
        await session.refresh(room)
        logger.error(
            "duel_room_quarantined",
            room_code=code,
            violations=list(violations),
        )
    return applied
