from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.game.duels.constants import (
    DUEL_STATUS_COMPLETED,
    DUEL_STATUS_IN_PROGRESS,
    is_duel_terminal_status,
)
from integral_rush.game.duels.errors import DuelNotStartedError, DuelRoomConflictError
from integral_rush.game.duels.internal import (
    apply_if_status,
    build_duel_snapshot,
    completion_values,
    get_room_or_raise,
    other_seat,
    resolve_seat,
    seat_user_id,
)
from integral_rush.game.duels.types import DuelTickResult

logger = structlog.get_logger(__name__)


async def tick_timer(
    session: AsyncSession,
    *,
    code: str,
    caller_id: int,
    now_utc: datetime,
) -> DuelTickResult:
    room = await get_room_or_raise(session, code=code)
    seat = resolve_seat(room, user_id=caller_id)
    if is_duel_terminal_status(room.status):
        return DuelTickResult(snapshot=build_duel_snapshot(room), applied=False, expired_now=False)
    if room.status != DUEL_STATUS_IN_PROGRESS:
        raise DuelNotStartedError

    clock_column = f"{seat}_time_remaining"

    def _decrement_clock(current: DuelRoom) -> dict[str, Any]:
        remaining = max(0, int(getattr(current, clock_column)) - 1)
        values: dict[str, Any] = {clock_column: remaining}
        if remaining == 0:
            winner_id = seat_user_id(current, seat=other_seat(seat))
            if winner_id is not None:
                values.update(completion_values(winner_id=winner_id, now_utc=now_utc))
        return values

    try:
        room, _ = await apply_if_status(
            session,
            code=code,
            expected_status=DUEL_STATUS_IN_PROGRESS,
            mutation=_decrement_clock,
            now_utc=now_utc,
        )
    except DuelRoomConflictError:
        room = await get_room_or_raise(session, code=code)
        if not is_duel_terminal_status(room.status):
            raise
        return DuelTickResult(snapshot=build_duel_snapshot(room), applied=False, expired_now=False)

    expired_now = room.status == DUEL_STATUS_COMPLETED
    if expired_now:
        logger.info(
            "duel_clock_expired",
            room_code=code,
            expired_seat=seat,
            winner_id=room.winner_id,
        )
    return DuelTickResult(snapshot=build_duel_snapshot(room), applied=True, expired_now=expired_now)
