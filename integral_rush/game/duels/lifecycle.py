from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.game.duels.constants import (
    DUEL_PHASE_FINISHED,
    DUEL_STATUS_ABANDONED,
    DUEL_STATUS_WAITING,
    is_duel_terminal_status,
)
from integral_rush.game.duels.errors import DuelCancelNotAllowedError, DuelRoomConflictError
from integral_rush.game.duels.internal import (
    apply_if_status,
    build_duel_snapshot,
    get_room_or_raise,
    resolve_seat,
)
from integral_rush.game.duels.types import DuelAbandonResult

logger = structlog.get_logger(__name__)


def _abandon_values(now_utc: datetime) -> dict[str, Any]:
    return {
        "status": DUEL_STATUS_ABANDONED,
        "phase": DUEL_PHASE_FINISHED,
        "completed_at": now_utc,
    }


async def abandon_duel_room(
    session: AsyncSession,
    *,
    code: str,
    now_utc: datetime,
    caller_id: int | None = None,
) -> DuelAbandonResult:
    """Forces a room to ABANDONED.

    Without ``caller_id`` this is the out-of-band abandonment signal and works
    on any live room. A seat may only cancel a room that has not started yet.
    """
    room = await get_room_or_raise(session, code=code)
    if caller_id is not None:
        resolve_seat(room, user_id=caller_id)
    if is_duel_terminal_status(room.status):
        return DuelAbandonResult(snapshot=build_duel_snapshot(room), applied=False)
    if caller_id is not None and room.status != DUEL_STATUS_WAITING:
        raise DuelCancelNotAllowedError

    def _abandon(current: DuelRoom) -> dict[str, Any]:
        return _abandon_values(now_utc)

    room, _ = await apply_if_status(
        session,
        code=code,
        expected_status=room.status,
        mutation=_abandon,
        now_utc=now_utc,
        conflict_error=DuelCancelNotAllowedError if caller_id is not None else DuelRoomConflictError,
    )
    logger.info("duel_room_abandoned", room_code=code, caller_id=caller_id)
    return DuelAbandonResult(snapshot=build_duel_snapshot(room), applied=True)
