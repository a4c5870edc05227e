from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.repo.duel_rooms_repo import DuelRoomsRepo
from integral_rush.game.duels.errors import DuelRoomNotFoundError
from integral_rush.game.duels.internal import build_duel_snapshot, resolve_seat
from integral_rush.game.duels.types import DuelRoomSnapshot


async def get_duel_state(
    session: AsyncSession,
    *,
    code: str,
    viewer_id: int,
) -> DuelRoomSnapshot:
    room = await DuelRoomsRepo.get_by_code(session, code)
    if room is None:
        raise DuelRoomNotFoundError
    # A room still missing its opponent is readable by anyone holding the code.
    if room.opponent_id is not None:
        resolve_seat(room, user_id=viewer_id)
    return build_duel_snapshot(room)
