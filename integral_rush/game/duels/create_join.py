from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.repo.duel_rooms_repo import DuelRoomsRepo
from integral_rush.game.duels.constants import (
    DUEL_PHASE_COUNTDOWN,
    DUEL_QUESTIONS_TO_WIN_DEFAULT,
    DUEL_SOURCE_PRIVATE,
    DUEL_STATUS_IN_PROGRESS,
    DUEL_STATUS_WAITING,
    DUEL_TIME_CONTROL_DEFAULT_SECONDS,
    clamp_questions_to_win,
    clamp_time_control,
)
from integral_rush.game.duels.errors import (
    DuelAlreadyStartedError,
    DuelInvalidConfigError,
    DuelRoomFullError,
    DuelSelfJoinError,
)
from integral_rush.game.duels.internal import (
    apply_if_status,
    build_duel_room,
    build_duel_snapshot,
    generate_duel_room_code,
    get_room_or_raise,
)
from integral_rush.game.duels.types import DuelConfig, DuelRoomSnapshot
from integral_rush.game.problems.constants import DIFFICULTY_MIXED, is_valid_difficulty

logger = structlog.get_logger(__name__)


def resolve_private_config(
    *,
    time_control: int = DUEL_TIME_CONTROL_DEFAULT_SECONDS,
    difficulty: str = DIFFICULTY_MIXED,
    questions_to_win: int = DUEL_QUESTIONS_TO_WIN_DEFAULT,
) -> DuelConfig:
    if not is_valid_difficulty(difficulty):
        raise DuelInvalidConfigError(f"unknown difficulty {difficulty!r}")
    return DuelConfig(
        time_control=clamp_time_control(time_control),
        difficulty=difficulty,
        questions_to_win=clamp_questions_to_win(questions_to_win),
    )


async def create_duel_room(
    session: AsyncSession,
    *,
    host_id: int,
    now_utc: datetime,
    time_control: int = DUEL_TIME_CONTROL_DEFAULT_SECONDS,
    difficulty: str = DIFFICULTY_MIXED,
    questions_to_win: int = DUEL_QUESTIONS_TO_WIN_DEFAULT,
) -> DuelRoomSnapshot:
    config = resolve_private_config(
        time_control=time_control,
        difficulty=difficulty,
        questions_to_win=questions_to_win,
    )
    code = await generate_duel_room_code(session)
    room = await DuelRoomsRepo.create(
        session,
        room=build_duel_room(
            code=code,
            source=DUEL_SOURCE_PRIVATE,
            status=DUEL_STATUS_WAITING,
            phase=None,
            host_id=host_id,
            opponent_id=None,
            config=config,
            now_utc=now_utc,
            started_at=None,
        ),
    )
    logger.info(
        "duel_room_created",
        room_code=code,
        host_id=host_id,
        time_control=config.time_control,
        difficulty=config.difficulty,
        questions_to_win=config.questions_to_win,
    )
    return build_duel_snapshot(room)


async def create_started_room(
    session: AsyncSession,
    *,
    source: str,
    host_id: int,
    opponent_id: int,
    config: DuelConfig,
    now_utc: datetime,
) -> DuelRoom:
    """Creates a room with both seats filled, skipping WAITING."""
    if host_id == opponent_id:
        raise DuelSelfJoinError
    code = await generate_duel_room_code(session)
    room = await DuelRoomsRepo.create(
        session,
        room=build_duel_room(
            code=code,
            source=source,
            status=DUEL_STATUS_IN_PROGRESS,
            phase=DUEL_PHASE_COUNTDOWN,
            host_id=host_id,
            opponent_id=opponent_id,
            config=config,
            now_utc=now_utc,
            started_at=now_utc,
        ),
    )
    logger.info(
        "duel_room_started",
        room_code=code,
        source=source,
        host_id=host_id,
        opponent_id=opponent_id,
    )
    return room


async def join_duel_room(
    session: AsyncSession,
    *,
    code: str,
    opponent_id: int,
    now_utc: datetime,
) -> DuelRoomSnapshot:
    current = await get_room_or_raise(session, code=code)
    if current.status != DUEL_STATUS_WAITING:
        if current.opponent_id is not None:
            raise DuelRoomFullError
        raise DuelAlreadyStartedError

    def _fill_opponent_seat(room: DuelRoom) -> dict[str, Any]:
        if room.opponent_id is not None:
            raise DuelRoomFullError
        if int(room.host_id) == opponent_id:
            raise DuelSelfJoinError
        return {
            "opponent_id": opponent_id,
            "status": DUEL_STATUS_IN_PROGRESS,
            "phase": DUEL_PHASE_COUNTDOWN,
            "started_at": now_utc,
        }

    room, _ = await apply_if_status(
        session,
        code=code,
        expected_status=DUEL_STATUS_WAITING,
        mutation=_fill_opponent_seat,
        now_utc=now_utc,
        conflict_error=DuelRoomFullError,
    )
    logger.info("duel_room_joined", room_code=code, opponent_id=opponent_id)
    return build_duel_snapshot(room)
