from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.core.config import get_settings
from integral_rush.db.models.duel_queue import DuelQueueEntry
from integral_rush.db.repo.duel_queue_repo import DuelQueueRepo
from integral_rush.db.repo.duel_rooms_repo import DuelRoomsRepo
from integral_rush.game.duels.constants import DUEL_SOURCE_MATCHMAKING, DUEL_STATUS_IN_PROGRESS
from integral_rush.game.duels.internal import build_duel_snapshot
from integral_rush.game.matchmaking.constants import (
    MATCHMAKING_STATE_IDLE,
    MATCHMAKING_STATE_MATCHED,
    MATCHMAKING_STATE_QUEUED,
    MATCHMAKING_SWEEP_BATCH_SIZE,
)
from integral_rush.game.matchmaking.errors import AlreadyQueuedError
from integral_rush.game.matchmaking.internal import (
    build_queue_entry_snapshot,
    freshness_cutoff,
    is_entry_live,
    pair_and_create_room,
    resolve_queue_config,
)
from integral_rush.game.matchmaking.types import (
    MatchmakingStatus,
    MatchmakingSweepResult,
    QueueEntrySnapshot,
    QueueLeaveResult,
)

logger = structlog.get_logger(__name__)


async def _find_candidate(
    session: AsyncSession,
    *,
    time_control: int,
    difficulty: str,
    exclude_user_id: int,
    now_utc: datetime,
) -> DuelQueueEntry | None:
    return await DuelQueueRepo.find_oldest_compatible(
        session,
        time_control=time_control,
        difficulty=difficulty,
        exclude_user_id=exclude_user_id,
        fresh_after=freshness_cutoff(now_utc=now_utc),
    )


async def join_queue(
    session: AsyncSession,
    *,
    user_id: int,
    time_control: int,
    difficulty: str,
    now_utc: datetime,
) -> MatchmakingStatus:
    config = resolve_queue_config(time_control=time_control, difficulty=difficulty)
    existing = await DuelQueueRepo.get_by_user_id(session, user_id)
    if existing is not None:
        if is_entry_live(existing, now_utc=now_utc):
            raise AlreadyQueuedError
        await DuelQueueRepo.delete_if_enqueued_at(
            session,
            user_id=user_id,
            enqueued_at=existing.enqueued_at,
        )

    max_attempts = max(1, int(get_settings().matchmaking_pair_max_attempts))
    for _ in range(max_attempts):
        candidate = await _find_candidate(
            session,
            time_control=config.time_control,
            difficulty=config.difficulty,
            exclude_user_id=user_id,
            now_utc=now_utc,
        )
        if candidate is None:
            break
        room = await pair_and_create_room(
            session,
            host_entry=candidate,
            opponent_id=user_id,
            opponent_entry=None,
            now_utc=now_utc,
        )
        if room is not None:
            return MatchmakingStatus(
                state=MATCHMAKING_STATE_MATCHED,
                entry=None,
                room=build_duel_snapshot(room),
            )

    created = await DuelQueueRepo.create_once(
        session,
        user_id=user_id,
        time_control=config.time_control,
        difficulty=config.difficulty,
        enqueued_at=now_utc,
    )
    if not created:
        raise AlreadyQueuedError
    logger.info(
        "matchmaking_queued",
        user_id=user_id,
        time_control=config.time_control,
        difficulty=config.difficulty,
    )
    return MatchmakingStatus(
        state=MATCHMAKING_STATE_QUEUED,
        entry=QueueEntrySnapshot(
            user_id=user_id,
            time_control=config.time_control,
            difficulty=config.difficulty,
            enqueued_at=now_utc,
        ),
        room=None,
    )


async def poll_queue_status(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
    since: datetime | None = None,
) -> MatchmakingStatus:
    entry = await DuelQueueRepo.get_by_user_id(session, user_id)
    if entry is not None and is_entry_live(entry, now_utc=now_utc):
        candidate = await _find_candidate(
            session,
            time_control=int(entry.time_control),
            difficulty=entry.difficulty,
            exclude_user_id=user_id,
            now_utc=now_utc,
        )
        if candidate is not None:
            room = await pair_and_create_room(
                session,
                host_entry=candidate,
                opponent_id=user_id,
                opponent_entry=entry,
                now_utc=now_utc,
            )
            if room is not None:
                return MatchmakingStatus(
                    state=MATCHMAKING_STATE_MATCHED,
                    entry=None,
                    room=build_duel_snapshot(room),
                )
        return MatchmakingStatus(
            state=MATCHMAKING_STATE_QUEUED,
            entry=build_queue_entry_snapshot(entry),
            room=None,
        )

    if entry is not None:
        await DuelQueueRepo.delete_if_enqueued_at(
            session,
            user_id=user_id,
            enqueued_at=entry.enqueued_at,
        )
        logger.info("matchmaking_entry_expired", user_id=user_id)

    room = await DuelRoomsRepo.get_latest_for_user(
        session,
        user_id=user_id,
        status=DUEL_STATUS_IN_PROGRESS,
        source=DUEL_SOURCE_MATCHMAKING,
        created_since=since,
    )
    if room is None:
        return MatchmakingStatus(state=MATCHMAKING_STATE_IDLE, entry=None, room=None)
    return MatchmakingStatus(
        state=MATCHMAKING_STATE_MATCHED,
        entry=None,
        room=build_duel_snapshot(room),
    )


async def leave_queue(session: AsyncSession, *, user_id: int) -> QueueLeaveResult:
    removed = await DuelQueueRepo.delete_by_user_id(session, user_id=user_id)
    if removed:
        logger.info("matchmaking_left", user_id=user_id)
    return QueueLeaveResult(removed=removed > 0)


async def purge_stale_entries(session: AsyncSession, *, now_utc: datetime) -> int:
    purged = await DuelQueueRepo.delete_enqueued_before(
        session,
        cutoff_utc=freshness_cutoff(now_utc=now_utc),
    )
    if purged:
        logger.info("matchmaking_stale_entries_purged", purged=purged)
    return purged


async def pair_waiting_entries(
    session: AsyncSession,
    *,
    now_utc: datetime,
    limit: int = MATCHMAKING_SWEEP_BATCH_SIZE,
) -> MatchmakingSweepResult:
    entries = await DuelQueueRepo.list_live(
        session,
        fresh_after=freshness_cutoff(now_utc=now_utc),
        limit=limit,
    )
    handled: set[int] = set()
    rooms_created = 0
    for entry in entries:
        if int(entry.user_id) in handled:
            continue
        partner = next(
            (
                other
                for other in entries
                if int(other.user_id) not in handled
                and int(other.user_id) != int(entry.user_id)
                and int(other.time_control) == int(entry.time_control)
                and other.difficulty == entry.difficulty
            ),
            None,
        )
        if partner is None:
            continue
        handled.update({int(entry.user_id), int(partner.user_id)})
        room = await pair_and_create_room(
            session,
            host_entry=entry,
            opponent_id=int(partner.user_id),
            opponent_entry=partner,
            now_utc=now_utc,
        )
        if room is not None:
            rooms_created += 1
    return MatchmakingSweepResult(examined=len(entries), rooms_created=rooms_created)
