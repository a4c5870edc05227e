from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.core.config import get_settings
from integral_rush.db.models.duel_queue import DuelQueueEntry
from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.repo.duel_queue_repo import DuelQueueRepo
from integral_rush.game.duels.constants import (
    DUEL_SOURCE_MATCHMAKING,
    DUEL_TIME_CONTROL_MAX_SECONDS,
    DUEL_TIME_CONTROL_MIN_SECONDS,
)
from integral_rush.game.duels.create_join import create_started_room
from integral_rush.game.duels.types import DuelConfig
from integral_rush.game.matchmaking.constants import MATCHMAKING_QUESTIONS_TO_WIN
from integral_rush.game.matchmaking.errors import InvalidQueueConfigError
from integral_rush.game.matchmaking.types import QueueEntrySnapshot
from integral_rush.game.problems.constants import is_valid_difficulty

logger = structlog.get_logger(__name__)


class _QueueEntryConsumed(Exception):
    pass


# deadlock_detected, serialization_failure
_LOCK_CONFLICT_SQLSTATES = frozenset({"40P01", "40001"})


def _is_lock_conflict(exc: DBAPIError) -> bool:
    if isinstance(exc, OperationalError):
        return True
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return sqlstate in _LOCK_CONFLICT_SQLSTATES


def build_queue_entry_snapshot(entry: DuelQueueEntry) -> QueueEntrySnapshot:
    return QueueEntrySnapshot(
        user_id=int(entry.user_id),
        time_control=int(entry.time_control),
        difficulty=entry.difficulty,
        enqueued_at=entry.enqueued_at,
    )


def resolve_queue_config(*, time_control: int, difficulty: str) -> DuelConfig:
    if not DUEL_TIME_CONTROL_MIN_SECONDS <= int(time_control) <= DUEL_TIME_CONTROL_MAX_SECONDS:
        raise InvalidQueueConfigError(f"time control {time_control} out of range")
    if not is_valid_difficulty(difficulty):
        raise InvalidQueueConfigError(f"unknown difficulty {difficulty!r}")
    return DuelConfig(
        time_control=int(time_control),
        difficulty=difficulty,
        questions_to_win=MATCHMAKING_QUESTIONS_TO_WIN,
    )


def freshness_cutoff(*, now_utc: datetime) -> datetime:
    return now_utc - timedelta(seconds=max(1, int(get_settings().matchmaking_queue_ttl_seconds)))


def is_entry_live(entry: DuelQueueEntry, *, now_utc: datetime) -> bool:
    return entry.enqueued_at > freshness_cutoff(now_utc=now_utc)


async def pair_and_create_room(
    session: AsyncSession,
    *,
    host_entry: DuelQueueEntry,
    opponent_id: int,
    opponent_entry: DuelQueueEntry | None,
    now_utc: datetime,
) -> DuelRoom | None:
    """Consumes the queue entries and creates the started room as one savepoint.

    Returns None when an entry was consumed by a concurrent pairing; nothing
    is written in that case and the caller picks another candidate.
    """
    config = resolve_queue_config(
        time_control=int(host_entry.time_control),
        difficulty=host_entry.difficulty,
    )
    consumed_entries = [host_entry] if opponent_entry is None else [host_entry, opponent_entry]
    # Entries are deleted in user_id order so concurrent pairings cannot deadlock.
    consumed_entries.sort(key=lambda entry: int(entry.user_id))
    try:
        async with session.begin_nested():
            for entry in consumed_entries:
                try:
                    deleted = await DuelQueueRepo.delete_if_enqueued_at(
                        session,
                        user_id=int(entry.user_id),
                        enqueued_at=entry.enqueued_at,
                    )
                except DBAPIError as exc:
                    if not _is_lock_conflict(exc):
                        raise
                    raise _QueueEntryConsumed from exc
                if not deleted:
                    raise _QueueEntryConsumed
            room = await create_started_room(
                session,
                source=DUEL_SOURCE_MATCHMAKING,
                host_id=int(host_entry.user_id),
                opponent_id=opponent_id,
                config=config,
                now_utc=now_utc,
            )
    except _QueueEntryConsumed:
        logger.info(
            "matchmaking_candidate_consumed",
            host_id=int(host_entry.user_id),
            opponent_id=opponent_id,
        )
        return None

    logger.info(
        "matchmaking_paired",
        room_code=room.code,
        host_id=int(host_entry.user_id),
        opponent_id=opponent_id,
        time_control=config.time_control,
        difficulty=config.difficulty,
    )
    return room
