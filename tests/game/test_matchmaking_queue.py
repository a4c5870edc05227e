from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from integral_rush.db.models.duel_queue import DuelQueueEntry
from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.repo.duel_queue_repo import DuelQueueRepo
from integral_rush.game.matchmaking.errors import AlreadyQueuedError, InvalidQueueConfigError
from integral_rush.game.matchmaking.service import (
    join_queue,
    leave_queue,
    pair_waiting_entries,
    poll_queue_status,
    purge_stale_entries,
)

FIRST_ID = 11
SECOND_ID = 22
THIRD_ID = 33


async def _join(session_factory, *, user_id: int, now_utc, time_control: int = 180, difficulty: str = "Basic"):
    async with session_factory.begin() as session:
        return await join_queue(
            session,
            user_id=user_id,
            time_control=time_control,
            difficulty=difficulty,
            now_utc=now_utc,
        )


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return int(await session.scalar(select(func.count()).select_from(model)))


@pytest.mark.asyncio
async def test_second_compatible_join_creates_exactly_one_room(session_factory, now_utc) -> None:
    first = await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc, difficulty="Mixed")
    second = await _join(
        session_factory,
        user_id=SECOND_ID,
        now_utc=now_utc + timedelta(seconds=5),
        difficulty="Mixed",
    )

    assert first.state == "QUEUED"
    assert first.entry is not None and first.entry.time_control == 180
    assert second.state == "MATCHED"
    assert second.room is not None
    assert second.room.source == "MATCHMAKING"
    assert second.room.status == "IN_PROGRESS"
    assert second.room.host_id == FIRST_ID
    assert second.room.opponent_id == SECOND_ID
    assert second.room.questions_to_win == 5
    assert await _count(session_factory, DuelRoom) == 1
    assert await _count(session_factory, DuelQueueEntry) == 0

    async with session_factory.begin() as session:
        polled = await poll_queue_status(session, user_id=FIRST_ID, now_utc=now_utc + timedelta(seconds=6))
    assert polled.state == "MATCHED"
    assert polled.room is not None and polled.room.code == second.room.code


@pytest.mark.asyncio
async def test_incompatible_entries_stay_queued(session_factory, now_utc) -> None:
    await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc, difficulty="Basic")
    other = await _join(session_factory, user_id=SECOND_ID, now_utc=now_utc, difficulty="Advanced")
    slower = await _join(session_factory, user_id=THIRD_ID, now_utc=now_utc, time_control=300)

    assert other.state == "QUEUED"
    assert slower.state == "QUEUED"
    assert await _count(session_factory, DuelRoom) == 0
    assert await _count(session_factory, DuelQueueEntry) == 3


@pytest.mark.asyncio
async def test_live_entry_rejects_second_join(session_factory, now_utc) -> None:
    await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc)

    with pytest.raises(AlreadyQueuedError):
        await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc + timedelta(seconds=30))


@pytest.mark.asyncio
@pytest.mark.parametrize("time_control", [30, 601])
async def test_queue_rejects_time_control_out_of_range(session_factory, now_utc, time_control) -> None:
    with pytest.raises(InvalidQueueConfigError):
        await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc, time_control=time_control)


@pytest.mark.asyncio
async def test_queue_rejects_unknown_difficulty(session_factory, now_utc) -> None:
    with pytest.raises(InvalidQueueConfigError):
        await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc, difficulty="Impossible")


@pytest.mark.asyncio
async def test_stale_entry_is_never_paired_and_gets_purged(session_factory, now_utc) -> None:
    await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc)
    later = now_utc + timedelta(seconds=300)

    second = await _join(session_factory, user_id=SECOND_ID, now_utc=later)
    assert second.state == "QUEUED"
    assert await _count(session_factory, DuelRoom) == 0

    async with session_factory.begin() as session:
        purged = await purge_stale_entries(session, now_utc=later)
    assert purged == 1

    async with session_factory() as session:
        remaining = await DuelQueueRepo.get_by_user_id(session, SECOND_ID)
        gone = await DuelQueueRepo.get_by_user_id(session, FIRST_ID)
    assert remaining is not None
    assert gone is None


@pytest.mark.asyncio
async def test_stale_entry_can_be_replaced_by_fresh_join(session_factory, now_utc) -> None:
    await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc)
    rejoined = await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc + timedelta(seconds=301))

    assert rejoined.state == "QUEUED"
    assert rejoined.entry is not None
    assert rejoined.entry.enqueued_at == now_utc + timedelta(seconds=301)


@pytest.mark.asyncio
async def test_poll_pairs_entries_that_missed_each_other(session_factory, now_utc) -> None:
    async with session_factory.begin() as session:
        for offset, user_id in enumerate((FIRST_ID, SECOND_ID)):
            await DuelQueueRepo.create_once(
                session,
                user_id=user_id,
                time_control=180,
                difficulty="Basic",
                enqueued_at=now_utc + timedelta(seconds=offset),
            )

    async with session_factory.begin() as session:
        status = await poll_queue_status(session, user_id=SECOND_ID, now_utc=now_utc + timedelta(seconds=2))
    async with session_factory.begin() as session:
        partner = await poll_queue_status(session, user_id=FIRST_ID, now_utc=now_utc + timedelta(seconds=3))

    assert status.state == "MATCHED"
    assert status.room is not None
    assert status.room.host_id == FIRST_ID
    assert partner.state == "MATCHED"
    assert partner.room is not None and partner.room.code == status.room.code
    assert await _count(session_factory, DuelRoom) == 1
    assert await _count(session_factory, DuelQueueEntry) == 0


@pytest.mark.asyncio
async def test_sweep_pairs_waiting_entries_once(session_factory, now_utc) -> None:
    async with session_factory.begin() as session:
        for offset, (user_id, difficulty) in enumerate(
            ((FIRST_ID, "Basic"), (SECOND_ID, "Advanced"), (THIRD_ID, "Basic"))
        ):
            await DuelQueueRepo.create_once(
                session,
                user_id=user_id,
                time_control=120,
                difficulty=difficulty,
                enqueued_at=now_utc + timedelta(seconds=offset),
            )

    async with session_factory.begin() as session:
        result = await pair_waiting_entries(session, now_utc=now_utc + timedelta(seconds=10))
    async with session_factory.begin() as session:
        repeated = await pair_waiting_entries(session, now_utc=now_utc + timedelta(seconds=11))

    assert result.examined == 3
    assert result.rooms_created == 1
    assert repeated.rooms_created == 0
    async with session_factory() as session:
        room = await session.scalar(select(DuelRoom))
        leftover = await DuelQueueRepo.get_by_user_id(session, SECOND_ID)
    assert room is not None
    assert {room.host_id, room.opponent_id} == {FIRST_ID, THIRD_ID}
    assert room.time_control == 120
    assert leftover is not None


@pytest.mark.asyncio
async def test_leave_queue_is_idempotent(session_factory, now_utc) -> None:
    await _join(session_factory, user_id=FIRST_ID, now_utc=now_utc)

    async with session_factory.begin() as session:
        first = await leave_queue(session, user_id=FIRST_ID)
    async with session_factory.begin() as session:
        second = await leave_queue(session, user_id=FIRST_ID)
    async with session_factory.begin() as session:
        status = await poll_queue_status(session, user_id=FIRST_ID, now_utc=now_utc)

    assert first.removed is True
    assert second.removed is False
    assert status.state == "IDLE"
    assert status.room is None
