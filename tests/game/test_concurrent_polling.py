from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from integral_rush.db.models.duel_queue import DuelQueueEntry
from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.repo.duel_queue_repo import DuelQueueRepo
from integral_rush.game.duels.errors import DuelRoomFullError
from integral_rush.game.duels.service import (
    advance_to_next_question,
    create_duel_room,
    get_duel_state,
    join_duel_room,
    submit_answer,
    tick_timer,
)
from integral_rush.game.matchmaking.service import join_queue, poll_queue_status
from tests.game.duel_fixtures import (
    HOST_ID,
    OPPONENT_ID,
    OUTSIDER_ID,
    create_full_room,
    force_room_values,
)
from tests.game.fixtures import CORRECT_ANSWER, FakeAnswerJudge, FakeProblemCatalog

FIRST_ID = 11
SECOND_ID = 22


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return int(await session.scalar(select(func.count()).select_from(model)))


async def _join_room(session_factory, *, code: str, user_id: int, now_utc):
    async with session_factory.begin() as session:
        return await join_duel_room(session, code=code, opponent_id=user_id, now_utc=now_utc)


async def _tick(session_factory, *, code: str, caller_id: int, now_utc):
    async with session_factory.begin() as session:
        return await tick_timer(session, code=code, caller_id=caller_id, now_utc=now_utc)


async def _join_queue(session_factory, *, user_id: int, now_utc):
    async with session_factory.begin() as session:
        return await join_queue(
            session,
            user_id=user_id,
            time_control=180,
            difficulty="Basic",
            now_utc=now_utc,
        )


async def _poll(session_factory, *, user_id: int, now_utc):
    async with session_factory.begin() as session:
        return await poll_queue_status(session, user_id=user_id, now_utc=now_utc)


@pytest.mark.asyncio
async def test_simultaneous_joins_fill_the_seat_once(session_factory, now_utc) -> None:
    async with session_factory.begin() as session:
        room = await create_duel_room(session, host_id=HOST_ID, now_utc=now_utc)

    results = await asyncio.gather(
        _join_room(session_factory, code=room.code, user_id=OPPONENT_ID, now_utc=now_utc),
        _join_room(session_factory, code=room.code, user_id=OUTSIDER_ID, now_utc=now_utc),
        return_exceptions=True,
    )

    joined = [result for result in results if not isinstance(result, BaseException)]
    rejected = [result for result in results if isinstance(result, BaseException)]
    assert len(joined) == 1
    assert len(rejected) == 1 and isinstance(rejected[0], DuelRoomFullError)
    async with session_factory() as session:
        state = await get_duel_state(session, code=room.code, viewer_id=HOST_ID)
    assert state.status == "IN_PROGRESS"
    assert state.opponent_id == joined[0].opponent_id
    assert state.version == 2


@pytest.mark.asyncio
async def test_simultaneous_advances_issue_one_question(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)
    catalog = FakeProblemCatalog()

    results = await asyncio.gather(
        *(
            advance_to_next_question(
                session_factory,
                code=code,
                caller_id=caller_id,
                catalog=catalog,
                now_utc=now_utc,
            )
            for caller_id in (HOST_ID, OPPONENT_ID)
        )
    )

    assert sorted(result.issued_now for result in results) == [False, True]
    assert {result.snapshot.question_no for result in results} == {1}
    assert results[0].problem == results[1].problem
    async with session_factory() as session:
        state = await get_duel_state(session, code=code, viewer_id=HOST_ID)
    assert state.question_no == 1
    assert state.phase == "playing"


@pytest.mark.asyncio
async def test_simultaneous_winning_answers_produce_one_winner(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc, questions_to_win=3)
    await force_room_values(session_factory, code=code, values={"host_score": 2, "opponent_score": 2})
    await advance_to_next_question(
        session_factory,
        code=code,
        caller_id=HOST_ID,
        catalog=FakeProblemCatalog(),
        now_utc=now_utc,
    )
    judge = FakeAnswerJudge()

    results = await asyncio.gather(
        *(
            submit_answer(
                session_factory,
                code=code,
                caller_id=caller_id,
                answer=CORRECT_ANSWER,
                judge=judge,
                now_utc=now_utc + timedelta(seconds=2),
            )
            for caller_id in (HOST_ID, OPPONENT_ID)
        )
    )

    assert sorted(result.applied for result in results) == [False, True]
    (winning,) = [result for result in results if result.applied]
    assert winning.completed_now is True
    async with session_factory() as session:
        state = await get_duel_state(session, code=code, viewer_id=HOST_ID)
    assert state.status == "COMPLETED"
    assert state.winner_id in {HOST_ID, OPPONENT_ID}
    assert sorted((state.host_score, state.opponent_score)) == [2, 3]
    assert len(state.answer_log) == 1


@pytest.mark.asyncio
async def test_both_clocks_running_out_in_one_cycle_settle_once(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)
    await force_room_values(
        session_factory,
        code=code,
        values={"host_time_remaining": 1, "opponent_time_remaining": 1},
    )

    results = await asyncio.gather(
        _tick(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc),
        _tick(session_factory, code=code, caller_id=OPPONENT_ID, now_utc=now_utc),
    )

    assert sorted(result.expired_now for result in results) == [False, True]
    assert sorted(result.applied for result in results) == [False, True]
    async with session_factory() as session:
        state = await get_duel_state(session, code=code, viewer_id=HOST_ID)
    assert state.status == "COMPLETED"
    clocks = (state.host_time_remaining, state.opponent_time_remaining)
    if state.winner_id == OPPONENT_ID:
        assert clocks == (0, 1)
    else:
        assert clocks == (1, 0)


@pytest.mark.asyncio
async def test_simultaneous_queue_joins_create_one_room(session_factory, now_utc) -> None:
    results = await asyncio.gather(
        _join_queue(session_factory, user_id=FIRST_ID, now_utc=now_utc),
        _join_queue(session_factory, user_id=SECOND_ID, now_utc=now_utc),
    )

    assert sorted(result.state for result in results) == ["MATCHED", "QUEUED"]
    assert await _count(session_factory, DuelRoom) == 1
    assert await _count(session_factory, DuelQueueEntry) == 0

    (queued,) = [result for result in results if result.state == "QUEUED"]
    (matched,) = [result for result in results if result.state == "MATCHED"]
    polled = await _poll(
        session_factory,
        user_id=queued.entry.user_id,
        now_utc=now_utc + timedelta(seconds=2),
    )
    assert polled.state == "MATCHED"
    assert polled.room.code == matched.room.code


@pytest.mark.asyncio
async def test_simultaneous_polls_pair_waiting_players_once(session_factory, now_utc) -> None:
    async with session_factory.begin() as session:
        for offset, user_id in enumerate((FIRST_ID, SECOND_ID)):
            await DuelQueueRepo.create_once(
                session,
                user_id=user_id,
                time_control=180,
                difficulty="Basic",
                enqueued_at=now_utc + timedelta(seconds=offset),
            )

    results = await asyncio.gather(
        _poll(session_factory, user_id=FIRST_ID, now_utc=now_utc + timedelta(seconds=2)),
        _poll(session_factory, user_id=SECOND_ID, now_utc=now_utc + timedelta(seconds=2)),
    )

    assert [result.state for result in results] == ["MATCHED", "MATCHED"]
    assert results[0].room.code == results[1].room.code
    assert {results[0].room.host_id, results[0].room.opponent_id} == {FIRST_ID, SECOND_ID}
    assert await _count(session_factory, DuelRoom) == 1
    assert await _count(session_factory, DuelQueueEntry) == 0
