from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from integral_rush.game.duels.errors import (
    DuelAlreadyAnsweredError,
    DuelInvariantViolationError,
    DuelNoActiveQuestionError,
)
from integral_rush.game.duels.service import (
    advance_to_next_question,
    create_started_room,
    get_duel_state,
    quarantine_room,
    submit_answer,
    tick_timer,
)
from integral_rush.game.duels.types import DuelConfig
from integral_rush.game.judging.errors import AnswerJudgeUnavailableError
from integral_rush.game.problems.errors import ProblemCatalogUnavailableError
from tests.game.duel_fixtures import (
    HOST_ID,
    OPPONENT_ID,
    create_full_room,
    force_room_values,
)
from tests.game.fixtures import (
    CORRECT_ANSWER,
    WRONG_ANSWER,
    FakeAnswerJudge,
    FakeProblemCatalog,
    GatedAnswerJudge,
)


async def _advance(session_factory, *, code: str, caller_id: int, now_utc, catalog=None):
    return await advance_to_next_question(
        session_factory,
        code=code,
        caller_id=caller_id,
        catalog=catalog or FakeProblemCatalog(),
        now_utc=now_utc,
    )


async def _submit(session_factory, *, code: str, caller_id: int, answer: str, now_utc, judge=None):
    return await submit_answer(
        session_factory,
        code=code,
        caller_id=caller_id,
        answer=answer,
        judge=judge or FakeAnswerJudge(),
        now_utc=now_utc,
    )


@pytest.mark.asyncio
async def test_first_to_target_wins_the_duel(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc, questions_to_win=3)

    results = []
    for question in range(3):
        moment = now_utc + timedelta(seconds=10 * question)
        issued = await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=moment)
        assert issued.snapshot.phase == "playing"
        assert issued.snapshot.question_no == question + 1
        results.append(
            await _submit(
                session_factory,
                code=code,
                caller_id=HOST_ID,
                answer=CORRECT_ANSWER,
                now_utc=moment + timedelta(seconds=4),
            )
        )

    assert results[0].snapshot.host_score == 1
    assert results[0].snapshot.phase == "result"
    assert results[0].completed_now is False
    final = results[-1]
    assert final.completed_now is True
    assert final.snapshot.host_score == 3
    assert final.snapshot.status == "COMPLETED"
    assert final.snapshot.phase == "finished"
    assert final.snapshot.winner_id == HOST_ID
    assert [entry.seconds for entry in final.snapshot.answer_log] == [4.0, 4.0, 4.0]


@pytest.mark.asyncio
async def test_retried_submission_cannot_score_twice(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)

    first = await _submit(
        session_factory,
        code=code,
        caller_id=HOST_ID,
        answer=CORRECT_ANSWER,
        now_utc=now_utc,
    )
    with pytest.raises(DuelAlreadyAnsweredError):
        await _submit(
            session_factory,
            code=code,
            caller_id=HOST_ID,
            answer=CORRECT_ANSWER,
            now_utc=now_utc,
        )

    async with session_factory() as session:
        snapshot = await get_duel_state(session, code=code, viewer_id=HOST_ID)
    assert first.snapshot.host_score == 1
    assert snapshot.host_score == 1
    assert snapshot.host_answered is True
    assert len(snapshot.answer_log) == 1


@pytest.mark.asyncio
async def test_wrong_answer_closes_the_question_without_scoring(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)

    result = await _submit(
        session_factory,
        code=code,
        caller_id=OPPONENT_ID,
        answer=WRONG_ANSWER,
        now_utc=now_utc,
    )

    assert result.applied is True
    assert result.is_correct is False
    assert result.feedback == "Expected x^2/2."
    assert result.snapshot.opponent_score == 0
    assert result.snapshot.phase == "result"
    assert result.snapshot.answer_log[0].is_correct is False
    with pytest.raises(DuelNoActiveQuestionError):
        await _submit(
            session_factory,
            code=code,
            caller_id=HOST_ID,
            answer=CORRECT_ANSWER,
            now_utc=now_utc,
        )


@pytest.mark.asyncio
async def test_judge_outage_leaves_room_untouched_and_resubmit_works(
    session_factory,
    now_utc,
) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)
    issued = await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)

    with pytest.raises(AnswerJudgeUnavailableError):
        await _submit(
            session_factory,
            code=code,
            caller_id=HOST_ID,
            answer=CORRECT_ANSWER,
            now_utc=now_utc,
            judge=FakeAnswerJudge(fail=True),
        )

    async with session_factory() as session:
        unchanged = await get_duel_state(session, code=code, viewer_id=HOST_ID)
    assert unchanged.host_score == 0
    assert unchanged.phase == "playing"
    assert unchanged.host_answered is False
    assert unchanged.version == issued.snapshot.version

    retried = await _submit(
        session_factory,
        code=code,
        caller_id=HOST_ID,
        answer=CORRECT_ANSWER,
        now_utc=now_utc,
    )
    assert retried.applied is True
    assert retried.snapshot.host_score == 1


@pytest.mark.asyncio
async def test_pending_verdict_does_not_block_other_rooms(session_factory, now_utc) -> None:
    judged_code = await create_full_room(session_factory, now_utc=now_utc)
    other_code = await create_full_room(session_factory, now_utc=now_utc)
    await _advance(session_factory, code=judged_code, caller_id=HOST_ID, now_utc=now_utc)
    judge = GatedAnswerJudge()

    pending = asyncio.create_task(
        _submit(
            session_factory,
            code=judged_code,
            caller_id=HOST_ID,
            answer=CORRECT_ANSWER,
            now_utc=now_utc + timedelta(seconds=3),
            judge=judge,
        )
    )
    await asyncio.wait_for(judge.entered.wait(), timeout=5)

    async with asyncio.timeout(5):
        async with session_factory.begin() as session:
            ticked = await tick_timer(session, code=other_code, caller_id=OPPONENT_ID, now_utc=now_utc)
        issued = await _advance(session_factory, code=other_code, caller_id=HOST_ID, now_utc=now_utc)

    judge.release.set()
    answered = await asyncio.wait_for(pending, timeout=5)

    assert ticked.applied is True
    assert ticked.snapshot.opponent_time_remaining == 179
    assert issued.issued_now is True
    assert answered.applied is True
    assert answered.snapshot.host_score == 1


@pytest.mark.asyncio
async def test_verdict_arriving_after_the_duel_ended_is_a_no_op(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    await force_room_values(session_factory, code=code, values={"host_time_remaining": 1})
    judge = GatedAnswerJudge()

    pending = asyncio.create_task(
        _submit(
            session_factory,
            code=code,
            caller_id=HOST_ID,
            answer=CORRECT_ANSWER,
            now_utc=now_utc + timedelta(seconds=3),
            judge=judge,
        )
    )
    await asyncio.wait_for(judge.entered.wait(), timeout=5)
    async with session_factory.begin() as session:
        expired = await tick_timer(session, code=code, caller_id=HOST_ID, now_utc=now_utc)
    judge.release.set()
    late = await asyncio.wait_for(pending, timeout=5)

    assert expired.expired_now is True
    assert late.applied is False
    assert late.snapshot.status == "COMPLETED"
    assert late.snapshot.winner_id == OPPONENT_ID
    assert late.snapshot.host_score == 0


@pytest.mark.asyncio
async def test_catalog_outage_does_not_issue_a_question(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc)

    with pytest.raises(ProblemCatalogUnavailableError):
        await _advance(
            session_factory,
            code=code,
            caller_id=HOST_ID,
            now_utc=now_utc,
            catalog=FakeProblemCatalog(fail=True),
        )

    async with session_factory() as session:
        snapshot = await get_duel_state(session, code=code, viewer_id=HOST_ID)
    assert snapshot.phase == "countdown"
    assert snapshot.question_no == 0
    assert snapshot.current_problem is None


@pytest.mark.asyncio
async def test_expired_clock_hands_win_to_other_seat(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc, questions_to_win=5)
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    await _submit(session_factory, code=code, caller_id=HOST_ID, answer=CORRECT_ANSWER, now_utc=now_utc)
    await _advance(session_factory, code=code, caller_id=OPPONENT_ID, now_utc=now_utc)
    await _submit(
        session_factory,
        code=code,
        caller_id=OPPONENT_ID,
        answer=CORRECT_ANSWER,
        now_utc=now_utc,
    )
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    await force_room_values(session_factory, code=code, values={"host_time_remaining": 2})

    ticks = []
    for _ in range(2):
        async with session_factory.begin() as session:
            ticks.append(await tick_timer(session, code=code, caller_id=HOST_ID, now_utc=now_utc))

    assert ticks[0].snapshot.host_time_remaining == 1
    assert ticks[0].expired_now is False
    assert ticks[1].expired_now is True
    assert ticks[1].snapshot.status == "COMPLETED"
    assert ticks[1].snapshot.winner_id == OPPONENT_ID
    assert (ticks[1].snapshot.host_score, ticks[1].snapshot.opponent_score) == (1, 1)

    late_answer = await _submit(
        session_factory,
        code=code,
        caller_id=HOST_ID,
        answer=CORRECT_ANSWER,
        now_utc=now_utc,
    )
    assert late_answer.applied is False
    assert late_answer.snapshot.host_score == 1
    assert late_answer.snapshot.winner_id == OPPONENT_ID

    async with session_factory.begin() as session:
        after = await tick_timer(session, code=code, caller_id=OPPONENT_ID, now_utc=now_utc)
    assert after.applied is False
    assert after.snapshot.opponent_time_remaining == ticks[1].snapshot.opponent_time_remaining


@pytest.mark.asyncio
async def test_tick_only_touches_the_callers_clock(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc, time_control=60)

    async with session_factory.begin() as session:
        result = await tick_timer(session, code=code, caller_id=OPPONENT_ID, now_utc=now_utc)

    assert result.applied is True
    assert result.snapshot.opponent_time_remaining == 59
    assert result.snapshot.host_time_remaining == 60


@pytest.mark.asyncio
async def test_question_budget_settles_for_the_leader(session_factory, now_utc) -> None:
    async with session_factory.begin() as session:
        room = await create_started_room(
            session,
            source="TOURNAMENT",
            host_id=HOST_ID,
            opponent_id=OPPONENT_ID,
            config=DuelConfig(
                time_control=120,
                difficulty="Basic",
                questions_to_win=3,
                question_budget=2,
            ),
            now_utc=now_utc,
        )
        code = room.code

    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    await _submit(session_factory, code=code, caller_id=HOST_ID, answer=CORRECT_ANSWER, now_utc=now_utc)
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    result = await _submit(
        session_factory,
        code=code,
        caller_id=OPPONENT_ID,
        answer=WRONG_ANSWER,
        now_utc=now_utc,
    )

    assert result.completed_now is True
    assert result.snapshot.winner_id == HOST_ID
    assert (result.snapshot.host_score, result.snapshot.opponent_score) == (1, 0)


@pytest.mark.asyncio
async def test_tied_budget_goes_to_sudden_death(session_factory, now_utc) -> None:
    async with session_factory.begin() as session:
        room = await create_started_room(
            session,
            source="TOURNAMENT",
            host_id=HOST_ID,
            opponent_id=OPPONENT_ID,
            config=DuelConfig(
                time_control=120,
                difficulty="Basic",
                questions_to_win=3,
                question_budget=2,
            ),
            now_utc=now_utc,
        )
        code = room.code

    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    await _submit(session_factory, code=code, caller_id=HOST_ID, answer=CORRECT_ANSWER, now_utc=now_utc)
    await _advance(session_factory, code=code, caller_id=HOST_ID, now_utc=now_utc)
    tied = await _submit(
        session_factory,
        code=code,
        caller_id=OPPONENT_ID,
        answer=CORRECT_ANSWER,
        now_utc=now_utc,
    )
    assert tied.snapshot.status == "IN_PROGRESS"
    assert tied.snapshot.phase == "result"

    extra = await _advance(session_factory, code=code, caller_id=OPPONENT_ID, now_utc=now_utc)
    assert extra.issued_now is True
    assert extra.snapshot.question_no == 3

    decided = await _submit(
        session_factory,
        code=code,
        caller_id=OPPONENT_ID,
        answer=CORRECT_ANSWER,
        now_utc=now_utc,
    )
    assert decided.completed_now is True
    assert decided.snapshot.winner_id == OPPONENT_ID


@pytest.mark.asyncio
async def test_inconsistent_room_is_reported_and_quarantined(session_factory, now_utc) -> None:
    code = await create_full_room(session_factory, now_utc=now_utc, questions_to_win=3)
    await force_room_values(session_factory, code=code, values={"host_score": 3})

    with pytest.raises(DuelInvariantViolationError) as exc_info:
        async with session_factory.begin() as session:
            await tick_timer(session, code=code, caller_id=HOST_ID, now_utc=now_utc)
    assert exc_info.value.room_code == code
    assert "target_reached_without_completion" in exc_info.value.violations

    async with session_factory.begin() as session:
        quarantined = await quarantine_room(session, code=code, now_utc=now_utc)
    async with session_factory() as session:
        snapshot = await get_duel_state(session, code=code, viewer_id=HOST_ID)

    assert quarantined is True
    assert snapshot.status == "ABANDONED"
    assert snapshot.winner_id is None
    assert snapshot.host_time_remaining == 180
