from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import structlog

from integral_rush.db.repo.duel_queue_repo import DuelQueueRepo
from integral_rush.game.duels.service import abandon_duel_room
from integral_rush.game.tournaments.service import (
    create_tournament,
    get_tournament,
    join_tournament,
    start_tournament,
)
from integral_rush.workers.asyncio_runner import run_async_job
from integral_rush.workers.tasks import matchmaking, tournaments

HOST_ID = 700


def test_advance_tournaments_task_wrapper(monkeypatch) -> None:
    async def fake_async(*, batch_size: int) -> dict[str, int]:
        return {
            "examined": batch_size,
            "matches_settled": 2,
            "rounds_started": 1,
            "completed": 0,
            "failed": 0,
        }

    monkeypatch.setattr(tournaments, "advance_tournaments_async", fake_async)

    result = tournaments.advance_tournaments(batch_size=7)
    assert result["examined"] == 7
    assert result["rounds_started"] == 1


def test_matchmaking_task_wrappers(monkeypatch) -> None:
    async def fake_purge() -> dict[str, int]:
        return {"purged": 3}

    async def fake_pair() -> dict[str, int]:
        return {"examined": 4, "rooms_created": 2}

    monkeypatch.setattr(matchmaking, "purge_stale_queue_entries_async", fake_purge)
    monkeypatch.setattr(matchmaking, "pair_waiting_players_async", fake_pair)

    assert matchmaking.purge_stale_queue_entries() == {"purged": 3}
    assert matchmaking.pair_waiting_players() == {"examined": 4, "rooms_created": 2}


@pytest.mark.asyncio
async def test_matchmaking_sweep_pairs_and_purges(session_factory, monkeypatch) -> None:
    monkeypatch.setattr(matchmaking, "SessionLocal", session_factory)
    now_utc = datetime.now(timezone.utc)
    async with session_factory.begin() as session:
        for user_id, enqueued_at in (
            (1, now_utc - timedelta(seconds=10)),
            (2, now_utc - timedelta(seconds=5)),
            (3, now_utc - timedelta(hours=1)),
        ):
            await DuelQueueRepo.create_once(
                session,
                user_id=user_id,
                time_control=180,
                difficulty="Mixed",
                enqueued_at=enqueued_at,
            )

    paired = await matchmaking.pair_waiting_players_async()
    purged = await matchmaking.purge_stale_queue_entries_async()

    assert paired == {"examined": 2, "rooms_created": 1}
    assert purged == {"purged": 1}


@pytest.mark.asyncio
async def test_tournament_sweep_settles_finished_rooms(session_factory, monkeypatch) -> None:
    monkeypatch.setattr(tournaments, "SessionLocal", session_factory)
    now_utc = datetime.now(timezone.utc)
    codes: list[str] = []
    for format_code in ("KNOCKOUT", "ROUND_ROBIN"):
        async with session_factory.begin() as session:
            snapshot = await create_tournament(
                session,
                host_id=HOST_ID,
                now_utc=now_utc,
                format_code=format_code,
            )
            for user_id in (1, 2):
                await join_tournament(session, code=snapshot.code, user_id=user_id, now_utc=now_utc)
            await start_tournament(session, code=snapshot.code, caller_id=HOST_ID, now_utc=now_utc)
        codes.append(snapshot.code)

    async with session_factory.begin() as session:
        lobby = await get_tournament(session, code=codes[0], viewer_id=HOST_ID)
        await abandon_duel_room(
            session,
            code=lobby.current_round_matches[0].duel_room_code,
            now_utc=now_utc,
        )

    result = await tournaments.advance_tournaments_async(batch_size=10)

    assert result == {
        "examined": 2,
        "matches_settled": 1,
        "rounds_started": 0,
        "completed": 1,
        "failed": 0,
    }


def test_run_async_job_returns_result_and_propagates_failure() -> None:
    async def succeeding() -> str:
        assert structlog.contextvars.get_contextvars()["job_name"] == "sample_job"
        return "done"

    async def failing() -> None:
        raise RuntimeError("boom")

    assert run_async_job(succeeding(), job_name="sample_job") == "done"
    with pytest.raises(RuntimeError, match="boom"):
        run_async_job(failing(), job_name="sample_job")
