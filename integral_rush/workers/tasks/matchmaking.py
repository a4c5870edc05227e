from __future__ import annotations

from datetime import datetime, timezone

import structlog

from integral_rush.core.config import get_settings
from integral_rush.db.session import SessionLocal
from integral_rush.game.matchmaking.service_facade import MatchmakingServiceFacade
from integral_rush.workers.asyncio_runner import run_async_job
from integral_rush.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
settings = get_settings()

SWEEP_INTERVAL_SECONDS = max(5, int(settings.matchmaking_purge_interval_seconds))


async def purge_stale_queue_entries_async() -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        purged = await MatchmakingServiceFacade.purge_stale_entries(session, now_utc=now_utc)

    result = {"purged": purged}
    logger.info("matchmaking_purge_finished", **result)
    return result


async def pair_waiting_players_async() -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        sweep = await MatchmakingServiceFacade.pair_waiting_entries(session, now_utc=now_utc)

    result = {"examined": sweep.examined, "rooms_created": sweep.rooms_created}
    logger.info("matchmaking_sweep_finished", **result)
    return result


@celery_app.task(name="integral_rush.workers.tasks.matchmaking.purge_stale_queue_entries")
def purge_stale_queue_entries() -> dict[str, int]:
    return run_async_job(
        purge_stale_queue_entries_async(),
        job_name="matchmaking.purge_stale_queue_entries",
    )


@celery_app.task(name="integral_rush.workers.tasks.matchmaking.pair_waiting_players")
def pair_waiting_players() -> dict[str, int]:
    return run_async_job(pair_waiting_players_async(), job_name="matchmaking.pair_waiting_players")


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "matchmaking-purge-stale-entries": {
            "task": "integral_rush.workers.tasks.matchmaking.purge_stale_queue_entries",
            "schedule": float(SWEEP_INTERVAL_SECONDS),
            "options": {"queue": "q_normal"},
        },
        "matchmaking-pair-waiting-players": {
            "task": "integral_rush.workers.tasks.matchmaking.pair_waiting_players",
            "schedule": float(SWEEP_INTERVAL_SECONDS),
            "options": {"queue": "q_normal"},
        },
    }
)
