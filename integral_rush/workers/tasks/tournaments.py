from __future__ import annotations

from datetime import datetime, timezone

import structlog

from integral_rush.core.config import get_settings
from integral_rush.db.repo.tournament_rooms_repo import TournamentRoomsRepo
from integral_rush.db.session import SessionLocal
from integral_rush.game.errors import GameError
from integral_rush.game.tournaments.constants import TOURNAMENT_STATUS_IN_PROGRESS
from integral_rush.game.tournaments.service_facade import TournamentServiceFacade
from integral_rush.workers.asyncio_runner import run_async_job
from integral_rush.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
settings = get_settings()

SWEEP_BATCH_SIZE = max(1, int(settings.tournament_sweep_batch_size))
SWEEP_INTERVAL_SECONDS = max(5, int(settings.tournament_sweep_interval_seconds))


async def advance_tournaments_async(*, batch_size: int = SWEEP_BATCH_SIZE) -> dict[str, int]:
    async with SessionLocal.begin() as session:
        codes = await TournamentRoomsRepo.list_codes_by_status(
            session,
            status=TOURNAMENT_STATUS_IN_PROGRESS,
            limit=batch_size,
        )

    result = {
        "examined": len(codes),
        "matches_settled": 0,
        "rounds_started": 0,
        "completed": 0,
        "failed": 0,
    }
    for code in codes:
        try:
            async with SessionLocal.begin() as session:
                sync = await TournamentServiceFacade.sync(
                    session,
                    code=code,
                    now_utc=datetime.now(timezone.utc),
                )
        except GameError as exc:
            result["failed"] += 1
            logger.warning("tournament_sync_failed", tournament_code=code, error_code=exc.code)
            continue
        result["matches_settled"] += sync.matches_settled
        result["rounds_started"] += int(sync.round_started is not None)
        result["completed"] += int(sync.completed_now)

    logger.info("tournament_sweep_finished", **result)
    return result


@celery_app.task(name="integral_rush.workers.tasks.tournaments.advance_tournaments")
def advance_tournaments(batch_size: int = SWEEP_BATCH_SIZE) -> dict[str, int]:
    return run_async_job(
        advance_tournaments_async(batch_size=batch_size),
        job_name="tournaments.advance_tournaments",
    )


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "tournaments-advance-rounds": {
            "task": "integral_rush.workers.tasks.tournaments.advance_tournaments",
            "schedule": float(SWEEP_INTERVAL_SECONDS),
            "options": {"queue": "q_normal"},
        }
    }
)
