from __future__ import annotations

import random
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_FORMAT_ROUND_ROBIN,
    TOURNAMENT_MIN_PARTICIPANTS,
    TOURNAMENT_STATUS_IN_PROGRESS,
    TOURNAMENT_STATUS_WAITING,
)
from integral_rush.game.tournaments.errors import (
    TournamentAccessError,
    TournamentAlreadyStartedError,
    TournamentInsufficientParticipantsError,
)
from integral_rush.game.tournaments.internal import (
    build_tournament_snapshot,
    flush_tournament,
    get_tournament_for_update,
)
from integral_rush.game.tournaments.rounds import create_round_matches
from integral_rush.game.tournaments.scheduling import (
    build_knockout_first_round,
    build_round_robin_rounds,
    knockout_total_rounds,
    shuffle_roster,
)
from integral_rush.game.tournaments.types import TournamentStartResult

logger = structlog.get_logger(__name__)


async def start_tournament(
    session: AsyncSession,
    *,
    code: str,
    caller_id: int,
    now_utc: datetime,
    rng: random.Random | None = None,
) -> TournamentStartResult:
    tournament = await get_tournament_for_update(session, code=code)
    if int(tournament.host_id) != caller_id:
        raise TournamentAccessError
    if tournament.status != TOURNAMENT_STATUS_WAITING:
        raise TournamentAlreadyStartedError

    participants = await TournamentParticipantsRepo.list_for_tournament(
        session,
        tournament_code=code,
    )
    if len(participants) < TOURNAMENT_MIN_PARTICIPANTS:
        raise TournamentInsufficientParticipantsError
    roster = [int(item.user_id) for item in participants]

    matches_total = 0
    if tournament.format == TOURNAMENT_FORMAT_ROUND_ROBIN:
        schedule = build_round_robin_rounds(roster)
        total_rounds = len(schedule)
        for round_no, pairs in enumerate(schedule, start=1):
            created = await create_round_matches(
                session,
                tournament=tournament,
                round_no=round_no,
                pairs=pairs,
                now_utc=now_utc,
                open_rooms=round_no == 1,
            )
            if round_no == 1:
                matches_total = len(created)
    else:
        total_rounds = knockout_total_rounds(len(roster))
        created = await create_round_matches(
            session,
            tournament=tournament,
            round_no=1,
            pairs=build_knockout_first_round(shuffle_roster(roster, rng=rng)),
            now_utc=now_utc,
        )
        matches_total = len(created)

    tournament.status = TOURNAMENT_STATUS_IN_PROGRESS
    tournament.started_at = now_utc
    tournament.current_round = 1
    tournament.total_rounds = total_rounds
    await flush_tournament(session, tournament=tournament)
    logger.info(
        "tournament_started",
        tournament_code=code,
        format=tournament.format,
        participants_total=len(roster),
        total_rounds=total_rounds,
    )
    return TournamentStartResult(
        snapshot=build_tournament_snapshot(tournament),
        round_no=1,
        matches_total=matches_total,
    )
