from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_rooms import TournamentRoom
from integral_rush.db.repo.tournament_matches_repo import TournamentMatchesRepo
from integral_rush.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from integral_rush.game.duels.service import abandon_duel_room
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_FORMAT_ROUND_ROBIN,
    TOURNAMENT_MATCH_OPEN_STATUSES,
    TOURNAMENT_MATCH_STATUS_WALKOVER,
    TOURNAMENT_STATUS_ABANDONED,
    TOURNAMENT_STATUS_COMPLETED,
    TOURNAMENT_STATUS_IN_PROGRESS,
    is_tournament_terminal_status,
)
from integral_rush.game.tournaments.errors import TournamentAccessError
from integral_rush.game.tournaments.internal import (
    build_tournament_snapshot,
    flush_tournament,
    get_tournament_for_update,
)
from integral_rush.game.tournaments.rounds import create_round_matches, open_scheduled_round
from integral_rush.game.tournaments.scheduling import build_knockout_next_round
from integral_rush.game.tournaments.settlement import settle_round_matches
from integral_rush.game.tournaments.types import TournamentAbandonResult, TournamentSyncResult

logger = structlog.get_logger(__name__)


def _complete(tournament: TournamentRoom, *, champion_id: int, now_utc: datetime) -> None:
    tournament.status = TOURNAMENT_STATUS_COMPLETED
    tournament.champion_id = champion_id
    tournament.completed_at = now_utc
    logger.info(
        "tournament_completed",
        tournament_code=tournament.code,
        champion_id=champion_id,
        rounds_played=int(tournament.current_round),
    )


async def _advance_round(
    session: AsyncSession,
    *,
    tournament: TournamentRoom,
    now_utc: datetime,
) -> bool:
    """Moves past a fully settled round. Returns False when there is nothing to do yet."""
    round_no = int(tournament.current_round)
    open_total = await TournamentMatchesRepo.count_open_for_round(
        session,
        tournament_code=tournament.code,
        round_no=round_no,
    )
    if open_total > 0:
        return False

    if tournament.format == TOURNAMENT_FORMAT_ROUND_ROBIN:
        if round_no >= int(tournament.total_rounds):
            standings = await TournamentParticipantsRepo.list_standings(
                session,
                tournament_code=tournament.code,
            )
            _complete(tournament, champion_id=int(standings[0].user_id), now_utc=now_utc)
            return True
        tournament.current_round = round_no + 1
        await open_scheduled_round(
            session,
            tournament=tournament,
            round_no=round_no + 1,
            now_utc=now_utc,
        )
    else:
        matches = await TournamentMatchesRepo.list_by_tournament_round(
            session,
            tournament_code=tournament.code,
            round_no=round_no,
        )
        winners = [int(match.winner_id) for match in matches if match.winner_id is not None]
        if not winners:
            logger.error(
                "tournament_round_without_winners",
                tournament_code=tournament.code,
                round_no=round_no,
            )
            return False
        if len(winners) == 1:
            _complete(tournament, champion_id=winners[0], now_utc=now_utc)
            return True
        tournament.current_round = round_no + 1
        await create_round_matches(
            session,
            tournament=tournament,
            round_no=round_no + 1,
            pairs=build_knockout_next_round(winners),
            now_utc=now_utc,
        )

    logger.info(
        "tournament_round_started",
        tournament_code=tournament.code,
        round_no=int(tournament.current_round),
    )
    return True


async def sync_tournament(
    session: AsyncSession,
    *,
    code: str,
    now_utc: datetime,
) -> TournamentSyncResult:
    tournament = await get_tournament_for_update(session, code=code)
    if tournament.status != TOURNAMENT_STATUS_IN_PROGRESS:
        return TournamentSyncResult(
            snapshot=build_tournament_snapshot(tournament),
            matches_settled=0,
            round_started=None,
            completed_now=False,
        )

    matches_settled = 0
    round_started: int | None = None
    while tournament.status == TOURNAMENT_STATUS_IN_PROGRESS:
        matches_settled += await settle_round_matches(
            session,
            tournament=tournament,
            round_no=int(tournament.current_round),
        )
        if not await _advance_round(session, tournament=tournament, now_utc=now_utc):
            break
        if tournament.status == TOURNAMENT_STATUS_IN_PROGRESS:
            round_started = int(tournament.current_round)

    await flush_tournament(session, tournament=tournament)
    return TournamentSyncResult(
        snapshot=build_tournament_snapshot(tournament),
        matches_settled=matches_settled,
        round_started=round_started,
        completed_now=tournament.status == TOURNAMENT_STATUS_COMPLETED,
    )


async def abandon_tournament(
    session: AsyncSession,
    *,
    code: str,
    caller_id: int,
    now_utc: datetime,
) -> TournamentAbandonResult:
    tournament = await get_tournament_for_update(session, code=code)
    if int(tournament.host_id) != caller_id:
        raise TournamentAccessError
    if is_tournament_terminal_status(tournament.status):
        return TournamentAbandonResult(
            snapshot=build_tournament_snapshot(tournament),
            applied=False,
            rooms_abandoned=0,
        )

    rooms_abandoned = 0
    matches = await TournamentMatchesRepo.list_by_tournament(session, tournament_code=code)
    for match in matches:
        if match.status not in TOURNAMENT_MATCH_OPEN_STATUSES:
            continue
        if match.duel_room_code is not None:
            result = await abandon_duel_room(session, code=match.duel_room_code, now_utc=now_utc)
            rooms_abandoned += int(result.applied)
        match.status = TOURNAMENT_MATCH_STATUS_WALKOVER
        match.winner_id = None

    tournament.status = TOURNAMENT_STATUS_ABANDONED
    tournament.completed_at = now_utc
    await flush_tournament(session, tournament=tournament)
    logger.info(
        "tournament_abandoned",
        tournament_code=code,
        caller_id=caller_id,
        rooms_abandoned=rooms_abandoned,
    )
    return TournamentAbandonResult(
        snapshot=build_tournament_snapshot(tournament),
        applied=True,
        rooms_abandoned=rooms_abandoned,
    )
