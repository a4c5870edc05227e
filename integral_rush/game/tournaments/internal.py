from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from integral_rush.core.config import get_settings
from integral_rush.core.room_codes import generate_room_code
from integral_rush.db.models.tournament_matches import TournamentMatch
from integral_rush.db.models.tournament_participants import TournamentParticipant
from integral_rush.db.models.tournament_rooms import TournamentRoom
from integral_rush.db.repo.tournament_rooms_repo import TournamentRoomsRepo
from integral_rush.game.duels.errors import RoomCodeExhaustedError
from integral_rush.game.tournaments.errors import TournamentConflictError, TournamentNotFoundError
from integral_rush.game.tournaments.types import (
    TournamentMatchSnapshot,
    TournamentParticipantSnapshot,
    TournamentSnapshot,
)

logger = structlog.get_logger(__name__)


def build_tournament_snapshot(tournament: TournamentRoom) -> TournamentSnapshot:
    return TournamentSnapshot(
        code=tournament.code,
        host_id=int(tournament.host_id),
        format=tournament.format,
        status=tournament.status,
        max_players=int(tournament.max_players),
        difficulty=tournament.difficulty,
        questions_per_match=int(tournament.questions_per_match),
        time_per_question=int(tournament.time_per_question),
        current_round=int(tournament.current_round),
        total_rounds=int(tournament.total_rounds),
        champion_id=(int(tournament.champion_id) if tournament.champion_id is not None else None),
        created_at=tournament.created_at,
        started_at=tournament.started_at,
        completed_at=tournament.completed_at,
    )


def build_participant_snapshot(row: TournamentParticipant) -> TournamentParticipantSnapshot:
    return TournamentParticipantSnapshot(
        user_id=int(row.user_id),
        joined_at=row.joined_at,
        points=int(row.points),
        seconds_spent=float(row.seconds_spent),
        matches_played=int(row.matches_played),
        wins=int(row.wins),
        eliminated_in_round=row.eliminated_in_round,
    )


def build_match_snapshot(match: TournamentMatch) -> TournamentMatchSnapshot:
    return TournamentMatchSnapshot(
        match_id=match.id,
        round_no=int(match.round_no),
        slot=int(match.slot),
        user_a=int(match.user_a),
        user_b=(int(match.user_b) if match.user_b is not None else None),
        status=match.status,
        duel_room_code=match.duel_room_code,
        score_a=int(match.score_a),
        score_b=int(match.score_b),
        winner_id=(int(match.winner_id) if match.winner_id is not None else None),
    )


async def generate_tournament_code(session: AsyncSession) -> str:
    max_attempts = max(1, int(get_settings().room_code_max_attempts))
    for _ in range(max_attempts):
        code = generate_room_code()
        if not await TournamentRoomsRepo.code_exists(session, code):
            return code
    logger.error("tournament_code_exhausted", attempts=max_attempts)
    raise RoomCodeExhaustedError


async def get_tournament_for_update(session: AsyncSession, *, code: str) -> TournamentRoom:
    tournament = await TournamentRoomsRepo.get_by_code_for_update(session, code)
    if tournament is None:
        raise TournamentNotFoundError
    return tournament


async def flush_tournament(session: AsyncSession, *, tournament: TournamentRoom) -> None:
    """Flushes pending tournament writes; a concurrent version bump surfaces as a conflict."""
    try:
        await session.flush()
    except StaleDataError as exc:
        logger.info("tournament_conflict", tournament_code=tournament.code)
        raise TournamentConflictError from exc
