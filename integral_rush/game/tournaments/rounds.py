from __future__ import annotations

from datetime import datetime
from typing import Sequence
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_matches import TournamentMatch
from integral_rush.db.models.tournament_rooms import TournamentRoom
from integral_rush.db.repo.tournament_matches_repo import TournamentMatchesRepo
from integral_rush.game.duels.constants import DUEL_SOURCE_TOURNAMENT
from integral_rush.game.duels.service import create_started_room
from integral_rush.game.duels.types import DuelConfig
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_FORMAT_KNOCKOUT,
    TOURNAMENT_MATCH_STATUS_IN_PROGRESS,
    TOURNAMENT_MATCH_STATUS_SCHEDULED,
    TOURNAMENT_MATCH_STATUS_WALKOVER,
)
from integral_rush.game.tournaments.types import TournamentPair


def tournament_duel_config(tournament: TournamentRoom) -> DuelConfig:
    questions_per_match = int(tournament.questions_per_match)
    return DuelConfig(
        time_control=int(tournament.time_per_question) * questions_per_match,
        difficulty=tournament.difficulty,
        questions_to_win=questions_per_match,
        question_budget=questions_per_match,
    )


async def open_match_room(
    session: AsyncSession,
    *,
    tournament: TournamentRoom,
    match: TournamentMatch,
    now_utc: datetime,
) -> str:
    room = await create_started_room(
        session,
        source=DUEL_SOURCE_TOURNAMENT,
        host_id=int(match.user_a),
        opponent_id=int(match.user_b),
        config=tournament_duel_config(tournament),
        now_utc=now_utc,
    )
    match.duel_room_code = room.code
    match.status = TOURNAMENT_MATCH_STATUS_IN_PROGRESS
    return room.code


async def create_round_matches(
    session: AsyncSession,
    *,
    tournament: TournamentRoom,
    round_no: int,
    pairs: Sequence[TournamentPair],
    now_utc: datetime,
    open_rooms: bool = True,
) -> list[TournamentMatch]:
    """Persists one round; byes become walkovers, the rest get a duel room when ``open_rooms``."""
    bye_wins = tournament.format == TOURNAMENT_FORMAT_KNOCKOUT
    matches: list[TournamentMatch] = []
    for slot, pair in enumerate(pairs, start=1):
        is_bye = pair.user_b is None
        matches.append(
            TournamentMatch(
                id=uuid4(),
                tournament_code=tournament.code,
                round_no=round_no,
                slot=slot,
                user_a=pair.user_a,
                user_b=pair.user_b,
                status=(
                    TOURNAMENT_MATCH_STATUS_WALKOVER if is_bye else TOURNAMENT_MATCH_STATUS_SCHEDULED
                ),
                duel_room_code=None,
                score_a=0,
                score_b=0,
                winner_id=(pair.user_a if is_bye and bye_wins else None),
            )
        )

    if open_rooms:
        for match in matches:
            if match.status == TOURNAMENT_MATCH_STATUS_SCHEDULED:
                await open_match_room(session, tournament=tournament, match=match, now_utc=now_utc)
    return await TournamentMatchesRepo.create_many(session, matches=matches)


async def open_scheduled_round(
    session: AsyncSession,
    *,
    tournament: TournamentRoom,
    round_no: int,
    now_utc: datetime,
) -> int:
    matches = await TournamentMatchesRepo.list_by_tournament_round(
        session,
        tournament_code=tournament.code,
        round_no=round_no,
    )
    opened = 0
    for match in matches:
        if match.status != TOURNAMENT_MATCH_STATUS_SCHEDULED or match.user_b is None:
            continue
        await open_match_room(session, tournament=tournament, match=match, now_utc=now_utc)
        opened += 1
    await session.flush()
    return opened
