from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_participants import TournamentParticipant
from integral_rush.db.models.tournament_rooms import TournamentRoom
from integral_rush.db.repo.tournament_matches_repo import TournamentMatchesRepo
from integral_rush.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from integral_rush.db.repo.tournament_rooms_repo import TournamentRoomsRepo
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_FORMAT_KNOCKOUT,
    TOURNAMENT_MATCH_STATUS_IN_PROGRESS,
    TOURNAMENT_MIN_PARTICIPANTS,
    TOURNAMENT_STATUS_WAITING,
)
from integral_rush.game.tournaments.errors import TournamentNotFoundError
from integral_rush.game.tournaments.internal import (
    build_match_snapshot,
    build_participant_snapshot,
    build_tournament_snapshot,
)
from integral_rush.game.tournaments.types import TournamentLobbySnapshot, TournamentStandingEntry


async def _get_tournament_or_raise(session: AsyncSession, *, code: str) -> TournamentRoom:
    tournament = await TournamentRoomsRepo.get_by_code(session, code)
    if tournament is None:
        raise TournamentNotFoundError
    return tournament


def _knockout_sort_key(
    row: TournamentParticipant,
    *,
    champion_id: int | None,
) -> tuple[int, int, int, int, float, object, int]:
    eliminated_in_round = row.eliminated_in_round
    return (
        0 if champion_id is not None and int(row.user_id) == champion_id else 1,
        0 if eliminated_in_round is None else 1,
        -int(eliminated_in_round or 0),
        -int(row.points),
        float(row.seconds_spent),
        row.joined_at,
        int(row.user_id),
    )


async def get_leaderboard(session: AsyncSession, *, code: str) -> list[TournamentStandingEntry]:
    """Round robin ranks by points then total seconds; knockout ranks by how far each player got."""
    tournament = await _get_tournament_or_raise(session, code=code)
    rows = await TournamentParticipantsRepo.list_standings(session, tournament_code=code)
    if tournament.format == TOURNAMENT_FORMAT_KNOCKOUT:
        champion_id = int(tournament.champion_id) if tournament.champion_id is not None else None
        rows = sorted(rows, key=lambda row: _knockout_sort_key(row, champion_id=champion_id))

    return [
        TournamentStandingEntry(
            rank=rank,
            user_id=int(row.user_id),
            points=int(row.points),
            seconds_spent=float(row.seconds_spent),
            matches_played=int(row.matches_played),
            wins=int(row.wins),
            eliminated_in_round=row.eliminated_in_round,
        )
        for rank, row in enumerate(rows, start=1)
    ]


async def get_tournament(
    session: AsyncSession,
    *,
    code: str,
    viewer_id: int,
) -> TournamentLobbySnapshot:
    tournament = await _get_tournament_or_raise(session, code=code)
    participants = await TournamentParticipantsRepo.list_for_tournament(
        session,
        tournament_code=code,
    )
    current_round = int(tournament.current_round)
    matches = (
        await TournamentMatchesRepo.list_by_tournament_round(
            session,
            tournament_code=code,
            round_no=current_round,
        )
        if current_round > 0
        else []
    )

    viewer_current_room_code: str | None = None
    for match in matches:
        if match.status != TOURNAMENT_MATCH_STATUS_IN_PROGRESS:
            continue
        if viewer_id in {int(match.user_a), int(match.user_b or 0)}:
            viewer_current_room_code = match.duel_room_code
            break

    viewer_is_host = int(tournament.host_id) == viewer_id
    return TournamentLobbySnapshot(
        tournament=build_tournament_snapshot(tournament),
        participants=tuple(build_participant_snapshot(item) for item in participants),
        current_round_matches=tuple(build_match_snapshot(item) for item in matches),
        viewer_joined=any(int(item.user_id) == viewer_id for item in participants),
        viewer_is_host=viewer_is_host,
        can_start=(
            viewer_is_host
            and tournament.status == TOURNAMENT_STATUS_WAITING
            and len(participants) >= TOURNAMENT_MIN_PARTICIPANTS
        ),
        viewer_current_room_code=viewer_current_room_code,
    )
