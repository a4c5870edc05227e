from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.models.tournament_matches import TournamentMatch
from integral_rush.db.models.tournament_rooms import TournamentRoom
from integral_rush.db.repo.duel_rooms_repo import DuelRoomsRepo
from integral_rush.db.repo.tournament_matches_repo import TournamentMatchesRepo
from integral_rush.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from integral_rush.game.duels.constants import (
    DUEL_SEAT_HOST,
    DUEL_SEAT_OPPONENT,
    DUEL_STATUS_COMPLETED,
    is_duel_terminal_status,
)
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_FORMAT_KNOCKOUT,
    TOURNAMENT_MATCH_STATUS_COMPLETED,
    TOURNAMENT_MATCH_STATUS_IN_PROGRESS,
    TOURNAMENT_MATCH_STATUS_WALKOVER,
)
from integral_rush.game.tournaments.scoring import seat_match_totals

logger = structlog.get_logger(__name__)


def resolve_match_winner(
    *,
    tournament: TournamentRoom,
    match: TournamentMatch,
    room: DuelRoom,
) -> int | None:
    if room.status == DUEL_STATUS_COMPLETED:
        return int(room.winner_id) if room.winner_id is not None else None
    if tournament.format != TOURNAMENT_FORMAT_KNOCKOUT:
        return None
    # An abandoned knockout match still has to send someone forward.
    host_standing = (int(room.host_score), int(room.host_time_remaining))
    opponent_standing = (int(room.opponent_score), int(room.opponent_time_remaining))
    if opponent_standing > host_standing:
        return int(match.user_b)
    return int(match.user_a)


async def _apply_participant_result(
    session: AsyncSession,
    *,
    tournament: TournamentRoom,
    user_id: int,
    seat: str,
    room: DuelRoom,
    winner_id: int | None,
    round_no: int,
) -> None:
    points, seconds_spent = seat_match_totals(
        list(room.answer_log or []),
        seat=seat,
        time_per_question=int(tournament.time_per_question),
    )
    await TournamentParticipantsRepo.apply_match_result(
        session,
        tournament_code=tournament.code,
        user_id=user_id,
        points_delta=points,
        seconds_delta=seconds_spent,
        won=winner_id == user_id,
    )
    if tournament.format == TOURNAMENT_FORMAT_KNOCKOUT and winner_id != user_id:
        await TournamentParticipantsRepo.mark_eliminated(
            session,
            tournament_code=tournament.code,
            user_id=user_id,
            round_no=round_no,
        )


async def settle_round_matches(
    session: AsyncSession,
    *,
    tournament: TournamentRoom,
    round_no: int,
) -> int:
    """Settles every in-progress match of the round whose duel room reached a terminal state."""
    matches = await TournamentMatchesRepo.list_by_tournament_round(
        session,
        tournament_code=tournament.code,
        round_no=round_no,
    )
    pending = [
        match
        for match in matches
        if match.status == TOURNAMENT_MATCH_STATUS_IN_PROGRESS and match.duel_room_code is not None
    ]
    if not pending:
        return 0

    rooms = await DuelRoomsRepo.list_by_codes(
        session,
        codes=[str(match.duel_room_code) for match in pending],
    )
    rooms_by_code = {room.code: room for room in rooms}

    settled = 0
    for match in pending:
        room = rooms_by_code.get(str(match.duel_room_code))
        if room is None or not is_duel_terminal_status(room.status):
            continue
        winner_id = resolve_match_winner(tournament=tournament, match=match, room=room)
        match.score_a = int(room.host_score)
        match.score_b = int(room.opponent_score)
        match.winner_id = winner_id
        match.status = (
            TOURNAMENT_MATCH_STATUS_COMPLETED
            if room.status == DUEL_STATUS_COMPLETED
            else TOURNAMENT_MATCH_STATUS_WALKOVER
        )
        for user_id, seat in (
            (int(match.user_a), DUEL_SEAT_HOST),
            (int(match.user_b), DUEL_SEAT_OPPONENT),
        ):
            await _apply_participant_result(
                session,
                tournament=tournament,
                user_id=user_id,
                seat=seat,
                room=room,
                winner_id=winner_id,
                round_no=round_no,
            )
        settled += 1
        logger.info(
            "tournament_match_settled",
            tournament_code=tournament.code,
            round_no=round_no,
            slot=int(match.slot),
            duel_room_code=room.code,
            winner_id=winner_id,
            status=match.status,
        )
    await session.flush()
    return settled
