from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from integral_rush.db.models.tournament_rooms import TournamentRoom
from integral_rush.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from integral_rush.db.repo.tournament_rooms_repo import TournamentRoomsRepo
from integral_rush.game.problems.constants import DIFFICULTY_MIXED, is_valid_difficulty
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_DEFAULT_MAX_PARTICIPANTS,
    TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH,
    TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS,
    TOURNAMENT_FORMAT_ROUND_ROBIN,
    TOURNAMENT_FORMATS,
    TOURNAMENT_STATUS_WAITING,
    clamp_max_participants,
    clamp_questions_per_match,
    clamp_time_per_question,
)
from integral_rush.game.tournaments.errors import (
    TournamentAlreadyJoinedError,
    TournamentAlreadyStartedError,
    TournamentFullError,
    TournamentInvalidConfigError,
)
from integral_rush.game.tournaments.internal import (
    build_tournament_snapshot,
    generate_tournament_code,
    get_tournament_for_update,
)
from integral_rush.game.tournaments.types import TournamentJoinResult, TournamentSnapshot

logger = structlog.get_logger(__name__)


async def create_tournament(
    session: AsyncSession,
    *,
    host_id: int,
    now_utc: datetime,
    format_code: str = TOURNAMENT_FORMAT_ROUND_ROBIN,
    max_players: int = TOURNAMENT_DEFAULT_MAX_PARTICIPANTS,
    difficulty: str = DIFFICULTY_MIXED,
    questions_per_match: int = TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH,
    time_per_question: int = TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS,
) -> TournamentSnapshot:
    if format_code not in TOURNAMENT_FORMATS:
        raise TournamentInvalidConfigError(f"unknown format {format_code!r}")
    if not is_valid_difficulty(difficulty):
        raise TournamentInvalidConfigError(f"unknown difficulty {difficulty!r}")

    code = await generate_tournament_code(session)
    tournament = await TournamentRoomsRepo.create(
        session,
        tournament=TournamentRoom(
            code=code,
            host_id=host_id,
            format=format_code,
            status=TOURNAMENT_STATUS_WAITING,
            max_players=clamp_max_participants(max_players),
            difficulty=difficulty,
            questions_per_match=clamp_questions_per_match(questions_per_match),
            time_per_question=clamp_time_per_question(time_per_question),
            current_round=0,
            total_rounds=0,
            champion_id=None,
            created_at=now_utc,
            started_at=None,
            completed_at=None,
        ),
    )
    logger.info(
        "tournament_created",
        tournament_code=code,
        host_id=host_id,
        format=format_code,
        max_players=int(tournament.max_players),
    )
    return build_tournament_snapshot(tournament)


async def join_tournament(
    session: AsyncSession,
    *,
    code: str,
    user_id: int,
    now_utc: datetime,
) -> TournamentJoinResult:
    tournament = await get_tournament_for_update(session, code=code)
    if tournament.status != TOURNAMENT_STATUS_WAITING:
        raise TournamentAlreadyStartedError

    participants = await TournamentParticipantsRepo.list_for_tournament(
        session,
        tournament_code=code,
    )
    existing_user_ids = {int(item.user_id) for item in participants}
    if user_id in existing_user_ids:
        raise TournamentAlreadyJoinedError
    if len(existing_user_ids) >= int(tournament.max_players):
        raise TournamentFullError

    joined_now = await TournamentParticipantsRepo.create_once(
        session,
        tournament_code=code,
        user_id=user_id,
        joined_at=now_utc,
    )
    if not joined_now:
        raise TournamentAlreadyJoinedError

    participants_total = len(existing_user_ids) + 1
    logger.info(
        "tournament_joined",
        tournament_code=code,
        user_id=user_id,
        participants_total=participants_total,
    )
    return TournamentJoinResult(
        snapshot=build_tournament_snapshot(tournament),
        participants_total=participants_total,
    )
