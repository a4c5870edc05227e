from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from integral_rush.game.problems.constants import DIFFICULTY_MIXED
from integral_rush.game.tournaments.constants import (
    TOURNAMENT_DEFAULT_MAX_PARTICIPANTS,
    TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH,
    TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS,
    TOURNAMENT_FORMAT_ROUND_ROBIN,
)


class TournamentCreateRequest(BaseModel):
    format: str = Field(default=TOURNAMENT_FORMAT_ROUND_ROBIN, min_length=1, max_length=16)
    max_players: int = Field(default=TOURNAMENT_DEFAULT_MAX_PARTICIPANTS, gt=0)
    difficulty: str = Field(default=DIFFICULTY_MIXED, min_length=1, max_length=16)
    questions_per_match: int = Field(default=TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH, gt=0)
    time_per_question: int = Field(default=TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS, gt=0)


class TournamentResponse(BaseModel):
    code: str
    host_id: int
    format: str
    status: str
    max_players: int
    difficulty: str
    questions_per_match: int
    time_per_question: int
    current_round: int = Field(ge=0)
    total_rounds: int = Field(ge=0)
    champion_id: int | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class TournamentParticipantResponse(BaseModel):
    user_id: int
    joined_at: datetime
    points: int = Field(ge=0)
    seconds_spent: float = Field(ge=0.0)
    matches_played: int = Field(ge=0)
    wins: int = Field(ge=0)
    eliminated_in_round: int | None = None


class TournamentMatchResponse(BaseModel):
    match_id: UUID
    round_no: int
    slot: int
    user_a: int
    user_b: int | None = None
    status: str
    duel_room_code: str | None = None
    score_a: int
    score_b: int
    winner_id: int | None = None


class TournamentLobbyResponse(BaseModel):
    tournament: TournamentResponse
    participants: list[TournamentParticipantResponse]
    current_round_matches: list[TournamentMatchResponse]
    viewer_joined: bool
    viewer_is_host: bool
    can_start: bool
    viewer_current_room_code: str | None = None


class TournamentJoinResponse(BaseModel):
    tournament: TournamentResponse
    participants_total: int = Field(ge=0)


class TournamentStartResponse(BaseModel):
    tournament: TournamentResponse
    round_no: int
    matches_total: int = Field(ge=0)


class TournamentAbandonResponse(BaseModel):
    tournament: TournamentResponse
    applied: bool
    rooms_abandoned: int = Field(ge=0)


class TournamentStandingResponse(BaseModel):
    rank: int = Field(ge=1)
    user_id: int
    points: int = Field(ge=0)
    seconds_spent: float = Field(ge=0.0)
    matches_played: int = Field(ge=0)
    wins: int = Field(ge=0)
    eliminated_in_round: int | None = None


class TournamentLeaderboardResponse(BaseModel):
    code: str
    items: list[TournamentStandingResponse]
