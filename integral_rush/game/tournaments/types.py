from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(slots=True)
class TournamentSnapshot:
    code: str
    host_id: int
    format: str
    status: str
    max_players: int
    difficulty: str
    questions_per_match: int
    time_per_question: int
    current_round: int
    total_rounds: int
    champion_id: int | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None


@dataclass(slots=True, frozen=True)
class TournamentPair:
    user_a: int
    user_b: int | None


@dataclass(slots=True)
class TournamentParticipantSnapshot:
    user_id: int
    joined_at: datetime
    points: int
    seconds_spent: float
    matches_played: int
    wins: int
    eliminated_in_round: int | None


@dataclass(slots=True)
class TournamentMatchSnapshot:
    match_id: UUID
    round_no: int
    slot: int
    user_a: int
    user_b: int | None
    status: str
    duel_room_code: str | None
    score_a: int
    score_b: int
    winner_id: int | None


@dataclass(slots=True)
class TournamentJoinResult:
    snapshot: TournamentSnapshot
    participants_total: int


@dataclass(slots=True)
class TournamentStartResult:
    snapshot: TournamentSnapshot
    round_no: int
    matches_total: int


@dataclass(slots=True)
class TournamentSyncResult:
    snapshot: TournamentSnapshot
    matches_settled: int
    round_started: int | None
    completed_now: bool


@dataclass(slots=True)
class TournamentAbandonResult:
    snapshot: TournamentSnapshot
    applied: bool
    rooms_abandoned: int


@dataclass(slots=True)
class TournamentStandingEntry:
    rank: int
    user_id: int
    points: int
    seconds_spent: float
    matches_played: int
    wins: int
    eliminated_in_round: int | None


@dataclass(slots=True)
class TournamentLobbySnapshot:
    tournament: TournamentSnapshot
    participants: tuple[TournamentParticipantSnapshot, ...]
    current_round_matches: tuple[TournamentMatchSnapshot, ...]
    viewer_joined: bool
    viewer_is_host: bool
    can_start: bool
    viewer_current_room_code: str | None
