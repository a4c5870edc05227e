from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from integral_rush.game.problems.types import IntegralProblem


@dataclass(slots=True, frozen=True)
class DuelConfig:
    time_control: int
    difficulty: str
    questions_to_win: int
    question_budget: int | None = None


@dataclass(slots=True)
class DuelAnswerLogEntry:
    question_no: int
    seat: str
    is_correct: bool
    seconds: float


@dataclass(slots=True)
class DuelRoomSnapshot:
    code: str
    source: str
    status: str
    phase: str | None
    host_id: int
    opponent_id: int | None
    time_control: int
    difficulty: str
    questions_to_win: int
    question_budget: int | None
    host_score: int
    opponent_score: int
    host_time_remaining: int
    opponent_time_remaining: int
    question_no: int
    current_problem: IntegralProblem | None
    question_started_at: datetime | None
    host_answered: bool
    opponent_answered: bool
    answer_log: tuple[DuelAnswerLogEntry, ...]
    winner_id: int | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    version: int


@dataclass(slots=True)
class DuelQuestionResult:
    snapshot: DuelRoomSnapshot
    problem: IntegralProblem | None
    issued_now: bool


@dataclass(slots=True)
class DuelAnswerResult:
    snapshot: DuelRoomSnapshot
    applied: bool
    is_correct: bool | None
    feedback: str | None
    completed_now: bool


@dataclass(slots=True)
class DuelTickResult:
    snapshot: DuelRoomSnapshot
    applied: bool
    expired_now: bool


@dataclass(slots=True)
class DuelAbandonResult:
    snapshot: DuelRoomSnapshot
    applied: bool
