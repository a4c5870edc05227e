from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from integral_rush.game.duels.constants import (
    DUEL_QUESTIONS_TO_WIN_DEFAULT,
    DUEL_TIME_CONTROL_DEFAULT_SECONDS,
)
from integral_rush.game.problems.constants import DIFFICULTY_MIXED


class DuelCreateRequest(BaseModel):
    time_control: int = Field(default=DUEL_TIME_CONTROL_DEFAULT_SECONDS, gt=0)
    difficulty: str = Field(default=DIFFICULTY_MIXED, min_length=1, max_length=16)
    questions_to_win: int = Field(default=DUEL_QUESTIONS_TO_WIN_DEFAULT, gt=0)


class DuelAnswerRequest(BaseModel):
    answer: str = Field(max_length=512)


class DuelProblemResponse(BaseModel):
    id: str
    statement: str
    difficulty: str
    hint: str | None = None
    solution: str | None = None
    alternatives: list[str] | None = None


class DuelRoomResponse(BaseModel):
    code: str
    source: str
    status: str
    phase: str | None = None
    host_id: int
    opponent_id: int | None = None
    time_control: int
    difficulty: str
    questions_to_win: int
    question_budget: int | None = None
    host_score: int = Field(ge=0)
    opponent_score: int = Field(ge=0)
    host_time_remaining: int = Field(ge=0)
    opponent_time_remaining: int = Field(ge=0)
    question_no: int = Field(ge=0)
    current_problem: DuelProblemResponse | None = None
    question_started_at: datetime | None = None
    host_answered: bool
    opponent_answered: bool
    winner_id: int | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    version: int


class DuelQuestionResponse(BaseModel):
    room: DuelRoomResponse
    issued_now: bool


class DuelAnswerResponse(BaseModel):
    room: DuelRoomResponse
    applied: bool
    is_correct: bool | None = None
    feedback: str | None = None
    completed_now: bool


class DuelTickResponse(BaseModel):
    room: DuelRoomResponse
    applied: bool
    expired_now: bool


class DuelAbandonResponse(BaseModel):
    room: DuelRoomResponse
    applied: bool
