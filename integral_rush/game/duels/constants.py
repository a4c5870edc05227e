from __future__ import annotations

DUEL_STATUS_WAITING = "WAITING"
DUEL_STATUS_IN_PROGRESS = "IN_PROGRESS"
DUEL_STATUS_COMPLETED = "COMPLETED"
DUEL_STATUS_ABANDONED = "ABANDONED"

DUEL_TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        DUEL_STATUS_COMPLETED,
        DUEL_STATUS_ABANDONED,
    }
)

DUEL_PHASE_COUNTDOWN = "countdown"
DUEL_PHASE_PLAYING = "playing"
DUEL_PHASE_RESULT = "result"
DUEL_PHASE_FINISHED = "finished"

# Phases from which a new question may be issued.
DUEL_ADVANCEABLE_PHASES: frozenset[str] = frozenset(
    {
        DUEL_PHASE_COUNTDOWN,
        DUEL_PHASE_RESULT,
    }
)

DUEL_SOURCE_PRIVATE = "PRIVATE"
DUEL_SOURCE_MATCHMAKING = "MATCHMAKING"
DUEL_SOURCE_TOURNAMENT = "TOURNAMENT"

DUEL_SEAT_HOST = "host"
DUEL_SEAT_OPPONENT = "opponent"

DUEL_TIME_CONTROL_MIN_SECONDS = 60
DUEL_TIME_CONTROL_MAX_SECONDS = 600
DUEL_TIME_CONTROL_DEFAULT_SECONDS = 180

DUEL_QUESTIONS_TO_WIN_MIN = 3
DUEL_QUESTIONS_TO_WIN_MAX = 10
DUEL_QUESTIONS_TO_WIN_DEFAULT = 5

DUEL_CAS_MAX_ATTEMPTS = 3


def is_duel_terminal_status(status: str) -> bool:
    return status in DUEL_TERMINAL_STATUSES


def clamp_time_control(value: int) -> int:
    return max(DUEL_TIME_CONTROL_MIN_SECONDS, min(int(value), DUEL_TIME_CONTROL_MAX_SECONDS))


def clamp_questions_to_win(value: int) -> int:
    return max(DUEL_QUESTIONS_TO_WIN_MIN, min(int(value), DUEL_QUESTIONS_TO_WIN_MAX))
