from __future__ import annotations

TOURNAMENT_STATUS_WAITING = "WAITING"
TOURNAMENT_STATUS_IN_PROGRESS = "IN_PROGRESS"
TOURNAMENT_STATUS_COMPLETED = "COMPLETED"
TOURNAMENT_STATUS_ABANDONED = "ABANDONED"

TOURNAMENT_TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        TOURNAMENT_STATUS_COMPLETED,
        TOURNAMENT_STATUS_ABANDONED,
    }
)

TOURNAMENT_FORMAT_ROUND_ROBIN = "ROUND_ROBIN"
TOURNAMENT_FORMAT_KNOCKOUT = "KNOCKOUT"
TOURNAMENT_FORMATS: frozenset[str] = frozenset(
    {
        TOURNAMENT_FORMAT_ROUND_ROBIN,
        TOURNAMENT_FORMAT_KNOCKOUT,
    }
)

TOURNAMENT_MATCH_STATUS_SCHEDULED = "SCHEDULED"
TOURNAMENT_MATCH_STATUS_IN_PROGRESS = "IN_PROGRESS"
TOURNAMENT_MATCH_STATUS_COMPLETED = "COMPLETED"
TOURNAMENT_MATCH_STATUS_WALKOVER = "WALKOVER"
TOURNAMENT_MATCH_OPEN_STATUSES: frozenset[str] = frozenset(
    {
        TOURNAMENT_MATCH_STATUS_SCHEDULED,
        TOURNAMENT_MATCH_STATUS_IN_PROGRESS,
    }
)

TOURNAMENT_MIN_PARTICIPANTS = 2
TOURNAMENT_MAX_PARTICIPANTS = 16
TOURNAMENT_DEFAULT_MAX_PARTICIPANTS = 8

TOURNAMENT_QUESTIONS_PER_MATCH_MIN = 3
TOURNAMENT_QUESTIONS_PER_MATCH_MAX = 10
TOURNAMENT_DEFAULT_QUESTIONS_PER_MATCH = 5

TOURNAMENT_TIME_PER_QUESTION_MIN_SECONDS = 10
TOURNAMENT_TIME_PER_QUESTION_MAX_SECONDS = 300
TOURNAMENT_DEFAULT_TIME_PER_QUESTION_SECONDS = 60

ROUND_ROBIN_BASE_POINTS = 1000
ROUND_ROBIN_MAX_SPEED_BONUS = 500


def is_tournament_terminal_status(status: str) -> bool:
    return status in TOURNAMENT_TERMINAL_STATUSES


def clamp_max_participants(value: int) -> int:
    return max(TOURNAMENT_MIN_PARTICIPANTS, min(int(value), TOURNAMENT_MAX_PARTICIPANTS))


def clamp_questions_per_match(value: int) -> int:
    return max(
        TOURNAMENT_QUESTIONS_PER_MATCH_MIN,
        min(int(value), TOURNAMENT_QUESTIONS_PER_MATCH_MAX),
    )


def clamp_time_per_question(value: int) -> int:
    return max(
        TOURNAMENT_TIME_PER_QUESTION_MIN_SECONDS,
        min(int(value), TOURNAMENT_TIME_PER_QUESTION_MAX_SECONDS),
    )
