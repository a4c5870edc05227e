from __future__ import annotations

import math
from typing import Any, Sequence

from integral_rush.game.tournaments.constants import (
    ROUND_ROBIN_BASE_POINTS,
    ROUND_ROBIN_MAX_SPEED_BONUS,
)


def answer_points(*, seconds: float, time_per_question: int) -> int:
    """Base points plus a speed bonus that shrinks linearly to zero at the question time limit."""
    limit = max(1, int(time_per_question))
    bonus = math.floor(max(0.0, limit - float(seconds)) / limit * ROUND_ROBIN_MAX_SPEED_BONUS)
    return ROUND_ROBIN_BASE_POINTS + bonus


def seat_match_totals(
    answer_log: Sequence[dict[str, Any]],
    *,
    seat: str,
    time_per_question: int,
) -> tuple[int, float]:
    points = 0
    seconds_spent = 0.0
    for item in answer_log:
        if item.get("seat") != seat:
            continue
        seconds = float(item.get("seconds") or 0.0)
        seconds_spent += seconds
        if item.get("is_correct"):
            points += answer_points(seconds=seconds, time_per_question=time_per_question)
    return points, round(seconds_spent, 3)
