from __future__ import annotations

DIFFICULTY_BASIC = "Basic"
DIFFICULTY_INTERMEDIATE = "Intermediate"
DIFFICULTY_ADVANCED = "Advanced"
DIFFICULTY_MIXED = "Mixed"

CONCRETE_DIFFICULTIES: tuple[str, ...] = (
    DIFFICULTY_BASIC,
    DIFFICULTY_INTERMEDIATE,
    DIFFICULTY_ADVANCED,
)
ALL_DIFFICULTIES: frozenset[str] = frozenset((*CONCRETE_DIFFICULTIES, DIFFICULTY_MIXED))


def is_valid_difficulty(value: str) -> bool:
    return value in ALL_DIFFICULTIES
