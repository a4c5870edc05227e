from __future__ import annotations

import secrets

ROOM_CODE_MIN = 100_000
ROOM_CODE_MAX = 999_999


def generate_room_code() -> str:
    """Generates a 6-digit numeric room code, uniform over the whole range."""
    return str(ROOM_CODE_MIN + secrets.randbelow(ROOM_CODE_MAX - ROOM_CODE_MIN + 1))
