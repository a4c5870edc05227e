from __future__ import annotations

from integral_rush.game.errors import (
    AccessDeniedError,
    CapacityExhaustedError,
    ConflictError,
    InvalidRequestError,
    InvariantViolationError,
    NotFoundError,
)


class DuelRoomNotFoundError(NotFoundError):
    code = "E_ROOM_NOT_FOUND"


class DuelAccessError(AccessDeniedError):
    code = "E_NOT_A_SEAT"


class DuelRoomConflictError(ConflictError):
    code = "E_ROOM_CONFLICT"


class DuelAlreadyStartedError(DuelRoomConflictError):
    code = "E_ALREADY_STARTED"


class DuelRoomFullError(DuelAlreadyStartedError, CapacityExhaustedError):
    code = "E_ROOM_FULL"


class DuelSelfJoinError(DuelRoomConflictError):
    code = "E_SELF_JOIN"


class DuelNotStartedError(DuelRoomConflictError):
    code = "E_NOT_STARTED"


class DuelNoActiveQuestionError(DuelRoomConflictError):
    code = "E_NO_ACTIVE_QUESTION"


class DuelAlreadyAnsweredError(DuelRoomConflictError):
    code = "E_ALREADY_ANSWERED"


class DuelCancelNotAllowedError(DuelRoomConflictError):
    code = "E_CANNOT_CANCEL_STARTED"


class DuelInvalidConfigError(InvalidRequestError):
    code = "E_INVALID_CONFIG"


class RoomCodeExhaustedError(CapacityExhaustedError):
    code = "E_CODE_EXHAUSTED"


class DuelInvariantViolationError(InvariantViolationError):
    code = "E_INVARIANT_VIOLATION"

    def __init__(self, room_code: str, violations: tuple[str, ...]) -> None:
        super().__init__(f"room {room_code}: {', '.join(violations)}")
        self.room_code = room_code
        self.violations = violations
