from __future__ import annotations


class GameError(Exception):
    code = "E_GAME"


class NotFoundError(GameError):
    code = "E_NOT_FOUND"


class AccessDeniedError(GameError):
    code = "E_ACCESS_DENIED"


class ConflictError(GameError):
    code = "E_CONFLICT"


class CapacityExhaustedError(GameError):
    code = "E_CAPACITY_EXHAUSTED"


class UpstreamUnavailableError(GameError):
    code = "E_UPSTREAM_UNAVAILABLE"


class InvariantViolationError(GameError):
    code = "E_INVARIANT_VIOLATION"


class InvalidRequestError(GameError):
    code = "E_INVALID_REQUEST"
