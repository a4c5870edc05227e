from __future__ import annotations

from fastapi import HTTPException, status

from integral_rush.game.errors import (
    AccessDeniedError,
    CapacityExhaustedError,
    ConflictError,
    GameError,
    InvalidRequestError,
    InvariantViolationError,
    NotFoundError,
    UpstreamUnavailableError,
)

_STATUS_BY_CATEGORY: tuple[tuple[type[GameError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (CapacityExhaustedError, status.HTTP_409_CONFLICT),
    (InvariantViolationError, status.HTTP_409_CONFLICT),
    (UpstreamUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InvalidRequestError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_code_for(exc: GameError) -> int:
    for category, status_code in _STATUS_BY_CATEGORY:
        if isinstance(exc, category):
            return status_code
    return status.HTTP_409_CONFLICT


def as_http_exception(exc: GameError) -> HTTPException:
    return HTTPException(status_code=status_code_for(exc), detail={"code": exc.code})
