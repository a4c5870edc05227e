from integral_rush.game.errors import (
    AccessDeniedError,
    CapacityExhaustedError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
)


class TournamentNotFoundError(NotFoundError):
    code = "E_TOURNAMENT_NOT_FOUND"


class TournamentAccessError(AccessDeniedError):
    code = "E_NOT_TOURNAMENT_HOST"


class TournamentConflictError(ConflictError):
    code = "E_TOURNAMENT_CONFLICT"


class TournamentAlreadyStartedError(TournamentConflictError):
    code = "E_ALREADY_STARTED"


class TournamentAlreadyJoinedError(TournamentConflictError):
    code = "E_ALREADY_JOINED"


class TournamentInsufficientParticipantsError(TournamentConflictError):
    code = "E_NOT_ENOUGH_PLAYERS"


class TournamentFullError(CapacityExhaustedError):
    code = "E_TOURNAMENT_FULL"


class TournamentInvalidConfigError(InvalidRequestError):
    code = "E_INVALID_CONFIG"
