from integral_rush.game.errors import ConflictError, InvalidRequestError


class AlreadyQueuedError(ConflictError):
    code = "E_ALREADY_QUEUED"


class InvalidQueueConfigError(InvalidRequestError):
    code = "E_INVALID_QUEUE_CONFIG"
