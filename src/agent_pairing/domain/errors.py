"""Error taxonomy for the pairing handshake."""


class PairingError(Exception):
    """Base error carrying an API error code and HTTP status."""

    code = "PAIRING_ERROR"
    status_code = 400
    default_message = "Pairing failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class SessionNotFoundError(PairingError):
    """Raised for unknown or purged session ids."""

    code = "SESSION_NOT_FOUND"
    status_code = 404
    default_message = "Pairing session not found"


class SessionExpiredError(PairingError):
    """Raised when a known session is past its TTL."""

    code = "SESSION_EXPIRED"
    status_code = 400
    default_message = "Pairing session has expired"


class SessionAlreadyExistsError(PairingError):
    """Raised by a repository when a session id is already taken."""

    code = "SESSION_ALREADY_EXISTS"
    status_code = 409
    default_message = "Pairing session already exists"


class StorageUnavailableError(PairingError):
    """Raised for transient storage faults; callers may retry."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503
    default_message = "Pairing storage is unavailable"


class InvalidTransitionError(RuntimeError):
    """Raised when a state machine is asked to make an illegal step."""
