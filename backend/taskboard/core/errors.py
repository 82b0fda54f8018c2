"""Error kinds surfaced by the board services.

Every guard and validation failure raises one of these. Services never build
HTTP responses themselves; ``taskboard.api.error_handlers`` maps each kind to
a status code and a ``{"detail", "code"}`` body.
"""

from fastapi import status


class BoardError(Exception):
    """Base error for board operations."""

    kind: str = "INTERNAL"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict[str, str]:
        return {"detail": self.message, "code": self.kind}


class UnauthenticatedError(BoardError):
    """Raised when no actor can be resolved from the caller's credentials."""

    kind = "UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(BoardError):
    """Raised when the actor is known but lacks the privilege."""

    kind = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class BadInputError(BoardError):
    """Raised for malformed arguments, duplicates and invalid transitions."""

    kind = "BAD_INPUT"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFoundError(BoardError):
    """Raised when a referenced id does not resolve."""

    kind = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class StoreContentionError(BoardError):
    """Raised once bounded retries of a contended transaction are exhausted."""

    kind = "STORE_CONTENTION"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The board is busy, please retry"
