"""
Domain failures raised by the repositories, the ledger and the token verifier.

The API layer is the only place that turns these into HTTP responses; each
class carries the status code and default message it maps to.
"""

from typing import Optional


class EventDeskError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(EventDeskError):
    status_code = 400
    message = "Invalid input"


class Unauthorized(EventDeskError):
    status_code = 401
    message = "Access token required"


class TokenExpired(Unauthorized):
    message = "Token has expired"


class TokenMalformed(Unauthorized):
    message = "Invalid token"


class TokenSignatureInvalid(Unauthorized):
    message = "Invalid token signature"


class InvalidCredentials(Unauthorized):
    message = "Invalid credentials"


class Forbidden(EventDeskError):
    status_code = 403
    message = "Admin access required"


class NotFound(EventDeskError):
    status_code = 404
    message = "Not found"


class Conflict(EventDeskError):
    status_code = 400
    message = "Conflict"


class DuplicateIdentity(Conflict):
    message = "Username or email already exists"


class AlreadyRegistered(Conflict):
    message = "Already registered for this event"


class CapacityExceeded(EventDeskError):
    status_code = 400
    message = "Event is at full capacity"


class PastEvent(EventDeskError):
    status_code = 400
    message = "Cannot cancel registration for past events"
