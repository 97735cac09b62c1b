"""Error taxonomy shared by the workflow engine, the stores and the API layer.

Every error carries the HTTP status it maps to and a client-safe message.
Internal detail belongs in the server log, never in ``message``.
"""

from fastapi import status


class LeavePortalError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LeavePortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "malformed request data"


class AuthError(LeavePortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "invalid email or password"


class NotFoundError(LeavePortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "invalid or expired token"


class ConflictError(LeavePortalError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "conflict"


class PersistenceError(LeavePortalError):
    default_message = "failed to persist request"


class ConfigurationError(LeavePortalError):
    default_message = "server is not configured"


class NotificationError(LeavePortalError):
    """Email dispatch failure. Logged by the dispatcher, never returned to a caller."""

    default_message = "failed to send notification"
